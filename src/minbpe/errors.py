"""Custom exception hierarchy for minbpe tokenization errors."""

import regex as re

from .types import Token


class MinBPEError(Exception):
    """Base exception for all minbpe errors."""


class InvalidConfigurationError(MinBPEError):
    """Raised when a tokenizer is configured with values it cannot work with."""

    def __init__(self, message: str, *, vocab_size: int | None = None) -> None:
        """Initialize with an optional vocab_size that gets appended to the message."""
        extra = ""
        if vocab_size is not None:
            extra += f" (vocab size: {vocab_size})"
        super().__init__(message + extra)
        self.vocab_size = vocab_size


class PatternError(InvalidConfigurationError):
    """Raised when compiling and/or validating regex patterns."""

    def __init__(
        self,
        message: str,
        *,
        pattern: str | None = None,
        regex_err: re.error | None = None,
        position: int | None = None,
    ) -> None:
        """
        Initialize PatternError with pattern details.

        :param message: Error message.
        :param pattern: The regex pattern that failed.
        :param regex_err: The underlying regex error from the regex library.
        :param position: Offset into the input text the pattern failed to cover.
        """
        extra = ""
        if pattern:
            extra += f" (pattern: {pattern!r})"
        if regex_err:
            extra += f" (reason: {regex_err})"
        if position is not None:
            extra += f" (position: {position})"
        super().__init__(message + extra)
        self.pattern = pattern
        self.regex_err = regex_err
        self.position = position


class StrategyError(InvalidConfigurationError):
    """Raised when a special token policy cannot be resolved."""

    def __init__(
        self,
        message: str,
        *,
        invalid_name: str | None = None,
        available_strats: list[str] | None = None,
    ) -> None:
        extra = ""
        if invalid_name is not None:
            extra += f" (available: {available_strats}) (got {invalid_name!r})"
        super().__init__(message + extra)
        self.invalid_name = invalid_name
        self.available_strats = available_strats


class SpecialTokenError(MinBPEError):
    """Raised when special token handling fails."""

    def __init__(self, message: str, *, found_tokens: set[str] | None = None) -> None:
        """Initialize with optional found_tokens that get appended to the message."""
        if found_tokens:
            message = f"{message} (found: {', '.join(sorted(found_tokens))})"
        super().__init__(message)
        self.found_tokens = found_tokens


class SpecialTokenInTextError(SpecialTokenError):
    """Raised when text contains special tokens the encoding policy forbids."""


class VocabularyError(MinBPEError):
    """Raised when vocabulary operations fail."""

    def __init__(self, message: str, *, invalid_tok: Token | None = None) -> None:
        """Initialize with an optional token that gets appended to the message."""
        extra = ""
        if invalid_tok is not None:
            extra += f" (invalid token: {invalid_tok})"
        super().__init__(message + extra)
        self.invalid_tok = invalid_tok


class UnknownTokenIdError(VocabularyError):
    """Raised when decoding a token id that is neither learned nor special."""


class TokenizationError(MinBPEError):
    """Raised when tokenization fails."""

    def __init__(self, message: str, *, position: int | None = None) -> None:
        extra = ""
        if position is not None:
            extra += f" (position: {position})"
        super().__init__(message + extra)
        self.position = position


class TrainingError(MinBPEError):
    """Raised when a training-related operation is not possible."""


class ModelLoadError(MinBPEError):
    """Raised when loading a tokenizer model fails."""

    def __init__(
        self,
        message: str,
        *,
        model_path: str | None = None,
        version_mismatch: tuple[str, str] | None = None,
    ) -> None:
        extra = ""
        if model_path:
            extra += f" (path: {model_path})"
        if version_mismatch is not None:
            extra += f" (expected: {version_mismatch[1]!r}) (got {version_mismatch[0]!r})"
        super().__init__(message + extra)
        self.model_path = model_path
        self.version_mismatch = version_mismatch


class InvalidFormatError(ModelLoadError):
    """Raised when a model file does not follow the expected layout."""
