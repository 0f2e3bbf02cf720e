"""Factory functions for creating tokenizers."""

from collections.abc import Mapping
from typing import Literal, TypeAlias, overload

from .pattern import DEFAULT_PATTERN, TokenPattern
from .pretrained import load_tiktoken
from .tokenizer import Tokenizer
from .types import Token, VocabularySource

Pattern: TypeAlias = Literal["basic", "gpt2", "gpt4", "gpt4o", "llama3", "qwen2"]


@overload
def get_tokenizer(pattern: Pattern) -> Tokenizer: ...


@overload
def get_tokenizer(*, custom_pattern: str) -> Tokenizer: ...


def get_tokenizer(
    pattern: Pattern = "gpt4", *, custom_pattern: str | None = None
) -> Tokenizer:
    """
    Create an untrained tokenizer with a built-in or custom split pattern.

    :param pattern: Built-in pattern name (e.g., "gpt2", "gpt4", "llama3"), or
                    "basic" for byte-only tokenization without pre-splitting.
                    Ignored if custom_pattern is provided.
    :param custom_pattern: Custom regex pattern string. Overrides pattern parameter.
    :return: Trainable tokenizer instance.
    :raises PatternError: If the pattern name is unknown or custom_pattern is
                          invalid regex.

    .. code-block:: python

        # Use built-in pattern
        tokenizer = get_tokenizer("gpt4")

        # Byte-only, no regex splitting
        tokenizer = get_tokenizer("basic")

        # Use custom pattern
        tokenizer = get_tokenizer(custom_pattern=r"\\s+|\\S+")
    """
    # segmenter initializer handles invalid custom patterns
    if custom_pattern is not None:
        return Tokenizer(custom_pattern)

    if pattern == "basic":
        return Tokenizer(None)

    # get() handles invalid pattern names
    return Tokenizer(TokenPattern.get(pattern))


def from_pretrained(model_path: str) -> Tokenizer:
    """
    Load a trained tokenizer from disk.

    The split pattern and special tokens are restored from the model file.

    :param model_path: Path to the .model file.
    :return: Loaded tokenizer instance with vocabulary and configuration.
    :raises ModelLoadError: If file doesn't exist, has wrong extension, or is malformed.

    .. code-block:: python

        tokenizer = from_pretrained("path/to/model.model")
        tokens = tokenizer.encode("Hello world")
    """
    tokenizer = Tokenizer()
    tokenizer.load(model_path)
    return tokenizer


def from_vocabulary(
    source: VocabularySource,
    pattern: str | None = DEFAULT_PATTERN,
    special_tokens: Mapping[str, Token] | None = None,
) -> Tokenizer:
    """
    Build a fixed tokenizer from an imported token id -> bytes table.

    The result encodes and decodes but cannot be trained, saved or loaded.

    :raises VocabularyError: If ``source`` is not a BPE rank table.
    """
    return Tokenizer.from_vocabulary(source, pattern, special_tokens)


def from_tiktoken(encoding_name: str = "cl100k_base") -> Tokenizer:
    """
    Reproduce a tiktoken encoding, ``cl100k_base`` (GPT-4) by default.

    Rank table, split pattern and special tokens all come from the encoding,
    so token ids match tiktoken's for every input.

    :raises ModelLoadError: If tiktoken is not installed or does not know the
        encoding.
    """
    enc = load_tiktoken(encoding_name)
    return from_vocabulary(
        enc.vocab,
        pattern=enc.pattern,
        special_tokens=enc.special_tokens,
    )


__all__ = ["get_tokenizer", "from_pretrained", "from_vocabulary", "from_tiktoken"]
