"""Special token handling for tokenization."""

import sys
from typing import Final

if sys.version_info >= (3, 12):
    from typing import override
else:
    from typing_extensions import override
from abc import ABC, abstractmethod
from collections.abc import Mapping
import logging

from .types import Token
from .errors import SpecialTokenInTextError, StrategyError

log = logging.getLogger(__name__)

# =========================================================================================

# special token handling strategies


class SpecialTokenStrategy(ABC):
    """Base strategy for handling special tokens during encoding."""

    @abstractmethod
    def handle(
        self, text: str, special_toks: Mapping[str, Token]
    ) -> dict[str, Token]:
        """Return the special tokens that are active when encoding ``text``."""


class AllowAllStrategy(SpecialTokenStrategy):
    """Strategy that allows all registered special tokens."""

    @override
    def handle(
        self, text: str, special_toks: Mapping[str, Token]
    ) -> dict[str, Token]:
        """Return all registered special tokens unchanged."""
        if not special_toks:
            log.warning("no special tokens registered")
        return dict(special_toks)


class AllowNoneRaiseStrategy(SpecialTokenStrategy):
    """Strategy that raises if special tokens are found in text to be encoded."""

    @override
    def handle(
        self, text: str, special_toks: Mapping[str, Token]
    ) -> dict[str, Token]:
        """Raise when text contains disallowed special tokens."""
        found = {seq for seq in special_toks if seq in text}
        if found:
            raise SpecialTokenInTextError(
                "special tokens found in text but not allowed", found_tokens=found
            )
        return {}


class AllowNoneStrategy(SpecialTokenStrategy):
    """Strategy that encodes special token literals as ordinary text."""

    @override
    def handle(
        self, text: str, special_toks: Mapping[str, Token]
    ) -> dict[str, Token]:
        """Ignore special tokens and encode text as normal content."""
        if any(seq in text for seq in special_toks):
            log.warning("special tokens found in text, encoding them as plain text")
        return {}


class AllowCustomStrategy(SpecialTokenStrategy):
    """Strategy that allows only specified special tokens."""

    def __init__(self, allowed_subset: set[str]) -> None:
        """Store the special token subset allowed during encoding."""
        super().__init__()
        self.allowed_subset = allowed_subset

    @override
    def handle(
        self, text: str, special_toks: Mapping[str, Token]
    ) -> dict[str, Token]:
        """Return only special tokens present in the allowed subset."""
        return {
            seq: tok for seq, tok in special_toks.items() if seq in self.allowed_subset
        }


SET_PREFIX: Final[str] = "set:"

_SPECIAL_TOKEN_STRATEGIES: Final[dict[str, type[SpecialTokenStrategy]]] = {
    "all": AllowAllStrategy,
    "none": AllowNoneStrategy,
    "none_raise": AllowNoneRaiseStrategy,
}


def list_strategies() -> list[str]:
    """Return available special token policy names."""
    return [*_SPECIAL_TOKEN_STRATEGIES, f"{SET_PREFIX}<tokens>"]


def get_strategy(policy: str = "none_raise") -> SpecialTokenStrategy:
    """
    Create a special token strategy from a policy string.

    :param policy: "all", "none", "none_raise", or "set:" followed by a
                   comma-separated list of allowed special token literals.
    :raises StrategyError: If the policy is not recognized.

    .. code-block:: python

        strategy = get_strategy("all")
        strategy = get_strategy("none_raise")
        strategy = get_strategy("set:<|endoftext|>,<|fim_prefix|>")
    """
    if policy.startswith(SET_PREFIX):
        allowed = {seq for seq in policy[len(SET_PREFIX) :].split(",") if seq}
        return AllowCustomStrategy(allowed)

    if policy not in _SPECIAL_TOKEN_STRATEGIES:
        raise StrategyError(
            "unknown special token policy",
            invalid_name=policy,
            available_strats=list_strategies(),
        )

    return _SPECIAL_TOKEN_STRATEGIES[policy]()


def resolve_strategy(policy: str | SpecialTokenStrategy) -> SpecialTokenStrategy:
    """Accept either a ready strategy object or a policy string."""
    if isinstance(policy, SpecialTokenStrategy):
        return policy
    if isinstance(policy, str):
        return get_strategy(policy)
    raise StrategyError(
        "special token policy must be a string or SpecialTokenStrategy",
        invalid_name=repr(policy),
        available_strats=list_strategies(),
    )


__all__ = [
    "SpecialTokenStrategy",
    "AllowAllStrategy",
    "AllowNoneStrategy",
    "AllowNoneRaiseStrategy",
    "AllowCustomStrategy",
    "list_strategies",
    "get_strategy",
    "resolve_strategy",
]
