"""Registry of special tokens: literal strings with reserved token ids."""

from collections.abc import Collection, Iterator, Mapping
import logging

import regex as re

from .errors import SpecialTokenError
from .types import Token

log = logging.getLogger(__name__)


class SpecialTokenRegistry(Mapping[str, Token]):
    """
    Immutable mapping of special token literal -> token id, plus its inverse.

    Literals are atomic: the encoder never splits or merges them. Insertion
    order is kept because it is the order written to model files.
    """

    def __init__(
        self,
        special_toks: Mapping[str, Token] | None = None,
        *,
        reserved: Collection[Token] = (),
    ) -> None:
        """
        :param special_toks: Literal -> id mapping.
        :param reserved: Ids already taken by the vocabulary (bytes and merges).
        :raises SpecialTokenError: If a literal is empty or spans lines, if an
            id is negative, repeated, or collides with a reserved id.
        """
        toks = dict(special_toks or {})

        for seq, tok in toks.items():
            if not seq:
                raise SpecialTokenError("special token literal must not be empty")
            # model files store one special token per line
            if "\n" in seq or "\r" in seq:
                raise SpecialTokenError(
                    "special token literal must not contain line breaks",
                    found_tokens={seq.encode("unicode_escape").decode("ascii")},
                )
            if isinstance(tok, bool) or not isinstance(tok, int) or tok < 0:
                raise SpecialTokenError(
                    f"special token id must be a non-negative integer, got {tok!r}",
                    found_tokens={seq},
                )

        # ids must be unique within the registry
        ids = list(toks.values())
        if len(ids) != len(set(ids)):
            duplicates = {seq for seq, tok in toks.items() if ids.count(tok) > 1}
            raise SpecialTokenError("duplicate special token ids", found_tokens=duplicates)

        # ids must not shadow byte or merge tokens
        colliding = {seq for seq, tok in toks.items() if tok in reserved}
        if colliding:
            raise SpecialTokenError(
                "special token ids collide with the vocabulary", found_tokens=colliding
            )

        self._toks: dict[str, Token] = toks
        self._inverse: dict[Token, str] = {tok: seq for seq, tok in toks.items()}
        log.debug(f"registered {len(toks)} special tokens")

    def __getitem__(self, seq: str) -> Token:
        return self._toks[seq]

    def __iter__(self) -> Iterator[str]:
        return iter(self._toks)

    def __len__(self) -> int:
        return len(self._toks)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._toks!r})"

    @property
    def inverse(self) -> Mapping[Token, str]:
        """Token id -> literal."""
        return self._inverse

    def literal(self, tok: Token) -> str | None:
        """Return the literal registered under ``tok``, if any."""
        return self._inverse.get(tok)


def split_on_special(text: str, special_toks: Mapping[str, Token]) -> list[str]:
    """
    Split ``text`` around occurrences of the given special token literals.

    Odd indices of the result hold the literal special tokens, even indices
    the ordinary text between them (possibly empty).
    """
    if not special_toks:
        return [text]
    # longest first so a literal that prefixes another one does not win
    ordered = sorted(special_toks, key=len, reverse=True)
    # escape regex metachars like "|" in special tokens to avoid unwanted effects
    # the capturing group makes split() keep the matched delimiters
    special_pat = "(" + "|".join(re.escape(seq) for seq in ordered) + ")"
    return re.split(special_pat, text)


__all__ = ["SpecialTokenRegistry", "split_on_special"]
