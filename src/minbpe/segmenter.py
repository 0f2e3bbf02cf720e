"""Regex pre-segmentation of text into independently merged chunks."""

from collections.abc import Iterator
from dataclasses import dataclass
import logging

import regex as re

from .errors import PatternError

log = logging.getLogger(__name__)


def _compile_pattern(pattern: str) -> re.Pattern:
    """
    Compile and validate a regex pattern.

    :param pattern: Regex pattern string to compile.
    :return: Compiled regex pattern.
    :raises PatternError: If pattern is invalid.
    """
    try:
        return re.compile(pattern)
    except re.error as e:
        raise PatternError("invalid regex pattern", pattern=pattern, regex_err=e) from e


@dataclass(frozen=True)
class Segments:
    """
    Chunks of one text, produced lazily.

    Every ``iter()`` rescans the text, so the object can be walked more than
    once. Iteration fails with ``PatternError`` as soon as the pattern leaves
    a character uncovered.
    """

    text: str
    compiled_pat: re.Pattern | None

    def __iter__(self) -> Iterator[str]:
        if not self.text:
            return
        # byte-only mode: whole text is a single chunk
        if self.compiled_pat is None:
            yield self.text
            return

        pos = 0
        for m in self.compiled_pat.finditer(self.text):
            # gap between matches means those characters would be dropped
            if m.start() != pos:
                raise PatternError(
                    "pattern does not cover the input text",
                    pattern=self.compiled_pat.pattern,
                    position=pos,
                )
            # zero-width matches add nothing to the reconstruction
            if m.end() == m.start():
                continue
            pos = m.end()
            yield m.group(0)

        if pos != len(self.text):
            raise PatternError(
                "pattern does not cover the input text",
                pattern=self.compiled_pat.pattern,
                position=pos,
            )


class Segmenter:
    """Split text on a fixed regex so BPE merges never cross chunk boundaries."""

    def __init__(self, pattern: str | None = None) -> None:
        """
        :param pattern: Split pattern, or ``None`` to treat each text as one chunk.
        :raises PatternError: If the pattern does not compile.
        """
        # empty pattern is the serialized form of "no pattern"
        self._pattern = pattern or None
        self._compiled_pat = (
            _compile_pattern(self._pattern) if self._pattern is not None else None
        )
        log.debug(f"segmenter ready: {'byte-only' if self._compiled_pat is None else 'regex'}")

    @property
    def pattern(self) -> str | None:
        """The split pattern, ``None`` in byte-only mode."""
        return self._pattern

    def split(self, text: str) -> Segments:
        """Return the chunks of ``text`` in order."""
        return Segments(text, self._compiled_pat)

    def split_bytes(self, text: str) -> list[bytes]:
        """Return the UTF-8 encoding of each chunk of ``text``."""
        return [chunk.encode("utf-8") for chunk in self.split(text)]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(pattern={self._pattern!r})"


__all__ = ["Segmenter", "Segments"]
