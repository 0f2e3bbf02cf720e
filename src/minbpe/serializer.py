"""
Reading and writing the ``minbpe v1`` model format.

A model file is line oriented::

    minbpe v1
    <split pattern, empty line in byte-only mode>
    <number of special tokens>
    <literal> <id>      one line per special token
    <tok0> <tok1>       one line per merge, in training order

Merged token ids are not stored: the n-th merge line always creates token
``256 + n``. The vocabulary is rebuilt from the merges on load.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Final
import logging

from ._sanitise import render_bytes
from .errors import (
    InvalidConfigurationError,
    InvalidFormatError,
    ModelLoadError,
    SpecialTokenError,
    VocabularyError,
)
from .registry import SpecialTokenRegistry
from .types import Encoding, Token, Vocabulary
from .vocab import build_vocab

VERSION: Final[str] = "minbpe v1"
MODEL_SUFFIX: Final[str] = ".model"
VOCAB_SUFFIX: Final[str] = ".vocab"

log = logging.getLogger(__name__)


@dataclass
class ModelState:
    """Everything a model file persists about a tokenizer."""

    pattern: str | None = None
    special_toks: dict[str, Token] = field(default_factory=dict)
    merges: Encoding = field(default_factory=dict)


def write_model(model_path: Path, state: ModelState) -> None:
    """Persist split pattern, special tokens and merges to a .model file."""
    # the pattern has to fit on its single header line
    if state.pattern and ("\n" in state.pattern or "\r" in state.pattern):
        raise InvalidConfigurationError("split pattern with line breaks cannot be saved")
    # merged ids are implicit in the file, so they must run 256, 257, ... in order
    if sorted(state.merges.values()) != list(range(256, 256 + len(state.merges))):
        raise InvalidConfigurationError(
            "merge ids must be consecutive from 256 to be saved"
        )

    # create directory if does not exist
    model_path.parent.mkdir(parents=True, exist_ok=True)

    log.debug(f"saving model to {model_path}")
    log.debug(
        f"saving {len(state.special_toks)} special tokens and {len(state.merges)} merge rules"
    )

    with model_path.open("w", encoding="utf-8", newline="\n") as f:
        # header: version and split pattern (empty line if none)
        f.write(f"{VERSION}\n")
        f.write(f"{state.pattern or ''}\n")
        # special token count followed by one mapping per line
        f.write(f"{len(state.special_toks)}\n")
        for seq, tok in state.special_toks.items():
            f.write(f"{seq} {tok}\n")
        # merges in training order; merged ids are implicit
        for (tok0, tok1), _ in sorted(state.merges.items(), key=lambda x: x[1]):
            f.write(f"{tok0} {tok1}\n")


def _read_line(f, what: str) -> str:
    """Read one line without its terminator, failing on end of file."""
    line = f.readline()
    if not line:
        raise InvalidFormatError(f"unexpected end of file while reading {what}")
    return line.rstrip("\r\n")


def read_model(model_path: Path) -> ModelState:
    """
    Parse a .model file without touching any tokenizer state.

    :raises ModelLoadError: If the file does not exist or is not a .model file.
    :raises InvalidFormatError: If the file does not follow the model layout.
    """
    if not model_path.exists():
        raise ModelLoadError("model filepath does not exist", model_path=str(model_path))

    if model_path.suffix != MODEL_SUFFIX:
        raise ModelLoadError("expected .model file", model_path=str(model_path))

    log.info(f"loading model from {model_path}")

    with model_path.open("r", encoding="utf-8", newline="") as f:
        # verify version match
        model_ver = _read_line(f, "version")
        if model_ver != VERSION:
            raise InvalidFormatError(
                "model version mismatch",
                model_path=str(model_path),
                version_mismatch=(model_ver, VERSION),
            )

        pattern = _read_line(f, "split pattern") or None

        # parse special token count
        raw_count = _read_line(f, "special token count").strip()
        try:
            n_special_toks = int(raw_count)
            if n_special_toks < 0:
                raise ValueError(raw_count)
        except ValueError:
            raise InvalidFormatError(f"invalid special token count: {raw_count!r}") from None

        special_toks: dict[str, Token] = {}
        for _ in range(n_special_toks):
            line = _read_line(f, "special tokens")
            # split from the right as the literal might contain whitespace
            sp_tok = line.rsplit(" ", maxsplit=1)
            if len(sp_tok) != 2 or not sp_tok[0]:
                raise InvalidFormatError(
                    f"special token mapping must be '<literal> <id>': {line!r}"
                )
            try:
                special_toks[sp_tok[0]] = int(sp_tok[1])
            except ValueError:
                raise InvalidFormatError(f"token is not a number: {sp_tok[1]!r}") from None

        log.debug(f"loaded {n_special_toks} special tokens")

        merges: Encoding = {}
        # merged ids are positional
        mtok = 256
        for line in f:
            if not line.strip():
                continue
            try:
                ctok0, ctok1 = map(int, line.split())
            except ValueError:
                raise InvalidFormatError(
                    f"invalid merge format at line: {line.strip()!r}"
                ) from None
            # no forward references: children must already exist
            if not (0 <= ctok0 < mtok and 0 <= ctok1 < mtok):
                raise InvalidFormatError(
                    f"merge {mtok} refers to a token that does not exist yet: {line.strip()!r}"
                )
            if (ctok0, ctok1) in merges:
                raise InvalidFormatError(f"duplicate merge: {line.strip()!r}")
            merges[(ctok0, ctok1)] = mtok
            mtok += 1

        log.debug(f"loaded {len(merges)} merge rules")

    # special ids must not shadow byte or merge tokens
    try:
        SpecialTokenRegistry(special_toks, reserved=range(mtok))
    except SpecialTokenError as e:
        raise InvalidFormatError(f"invalid special tokens: {e}") from e

    return ModelState(pattern=pattern, special_toks=special_toks, merges=merges)


def write_vocab(
    vocab_path: Path,
    vocab: Vocabulary,
    merges: Encoding,
    special_toks: dict[str, Token],
) -> None:
    """
    Persist human-readable token representations to a .vocab file.

    This file is for inspection only and is never read back.
    """
    vocab_path.parent.mkdir(parents=True, exist_ok=True)

    log.debug(f"saving vocab to {vocab_path}")

    inverted_merges = {mtok: pair for pair, mtok in merges.items()}

    with vocab_path.open("w", encoding="utf-8", newline="\n") as f:
        for tok, b in vocab.items():
            subword = render_bytes(b)
            # token arises from merging: show derivation from child tokens
            if tok in inverted_merges:
                ctok0, ctok1 = inverted_merges[tok]
                try:
                    subword0 = render_bytes(vocab[ctok0])
                    subword1 = render_bytes(vocab[ctok1])
                except KeyError as e:
                    raise VocabularyError(
                        "merge refers to an unknown token", invalid_tok=e.args[0]
                    ) from e
                f.write(f"[{subword0}][{subword1}] -> [{subword}] {tok}\n")
            else:
                # one of base 256 tokens: no merging
                f.write(f"[{subword}] {tok}\n")
        for seq, tok in special_toks.items():
            f.write(f"[{render_bytes(seq.encode('utf-8'))}] {tok} (special)\n")


def rebuild_vocab(state: ModelState) -> Vocabulary:
    """Rebuild the vocabulary described by a parsed model."""
    try:
        return build_vocab(state.merges)
    except VocabularyError as e:
        raise InvalidFormatError(f"inconsistent merges: {e}") from e


__all__ = [
    "VERSION",
    "MODEL_SUFFIX",
    "VOCAB_SUFFIX",
    "ModelState",
    "write_model",
    "read_model",
    "write_vocab",
    "rebuild_vocab",
]
