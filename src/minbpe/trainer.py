"""Standalone BPE training module."""

from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass
import logging

from ._bpe import bpe_merge, most_frequent_pair, update_bpe_freqs
from ._progress import is_progress_enabled
from ._sanitise import render_bytes
from .types import Encoding, Token, TokenPair, Vocabulary
from .vocab import base_vocab

log = logging.getLogger(__name__)


@dataclass
class BPETrainingResult:
    """Results from one BPE training run."""

    vocab: Vocabulary
    merges: Encoding
    n_merges_completed: int


@dataclass(frozen=True)
class MergeRecord:
    """Progress record emitted after each learned merge."""

    iteration: int
    total: int
    pair: TokenPair
    new_tok: Token
    rendered: str
    count: int

    def __str__(self) -> str:
        return (
            f"merge {self.iteration}/{self.total}: {self.pair} -> {self.new_tok} "
            f"({self.rendered}) had {self.count} occurrences"
        )


def train_bpe(
    chunks: list[list[Token]],
    n_merges: int,
    verbose: bool = False,
    on_merge: Callable[[MergeRecord], None] | None = None,
) -> BPETrainingResult:
    """
    Learn up to ``n_merges`` merges from pre-split chunks of byte tokens.

    Each round recounts pair statistics over every chunk, merges the most
    frequent pair (ties go to the smallest pair) into the next free id and
    rewrites all chunks. Pairs never span two chunks. Training stops early
    once no chunk has two tokens left.

    The input lists are not modified.

    :param chunks: Byte token sequences, one per pre-split chunk.
    :param n_merges: Maximum number of merge operations to perform.
    :param verbose: Log each learned merge when ``True``.
    :param on_merge: Optional callback receiving a ``MergeRecord`` per merge.
    :returns: Training output containing vocab, merge rules, and completed merge count.
    """
    merges: Encoding = {}
    vocab: Vocabulary = base_vocab()
    report = verbose and is_progress_enabled()

    for i in range(n_merges):
        # collect global frequency for each token pair
        bp_freqs: Counter[TokenPair] = Counter()
        for chunk_toks in chunks:
            update_bpe_freqs(chunk_toks, bp_freqs)

        pair = most_frequent_pair(bp_freqs)
        # every chunk is down to a single token
        if pair is None:
            break

        new_tok = 256 + i
        # merge pair within each chunk with new token
        chunks = [bpe_merge(chunk_toks, pair, new_tok) for chunk_toks in chunks]
        # save merge info and update vocabulary with new token's mapping
        merges[pair] = new_tok
        vocab[new_tok] = vocab[pair[0]] + vocab[pair[1]]

        if report or on_merge is not None:
            record = MergeRecord(
                iteration=i + 1,
                total=n_merges,
                pair=pair,
                new_tok=new_tok,
                rendered=render_bytes(vocab[new_tok]),
                count=bp_freqs[pair],
            )
            if report:
                log.info(str(record))
            if on_merge is not None:
                on_merge(record)

    return BPETrainingResult(
        vocab=vocab,
        merges=merges,
        n_merges_completed=len(merges),
    )


__all__ = ["BPETrainingResult", "MergeRecord", "train_bpe"]
