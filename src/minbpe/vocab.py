"""
Vocabulary construction: base bytes, learned merges, and imported tables.
"""

import logging

from .errors import VocabularyError
from .types import Encoding, Token, TokenBytes, Vocabulary, VocabularySource

log = logging.getLogger(__name__)


def base_vocab() -> Vocabulary:
    """Return the identity mapping for the 256 single-byte tokens."""
    return {btok: bytes([btok]) for btok in range(256)}


def build_vocab(merges: Encoding) -> Vocabulary:
    """
    Build token-to-bytes vocabulary mapping.

    Adds base 256 byte tokens, then merged tokens in merge order so child
    tokens exist before their parent.

    :raises VocabularyError: If a merge refers to a token that does not exist
        yet, or reuses an id that is already taken.
    """
    vocab = base_vocab()
    for (tok0, tok1), mtok in sorted(merges.items(), key=lambda x: x[1]):
        for ctok in (tok0, tok1):
            if ctok not in vocab:
                raise VocabularyError(
                    f"merge for token {mtok} refers to an unknown token",
                    invalid_tok=ctok,
                )
        if mtok in vocab:
            raise VocabularyError("merge token id is already taken", invalid_tok=mtok)
        vocab[mtok] = vocab[tok0] + vocab[tok1]

    log.debug(f"built vocabulary with {len(vocab)} tokens")
    return vocab


def _bpe_split(
    ranks: dict[TokenBytes, Token], token: TokenBytes, max_rank: Token
) -> list[TokenBytes]:
    """
    Replay BPE on ``token`` using only merges ranked below ``max_rank``.

    For a token that was itself produced by BPE this stops one merge short,
    leaving exactly the two parts it was built from.
    """
    parts = [bytes([b]) for b in token]
    while True:
        min_idx = None
        min_rank = None
        for i, pair in enumerate(zip(parts[:-1], parts[1:])):
            rank = ranks.get(pair[0] + pair[1])
            if rank is None or rank >= max_rank:
                continue
            if min_rank is None or rank < min_rank:
                min_idx = i
                min_rank = rank
        # nothing left to merge below max_rank
        if min_idx is None:
            break
        parts = parts[:min_idx] + [parts[min_idx] + parts[min_idx + 1]] + parts[min_idx + 2 :]
    return parts


def recover_merges(source: VocabularySource) -> tuple[Encoding, list[int]]:
    """
    Recover a merge table and byte permutation from an imported vocabulary.

    ``source`` maps token id -> bytes where the id is the merge rank, as in
    tiktoken's rank tables. Single bytes may be numbered in any order below
    256; the returned permutation maps each raw byte value to its id there.

    :returns: ``(merges, byte_shuffle)`` where ``byte_shuffle[b]`` is the id
        of byte ``b``.
    :raises VocabularyError: If a single byte is missing or numbered 256 or
        above, or if a multi-byte entry is not the merge of two lower entries.
    """
    ranks: dict[TokenBytes, Token] = {}
    for tok, b in source.items():
        if b in ranks:
            raise VocabularyError("duplicate byte sequence in vocabulary", invalid_tok=tok)
        ranks[b] = tok

    byte_shuffle: list[int] = []
    for b in range(256):
        tok = ranks.get(bytes([b]))
        if tok is None or not 0 <= tok < 256:
            raise VocabularyError(
                f"vocabulary must map byte {b} to an id below 256", invalid_tok=tok
            )
        byte_shuffle.append(tok)

    merges: Encoding = {}
    for tok, b in sorted(source.items()):
        if len(b) == 1:
            continue
        if tok < 256:
            raise VocabularyError(
                "multi-byte token ids must be 256 or above", invalid_tok=tok
            )
        parts = _bpe_split(ranks, b, max_rank=tok)
        if len(parts) != 2:
            raise VocabularyError(
                "token is not the merge of two lower-ranked tokens", invalid_tok=tok
            )
        merges[(ranks[parts[0]], ranks[parts[1]])] = tok

    log.debug(f"recovered {len(merges)} merges from imported vocabulary")
    return merges, byte_shuffle


__all__ = ["base_vocab", "build_vocab", "recover_merges"]
