"""Unit tests for vocabulary construction and merge recovery."""

import pytest

import minbpe
from minbpe.errors import VocabularyError
from minbpe.vocab import base_vocab, build_vocab, recover_merges


def _source(**extra):
    source = {i: bytes([i]) for i in range(256)}
    source.update({int(k[1:]): v for k, v in extra.items()})
    return source


def test_base_vocab_is_byte_identity():
    vocab = base_vocab()
    assert len(vocab) == 256
    assert all(vocab[i] == bytes([i]) for i in range(256))


def test_build_vocab_concatenates_children():
    vocab = build_vocab({(104, 105): 256, (256, 256): 257})
    assert vocab[256] == b"hi"
    assert vocab[257] == b"hihi"


def test_build_vocab_rejects_unknown_child():
    with pytest.raises(VocabularyError) as exc_info:
        build_vocab({(104, 257): 256})
    assert exc_info.value.invalid_tok == 257


def test_build_vocab_rejects_taken_id():
    with pytest.raises(VocabularyError):
        build_vocab({(104, 105): 65})


# Merge recovery
# ---------------------------------------------------------------------------


def test_recover_merges_from_rank_table():
    source = _source(t256=b"ab", t257=b"abab", t258=b"abc")
    merges, byte_shuffle = recover_merges(source)
    assert merges == {(97, 98): 256, (256, 256): 257, (256, 99): 258}
    assert byte_shuffle == list(range(256))


def test_recover_merges_ignores_own_and_later_ranks():
    # "bc" ranks below "ab", so "abc" splits as a + bc
    source = _source(t256=b"bc", t257=b"ab", t258=b"abc")
    merges, _ = recover_merges(source)
    assert merges == {(98, 99): 256, (97, 98): 257, (97, 256): 258}


def test_recover_merges_matches_training():
    tok = minbpe.get_tokenizer("basic")
    tok.train("aaabdaaabac", vocab_size=259)
    merges, _ = recover_merges(tok.vocab)
    assert merges == tok.merges


def test_recover_merges_permuted_bytes():
    source = _source()
    source[97], source[98] = b"b", b"a"
    _, byte_shuffle = recover_merges(source)
    assert byte_shuffle[97] == 98
    assert byte_shuffle[98] == 97


def test_recover_merges_missing_byte():
    source = _source()
    del source[65]
    with pytest.raises(VocabularyError):
        recover_merges(source)


def test_recover_merges_duplicate_bytes():
    with pytest.raises(VocabularyError):
        recover_merges(_source(t256=b"a"))


def test_recover_merges_unsplittable_entry():
    """An entry needing more than one merge step on top of bytes is rejected."""
    with pytest.raises(VocabularyError) as exc_info:
        recover_merges(_source(t256=b"abc"))
    assert exc_info.value.invalid_tok == 256
