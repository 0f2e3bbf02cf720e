"""Unit tests for pair statistics, merging and pair selection."""

from collections import Counter

from minbpe._bpe import (
    bpe_freqs,
    bpe_merge,
    lowest_rank_pair,
    most_frequent_pair,
    update_bpe_freqs,
)


# Pair statistics
# ---------------------------------------------------------------------------


def test_bpe_freqs_counts_adjacent_pairs():
    assert bpe_freqs([1, 2, 3, 1, 2]) == Counter({(1, 2): 2, (2, 3): 1, (3, 1): 1})


def test_bpe_freqs_short_sequences_contribute_nothing():
    assert bpe_freqs([]) == Counter()
    assert bpe_freqs([42]) == Counter()


def test_update_bpe_freqs_never_crosses_chunks():
    """Accumulating over chunks counts no pair spanning two of them."""
    counter = Counter()
    update_bpe_freqs([1, 2], counter)
    update_bpe_freqs([2, 1], counter)
    assert counter == Counter({(1, 2): 1, (2, 1): 1})
    assert (2, 2) not in counter


# Merge applier
# ---------------------------------------------------------------------------


def test_bpe_merge_replaces_all_occurrences():
    assert bpe_merge([1, 2, 3, 1, 2], (1, 2), 99) == [99, 3, 99]


def test_bpe_merge_is_non_overlapping():
    """A run of three identical tokens merges only its first pair."""
    assert bpe_merge([7, 7, 7], (7, 7), 256) == [256, 7]
    assert bpe_merge([7, 7, 7, 7], (7, 7), 256) == [256, 256]


def test_bpe_merge_keeps_tail():
    assert bpe_merge([1, 2, 3], (1, 2), 9) == [9, 3]
    assert bpe_merge([3, 1, 2], (1, 2), 9) == [3, 9]
    assert bpe_merge([3, 4, 5], (1, 2), 9) == [3, 4, 5]


def test_bpe_merge_does_not_modify_input():
    tokens = [1, 2, 1, 2]
    bpe_merge(tokens, (1, 2), 9)
    assert tokens == [1, 2, 1, 2]


# Pair selection
# ---------------------------------------------------------------------------


def test_most_frequent_pair_picks_highest_count():
    assert most_frequent_pair(Counter({(1, 2): 1, (3, 4): 5})) == (3, 4)


def test_most_frequent_pair_breaks_ties_by_smallest_pair():
    counter = Counter({(2, 1): 2, (1, 5): 2, (3, 3): 1})
    assert most_frequent_pair(counter) == (1, 5)


def test_most_frequent_pair_empty():
    assert most_frequent_pair(Counter()) is None


def test_lowest_rank_pair_prefers_earliest_merge():
    merges = {(2, 3): 256, (1, 2): 257}
    assert lowest_rank_pair([1, 2, 3], merges) == (2, 3)


def test_lowest_rank_pair_none_when_nothing_mergeable():
    merges = {(2, 3): 256}
    assert lowest_rank_pair([3, 2, 1], merges) is None
    assert lowest_rank_pair([2], merges) is None
    assert lowest_rank_pair([], merges) is None
