"""
Core Byte Pair Encoding (BPE) operations.
"""

from collections import Counter

from .types import Encoding, Token, TokenPair


def update_bpe_freqs(tokens: list[Token], counter: Counter[TokenPair]) -> None:
    """
    Add the adjacent pair counts of ``tokens`` to ``counter`` in place.

    Pairs are only formed inside ``tokens``, so feeding several chunks into the
    same counter never produces a pair spanning two chunks.
    """
    counter.update(zip(tokens, tokens[1:]))


def bpe_freqs(tokens: list[Token]) -> Counter[TokenPair]:
    """Compute the frequency of all consecutive token pairs in the token list."""
    counter: Counter[TokenPair] = Counter()
    update_bpe_freqs(tokens, counter)
    return counter


def bpe_merge(tokens: list[Token], target: TokenPair, new_tok: Token) -> list[Token]:
    """
    Merge all occurrences of a target token pair into a single new token.

    The scan is greedy and left to right: once a pair is merged the cursor
    skips both of its tokens, so ``[x, x, x]`` merged on ``(x, x)`` becomes
    ``[new, x]``.

    Note that some of the new tokens may be partial UTF-8 sequences, so they
    cannot always be decoded into valid strings on their own.

    :param tokens: Original list of tokens.
    :param target: The consecutive pair of tokens to merge.
    :param new_tok: The new token that replaces the target pair.
    :returns: New token list with all target pairs replaced by ``new_tok``.
    """
    newtoks: list[Token] = []

    i = 0
    n = len(tokens)
    while i < n:
        # check if we can form a pair and it matches the target
        if i < n - 1 and tokens[i] == target[0] and tokens[i + 1] == target[1]:
            newtoks.append(new_tok)
            i += 2
        else:
            newtoks.append(tokens[i])
            i += 1

    return newtoks


def most_frequent_pair(counter: Counter[TokenPair]) -> TokenPair | None:
    """
    Return the pair with the highest count, or ``None`` if there are no pairs.

    Ties go to the lexicographically smallest pair so training is reproducible
    regardless of the order pairs were first seen in.
    """
    if not counter:
        return None
    return min(counter, key=lambda pair: (-counter[pair], pair))


def lowest_rank_pair(tokens: list[Token], merges: Encoding) -> TokenPair | None:
    """
    Return the mergeable pair in ``tokens`` that was learned first.

    The merged token id is the rank. Ranks are unique, so there is never a tie.
    Returns ``None`` when no adjacent pair has a merge rule.
    """
    # only the set of present pairs matters here, not their counts
    bp_freqs = bpe_freqs(tokens)
    if not bp_freqs:
        return None
    # pairs without a merge rule rank at infinity so they are never picked
    # ahead of a mergeable one
    pair = min(bp_freqs, key=lambda bp: merges.get(bp, float("inf")))
    if pair not in merges:
        return None
    return pair


__all__ = [
    "update_bpe_freqs",
    "bpe_freqs",
    "bpe_merge",
    "most_frequent_pair",
    "lowest_rank_pair",
]
