"""Shared fixtures for minbpe tests."""

import pytest

import minbpe

CORPUS = (
    "hello world hello world. The quick brown fox jumps over the lazy dog. "
    "the the the the the. Hello again, world!\n"
    "Numbers like 12345 and 678 are split apart; contractions aren't merged.\n"
)


@pytest.fixture
def corpus():
    return CORPUS


@pytest.fixture
def regex_tokenizer():
    """Return a tokenizer trained with the GPT-4 split pattern."""
    tok = minbpe.get_tokenizer("gpt4")
    tok.train(CORPUS, vocab_size=300)
    return tok


@pytest.fixture
def basic_tokenizer():
    """Return a byte-only tokenizer trained without pre-splitting."""
    tok = minbpe.get_tokenizer("basic")
    tok.train(CORPUS, vocab_size=300)
    return tok


@pytest.fixture
def special_tokenizer():
    """Return a trained GPT-4 style tokenizer with two special tokens."""
    tok = minbpe.get_tokenizer("gpt4")
    tok.train(CORPUS, vocab_size=300)
    tok.register_special_tokens({"<|endoftext|>": 1000, "<|fim|>": 1001})
    return tok
