"""
Core types for tokenization.
"""

from collections.abc import Mapping
from enum import Enum
from typing import TypeAlias

Token: TypeAlias = int
TokenBytes: TypeAlias = bytes
TokenPair: TypeAlias = tuple[Token, Token]
Encoding: TypeAlias = dict[TokenPair, Token]
Vocabulary: TypeAlias = dict[Token, TokenBytes]
# read-only token -> bytes table handed over by a pretrained import
VocabularySource: TypeAlias = Mapping[Token, TokenBytes]


class TokenizerKind(str, Enum):
    """Which operations a tokenizer instance supports, fixed at construction."""

    # learns its own merges, can be saved and loaded
    TRAINABLE = "trainable"
    # built from an imported vocabulary, encode/decode only
    FIXED = "fixed"
