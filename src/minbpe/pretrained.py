"""
Adapter for pretrained tiktoken encodings.

tiktoken is an optional dependency (``pip install minbpe[pretrained]``) and is
only imported when an encoding is actually requested.
"""

from dataclasses import dataclass
from typing import Final
import logging

from .errors import ModelLoadError
from .types import Token, TokenBytes

log = logging.getLogger(__name__)

# special tokens of the cl100k_base encoding
GPT4_SPECIAL_TOKENS: Final[dict[str, Token]] = {
    "<|endoftext|>": 100257,
    "<|fim_prefix|>": 100258,
    "<|fim_middle|>": 100259,
    "<|fim_suffix|>": 100260,
    "<|endofprompt|>": 100276,
}


@dataclass(frozen=True)
class PretrainedEncoding:
    """Everything needed to rebuild a tiktoken encoding as a fixed tokenizer."""

    name: str
    vocab: dict[Token, TokenBytes]
    pattern: str
    special_tokens: dict[str, Token]


def load_tiktoken(encoding_name: str = "cl100k_base") -> PretrainedEncoding:
    """
    Read rank table, split pattern and special tokens of a tiktoken encoding.

    :raises ModelLoadError: If tiktoken is not installed or does not know the
        encoding.
    """
    try:
        import tiktoken
    except ImportError as e:
        raise ModelLoadError(
            "tiktoken is required for pretrained vocabularies, "
            "install it with `pip install minbpe[pretrained]`"
        ) from e

    try:
        enc = tiktoken.get_encoding(encoding_name)
    except ValueError as e:
        raise ModelLoadError(f"unknown tiktoken encoding: {encoding_name!r}") from e

    # tiktoken keeps bytes -> rank
    vocab = {rank: b for b, rank in enc._mergeable_ranks.items()}
    log.debug(f"loaded {len(vocab)} ranks from tiktoken encoding {encoding_name}")
    return PretrainedEncoding(
        name=encoding_name,
        vocab=vocab,
        pattern=enc._pat_str,
        special_tokens=dict(enc._special_tokens),
    )


def tiktoken_vocabulary(encoding_name: str = "cl100k_base") -> dict[Token, TokenBytes]:
    """
    Return the rank table of a tiktoken encoding as token id -> bytes.

    :raises ModelLoadError: If tiktoken is not installed or does not know the
        encoding.
    """
    return load_tiktoken(encoding_name).vocab


__all__ = [
    "GPT4_SPECIAL_TOKENS",
    "PretrainedEncoding",
    "load_tiktoken",
    "tiktoken_vocabulary",
]
