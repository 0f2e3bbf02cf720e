"""
Byte-level BPE tokenizer.

One class covers every configuration: an optional split pattern (absent means
the whole text is a single chunk), an optional special token registry, and an
optional byte permutation used by vocabularies imported from elsewhere.
"""

from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Final
import logging

from ._bpe import bpe_merge, lowest_rank_pair
from ._decorators import measure_time, requires_trainable
from .errors import (
    InvalidConfigurationError,
    InvalidFormatError,
    PatternError,
    SpecialTokenError,
    TokenizationError,
    UnknownTokenIdError,
)
from .registry import SpecialTokenRegistry, split_on_special
from .segmenter import Segmenter
from .serializer import (
    MODEL_SUFFIX,
    VOCAB_SUFFIX,
    ModelState,
    read_model,
    rebuild_vocab,
    write_model,
    write_vocab,
)
from .strategy import SpecialTokenStrategy, resolve_strategy
from .trainer import MergeRecord, train_bpe
from .types import Encoding, Token, TokenizerKind, Vocabulary, VocabularySource
from .vocab import build_vocab, recover_merges

log = logging.getLogger(__name__)

# UTF-8 error handlers accepted by decode
DECODE_ERRORS: Final[tuple[str, ...]] = ("strict", "replace")


class Tokenizer:
    """
    Byte-level BPE tokenizer with optional regex pre-splitting and special tokens.

    Merges and vocabulary are filled once, by ``train`` or ``load``, and are
    replaced as a whole; encode and decode only read them and can run from
    several threads at once.
    """

    def __init__(
        self,
        pattern: str | None = None,
        special_tokens: Mapping[str, Token] | None = None,
        *,
        merges: Encoding | None = None,
        byte_shuffle: list[int] | None = None,
        kind: TokenizerKind = TokenizerKind.TRAINABLE,
    ) -> None:
        """
        :param pattern: Split pattern, ``None`` for byte-only tokenization.
        :param special_tokens: Special token literal -> id.
        :param merges: Pre-built merge table, empty by default.
        :param byte_shuffle: Permutation applied to raw bytes before merging,
            ``byte_shuffle[b]`` being the token id of byte ``b``.
        :param kind: ``FIXED`` tokenizers cannot be trained, saved or loaded.
        :raises PatternError: If the pattern does not compile.
        :raises VocabularyError: If the merges are inconsistent.
        :raises SpecialTokenError: If special token ids are invalid.
        """
        self.kind = TokenizerKind(kind)
        self._segmenter = Segmenter(pattern)
        # byte pair -> merge token
        self.merges: Encoding = dict(merges or {})
        # tokens -> bytes
        self.vocab: Vocabulary = build_vocab(self.merges)

        self._shuffle: bytes | None = None
        self._unshuffle: bytes | None = None
        if byte_shuffle is not None:
            if sorted(byte_shuffle) != list(range(256)):
                raise InvalidConfigurationError(
                    "byte shuffle must be a permutation of 0..255"
                )
            inverse = [0] * 256
            for b, tok in enumerate(byte_shuffle):
                inverse[tok] = b
            # bytes.translate tables
            self._shuffle = bytes(byte_shuffle)
            self._unshuffle = bytes(inverse)

        self._special = SpecialTokenRegistry(special_tokens, reserved=self.vocab)

    @classmethod
    def from_vocabulary(
        cls,
        source: VocabularySource,
        pattern: str | None = None,
        special_tokens: Mapping[str, Token] | None = None,
    ) -> "Tokenizer":
        """
        Build a fixed tokenizer from an imported id -> bytes table.

        The ids of ``source`` are read as merge ranks; merges and the byte
        permutation are recovered from it.

        :raises VocabularyError: If ``source`` is not a BPE rank table.
        """
        merges, byte_shuffle = recover_merges(source)
        return cls(
            pattern,
            special_tokens,
            merges=merges,
            byte_shuffle=byte_shuffle,
            kind=TokenizerKind.FIXED,
        )

    # Properties
    # ---------------------------------------------------------------------------

    @property
    def pattern(self) -> str | None:
        """Split pattern, ``None`` for byte-only tokenization."""
        return self._segmenter.pattern

    @property
    def special_tokens(self) -> dict[str, Token]:
        """Copy of the registered special tokens."""
        return dict(self._special)

    @property
    def vocab_size(self) -> int:
        """Number of tokens: bytes, merges and special tokens."""
        return len(self.vocab) + len(self._special)

    def register_special_tokens(self, special_tokens: Mapping[str, Token]) -> None:
        """
        Replace the full set of special tokens with user-assigned ids.

        To extend the existing tokens pass the merged dict:
        ``tok.register_special_tokens({**tok.special_tokens, "<|new|>": 300})``.

        :raises SpecialTokenError: If any two entries share an id, or an id
            collides with the vocabulary.
        """
        self._special = SpecialTokenRegistry(special_tokens, reserved=self.vocab)

    # Training
    # ---------------------------------------------------------------------------

    @requires_trainable
    @measure_time
    def train(
        self,
        text: str | list[str],
        vocab_size: int,
        verbose: bool = False,
        on_merge: Callable[[MergeRecord], None] | None = None,
    ) -> None:
        """
        Learn ``vocab_size - 256`` merges from ``text``.

        The text is split by the pattern and each chunk is converted to UTF-8
        bytes; merges never cross chunks. A list of strings is treated as
        separate documents, so no merge crosses a document boundary either.
        Fewer merges are learned if the text runs out of pairs.

        The previous merges stay in place until training has finished.

        :param text: Training text as a single string or list of strings.
        :param vocab_size: Target vocabulary size including the base 256 bytes.
        :param verbose: Log each learned merge when ``True``.
        :param on_merge: Called with a ``MergeRecord`` after each merge.
        :raises InvalidConfigurationError: If ``vocab_size`` is below 256 or a
            registered special token id would clash with a new merge id.
        """
        if isinstance(vocab_size, bool) or not isinstance(vocab_size, int):
            raise InvalidConfigurationError(
                f"vocab size must be an integer, got {type(vocab_size).__name__}"
            )
        if vocab_size < 256:
            raise InvalidConfigurationError(
                "vocab size must be at least 256", vocab_size=vocab_size
            )

        clashing = {seq for seq, tok in self._special.items() if 256 <= tok < vocab_size}
        if clashing:
            raise InvalidConfigurationError(
                f"special token ids fall inside the trained vocabulary: "
                f"{', '.join(sorted(clashing))}",
                vocab_size=vocab_size,
            )

        texts = [text] if isinstance(text, str) else list(text)
        # convert each chunk to its byte tokens
        chunks: list[list[Token]] = [
            list(chunk_bytes)
            for doc in texts
            for chunk_bytes in self._segmenter.split_bytes(doc)
        ]

        n_merges = vocab_size - 256
        log.info(
            f"training on {len(chunks)} chunks ({sum(map(len, chunks))} bytes), "
            f"{n_merges} merges requested"
        )

        result = train_bpe(chunks, n_merges, verbose=verbose, on_merge=on_merge)

        if result.n_merges_completed < n_merges:
            log.warning(
                f"no more byte pairs to merge after {result.n_merges_completed} merges "
                f"(requested {n_merges}) stopping early"
            )

        self.merges = result.merges  # used for encoding text -> tokens
        self.vocab = result.vocab  # used for decoding tokens -> text
        # learned merges are over raw bytes
        self._shuffle = self._unshuffle = None

    # Encoding
    # ---------------------------------------------------------------------------

    def _encode_chunk(self, text_bytes: bytes) -> list[Token]:
        """
        Apply BPE merges to the bytes of one chunk.

        Each round merges the present pair that was learned first, because
        later merges may be built on top of it.
        """
        if self._shuffle is not None:
            text_bytes = text_bytes.translate(self._shuffle)
        # convert each byte to [0-255] token range
        tokens = list(text_bytes)
        while len(tokens) >= 2:
            pair = lowest_rank_pair(tokens, self.merges)
            # no pair to merge
            if pair is None:
                break
            tokens = bpe_merge(tokens, pair, self.merges[pair])
        return tokens

    def encode_ordinary(self, text: str) -> list[Token]:
        """Encode text ignoring any special tokens."""
        tokens: list[Token] = []
        # compress each text chunk into tokens via bpe
        for chunk_bytes in self._segmenter.split_bytes(text):
            tokens.extend(self._encode_chunk(chunk_bytes))
        return tokens

    def encode(
        self,
        text: str,
        allowed_special: str | SpecialTokenStrategy = "none_raise",
    ) -> list[Token]:
        """
        Encode text into a sequence of tokens.

        :param text: Text to encode.
        :param allowed_special: Special token policy: "all", "none",
            "none_raise", "set:<literal>,<literal>", or a strategy object.
        :returns: Encoded token sequence.
        :raises StrategyError: If the policy is not recognized.
        :raises SpecialTokenInTextError: Under "none_raise", if the text
            contains a registered special token.
        """
        strategy = resolve_strategy(allowed_special)
        # retrieve special tokens as defined by chosen strategy
        special_toks = strategy.handle(text, self._special)
        if not special_toks:
            return self.encode_ordinary(text)

        tokens: list[Token] = []
        for i, part in enumerate(split_on_special(text, special_toks)):
            if i % 2:
                # special token sequence already has a unique token id
                tokens.append(special_toks[part])
            elif part:
                tokens.extend(self.encode_ordinary(part))
        return tokens

    def encode_batch(
        self,
        texts: list[str],
        allowed_special: str | SpecialTokenStrategy = "none_raise",
        num_workers: int | None = None,
    ) -> list[list[Token]]:
        """
        Encode multiple texts, optionally on a thread pool.

        :param num_workers: Worker threads; ``None`` or 1 encodes serially.
        :returns: Encoded token sequences in input order.
        """
        strategy = resolve_strategy(allowed_special)
        if num_workers is None or num_workers <= 1 or len(texts) <= 1:
            return [self.encode(text, strategy) for text in texts]

        with ThreadPoolExecutor(max_workers=num_workers) as pool:
            return list(pool.map(lambda text: self.encode(text, strategy), texts))

    # Decoding
    # ---------------------------------------------------------------------------

    def _token_bytes(self, tok: Token) -> bytes:
        """Return the raw bytes of a learned token, undoing any byte shuffle."""
        b = self.vocab[tok]
        if self._unshuffle is not None:
            b = b.translate(self._unshuffle)
        return b

    def decode_bytes(self, tokens: list[Token]) -> bytes:
        """
        Decode tokens into raw bytes.

        Tokens are resolved first from the learned vocabulary and then from
        the special tokens.

        :raises UnknownTokenIdError: If any token is unknown to both.
        """
        txt_bytes: list[bytes] = []
        for tok in tokens:
            if tok in self.vocab:
                txt_bytes.append(self._token_bytes(tok))
            elif (seq := self._special.literal(tok)) is not None:
                txt_bytes.append(seq.encode("utf-8"))
            else:
                raise UnknownTokenIdError(
                    "token not found in vocabulary", invalid_tok=tok
                )
        return b"".join(txt_bytes)

    def decode(self, tokens: list[Token], errors: str = "strict") -> str:
        """
        Decode a sequence of tokens back into text.

        A slice of a token sequence may end in the middle of a multi-byte
        character. By default that is an error; pass ``errors="replace"`` to
        get U+FFFD replacement characters instead.

        :param errors: UTF-8 error handler, "strict" or "replace".
        :raises InvalidConfigurationError: If ``errors`` names another handler.
        :raises UnknownTokenIdError: If any token id is unknown.
        :raises TokenizationError: If the bytes are not valid UTF-8 under
            ``errors="strict"``.
        """
        if errors not in DECODE_ERRORS:
            raise InvalidConfigurationError(
                f"unknown decode error handler {errors!r}, expected one of {DECODE_ERRORS}"
            )
        txt_bytes = self.decode_bytes(tokens)
        try:
            return txt_bytes.decode("utf-8", errors=errors)
        except UnicodeDecodeError as e:
            raise TokenizationError(
                f"decoded bytes are not valid UTF-8: {e.reason}", position=e.start
            ) from e

    def decode_batch(
        self, token_batch: list[list[Token]], errors: str = "strict"
    ) -> list[str]:
        """Decode multiple token sequences in order."""
        return [self.decode(tokens, errors=errors) for tokens in token_batch]

    # Serialization
    # ---------------------------------------------------------------------------

    @requires_trainable
    def save(self, file_prefix: str) -> None:
        """
        Save tokenizer state to disk.

        Creates two files: a .model file with split pattern, special tokens
        and merges, and a .vocab file with human-readable token representations.

        :param file_prefix: Path prefix for output files.
        """
        log.info(f"saving tokenizer to {file_prefix}")
        state = ModelState(
            pattern=self.pattern,
            special_toks=self.special_tokens,
            merges=self.merges,
        )
        write_model(Path(file_prefix + MODEL_SUFFIX), state)
        self.save_vocab(file_prefix + VOCAB_SUFFIX)
        log.info("tokenizer saved successfully")

    def save_vocab(self, vocab_file: str) -> None:
        """Write the human-readable vocabulary listing only."""
        if self._unshuffle is None:
            vocab = self.vocab
        else:
            vocab = {tok: self._token_bytes(tok) for tok in self.vocab}
        write_vocab(Path(vocab_file), vocab, self.merges, self.special_tokens)

    @requires_trainable
    def load(self, model_file: str) -> None:
        """
        Load tokenizer state from a .model file.

        Restores the split pattern, special tokens and merges, and rebuilds
        the vocabulary. On any error the tokenizer keeps its previous state.

        :raises ModelLoadError: If the file is missing or not a .model file.
        :raises InvalidFormatError: If the contents are malformed.
        """
        state = read_model(Path(model_file))
        vocab = rebuild_vocab(state)
        try:
            segmenter = Segmenter(state.pattern)
        except PatternError as e:
            raise InvalidFormatError(f"invalid split pattern: {e}") from e
        try:
            registry = SpecialTokenRegistry(state.special_toks, reserved=vocab)
        except SpecialTokenError as e:
            raise InvalidFormatError(f"invalid special tokens: {e}") from e

        # atomically update tokenizer state after successful read
        self._segmenter = segmenter
        self._special = registry
        self.merges = state.merges
        self.vocab = vocab
        self._shuffle = self._unshuffle = None

        log.info(
            f"model loaded successfully: {len(self._special)} special tokens, "
            f"{len(self.merges)} merge rules, {self.vocab_size} total tokens"
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(kind={self.kind.value}, "
            f"pattern={self.pattern!r}, merges={len(self.merges)}, "
            f"special_toks={len(self._special)})"
        )


__all__ = ["Tokenizer"]
