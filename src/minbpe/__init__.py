"""minbpe: Byte-level BPE tokenization library."""

from ._progress import disable_progress, enable_progress, is_progress_enabled
from .errors import (
    InvalidConfigurationError,
    InvalidFormatError,
    MinBPEError,
    ModelLoadError,
    PatternError,
    SpecialTokenError,
    SpecialTokenInTextError,
    StrategyError,
    TokenizationError,
    TrainingError,
    UnknownTokenIdError,
    VocabularyError,
)
from .factory import from_pretrained, from_tiktoken, from_vocabulary, get_tokenizer
from .pattern import DEFAULT_PATTERN, TokenPattern, get_pattern, list_patterns
from .segmenter import Segmenter
from .strategy import (
    AllowAllStrategy,
    AllowCustomStrategy,
    AllowNoneRaiseStrategy,
    AllowNoneStrategy,
    SpecialTokenStrategy,
    get_strategy,
    list_strategies,
)
from .tokenizer import Tokenizer
from .trainer import MergeRecord
from .types import TokenizerKind

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("minbpe")
except PackageNotFoundError:
    __version__ = "dev"

__all__ = [
    "Tokenizer",
    "TokenizerKind",
    "Segmenter",
    "MergeRecord",
    "TokenPattern",
    "DEFAULT_PATTERN",
    "SpecialTokenStrategy",
    "AllowAllStrategy",
    "AllowNoneStrategy",
    "AllowNoneRaiseStrategy",
    "AllowCustomStrategy",
    "get_tokenizer",
    "get_strategy",
    "get_pattern",
    "from_pretrained",
    "from_vocabulary",
    "from_tiktoken",
    "list_patterns",
    "list_strategies",
    "enable_progress",
    "disable_progress",
    "is_progress_enabled",
    "MinBPEError",
    "InvalidConfigurationError",
    "PatternError",
    "StrategyError",
    "SpecialTokenError",
    "SpecialTokenInTextError",
    "VocabularyError",
    "UnknownTokenIdError",
    "TokenizationError",
    "TrainingError",
    "ModelLoadError",
    "InvalidFormatError",
]
