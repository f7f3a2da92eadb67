"""PieceTok: SPM and BPE subword tokenization against pretrained vocabularies."""

from ._models.base import Tokenizer
from ._models.bpe import BPETokenizer
from ._models.spm import SPMTokenizer
from .factory import (
    from_metadata,
    from_pretrained,
    get_pattern,
    get_tokenizer,
)
from .parallel import list_parallel_modes
from .pattern import TokenPattern, list_patterns
from .vocab import Vocabulary, VocabType, load_vocab

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("piecetok")
except PackageNotFoundError:
    __version__ = "dev"

__all__ = [
    "Tokenizer",
    "SPMTokenizer",
    "BPETokenizer",
    "Vocabulary",
    "VocabType",
    "TokenPattern",
    "load_vocab",
    "get_tokenizer",
    "get_pattern",
    "from_metadata",
    "from_pretrained",
    "list_patterns",
    "list_parallel_modes",
]
