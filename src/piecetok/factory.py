"""Factory functions for creating tokenizers."""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final, Literal, overload

from ._models.base import Tokenizer
from ._models.bpe import BPETokenizer
from ._models.spm import SPMTokenizer
from .errors import ModelLoadError
from .pattern import TokenPattern
from .vocab import Vocabulary, VocabType

METADATA_SUFFIX: Final[str] = ".json"

log = logging.getLogger(__name__)


Pattern = Literal["gpt2-posix", "gpt2"]

_TOKENIZER_REGISTRY: Final[dict[VocabType, type[Tokenizer]]] = {
    VocabType.SPM: SPMTokenizer,
    VocabType.BPE: BPETokenizer,
}


def get_pattern(name: Pattern) -> bytes:
    """Return the built-in pre-tokenizer pattern called ``name``."""
    return TokenPattern.get(name)


@overload
def get_tokenizer(vocab: Vocabulary, pattern: Pattern = ...) -> Tokenizer: ...


@overload
def get_tokenizer(vocab: Vocabulary, *, custom_pattern: str | bytes) -> Tokenizer: ...


def get_tokenizer(
    vocab: Vocabulary,
    pattern: Pattern = "gpt2-posix",
    *,
    custom_pattern: str | bytes | None = None,
) -> Tokenizer:
    """
    Create the tokenizer engine matching the vocabulary's type.

    :param vocab: Loaded vocabulary.
    :param pattern: Built-in pre-tokenizer pattern name, BPE only.
                    Ignored if custom_pattern is provided.
    :param custom_pattern: Custom regex pattern. Overrides pattern parameter.
    :return: Tokenizer bound to ``vocab``.
    :raises PatternError: If the pattern name is unknown or custom_pattern is invalid regex.

    .. code-block:: python

        tokenizer = get_tokenizer(vocab)
        tokenizer = get_tokenizer(vocab, custom_pattern=rb"[A-Za-z]+|[^A-Za-z]+")
    """
    tok_cls = _TOKENIZER_REGISTRY[vocab.type]
    if tok_cls is not BPETokenizer:
        return tok_cls(vocab)

    if custom_pattern is not None:
        return BPETokenizer(vocab, custom_pattern)
    # get() handles invalid pattern names
    return BPETokenizer(vocab, TokenPattern.get(pattern))


def from_metadata(metadata: Mapping[str, Any]) -> Tokenizer:
    """
    Load a vocabulary from model metadata and build its tokenizer.

    :param metadata: Key/value mapping using GGUF tokenizer key names.
    :raises ModelLoadError: If the metadata has no readable token list.
    """
    return get_tokenizer(Vocabulary.from_metadata(metadata))


def _read_metadata(model_path: str | Path) -> dict[str, Any]:
    """Read a JSON metadata dump from disk."""
    path = Path(model_path)

    if not path.exists():
        raise ModelLoadError("metadata filepath does not exist", model_path=str(path))

    if path.suffix != METADATA_SUFFIX:
        raise ModelLoadError("expected .json metadata file", model_path=str(path))

    log.info(f"loading metadata from {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            metadata = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ModelLoadError("invalid metadata file", model_path=str(path)) from e

    if not isinstance(metadata, dict):
        raise ModelLoadError("metadata must be a JSON object", model_path=str(path))
    return metadata


def from_pretrained(model_path: str | Path) -> Tokenizer:
    """
    Load a pretrained tokenizer from a JSON metadata dump.

    The file holds the tokenizer key/values of a model container as a single
    JSON object. The engine is chosen from the ``tokenizer.ggml.model`` entry.

    :param model_path: Path to the .json metadata file.
    :return: Tokenizer bound to the loaded vocabulary.
    :raises ModelLoadError: If the file doesn't exist, has the wrong extension,
                            is not a JSON object, or has no readable token list.

    .. code-block:: python

        tokenizer = from_pretrained("path/to/tokenizer.json")
        ids = tokenizer.tokenize("Hello world", add_bos=True)
    """
    return from_metadata(_read_metadata(model_path))


__all__ = [
    "get_tokenizer",
    "get_pattern",
    "from_metadata",
    "from_pretrained",
]
