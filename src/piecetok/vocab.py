"""
Immutable vocabulary tables built from model metadata.

The metadata is a key/value mapping using GGUF tokenizer key names, so a
dump of a model container's tokenizer section can be passed in directly.
"""

import logging
from collections.abc import Mapping, Sequence
from enum import Enum
from numbers import Integral
from typing import Any, Final

from ._decorators import measure_time
from ._sanitise import render_piece
from .errors import ModelLoadError, VocabularyError
from .types import MergeRanks, Piece, TokenId

log = logging.getLogger(__name__)


# metadata keys
# ===================================================================================

TOKENS_KEY: Final[str] = "tokenizer.ggml.tokens"
MODEL_KEY: Final[str] = "tokenizer.ggml.model"
MERGES_KEY: Final[str] = "tokenizer.ggml.merges"
SCORES_KEY: Final[str] = "tokenizer.ggml.scores"
BOS_KEY: Final[str] = "tokenizer.ggml.bos_token_id"
EOS_KEY: Final[str] = "tokenizer.ggml.eos_token_id"
UNK_KEY: Final[str] = "tokenizer.ggml.unk_token_id"
# pad is accepted under either name, first match wins
PAD_KEYS: Final[tuple[str, ...]] = (
    "tokenizer.ggml.padding_token_id",
    "tokenizer.ggml.pad_token_id",
)

# model type strings that identify a byte-level BPE vocabulary
BPE_MODEL_NAMES: Final[frozenset[str]] = frozenset({"gpt2", "gpt-2", "bpe"})

# sentinel for an unset special token
NO_TOKEN: Final[int] = -1

# ===================================================================================


class VocabType(str, Enum):
    """Tokenization family a vocabulary was trained for."""

    SPM = "spm"
    BPE = "bpe"


class Vocabulary:
    """
    Read-only token tables shared by the tokenizer engines.

    Token strings are also indexed by their UTF-8 encoding since the engines
    work on byte spans. Instances are never mutated after construction and
    may be shared between threads.
    """

    def __init__(
        self,
        tokens: Sequence[str],
        *,
        vocab_type: VocabType = VocabType.SPM,
        scores: Sequence[float] | None = None,
        merges: Sequence[str] | None = None,
        bos_id: TokenId = NO_TOKEN,
        eos_id: TokenId = NO_TOKEN,
        unk_id: TokenId = NO_TOKEN,
        pad_id: TokenId = NO_TOKEN,
    ) -> None:
        """
        Build the lookup tables.

        :param tokens: Token strings in id order.
        :param vocab_type: Which engine this vocabulary drives.
        :param scores: Per-token scores, SPM only. Ignored with a warning on a
                       length mismatch.
        :param merges: Ordered ``"left right"`` merge strings, BPE only.
                       Malformed entries are skipped with a warning.
        :raises ModelLoadError: If any token is not a string.
        """
        self.type = VocabType(vocab_type)
        self._id_to_token: tuple[str, ...] = ()
        self._token_to_id: dict[str, TokenId] = {}
        self._piece_to_id: dict[Piece, TokenId] = {}

        id_to_token: list[str] = []
        for idx, tok in enumerate(tokens):
            if not isinstance(tok, str):
                raise ModelLoadError(
                    f"failed to read token string for id {idx}", key=TOKENS_KEY
                )
            id_to_token.append(tok)
            # a repeated token string resolves to its last id
            self._token_to_id[tok] = idx
            self._piece_to_id[tok.encode("utf-8", errors="surrogatepass")] = idx
        self._id_to_token = tuple(id_to_token)

        if len(self._token_to_id) != len(self._id_to_token):
            log.warning(
                f"{len(self._id_to_token) - len(self._token_to_id)} duplicate token strings in vocabulary"
            )

        self.scores: tuple[float, ...] = self._build_scores(scores)
        self.merge_ranks: MergeRanks = self._build_ranks(merges)

        self.bos_id = bos_id
        self.eos_id = eos_id
        self.unk_id = unk_id
        self.pad_id = pad_id

    @classmethod
    @measure_time
    def from_metadata(cls, metadata: Mapping[str, Any]) -> "Vocabulary":
        """
        Load a vocabulary from a model metadata mapping.

        Only the token list is required. The model type, merges, scores and
        special token ids are optional and fall back to "absent".

        :param metadata: Key/value mapping using GGUF tokenizer key names.
        :return: Loaded vocabulary.
        :raises ModelLoadError: If the token list is missing or unreadable.

        .. code-block:: python

            vocab = Vocabulary.from_metadata({
                "tokenizer.ggml.model": "gpt2",
                "tokenizer.ggml.tokens": ["h", "e", "he"],
                "tokenizer.ggml.merges": ["h e"],
            })
        """
        tokens = metadata.get(TOKENS_KEY)
        if tokens is None:
            raise ModelLoadError("token list not found in metadata", key=TOKENS_KEY)
        if isinstance(tokens, (str, bytes)) or not isinstance(tokens, Sequence):
            raise ModelLoadError("token list must be an array of strings", key=TOKENS_KEY)

        vocab_type = VocabType.SPM
        model_name = metadata.get(MODEL_KEY)
        if isinstance(model_name, str) and model_name in BPE_MODEL_NAMES:
            vocab_type = VocabType.BPE

        merges = None
        if vocab_type is VocabType.BPE:
            merges = _optional_array(metadata, MERGES_KEY)
            if merges is None:
                log.warning("BPE model type specified but no merges found")

        scores = None
        if vocab_type is VocabType.SPM:
            scores = _optional_array(metadata, SCORES_KEY)
            if scores is None and len(tokens) > 0:
                log.warning("SPM model type but no scores found")

        log.info(f"loading {vocab_type.value} vocabulary with {len(tokens)} tokens")

        vocab = cls(
            tokens,
            vocab_type=vocab_type,
            scores=scores,
            merges=merges,
            bos_id=_special_token_id(metadata, BOS_KEY),
            eos_id=_special_token_id(metadata, EOS_KEY),
            unk_id=_special_token_id(metadata, UNK_KEY),
            pad_id=_special_token_id(metadata, *PAD_KEYS),
        )

        log.info(
            f"vocabulary loaded successfully: {vocab.vocab_size()} tokens, "
            f"{len(vocab.scores)} scores, {len(vocab.merge_ranks)} merge rules"
        )
        return vocab

    def _build_scores(self, scores: Sequence[float] | None) -> tuple[float, ...]:
        """Keep scores only for an SPM vocabulary and only if there is one per token."""
        if scores is None or self.type is not VocabType.SPM:
            return ()
        if len(scores) != len(self._id_to_token):
            log.warning(
                f"scores array size mismatch: {len(scores)} scores "
                f"for {len(self._id_to_token)} tokens, ignoring scores"
            )
            return ()
        try:
            return tuple(float(s) for s in scores)
        except (TypeError, ValueError) as e:
            log.warning(f"unreadable scores array, ignoring scores: {e}")
            return ()

    def _build_ranks(self, merges: Sequence[str] | None) -> MergeRanks:
        """
        Convert an ordered merge list into a pair -> rank table.

        The rank is the entry's position in the full list, so skipped entries
        still consume a rank.
        """
        ranks: MergeRanks = {}
        if merges is None or self.type is not VocabType.BPE:
            return ranks

        n_skipped = 0
        for rank, merge in enumerate(merges):
            if not isinstance(merge, str):
                log.warning(f"skipping unreadable merge entry at rank {rank}")
                n_skipped += 1
                continue
            space = merge.find(" ")
            # separator must exist and leave a non-empty piece on both sides
            if space <= 0 or space == len(merge) - 1:
                log.warning(f"skipping malformed merge entry at rank {rank}: {render_piece(merge)!r}")
                n_skipped += 1
                continue
            left = merge[:space].encode("utf-8", errors="surrogatepass")
            right = merge[space + 1 :].encode("utf-8", errors="surrogatepass")
            ranks[(left, right)] = rank

        log.debug(f"built {len(ranks)} merge ranks ({n_skipped} entries skipped)")
        return ranks

    def vocab_size(self) -> int:
        """Return the number of tokens in the vocabulary."""
        return len(self._id_to_token)

    def __len__(self) -> int:
        return len(self._id_to_token)

    def token_to_id(self, token: str) -> TokenId | None:
        """Return the id of ``token``, or ``None`` if it is not in the vocabulary."""
        return self._token_to_id.get(token)

    def id_to_token(self, token_id: TokenId) -> str:
        """
        Return the token string for ``token_id``.

        :raises VocabularyError: If ``token_id`` is outside ``[0, vocab_size)``.
        """
        if not 0 <= token_id < len(self._id_to_token):
            raise VocabularyError(
                "token id out of range",
                invalid_id=token_id,
                vocab_size=len(self._id_to_token),
            )
        return self._id_to_token[token_id]

    def piece_to_id(self, piece: Piece) -> TokenId | None:
        """Return the id of the token whose UTF-8 encoding is ``piece``."""
        return self._piece_to_id.get(piece)

    def score(self, token_id: TokenId) -> float | None:
        """Return the score of ``token_id``, or ``None`` if it has none."""
        if 0 <= token_id < len(self.scores):
            return self.scores[token_id]
        return None

    def merge_rank(self, left: Piece, right: Piece) -> int | None:
        """Return the merge rank of the adjacent pair, or ``None`` if it never merges."""
        return self.merge_ranks.get((left, right))

    def is_valid_id(self, token_id: TokenId) -> bool:
        """Return whether ``token_id`` is set and inside the vocabulary."""
        return 0 <= token_id < len(self._id_to_token)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(type={self.type.value}, size={len(self)}, "
            f"bos={self.bos_id}, eos={self.eos_id}, unk={self.unk_id}, pad={self.pad_id})"
        )


def _optional_array(metadata: Mapping[str, Any], key: str) -> Sequence[Any] | None:
    """Return the array stored under ``key``, or ``None`` if it is absent or not an array."""
    value = metadata.get(key)
    if value is None:
        return None
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        log.warning(f"ignoring {key} of type {type(value).__name__}, expected an array")
        return None
    return value


def _special_token_id(metadata: Mapping[str, Any], *keys: str) -> TokenId:
    """Return the first integer stored under ``keys``, or ``NO_TOKEN``."""
    for key in keys:
        if key not in metadata:
            continue
        value = metadata[key]
        # bool is an Integral but never a token id
        if isinstance(value, Integral) and not isinstance(value, bool):
            # ids are stored as u32 or i32 but held as int32, so 0xFFFFFFFF is unset
            return ((int(value) + 2**31) % 2**32) - 2**31
        log.warning(f"ignoring special token id of type {type(value).__name__} under {key}")
        return NO_TOKEN
    return NO_TOKEN


def load_vocab(metadata: Mapping[str, Any]) -> Vocabulary:
    """Load a :class:`Vocabulary` from a model metadata mapping."""
    return Vocabulary.from_metadata(metadata)


__all__ = [
    "Vocabulary",
    "VocabType",
    "load_vocab",
    "NO_TOKEN",
    "BPE_MODEL_NAMES",
]
