"""
Base tokenizer interface shared by the SPM and BPE engines.
"""

import logging
import os
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from math import ceil
from typing import Final

from .._utf8 import iter_chars, to_bytes
from ..errors import VocabularyError
from ..parallel import ParallelMode, ParallelStrategy
from ..types import Encoding, Piece
from ..vocab import NO_TOKEN, Vocabulary, VocabType

# auto mode stays serial below this total input length
SERIAL_BATCH_SIZE: Final[int] = 1_000_000

log = logging.getLogger(__name__)


class Tokenizer(ABC):
    """
    Abstract base class for vocabulary-driven tokenizers.

    Holds a read-only :class:`Vocabulary` and wraps the engine output with
    optional beginning/end-of-sequence markers. Tokenizers keep no state
    between calls, so one instance can serve many threads.
    """

    TOKENIZER_TYPE: VocabType

    def __init__(self, vocab: Vocabulary) -> None:
        """
        Bind the tokenizer to ``vocab``.

        :raises VocabularyError: If ``vocab`` was loaded for the other engine.
        """
        super().__init__()
        if vocab.type is not self.TOKENIZER_TYPE:
            raise VocabularyError(
                "vocabulary type does not match tokenizer",
                type_mismatch=(vocab.type.value, self.TOKENIZER_TYPE.value),
            )
        self.vocab = vocab

    def tokenize(
        self, text: str | bytes, add_bos: bool = False, add_eos: bool = False
    ) -> Encoding:
        """
        Convert text into token ids.

        bos/eos are added only when requested and configured with an id inside
        the vocabulary. Never raises for any input text.

        :param text: Text to tokenize. ``str`` is encoded as UTF-8; ``bytes``
                     is used as-is and may contain invalid sequences.
        :param add_bos: Prepend the beginning-of-sequence id.
        :param add_eos: Append the end-of-sequence id.
        :returns: Token ids.

        .. code-block:: python

            tok = from_metadata(metadata)
            ids = tok.tokenize("Hello world", add_bos=True, add_eos=True)
        """
        ids: Encoding = []
        if add_bos and self.vocab.is_valid_id(self.vocab.bos_id):
            ids.append(self.vocab.bos_id)

        data = to_bytes(text)
        if data:
            ids.extend(self._tokenize_impl(data))

        if add_eos and self.vocab.is_valid_id(self.vocab.eos_id):
            ids.append(self.vocab.eos_id)
        return ids

    @abstractmethod
    def _tokenize_impl(self, data: bytes) -> Encoding:
        """Engine-specific tokenization of non-empty UTF-8 bytes."""
        ...

    def tokenize_batch(
        self,
        texts: list[str | bytes],
        add_bos: bool = False,
        add_eos: bool = False,
        num_workers: int | None = None,
        parallel_mode: ParallelStrategy | ParallelMode = "auto",
    ) -> list[Encoding]:
        """
        Tokenize many texts using the requested parallelization mode.

        ``off`` tokenizes texts serially. ``batch`` groups texts and runs the
        groups on a thread pool. ``auto`` stays serial for a single text or a
        small total input, and uses batch mode otherwise. Each text is always
        tokenized by a single thread.

        :param texts: Text inputs to tokenize.
        :param num_workers: Thread count for batch mode; defaults to the CPU count.
        :param parallel_mode: Parallelization policy.
        :returns: Token id lists in input order.
        :raises ConfigError: If ``parallel_mode`` is not a known mode name.
        """
        mode = ParallelMode.get(parallel_mode)
        if not texts:
            return []

        if num_workers is None:
            workers = os.cpu_count() or 1
        else:
            workers = max(1, num_workers)  # "0" interpreted as 1 worker

        def serial() -> list[Encoding]:
            return [self.tokenize(text, add_bos, add_eos) for text in texts]

        def process_batch() -> list[Encoding]:
            """Tokenize grouped texts in parallel, one text per thread at a time."""
            if workers == 1 or len(texts) <= 1:
                return serial()

            # group texts to reduce task-scheduling overhead when the input
            # contains many documents
            target_tasks = min(len(texts), workers * 2)
            group_size = max(1, ceil(len(texts) / target_tasks))
            text_groups = [
                texts[idx : idx + group_size] for idx in range(0, len(texts), group_size)
            ]

            def tokenize_group(group: list[str | bytes]) -> list[Encoding]:
                return [self.tokenize(text, add_bos, add_eos) for text in group]

            log.debug(f"tokenizing {len(texts)} texts in {len(text_groups)} groups on {workers} threads")
            with ThreadPoolExecutor(max_workers=workers) as pool:
                encoded_groups = list(pool.map(tokenize_group, text_groups))
            return [encoded for group in encoded_groups for encoded in group]

        match mode:
            case ParallelMode.OFF:
                return serial()
            case ParallelMode.BATCH:
                return process_batch()
            case ParallelMode.AUTO:
                total_size = sum(len(text) for text in texts)
                if len(texts) == 1 or total_size < SERIAL_BATCH_SIZE:
                    return serial()
                return process_batch()

    def vocab_size(self) -> int:
        """Return the number of tokens in the vocabulary."""
        return self.vocab.vocab_size()

    def _lookup_chars(self, piece: Piece, out: Encoding) -> None:
        """
        Append one id per codepoint of ``piece`` to ``out``.

        Codepoints missing from the vocabulary and invalid bytes become the
        unknown id, or are dropped when no unknown id is configured.
        """
        unk_id = self.vocab.unk_id
        for offs, n in iter_chars(piece):
            tok_id = self.vocab.piece_to_id(piece[offs : offs + n]) if n else None
            if tok_id is not None:
                out.append(tok_id)
            elif unk_id != NO_TOKEN:
                out.append(unk_id)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.vocab!r})"
