"""Rank-driven byte-pair-encoding tokenizer with regex pre-segmentation."""

import logging
from typing import Final, override

import regex as re

from .base import Tokenizer
from .._sanitise import render_piece
from .._utf8 import split_chars
from ..pattern import TokenPattern, compile_pattern
from ..types import Encoding, Piece
from ..vocab import Vocabulary, VocabType

# vocabularies smaller than this with no merges are treated as character tables
BYTE_VOCAB_SIZE: Final[int] = 256

log = logging.getLogger(__name__)


class BPETokenizer(Tokenizer):
    """Tokenizer that splits text using a regex pattern before applying BPE merges."""

    TOKENIZER_TYPE = VocabType.BPE

    def __init__(self, vocab: Vocabulary, pattern: str | bytes | None = None) -> None:
        """
        Initialize tokenizer with a provided or default split pattern.

        :param vocab: BPE vocabulary with merge ranks.
        :param pattern: Regex used to pre-segment text. Defaults to
                        :attr:`TokenPattern.GPT2_POSIX`.
        :raises PatternError: If ``pattern`` does not compile.
        """
        super().__init__(vocab)
        if pattern is None:
            self.pat: bytes = TokenPattern.GPT2_POSIX.value
        elif isinstance(pattern, str):
            self.pat = pattern.encode("utf-8")
        else:
            self.pat = pattern
        self.compiled_pat: re.Pattern[bytes] = compile_pattern(self.pat)

    @override
    def _tokenize_impl(self, data: bytes) -> Encoding:
        vocab = self.vocab
        out: Encoding = []

        # tiny character-level vocabulary: no segmentation, no merging
        if not vocab.merge_ranks and vocab.vocab_size() < BYTE_VOCAB_SIZE:
            self._lookup_chars(data, out)
            return out

        for word in self.pre_tokenize(data):
            if not word:
                continue

            # whole segment is a token: no merging needed
            tok_id = vocab.piece_to_id(word)
            if tok_id is not None:
                out.append(tok_id)
                continue

            for piece in self._merge(split_chars(word)):
                tok_id = vocab.piece_to_id(piece)
                if tok_id is not None:
                    out.append(tok_id)
                else:
                    self._lookup_chars(piece, out)

        return out

    def pre_tokenize(self, data: bytes) -> list[Piece]:
        """
        Split ``data`` into segments with the configured pattern.

        Bytes not covered by any match are added one codepoint at a time at
        their position. If no segment results, the whole input is split into
        codepoints instead.
        """
        segments: list[Piece] = []
        last = 0
        for m in self.compiled_pat.finditer(data):
            start, end = m.span()
            if start > last:
                segments.extend(split_chars(data[last:start]))
            if end > start:
                segments.append(m.group(0))
            last = max(last, end)

        if last < len(data):
            segments.extend(split_chars(data[last:]))

        if not segments:
            segments = split_chars(data)
        return segments

    def _merge(self, pieces: list[Piece]) -> list[Piece]:
        """
        Repeatedly merge the lowest-ranked adjacent pair in place.

        The first pair found with the lowest rank wins; merging stops when no
        adjacent pair has a rank.
        """
        ranks = self.vocab.merge_ranks
        while len(pieces) > 1:
            best_rank: int | None = None
            best_idx = -1
            for idx in range(len(pieces) - 1):
                rank = ranks.get((pieces[idx], pieces[idx + 1]))
                if rank is not None and (best_rank is None or rank < best_rank):
                    best_rank = rank
                    best_idx = idx

            if best_rank is None:
                break

            merged = pieces[best_idx] + pieces[best_idx + 1]
            if log.isEnabledFor(logging.DEBUG):
                log.debug(f"merge rank {best_rank}: {render_piece(merged)!r}")
            pieces[best_idx : best_idx + 2] = [merged]

        return pieces
