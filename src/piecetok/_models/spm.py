"""Score-driven greedy bigram merge tokenizer (SentencePiece style)."""

import heapq
import logging
from dataclasses import dataclass
from typing import NamedTuple, override

from .base import Tokenizer
from .._utf8 import iter_chars
from ..types import Encoding
from ..vocab import NO_TOKEN, VocabType

log = logging.getLogger(__name__)


@dataclass(slots=True)
class Symbol:
    """
    A byte span of the input linked to its neighbours by arena index.

    A symbol with ``n == 0`` has been merged into its left neighbour. Its slot
    stays in the arena so queued indices remain valid.
    """

    start: int
    n: int
    prev: int
    next: int


class Bigram(NamedTuple):
    """
    Candidate merge of two adjacent symbols, ordered for a min-heap.

    The score is negated so the highest score pops first; equal scores pop
    the leftmost pair first.
    """

    neg_score: float
    left: int
    right: int
    # combined byte length when queued, used to detect stale entries
    size: int


class SPMTokenizer(Tokenizer):
    """
    Tokenizer that greedily merges the highest-scoring adjacent symbol pair.

    Starts from one symbol per codepoint and repeatedly merges the adjacent
    pair whose concatenation is the best-scoring vocabulary entry, until no
    pair forms a scored entry.
    """

    TOKENIZER_TYPE = VocabType.SPM

    @override
    def _tokenize_impl(self, data: bytes) -> Encoding:
        vocab = self.vocab
        out: Encoding = []

        if not vocab.scores:
            if vocab.unk_id != NO_TOKEN:
                out.append(vocab.unk_id)
            return out

        # one symbol per codepoint, invalid leading bytes are dropped
        symbols: list[Symbol] = []
        for offs, n in iter_chars(data):
            if n == 0:
                continue
            idx = len(symbols)
            symbols.append(Symbol(start=offs, n=n, prev=idx - 1, next=idx + 1))

        if not symbols:
            return out
        symbols[-1].next = -1

        queue: list[Bigram] = []

        def try_add_bigram(left: int, right: int) -> None:
            """Queue the pair if its concatenation is a scored vocabulary entry."""
            if left == -1 or right == -1:
                return
            left_sym, right_sym = symbols[left], symbols[right]
            if left_sym.n == 0 or right_sym.n == 0:
                return
            size = left_sym.n + right_sym.n
            tok_id = vocab.piece_to_id(data[left_sym.start : left_sym.start + size])
            if tok_id is None:
                return
            score = vocab.score(tok_id)
            if score is None:
                return
            heapq.heappush(queue, Bigram(-score, left, right, size))

        for idx in range(len(symbols) - 1):
            try_add_bigram(idx, idx + 1)

        while queue:
            bigram = heapq.heappop(queue)
            left_sym = symbols[bigram.left]
            right_sym = symbols[bigram.right]

            # stale: an endpoint was merged away or grew since this was queued
            if (
                left_sym.n == 0
                or right_sym.n == 0
                or left_sym.n + right_sym.n != bigram.size
            ):
                continue

            left_sym.n += right_sym.n
            right_sym.n = 0

            left_sym.next = right_sym.next
            if right_sym.next != -1:
                symbols[right_sym.next].prev = bigram.left

            try_add_bigram(left_sym.prev, bigram.left)
            try_add_bigram(bigram.left, left_sym.next)

        idx = 0
        while idx != -1:
            sym = symbols[idx]
            if sym.n > 0:
                piece = data[sym.start : sym.start + sym.n]
                tok_id = vocab.piece_to_id(piece)
                if tok_id is not None:
                    out.append(tok_id)
                else:
                    self._lookup_chars(piece, out)
            idx = sym.next

        return out
