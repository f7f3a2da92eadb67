"""Tokenizer engine implementations."""

from .base import Tokenizer
from .bpe import BPETokenizer
from .spm import SPMTokenizer


__all__ = ["Tokenizer", "SPMTokenizer", "BPETokenizer"]
