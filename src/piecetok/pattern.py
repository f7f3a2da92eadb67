"""Pre-tokenizer patterns used to segment text before BPE merging."""

from enum import Enum

import regex as re

from .errors import PatternError


class TokenPattern(bytes, Enum):
    """
    Pre-defined byte regex patterns for splitting text into BPE segments.

    Character classes are ASCII-only: bytes of multi-byte UTF-8 sequences
    count as neither letters, digits nor whitespace.

    Sources:
    - GPT2: https://github.com/openai/tiktoken/blob/main/tiktoken_ext/openai_public.py
    """

    # contractions, letter runs, digit runs, other runs, whitespace runs
    GPT2_POSIX = (
        rb"'s|'t|'re|'ve|'m|'ll|'d|"
        rb"[A-Za-z]+|"
        rb"[0-9]+|"
        rb"[^ \t\n\x0b\f\rA-Za-z0-9]+|"
        rb"[ \t\n\x0b\f\r]+"
    )

    # OpenAI GPT-2, with leading-space attachment
    GPT2 = (
        rb"'(?:[sdmt]|ll|ve|re)|"
        rb" ?[A-Za-z]+|"
        rb" ?[0-9]+|"
        rb" ?[^ \t\n\x0b\f\rA-Za-z0-9]+|"
        rb"[ \t\n\x0b\f\r]+(?![^ \t\n\x0b\f\r])|"
        rb"[ \t\n\x0b\f\r]+"
    )

    @classmethod
    def get(cls, name: str) -> bytes:
        """Get patterns by name (case-insensitive)."""
        try:
            return cls[name.upper().replace("-", "_")].value
        except KeyError:
            raise PatternError(
                f"Unknown pattern: {name!r}. "
                f"Valid patterns: {', '.join(pat.name for pat in cls)}"
            )


def list_patterns() -> list[str]:
    """Return names of all available built-in pre-tokenizer patterns."""
    return [pat.name for pat in TokenPattern]


def compile_pattern(pattern: str | bytes) -> re.Pattern[bytes]:
    """
    Compile and validate a pre-tokenizer pattern.

    A ``str`` pattern is encoded as UTF-8 since segmentation runs on bytes.

    :param pattern: Regex pattern to compile.
    :return: Compiled bytes pattern.
    :raises PatternError: If pattern is invalid.
    """
    if isinstance(pattern, str):
        pattern = pattern.encode("utf-8")
    try:
        return re.compile(pattern)
    except re.error as e:
        raise PatternError("invalid regex pattern", pattern=pattern, regex_err=e)


__all__ = ["TokenPattern", "list_patterns", "compile_pattern"]
