"""Custom exception hierarchy for piecetok loading and tokenization errors."""

import regex as re


class PieceTokError(Exception):
    """Base exception for all piecetok errors."""


class ModelLoadError(PieceTokError):
    """Raised when building a vocabulary from model metadata fails."""

    def __init__(
        self,
        message: str,
        *,
        model_path: str | None = None,
        key: str | None = None,
    ) -> None:
        extra = " "
        if model_path:
            extra += f"(path: {model_path}) "
        if key:
            extra += f"(key: {key}) "
        super().__init__(message + extra)
        self.model_path = model_path
        self.key = key


class VocabularyError(PieceTokError, IndexError):
    """Raised when vocabulary lookups or vocabulary/tokenizer pairing fail."""

    def __init__(
        self,
        message: str,
        *,
        vocab_size: int | None = None,
        invalid_id: int | None = None,
        type_mismatch: tuple[str, str] | None = None,
    ) -> None:
        """Initialize with optional id, vocab_size and type details appended to the message."""
        extra = " "
        if invalid_id is not None:
            extra += f"(invalid id: {invalid_id}) "
        if vocab_size is not None:
            extra += f"(vocab size: {vocab_size}) "
        # tokenizer class built with the other engine's vocabulary
        if type_mismatch is not None:
            extra += f"(expected: {type_mismatch[1]}) (got {type_mismatch[0]}) "
        super().__init__(message + extra)
        self.vocab_size = vocab_size
        self.invalid_id = invalid_id
        self.type_mismatch = type_mismatch


class PatternError(PieceTokError):
    """Raised when compiling and/or validating pre-tokenizer patterns."""

    def __init__(
        self,
        message: str,
        *,
        pattern: str | bytes | None = None,
        regex_err: re.error | None = None,
    ) -> None:
        """
        Initialize PatternError with pattern details.

        Args:
            message: Error message.
            pattern: The regex pattern that failed.
            regex_err: The underlying regex error from the regex library.
        """
        extra = " "
        if pattern:
            extra += f"(pattern: {pattern!r}) "
        if regex_err:
            extra += f"(reason: {regex_err}) "
        super().__init__(message + extra)
        self.pattern = pattern
        self.regex_err = regex_err


class ConfigError(PieceTokError):
    """Raised when a named option is not recognised."""

    def __init__(
        self,
        message: str,
        *,
        invalid_name: str | None = None,
        available: list[str] | None = None,
    ) -> None:
        extra = " "
        if invalid_name:
            extra += f"(available: {available}) (got {invalid_name}) "
        super().__init__(message + extra)
        self.invalid_name = invalid_name
        self.available = available
