"""
UTF-8 leading-byte classification used to split input into codepoints.

Only the leading byte is inspected, continuation bytes are not validated.
A leading byte that does not start a 1-4 byte sequence, or whose sequence
would run past the end of the buffer, has length 0.
"""

from collections.abc import Iterator


def char_len(data: bytes, offset: int) -> int:
    """Return the byte length of the codepoint starting at ``offset``, or 0 if invalid."""
    remaining = len(data) - offset
    if remaining <= 0:
        return 0
    c = data[offset]
    if c < 0x80:
        return 1
    if remaining >= 2 and (c & 0xE0) == 0xC0:
        return 2
    if remaining >= 3 and (c & 0xF0) == 0xE0:
        return 3
    if remaining >= 4 and (c & 0xF8) == 0xF0:
        return 4
    return 0


def iter_chars(data: bytes) -> Iterator[tuple[int, int]]:
    """
    Yield ``(offset, length)`` for each position visited while scanning ``data``.

    Invalid leading bytes are yielded with length 0 and the scan advances by
    one byte; callers decide whether to skip them or substitute a token.
    """
    offset = 0
    while offset < len(data):
        n = char_len(data, offset)
        yield offset, n
        offset += n or 1


def split_chars(data: bytes) -> list[bytes]:
    """Split ``data`` into codepoint byte strings, silently skipping invalid bytes."""
    return [data[offs : offs + n] for offs, n in iter_chars(data) if n]


def to_bytes(text: str | bytes) -> bytes:
    """Return ``text`` as UTF-8 bytes; bytes input is passed through unchanged."""
    if isinstance(text, str):
        return text.encode("utf-8", errors="surrogatepass")
    return bytes(text)
