"""
Utilities for sanitizing token pieces into displayable strings for logs and errors.
"""

import unicodedata


def _escape_ctrl_chars(s: str) -> str:
    """Replace all Unicode control characters with their escape sequences."""
    cleaned = []
    for c in s:
        # control category codes vary: Cc, Cf, Cn etc.
        # so check via first character
        if unicodedata.category(c)[0] != "C":
            cleaned.append(c)
        else:
            cleaned.append(f"\\u{ord(c):04x}")
    return "".join(cleaned)


def render_piece(piece: bytes | str) -> str:
    """
    Render a token piece for display, escaping control characters.

    Byte pieces are decoded as UTF-8; invalid sequences are replaced with the
    Unicode replacement character.
    """
    if isinstance(piece, bytes):
        piece = piece.decode("utf-8", errors="replace")
    return _escape_ctrl_chars(piece)
