"""Small helpers for file names and text decoding."""

from __future__ import annotations

from typing import Optional


def remove_file_extension(filename: str) -> str:
    """Strip the extension after the last dot, keeping the dot itself."""
    dot = filename.rfind(".")
    if dot == -1:
        return filename
    return filename[: dot + 1]


def decode_text(data: bytes, encoding: Optional[str] = None) -> str:
    """Decode bytes; pure ASCII needs no encoding, anything else does.

    Raises ValueError when the data is not ASCII and no encoding is given,
    and LookupError for an unknown encoding.
    """
    if data.isascii():
        return data.decode("latin-1")
    if not encoding:
        raise ValueError("non-ASCII text requires an encoding")
    return data.decode(encoding, errors="replace")