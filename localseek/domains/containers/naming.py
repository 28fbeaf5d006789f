"""
Table Naming - Container name to storage table identifier.
"""

from __future__ import annotations

__all__ = ["table_name"]

_SAFE_PUNCTUATION = frozenset("_-.")


def table_name(container: str) -> str:
    """
    Map a container name to its table identifier.

    ASCII letters, digits, ``_``, ``-`` and ``.`` are kept; every other
    character becomes its code point as (at least) 4 lowercase hex digits.
    The mapping is pure, so the same name always yields the same table.

    Example:
        >>> table_name("My Docs")
        'c_My0020Docs'
    """
    sanitized = "".join(char if _is_safe(char) else f"{ord(char):04x}" for char in container)
    return f"c_{sanitized}"


def _is_safe(char: str) -> bool:
    return (char.isascii() and char.isalnum()) or char in _SAFE_PUNCTUATION
