"""
Chunking Engine - Split documents into retrieval-sized chunks.

Sizes are UTF-8 byte counts. Structure-aware splitting uses a per-extension
boundary table (function/class/heading/section markers); extensions without
a boundary fall back to a fixed sliding window with overlap.

Example:
    >>> resolve_config("rs")
    ChunkConfig(max_bytes=1200, overlap_bytes=200)
    >>> chunk_with_overlap("Short", 800, 200)
    ['Short']
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from .models import ChunkConfig

__all__ = [
    "DEFAULT_CHUNK_CONFIG",
    "boundary_pattern",
    "chunk_with_overlap",
    "register_boundary",
    "resolve_config",
    "semantic_chunk",
    "supported_extensions",
]

DEFAULT_CHUNK_CONFIG = ChunkConfig(max_bytes=800, overlap_bytes=150)

_CONFIG_CATEGORIES: tuple[tuple[frozenset[str], ChunkConfig], ...] = (
    # Source code
    (
        frozenset(
            {"rs", "py", "js", "ts", "tsx", "jsx", "go", "java", "c", "cpp", "h", "hpp", "cs", "rb"}
        ),
        ChunkConfig(max_bytes=1200, overlap_bytes=200),
    ),
    # Prose
    (
        frozenset({"md", "markdown", "txt", "rst", "adoc", "tex"}),
        ChunkConfig(max_bytes=800, overlap_bytes=150),
    ),
    # Structured config
    (
        frozenset({"toml", "yaml", "yml", "json", "ini", "cfg", "conf", "env"}),
        ChunkConfig(max_bytes=600, overlap_bytes=100),
    ),
    # Tabular and logs
    (
        frozenset({"csv", "tsv", "sql", "log"}),
        ChunkConfig(max_bytes=800, overlap_bytes=150),
    ),
)

_CONFIG_BY_EXTENSION: dict[str, ChunkConfig] = {
    ext: config for extensions, config in _CONFIG_CATEGORIES for ext in extensions
}

_BOUNDARIES: dict[str, re.Pattern[bytes]] = {}


def _normalize(extension: str) -> str:
    return extension.lower().lstrip(".")


def resolve_config(extension: str) -> ChunkConfig:
    """Size policy for ``extension``; unknown extensions get the default."""
    return _CONFIG_BY_EXTENSION.get(_normalize(extension), DEFAULT_CHUNK_CONFIG)


def register_boundary(extensions: Iterable[str], pattern: str | bytes) -> None:
    """
    Register a structural boundary for one or more extensions.

    The pattern is matched against the UTF-8 encoded document. A match marks
    the line *after* the newline it starts at as the beginning of a new
    segment, so patterns conventionally begin with ``\\n``.
    """
    raw = pattern.encode("utf-8") if isinstance(pattern, str) else pattern
    compiled = re.compile(raw)
    for ext in extensions:
        _BOUNDARIES[_normalize(ext)] = compiled


def boundary_pattern(extension: str) -> re.Pattern[bytes] | None:
    return _BOUNDARIES.get(_normalize(extension))


def supported_extensions() -> frozenset[str]:
    """Extensions with either a size category or a boundary."""
    return frozenset(_CONFIG_BY_EXTENSION) | frozenset(_BOUNDARIES)


register_boundary(["rs"], rb"\n(?:pub\s+)?(?:async\s+)?(?:fn |struct |enum |impl |trait |mod )")
register_boundary(["py"], rb"\n(?:class |def |async def )")
register_boundary(
    ["js", "jsx"],
    rb"\n(?:function |class |export (?:default )?(?:function |class |const |let ))",
)
register_boundary(
    ["ts", "tsx"],
    rb"\n(?:(?:export )?(?:function |class |interface |type |const |enum |async function ))",
)
register_boundary(["go"], rb"\n(?:func |type )")
register_boundary(
    ["java", "cs"],
    rb"\n\s*(?:public |private |protected )?(?:static )?(?:class |interface |void |int |string |def )",
)
register_boundary(["c", "cpp", "h", "hpp"], rb"\n(?:[a-zA-Z_][a-zA-Z0-9_*\s]+\([^)]*\)\s*\{)")
register_boundary(["rb"], rb"\n(?:class |module |def )")
register_boundary(["md", "markdown"], rb"\n#{1,6} ")
register_boundary(["rst", "adoc", "txt", "tex", "bib"], rb"\n\n")
register_boundary(["toml", "ini", "cfg"], rb"\n\[")
register_boundary(["yaml", "yml"], rb"\n[a-zA-Z_][a-zA-Z0-9_]*:")


def semantic_chunk(text: str, extension: str) -> list[str]:
    """
    Split ``text`` at structural boundaries, packing segments up to the
    category's ``max_bytes``.

    Each new chunk after a flush starts with the last line of the previous
    chunk as a continuity anchor. Oversized buffers are window-split. The
    result is never empty for non-empty input.
    """
    config = resolve_config(extension)
    pattern = boundary_pattern(extension)
    if pattern is None:
        return chunk_with_overlap(text, config.max_bytes, config.overlap_bytes)

    data = text.encode("utf-8")

    split_points = [0]
    for match in pattern.finditer(data):
        pos = match.start()
        if pos == 0:
            continue
        newline = data.find(b"\n", pos)
        offset = newline + 1 if newline != -1 else pos
        if offset > split_points[-1]:
            split_points.append(offset)
    if split_points[-1] != len(data):
        split_points.append(len(data))

    chunks: list[bytes] = []
    buffer = b""
    for start, end in zip(split_points, split_points[1:]):
        segment = data[start:end]
        if buffer and len(buffer) + len(segment) > config.max_bytes:
            emitted = _flush(buffer, config)
            chunks.extend(emitted)
            anchor = _last_line(emitted[-1])
            buffer = anchor + b"\n" if anchor else b""
        buffer += segment

    if buffer.strip():
        chunks.extend(_flush(buffer, config))

    if not chunks:
        return [text]
    return [chunk.decode("utf-8") for chunk in chunks]


def chunk_with_overlap(text: str, max_bytes: int, overlap_bytes: int) -> list[str]:
    """
    Sliding-window split preferring newline, sentence, then word breaks.

    Consecutive chunks share up to ``overlap_bytes``; overlap is dropped for a
    step when it would keep the window from advancing.
    """
    if max_bytes < 1:
        raise ValueError("max_bytes must be at least 1")
    windows = _split_window(text.encode("utf-8"), max_bytes, overlap_bytes)
    return [window.decode("utf-8") for window in windows]


def _flush(buffer: bytes, config: ChunkConfig) -> list[bytes]:
    if len(buffer) > config.max_bytes:
        return _split_window(buffer, config.max_bytes, config.overlap_bytes)
    return [buffer]


def _last_line(chunk: bytes) -> bytes:
    if chunk.endswith(b"\n"):
        chunk = chunk[:-1]
    return chunk.rsplit(b"\n", 1)[-1].removesuffix(b"\r")


def _is_boundary(data: bytes, index: int) -> bool:
    """True unless ``index`` points at a UTF-8 continuation byte."""
    return index <= 0 or index >= len(data) or (data[index] & 0xC0) != 0x80


def _split_window(data: bytes, max_bytes: int, overlap_bytes: int) -> list[bytes]:
    chunks: list[bytes] = []
    length = len(data)
    start = 0

    while start < length:
        end = min(start + max_bytes, length)
        while end < length and not _is_boundary(data, end):
            end -= 1
        if end <= start:
            # A single character wider than the window: emit it whole.
            end = start + 1
            while end < length and not _is_boundary(data, end):
                end += 1

        if end >= length:
            chunks.append(data[start:])
            break

        split_at = _find_split(data, start, end)
        chunks.append(data[start:split_at])

        next_start = split_at - min(overlap_bytes, split_at - start)
        while next_start > start and not _is_boundary(data, next_start):
            next_start += 1
        if next_start <= start:
            next_start = split_at
        start = next_start

    return chunks


def _find_split(data: bytes, start: int, end: int) -> int:
    for separator in (b"\n", b". ", b" "):
        index = data.rfind(separator, start, end)
        if index != -1:
            return index + 1
    return end
