"""Offset <-> (line, column) conversion shared by the core modules."""

from __future__ import annotations


def offset_to_line_column(text: str, offset: int) -> tuple[int, int]:
    """Convert an absolute character offset into a 1-based (line, column).

    Offsets past the end of *text* use the truncated slice.
    """
    segments = text[: max(0, offset)].split("\n")
    return len(segments), len(segments[-1]) + 1


def line_column_to_offset(text: str, line: int, column: int) -> int:
    """Convert a 1-based (line, column) into an absolute offset.

    Returns -1 when *line* is outside the document. The column is clamped
    to the bounds of its line.
    """
    lines = text.split("\n")
    if line < 1 or line > len(lines):
        return -1

    offset = 0
    for prev in lines[: line - 1]:
        offset += len(prev) + 1  # +1 for the removed "\n"

    return offset + max(0, min(column - 1, len(lines[line - 1])))
