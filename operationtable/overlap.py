from __future__ import annotations

from datetime import datetime


def ranges_overlap(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> bool:
    return not (end1 <= start2 or end2 <= start1)


def detect_overlap(
    pieces,
    start: datetime,
    end: datetime,
    exclude_piece_id: str | None = None,
    *,
    registry=None,
):
    for piece in pieces:
        if exclude_piece_id is not None and piece.id == exclude_piece_id:
            continue
        # pieces that tolerate overlap never block others
        if registry is not None and registry.allows_overlap(piece):
            continue
        if ranges_overlap(start, end, piece.start, piece.end):
            return piece
    return None


def find_conflicts(pieces, registry) -> list[tuple]:
    conflicts = []
    strict = [piece for piece in pieces if not registry.allows_overlap(piece)]
    for index, first in enumerate(strict):
        for second in strict[index + 1:]:
            if ranges_overlap(first.start, first.end, second.start, second.end):
                conflicts.append((first, second))
    return conflicts
