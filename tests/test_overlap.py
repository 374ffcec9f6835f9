from __future__ import annotations

from builders import at, make_piece
from operationtable.overlap import detect_overlap, find_conflicts, ranges_overlap
from operationtable.rules import RuleRegistry


def test_half_open_ranges():
    assert ranges_overlap(at(8), at(10), at(9), at(11))
    assert ranges_overlap(at(8), at(12), at(9), at(10))
    assert not ranges_overlap(at(8), at(10), at(10), at(12))
    assert not ranges_overlap(at(10), at(12), at(8), at(10))


def test_detect_overlap_returns_first_conflict():
    pieces = [
        make_piece("A", "V1", "rental", 8, 10),
        make_piece("B", "V1", "rental", 10, 12),
        make_piece("C", "V1", "rental", 11, 13),
    ]
    assert detect_overlap(pieces, at(9), at(12)).id == "A"
    assert detect_overlap(pieces, at(12), at(14)).id == "C"
    assert detect_overlap(pieces, at(13), at(15)) is None


def test_detect_overlap_skips_excluded_piece():
    pieces = [make_piece("A", "V1", "rental", 8, 10)]
    assert detect_overlap(pieces, at(9), at(11), "A") is None


def test_registry_makes_tolerant_pieces_transparent():
    pieces = [make_piece("I", "V1", "idle", 8, 12)]
    assert detect_overlap(pieces, at(9), at(10)).id == "I"
    assert detect_overlap(pieces, at(9), at(10), registry=RuleRegistry()) is None


def test_find_conflicts_ignores_idle():
    registry = RuleRegistry()
    pieces = [
        make_piece("A", "V1", "rental", 8, 10),
        make_piece("I", "V1", "idle", 8, 10),
        make_piece("B", "V1", "maintenance", 9, 11),
    ]
    conflicts = find_conflicts(pieces, registry)
    assert [(a.id, b.id) for a, b in conflicts] == [("A", "B")]
