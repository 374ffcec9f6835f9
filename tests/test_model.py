from __future__ import annotations

import pytest

from builders import SEARCH_DATE, at, make_piece, make_vehicle
from operationtable.model import OperationModel, ReferenceNotFoundError


@pytest.fixture
def model(fleet):
    return OperationModel(SEARCH_DATE, fleet)


def test_lookups(model):
    vehicle, index, piece = model.require_piece("S3")
    assert (vehicle.id, index, piece.id) == ("R1", 1, "S3")
    assert model.get_vehicle("R9") is None
    assert model.find_piece("nope") is None
    assert [p.id for p in model.all_pieces()] == ["S2", "S3", "S4", "M1"]


def test_reference_errors(model):
    with pytest.raises(ReferenceNotFoundError) as excinfo:
        model.require_vehicle("R9")
    assert (excinfo.value.kind, excinfo.value.ref_id) == ("vehicle", "R9")
    with pytest.raises(LookupError):
        model.require_piece("nope")


def test_move_within_vehicle_falls_back_to_time_update(model):
    model.move_piece_to_vehicle("S2", "R1", at(13), at(15), 2)
    assert [p.id for p in model.require_vehicle("R1").pieces] == ["S3", "S2"]


def test_snapshot_is_detached(model):
    snapshot = model.snapshot()
    model.update_piece_times("S2", at(1), at(2), 1)
    assert snapshot[0].pieces[0].start == at(8)
    model.restore(snapshot)
    assert model.require_piece("S2")[2].start == at(8)
    snapshot[0].pieces.clear()
    assert model.require_vehicle("R1").pieces


def test_dict_round_trip(model):
    restored = OperationModel.from_dict(model.to_dict())
    assert restored.search_date == SEARCH_DATE
    assert [v.to_dict() for v in restored.vehicles] == [v.to_dict() for v in model.vehicles]


def test_missing_search_date():
    with pytest.raises(ValueError):
        OperationModel.from_dict({"schema_version": 1, "vehicles": []})


def test_vehicle_sorts_on_build():
    vehicle = make_vehicle("V", make_piece("B", "V", "rental", 5, 6), make_piece("A", "V", "rental", 1, 2))
    assert [p.id for p in vehicle.pieces] == ["A", "B"]
