from __future__ import annotations

import pytest

from builders import SEARCH_DATE, make_piece, make_vehicle
from operationtable.controller import OperationTableSession


@pytest.fixture
def locked_fleet():
    return [
        make_vehicle(
            "R1",
            make_piece("S1", "R1", "reserved-fixed", 10, 14, tooltip="Fixed booking"),
            name="Prius",
        ),
    ]


@pytest.fixture
def fleet():
    return [
        make_vehicle(
            "R1",
            make_piece("S2", "R1", "rental", 8, 10, color="#9C27B0", details={"customer": "Sato"}),
            make_piece("S3", "R1", "idle", 10, 12),
            name="Prius",
        ),
        make_vehicle(
            "R2",
            make_piece("S4", "R2", "reserved-temporary", 9, 11),
            make_piece("M1", "R2", "maintenance", 18, 20),
            name="Aqua",
        ),
    ]


@pytest.fixture
def session(fleet):
    return OperationTableSession.from_snapshot(SEARCH_DATE, fleet)


@pytest.fixture
def notifications(session):
    received = []
    session.notified.connect(received.append)
    return received
