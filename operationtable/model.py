from __future__ import annotations

from bisect import bisect_right
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
import uuid

from PyQt6.QtCore import QObject, pyqtSignal

from .constants import SCHEMA_VERSION, SLOT_DURATION, STATUS_COLORS, UNKNOWN_STATUS_COLOR
from .timeslots import slot_length


def new_id() -> str:
    return uuid.uuid4().hex


def parse_datetime(value: object) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


class ReferenceNotFoundError(LookupError):
    def __init__(self, kind: str, ref_id: str) -> None:
        super().__init__(f"{kind} not found: {ref_id}")
        self.kind = kind
        self.ref_id = ref_id


@dataclass
class StatusPiece:
    id: str
    vehicle_id: str
    status_type: str
    start: datetime
    end: datetime
    length: int
    color: str = UNKNOWN_STATUS_COLOR
    tooltip: str = ""
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "vehicle_id": self.vehicle_id,
            "status_type": self.status_type,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "length": self.length,
            "color": self.color,
        }
        if self.tooltip:
            data["tooltip"] = self.tooltip
        if self.details:
            data["details"] = dict(self.details)
        return data

    @staticmethod
    def from_dict(data: dict, vehicle_id: str | None = None, slot: timedelta = SLOT_DURATION) -> "StatusPiece":
        start = parse_datetime(data["start"])
        end = parse_datetime(data["end"])
        status_type = str(data.get("status_type", "other"))
        length = data.get("length")
        return StatusPiece(
            id=str(data["id"]),
            vehicle_id=str(vehicle_id or data["vehicle_id"]),
            status_type=status_type,
            start=start,
            end=end,
            length=int(length) if length is not None else slot_length(start, end, slot),
            color=data.get("color") or STATUS_COLORS.get(status_type, UNKNOWN_STATUS_COLOR),
            tooltip=data.get("tooltip", ""),
            details=dict(data.get("details") or {}),
        )


@dataclass
class Vehicle:
    id: str
    name: str = ""
    details: dict = field(default_factory=dict)
    pieces: list[StatusPiece] = field(default_factory=list)

    def sort_pieces(self) -> None:
        self.pieces.sort(key=lambda piece: piece.start)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "pieces": [piece.to_dict() for piece in self.pieces],
        }
        if self.details:
            data["details"] = dict(self.details)
        return data

    @staticmethod
    def from_dict(data: dict, slot: timedelta = SLOT_DURATION) -> "Vehicle":
        vehicle_id = str(data["id"])
        pieces = [StatusPiece.from_dict(p, vehicle_id, slot) for p in data.get("pieces", [])]
        vehicle = Vehicle(
            id=vehicle_id,
            name=data.get("name", ""),
            details=dict(data.get("details") or {}),
            pieces=pieces,
        )
        vehicle.sort_pieces()
        return vehicle


class OperationModel(QObject):
    model_reset = pyqtSignal()
    pieces_changed = pyqtSignal()

    def __init__(self, search_date: date, vehicles: list[Vehicle] | None = None) -> None:
        super().__init__()
        self.search_date = search_date
        self.vehicles: list[Vehicle] = list(vehicles or [])

    def get_vehicle(self, vehicle_id: str) -> Vehicle | None:
        for vehicle in self.vehicles:
            if vehicle.id == vehicle_id:
                return vehicle
        return None

    def require_vehicle(self, vehicle_id: str) -> Vehicle:
        vehicle = self.get_vehicle(vehicle_id)
        if vehicle is None:
            raise ReferenceNotFoundError("vehicle", vehicle_id)
        return vehicle

    def find_piece(self, piece_id: str) -> tuple[Vehicle, int, StatusPiece] | None:
        for vehicle in self.vehicles:
            for index, piece in enumerate(vehicle.pieces):
                if piece.id == piece_id:
                    return vehicle, index, piece
        return None

    def require_piece(self, piece_id: str) -> tuple[Vehicle, int, StatusPiece]:
        found = self.find_piece(piece_id)
        if found is None:
            raise ReferenceNotFoundError("piece", piece_id)
        return found

    def all_pieces(self) -> list[StatusPiece]:
        return [piece for vehicle in self.vehicles for piece in vehicle.pieces]

    def update_piece_times(self, piece_id: str, start: datetime, end: datetime, length: int) -> StatusPiece:
        vehicle, _index, piece = self.require_piece(piece_id)
        piece.start = start
        piece.end = end
        piece.length = length
        vehicle.sort_pieces()
        self.pieces_changed.emit()
        return piece

    def move_piece_to_vehicle(
        self,
        piece_id: str,
        target_vehicle_id: str,
        start: datetime,
        end: datetime,
        length: int,
    ) -> StatusPiece:
        source, source_index, piece = self.require_piece(piece_id)
        target = self.require_vehicle(target_vehicle_id)
        if source.id == target.id:
            return self.update_piece_times(piece_id, start, end, length)

        source.pieces.pop(source_index)
        piece.vehicle_id = target.id
        piece.start = start
        piece.end = end
        piece.length = length
        insert_at = bisect_right([p.start for p in target.pieces], start)
        target.pieces.insert(insert_at, piece)
        self.pieces_changed.emit()
        return piece

    def snapshot(self) -> list[Vehicle]:
        return deepcopy(self.vehicles)

    def restore(self, vehicles: list[Vehicle]) -> None:
        self.vehicles = deepcopy(vehicles)
        self.model_reset.emit()

    def to_dict(self) -> dict:
        return {
            "schema_version": SCHEMA_VERSION,
            "search_date": self.search_date.isoformat(),
            "vehicles": [vehicle.to_dict() for vehicle in self.vehicles],
        }

    @staticmethod
    def from_dict(data: dict, slot: timedelta = SLOT_DURATION) -> "OperationModel":
        schema_version = data.get("schema_version", 0)
        if schema_version != SCHEMA_VERSION:
            raise ValueError(f"Unsupported schema version: {schema_version}")
        raw_date = data.get("search_date")
        if not raw_date:
            raise ValueError("Snapshot is missing search_date")
        search_date = date.fromisoformat(str(raw_date)[:10])
        vehicles = [Vehicle.from_dict(v, slot) for v in data.get("vehicles", [])]
        return OperationModel(search_date, vehicles)
