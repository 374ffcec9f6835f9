from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
import json
from pathlib import Path

from .constants import SCHEMA_VERSION, SLOT_DURATION
from .model import OperationModel, parse_datetime


@dataclass(frozen=True)
class ScheduleUpdate:
    piece_id: str
    vehicle_id: str
    new_start: datetime
    new_end: datetime
    new_vehicle_id: str | None = None

    def to_dict(self) -> dict:
        data = {
            "piece_id": self.piece_id,
            "vehicle_id": self.vehicle_id,
            "new_start": self.new_start.isoformat(),
            "new_end": self.new_end.isoformat(),
        }
        if self.new_vehicle_id is not None:
            data["new_vehicle_id"] = self.new_vehicle_id
        return data

    @staticmethod
    def from_dict(data: dict) -> "ScheduleUpdate":
        return ScheduleUpdate(
            piece_id=str(data["piece_id"]),
            vehicle_id=str(data["vehicle_id"]),
            new_start=parse_datetime(data["new_start"]),
            new_end=parse_datetime(data["new_end"]),
            new_vehicle_id=data.get("new_vehicle_id"),
        )


def build_schedule_updates(entries, coalesce: bool = True) -> list[ScheduleUpdate]:
    if not coalesce:
        return [_update_for(entry.previous_state, entry.new_state) for entry in entries]

    first_states = {}
    last_states = {}
    for entry in entries:
        first_states.setdefault(entry.piece_id, entry.previous_state)
        last_states[entry.piece_id] = entry.new_state
    updates = []
    for piece_id, before in first_states.items():
        after = last_states[piece_id]
        if (before.vehicle_id, before.start, before.end) == (after.vehicle_id, after.start, after.end):
            continue
        updates.append(_update_for(before, after))
    return updates


def _update_for(before, after) -> ScheduleUpdate:
    moved = before.vehicle_id != after.vehicle_id
    return ScheduleUpdate(
        piece_id=after.piece_id,
        vehicle_id=before.vehicle_id,
        new_start=after.start,
        new_end=after.end,
        new_vehicle_id=after.vehicle_id if moved else None,
    )


def _write_document(path: str | Path, payload: dict) -> None:
    document = {"schema_version": SCHEMA_VERSION}
    document.update(payload)
    Path(path).write_text(json.dumps(document, indent=2), encoding="utf-8")


def _read_document(path: str | Path) -> dict:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not hold a JSON object")
    schema_version = data.get("schema_version", 0)
    if schema_version != SCHEMA_VERSION:
        raise ValueError(f"Unsupported schema version: {schema_version}")
    return data


def save_snapshot(path: str | Path, model: OperationModel, view_state: dict | None = None) -> None:
    payload = model.to_dict()
    payload["view"] = dict(view_state or {})
    _write_document(path, payload)


def load_snapshot(path: str | Path, slot: timedelta = SLOT_DURATION) -> tuple[OperationModel, dict]:
    data = _read_document(path)
    view_state = data.get("view") or {}
    if not isinstance(view_state, dict):
        raise ValueError(f"View state in {path} must be a JSON object")
    return OperationModel.from_dict(data, slot), view_state


def save_schedule_updates(path: str | Path, updates: list[ScheduleUpdate]) -> None:
    _write_document(path, {"updates": [update.to_dict() for update in updates]})


def load_schedule_updates(path: str | Path) -> list[ScheduleUpdate]:
    data = _read_document(path)
    return [ScheduleUpdate.from_dict(item) for item in data.get("updates", [])]
