from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import logging

from PyQt6.QtGui import QUndoCommand

from .model import OperationModel, new_id
from .rules import ACTION_DRAG, ACTION_RESIZE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PieceState:
    piece_id: str
    vehicle_id: str
    start: datetime
    end: datetime
    length: int

    @staticmethod
    def from_piece(piece, vehicle_id: str | None = None) -> "PieceState":
        return PieceState(
            piece_id=piece.id,
            vehicle_id=vehicle_id or piece.vehicle_id,
            start=piece.start,
            end=piece.end,
            length=piece.length,
        )

    def to_dict(self) -> dict:
        return {
            "piece_id": self.piece_id,
            "vehicle_id": self.vehicle_id,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "length": self.length,
        }


@dataclass(frozen=True)
class HistoryEntry:
    action_type: str
    previous_state: PieceState
    new_state: PieceState
    target_vehicle_id: str | None = None
    timestamp: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=new_id)

    @property
    def piece_id(self) -> str:
        return self.new_state.piece_id

    @property
    def crosses_vehicles(self) -> bool:
        return self.previous_state.vehicle_id != self.new_state.vehicle_id


def place_piece(model: OperationModel, state: PieceState) -> None:
    current, _index, _piece = model.require_piece(state.piece_id)
    # validate the target before touching the source list
    model.require_vehicle(state.vehicle_id)
    if current.id == state.vehicle_id:
        model.update_piece_times(state.piece_id, state.start, state.end, state.length)
    else:
        model.move_piece_to_vehicle(
            state.piece_id, state.vehicle_id, state.start, state.end, state.length
        )
    logger.debug(
        "Placed piece %s on vehicle %s at %s-%s",
        state.piece_id,
        state.vehicle_id,
        state.start.isoformat(),
        state.end.isoformat(),
    )


class PieceEditCommand(QUndoCommand):
    def __init__(self, model: OperationModel, entry: HistoryEntry, description: str) -> None:
        super().__init__(description)
        self.model = model
        self.entry = entry

    @property
    def previous_state(self) -> PieceState:
        return self.entry.previous_state

    @property
    def new_state(self) -> PieceState:
        return self.entry.new_state

    def check_references(self) -> None:
        self.model.require_piece(self.entry.piece_id)
        self.model.require_vehicle(self.previous_state.vehicle_id)
        self.model.require_vehicle(self.new_state.vehicle_id)

    def redo(self) -> None:
        place_piece(self.model, self.new_state)

    def undo(self) -> None:
        place_piece(self.model, self.previous_state)


class DragPieceCommand(PieceEditCommand):
    def __init__(self, model: OperationModel, entry: HistoryEntry, description: str = "Move Piece") -> None:
        super().__init__(model, entry, description)


class ResizePieceCommand(PieceEditCommand):
    def __init__(self, model: OperationModel, entry: HistoryEntry, description: str = "Resize Piece") -> None:
        super().__init__(model, entry, description)


def command_for_entry(model: OperationModel, entry: HistoryEntry) -> PieceEditCommand:
    if entry.action_type == ACTION_DRAG:
        return DragPieceCommand(model, entry)
    if entry.action_type == ACTION_RESIZE:
        return ResizePieceCommand(model, entry)
    raise ValueError(f"Unknown action type: {entry.action_type}")
