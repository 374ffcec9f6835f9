from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
import logging

from PyQt6.QtCore import QObject, pyqtSignal
from PyQt6.QtGui import QUndoStack

from .commands import HistoryEntry, PieceState, command_for_entry
from .history import EditHistory
from .model import OperationModel, StatusPiece, Vehicle
from .overlap import find_conflicts
from .persistence import ScheduleUpdate, build_schedule_updates, load_snapshot, save_snapshot
from .rules import ACTION_DRAG, ACTION_RESIZE, RuleRegistry, ValidationResult
from .settings import EditorSettings
from .timeslots import TimeGrid, TimeSlotIndexer, slot_length, slots_from_pixels
from .validation import ResizeEdge, calculate_new_times, calculate_resized_times, validate_edit

logger = logging.getLogger(__name__)

SEVERITY_SUCCESS = "success"
SEVERITY_ERROR = "error"


class GestureState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    RESIZING = "resizing"


class GestureError(RuntimeError):
    pass


@dataclass(frozen=True)
class Notification:
    severity: str
    message: str
    reason: str | None = None


class OperationTableSession(QObject):
    notified = pyqtSignal(object)
    history_changed = pyqtSignal()

    def __init__(
        self,
        model: OperationModel,
        registry: RuleRegistry | None = None,
        settings: EditorSettings | None = None,
    ) -> None:
        super().__init__()
        self.settings = settings or EditorSettings()
        self.registry = registry or RuleRegistry()
        self.model = model
        self.undo_stack = QUndoStack(self)
        self.history = EditHistory(model, stack=self.undo_stack)
        self.state = GestureState.IDLE
        self.last_notification: Notification | None = None
        self._active_piece_id: str | None = None
        self._resize_edge: ResizeEdge | None = None
        self._original: list[Vehicle] = []
        self.grid: TimeGrid | None = None
        self._adopt_model()

    @classmethod
    def from_snapshot(cls, search_date: date, vehicles: list[Vehicle], **kwargs) -> "OperationTableSession":
        model = OperationModel(search_date)
        model.restore(vehicles)
        return cls(model, **kwargs)

    @classmethod
    def load(
        cls,
        path,
        registry: RuleRegistry | None = None,
        settings: EditorSettings | None = None,
    ) -> "OperationTableSession":
        model, view_state = load_snapshot(path)
        settings = settings or EditorSettings.from_dict(view_state)
        return cls(model, registry=registry, settings=settings)

    def save(self, path) -> None:
        save_snapshot(path, self.model, self.settings.to_dict())
        logger.debug("Saved %d vehicles to %s", len(self.model.vehicles), path)

    def _adopt_model(self) -> None:
        pieces = self.model.all_pieces()
        for piece in pieces:
            piece.length = slot_length(piece.start, piece.end, self.slot)
        tz = next((piece.start.tzinfo for piece in pieces), None)
        self.grid = TimeGrid.for_search_date(
            self.model.search_date, self.settings.display_scope, self.settings.slot, tz
        )
        self._original = self.model.snapshot()
        for vehicle in self.model.vehicles:
            for first, second in find_conflicts(vehicle.pieces, self.registry):
                logger.warning(
                    "Snapshot already has overlapping pieces %s and %s on vehicle %s",
                    first.id,
                    second.id,
                    vehicle.id,
                )

    @property
    def slot(self) -> timedelta:
        return self.settings.slot

    @property
    def origin(self):
        return self.grid.origin

    @property
    def vehicles(self) -> list[Vehicle]:
        return self.model.vehicles

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_reset(self) -> bool:
        return self.history.can_reset

    @property
    def has_changes(self) -> bool:
        return self.history.has_changes

    @property
    def active_piece_id(self) -> str | None:
        return self._active_piece_id

    def find_piece(self, piece_id: str) -> StatusPiece:
        return self.model.require_piece(piece_id)[2]

    def indexer_for(self, vehicle_id: str) -> TimeSlotIndexer:
        vehicle = self.model.require_vehicle(vehicle_id)
        return TimeSlotIndexer(vehicle.pieces, self.origin, self.slot)

    def replace_snapshot(self, vehicles: list[Vehicle], search_date: date | None = None) -> None:
        if self.history.has_changes:
            logger.warning(
                "Replacing the schedule discards %d unconfirmed changes",
                self.history.change_count,
            )
        self._reset_gesture()
        self.history.reset_all()
        if search_date is not None:
            self.model.search_date = search_date
        self.model.restore(vehicles)
        self._adopt_model()
        self.history_changed.emit()

    # gestures

    def begin_drag(self, piece_id: str) -> None:
        self._require_idle()
        self.model.require_piece(piece_id)
        self.state = GestureState.DRAGGING
        self._active_piece_id = piece_id

    def begin_resize(self, piece_id: str, edge: ResizeEdge | str) -> None:
        self._require_idle()
        edge = ResizeEdge(edge)
        self.model.require_piece(piece_id)
        self.state = GestureState.RESIZING
        self._active_piece_id = piece_id
        self._resize_edge = edge

    def cancel(self) -> None:
        self._reset_gesture()

    def drop(self, target_vehicle_id: str, slot_index: int) -> ValidationResult | None:
        if self.state is not GestureState.DRAGGING:
            raise GestureError(f"Cannot drop while {self.state.value}")
        piece_id = self._active_piece_id
        try:
            return self._drop(piece_id, target_vehicle_id, slot_index)
        finally:
            self._reset_gesture()

    def release(self, delta_pixels: float) -> ValidationResult | None:
        if self.state is not GestureState.RESIZING:
            raise GestureError(f"Cannot release a resize while {self.state.value}")
        piece_id = self._active_piece_id
        edge = self._resize_edge
        try:
            return self._release(piece_id, edge, delta_pixels)
        finally:
            self._reset_gesture()

    def _drop(self, piece_id: str, target_vehicle_id: str, slot_index: int) -> ValidationResult | None:
        source, _index, piece = self.model.require_piece(piece_id)
        target = self.model.require_vehicle(target_vehicle_id)
        new_start, new_end = calculate_new_times(piece, slot_index, self.origin, self.slot)
        different_vehicle = source.id != target.id
        different_time = new_start != piece.start
        if not different_vehicle and not different_time:
            return None

        result = validate_edit(
            piece,
            source,
            target,
            new_start,
            new_end,
            ACTION_DRAG,
            self.model.vehicles,
            registry=self.registry,
            slot=self.slot,
            grid=self.grid,
        )
        if not result.valid:
            self._notify(SEVERITY_ERROR, result.message or "Cannot move this piece", result.reason)
            return result

        entry = HistoryEntry(
            action_type=ACTION_DRAG,
            previous_state=PieceState.from_piece(piece, source.id),
            new_state=PieceState(
                piece.id, target.id, new_start, new_end, slot_length(new_start, new_end, self.slot)
            ),
            target_vehicle_id=target.id if different_vehicle else None,
        )
        self._commit(entry)

        if different_vehicle and different_time:
            message = f"Moved from {_label(source)} to {_label(target)} and changed the time"
        elif different_vehicle:
            message = f"Moved from {_label(source)} to {_label(target)}"
        else:
            message = f"Changed the time to {new_start:%m/%d %H:%M}"
        self._notify(SEVERITY_SUCCESS, message)
        return result

    def _release(self, piece_id: str, edge: ResizeEdge, delta_pixels: float) -> ValidationResult | None:
        vehicle, _index, piece = self.model.require_piece(piece_id)
        delta_slots = slots_from_pixels(delta_pixels, self.settings.pixels_per_slot)
        if delta_slots == 0:
            return None

        new_start, new_end = calculate_resized_times(piece, edge, delta_slots, self.slot)
        result = validate_edit(
            piece,
            vehicle,
            vehicle,
            new_start,
            new_end,
            ACTION_RESIZE,
            self.model.vehicles,
            registry=self.registry,
            slot=self.slot,
            grid=self.grid,
        )
        if not result.valid:
            self._notify(SEVERITY_ERROR, result.message or "Cannot resize this piece", result.reason)
            return result

        new_length = slot_length(new_start, new_end, self.slot)
        entry = HistoryEntry(
            action_type=ACTION_RESIZE,
            previous_state=PieceState.from_piece(piece, vehicle.id),
            new_state=PieceState(piece.id, vehicle.id, new_start, new_end, new_length),
        )
        extended = new_length > entry.previous_state.length
        self._commit(entry)

        which = "Start" if edge is ResizeEdge.START else "End"
        change = "extended" if extended else "shortened"
        self._notify(SEVERITY_SUCCESS, f"{which} time {change} by {self._slot_text(abs(delta_slots))}")
        return result

    def _commit(self, entry: HistoryEntry) -> None:
        self.history.push(command_for_entry(self.model, entry))
        logger.debug("Recorded %s of piece %s", entry.action_type, entry.piece_id)
        self.history_changed.emit()

    # history

    def undo(self) -> HistoryEntry | None:
        entry = self.history.undo()
        if entry is None:
            return None
        logger.debug("Undid %s of piece %s", entry.action_type, entry.piece_id)
        self.history_changed.emit()
        return entry

    def reset_all(self) -> list[HistoryEntry]:
        self._reset_gesture()
        entries = self.history.reset_all()
        self.model.restore(self._original)
        logger.debug("Reset %d changes", len(entries))
        self.history_changed.emit()
        return entries

    def pending_updates(self) -> list[ScheduleUpdate]:
        return build_schedule_updates(
            self.history.active_entries(), coalesce=self.settings.coalesce_updates
        )

    def confirm_changes(self, persist=None) -> list[ScheduleUpdate]:
        updates = self.pending_updates()
        if persist is not None and updates:
            persist(updates)
        self.history.confirm_changes()
        self._original = self.model.snapshot()
        logger.debug("Confirmed %d schedule updates", len(updates))
        self.history_changed.emit()
        return updates

    # helpers

    def _require_idle(self) -> None:
        if self.state is not GestureState.IDLE:
            raise GestureError(f"A gesture is already in progress ({self.state.value})")

    def _reset_gesture(self) -> None:
        self.state = GestureState.IDLE
        self._active_piece_id = None
        self._resize_edge = None

    def _notify(self, severity: str, message: str, reason: str | None = None) -> None:
        notification = Notification(severity=severity, message=message, reason=reason)
        self.last_notification = notification
        self.notified.emit(notification)

    def _slot_text(self, count: int) -> str:
        if self.slot == timedelta(hours=1):
            unit = "hour"
        else:
            unit = "slot"
        return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def _label(vehicle: Vehicle) -> str:
    return vehicle.name or vehicle.id
