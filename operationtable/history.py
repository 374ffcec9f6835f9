from __future__ import annotations

import logging

from PyQt6.QtGui import QUndoStack

from .commands import HistoryEntry, PieceEditCommand, PieceState, command_for_entry
from .constants import MAX_HISTORY_SIZE
from .model import OperationModel

logger = logging.getLogger(__name__)


class EditHistory:
    """Bounded, linear edit history over a QUndoStack.

    Pushing a command applies it, undo applies its inverse. Reset and confirm
    only drop the commands; restoring the original schedule on reset is up
    to the owner.
    """

    def __init__(
        self,
        model: OperationModel,
        limit: int = MAX_HISTORY_SIZE,
        stack: QUndoStack | None = None,
    ) -> None:
        if not 1 <= limit <= MAX_HISTORY_SIZE:
            raise ValueError(f"History limit must be between 1 and {MAX_HISTORY_SIZE}")
        self.model = model
        self.stack = stack if stack is not None else QUndoStack()
        self.stack.setUndoLimit(limit)

    @property
    def limit(self) -> int:
        return self.stack.undoLimit()

    @property
    def entries(self) -> list[HistoryEntry]:
        return [self.stack.command(i).entry for i in range(self.stack.count())]

    @property
    def current_index(self) -> int:
        return self.stack.index() - 1

    @property
    def can_undo(self) -> bool:
        return self.stack.canUndo()

    @property
    def can_reset(self) -> bool:
        return self.stack.index() > 0

    @property
    def has_changes(self) -> bool:
        return self.stack.index() > 0

    @property
    def change_count(self) -> int:
        return self.stack.index()

    def __len__(self) -> int:
        return self.stack.count()

    def add_entry(
        self,
        action_type: str,
        previous_state: PieceState,
        new_state: PieceState,
        target_vehicle_id: str | None = None,
    ) -> HistoryEntry:
        entry = HistoryEntry(
            action_type=action_type,
            previous_state=previous_state,
            new_state=new_state,
            target_vehicle_id=target_vehicle_id,
        )
        return self.push(command_for_entry(self.model, entry))

    def push(self, command: PieceEditCommand) -> HistoryEntry:
        # redo() runs inside Qt, so unknown ids must fail before the push
        command.check_references()
        if self.stack.index() >= self.stack.undoLimit():
            oldest = self.stack.command(0).entry
            logger.warning(
                "History limit %d reached, oldest %s of piece %s can no longer be undone",
                self.limit,
                oldest.action_type,
                oldest.piece_id,
            )
        self.stack.push(command)
        return command.entry

    def undo(self) -> HistoryEntry | None:
        if not self.stack.canUndo():
            return None
        entry = self.stack.command(self.stack.index() - 1).entry
        self.stack.undo()
        return entry

    def active_entries(self) -> list[HistoryEntry]:
        return [self.stack.command(i).entry for i in range(self.stack.index())]

    def reset_all(self) -> list[HistoryEntry]:
        entries = self.active_entries()
        self.stack.clear()
        return entries

    def confirm_changes(self) -> list[HistoryEntry]:
        entries = self.active_entries()
        self.stack.clear()
        return entries
