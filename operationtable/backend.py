from __future__ import annotations

from datetime import date, timedelta
import logging

from .constants import SLOT_DURATION
from .model import OperationModel, ReferenceNotFoundError, Vehicle
from .persistence import ScheduleUpdate
from .timeslots import slot_length

logger = logging.getLogger(__name__)


class ScheduleStoreError(RuntimeError):
    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message)
        self.status_code = status_code


class MemoryScheduleStore:
    def __init__(
        self,
        search_date: date,
        vehicles: list[Vehicle],
        slot: timedelta = SLOT_DURATION,
    ) -> None:
        self._model = OperationModel(search_date)
        self._model.restore(vehicles)
        self.slot = slot
        self.confirmed_batches: list[list[ScheduleUpdate]] = []

    @property
    def search_date(self) -> date:
        return self._model.search_date

    def search(
        self,
        section_code: str | None = None,
        block_code: str | None = None,
        class_codes: list[str] | None = None,
    ) -> list[Vehicle]:
        vehicles = self._model.snapshot()
        if section_code:
            vehicles = [v for v in vehicles if v.details.get("section_code") == section_code]
        if block_code:
            vehicles = [v for v in vehicles if v.details.get("block_code") == block_code]
        codes = [code for code in (class_codes or []) if code]
        if codes:
            vehicles = [
                v for v in vehicles
                if any(code in str(v.details.get("class_code", "")) for code in codes)
            ]
        return vehicles

    def update_schedule(self, update: ScheduleUpdate) -> None:
        logger.debug("Updating piece %s on vehicle %s", update.piece_id, update.vehicle_id)
        found = self._model.find_piece(update.piece_id)
        if found is None or found[0].id != update.vehicle_id:
            raise ScheduleStoreError(
                f"Piece {update.piece_id} not found on vehicle {update.vehicle_id}", 404
            )
        target_id = update.new_vehicle_id or update.vehicle_id
        length = slot_length(update.new_start, update.new_end, self.slot)
        try:
            self._model.move_piece_to_vehicle(
                update.piece_id, target_id, update.new_start, update.new_end, length
            )
        except ReferenceNotFoundError as exc:
            raise ScheduleStoreError(str(exc), 404) from exc

    def confirm_schedule_changes(self, updates: list[ScheduleUpdate]) -> None:
        backup = self._model.snapshot()
        try:
            for update in updates:
                self.update_schedule(update)
        except ScheduleStoreError:
            self._model.restore(backup)
            raise
        self.confirmed_batches.append(list(updates))
        logger.info("Confirmed %d schedule changes", len(updates))

    def __call__(self, updates: list[ScheduleUpdate]) -> None:
        self.confirm_schedule_changes(updates)

    def get_status_detail(self, piece_id: str) -> dict:
        found = self._model.find_piece(piece_id)
        if found is None:
            raise ScheduleStoreError(f"Piece not found: {piece_id}", 404)
        vehicle, _index, piece = found
        detail = piece.to_dict()
        detail["vehicle_info"] = {
            "id": vehicle.id,
            "name": vehicle.name,
            "regist_number": vehicle.details.get("regist_number", ""),
            "class_code": vehicle.details.get("class_code", ""),
        }
        detail["full_details"] = dict(piece.details)
        return detail
