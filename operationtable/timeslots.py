from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo

from .constants import DEFAULT_DISPLAY_SCOPE, DISPLAY_SCOPE_DAYS, SLOT_DURATION


def day_origin(search_date: date, tz: tzinfo | None = None) -> datetime:
    if isinstance(search_date, datetime):
        search_date = search_date.date()
    return datetime.combine(search_date, time.min, tzinfo=tz)


def slot_index_to_time(origin: datetime, index: int, slot: timedelta = SLOT_DURATION) -> datetime:
    return origin + index * slot


def time_to_slot_index(origin: datetime, moment: datetime, slot: timedelta = SLOT_DURATION) -> int:
    return (moment - origin) // slot


def slot_length(start: datetime, end: datetime, slot: timedelta = SLOT_DURATION) -> int:
    return int(round((end - start) / slot))


def slots_from_pixels(delta_px: float, pixels_per_slot: float) -> int:
    if pixels_per_slot <= 0:
        raise ValueError(f"pixels_per_slot must be positive, got {pixels_per_slot}")
    ratio = delta_px / pixels_per_slot
    if ratio >= 0:
        return int(ratio + 0.5)
    return int(ratio - 0.5)


@dataclass(frozen=True)
class TimeGrid:
    origin: datetime
    slot: timedelta = SLOT_DURATION
    scope: str = DEFAULT_DISPLAY_SCOPE

    @staticmethod
    def for_search_date(
        search_date: date,
        scope: str = DEFAULT_DISPLAY_SCOPE,
        slot: timedelta = SLOT_DURATION,
        tz: tzinfo | None = None,
    ) -> "TimeGrid":
        if scope not in DISPLAY_SCOPE_DAYS:
            raise ValueError(f"Unknown display scope: {scope}")
        return TimeGrid(origin=day_origin(search_date, tz), slot=slot, scope=scope)

    @property
    def days(self) -> int:
        return DISPLAY_SCOPE_DAYS[self.scope]

    @property
    def slot_count(self) -> int:
        return int(timedelta(days=self.days) / self.slot)

    @property
    def end(self) -> datetime:
        return self.origin + self.slot_count * self.slot

    def slot_time(self, index: int) -> datetime:
        return slot_index_to_time(self.origin, index, self.slot)

    def slot_index(self, moment: datetime) -> int:
        return time_to_slot_index(self.origin, moment, self.slot)

    def contains(self, start: datetime, end: datetime) -> bool:
        return self.origin <= start and end <= self.end


class TimeSlotIndexer:
    def __init__(self, pieces, origin: datetime, slot: timedelta = SLOT_DURATION) -> None:
        self.origin = origin
        self.slot = slot
        self.slots: dict = {}
        self.rebuild(pieces)

    def rebuild(self, pieces) -> None:
        self.slots = {}
        for piece in pieces:
            first = time_to_slot_index(self.origin, piece.start, self.slot)
            for offset in range(piece.length):
                self.slots[first + offset] = piece

    def segment_at(self, index: int):
        return self.slots.get(index)

    def first_slot_of(self, piece) -> int:
        return time_to_slot_index(self.origin, piece.start, self.slot)

    def is_first_slot_of(self, piece, index: int) -> bool:
        occupant = self.slots.get(index)
        if occupant is None or occupant.id != piece.id:
            return False
        previous = self.slots.get(index - 1)
        return previous is None or previous.id != piece.id

    def slot_time(self, index: int) -> datetime:
        return slot_index_to_time(self.origin, index, self.slot)

    def slot_index(self, moment: datetime) -> int:
        return time_to_slot_index(self.origin, moment, self.slot)
