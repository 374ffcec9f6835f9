from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum

from .constants import MIN_RESIZE_SLOTS, SLOT_DURATION
from .overlap import detect_overlap
from .rules import (
    ACCEPTED,
    ACTION_DRAG,
    ACTION_RESIZE,
    REASON_CUSTOM,
    REASON_LOCKED,
    REASON_MIN_DURATION,
    REASON_OVERLAP,
    RuleRegistry,
    ValidationContext,
    ValidationResult,
)
from .timeslots import slot_index_to_time


class ResizeEdge(str, Enum):
    START = "start"
    END = "end"


def calculate_new_times(
    piece,
    target_slot_index: int,
    origin: datetime,
    slot: timedelta = SLOT_DURATION,
) -> tuple[datetime, datetime]:
    new_start = slot_index_to_time(origin, target_slot_index, slot)
    return new_start, new_start + (piece.end - piece.start)


def calculate_resized_times(
    piece,
    edge: ResizeEdge | str,
    delta_slots: int,
    slot: timedelta = SLOT_DURATION,
) -> tuple[datetime, datetime]:
    edge = ResizeEdge(edge)
    if edge is ResizeEdge.START:
        return piece.start + delta_slots * slot, piece.end
    return piece.start, piece.end + delta_slots * slot


def validate_edit(
    piece,
    source_vehicle,
    target_vehicle,
    new_start: datetime,
    new_end: datetime,
    action_type: str,
    all_vehicles,
    *,
    registry: RuleRegistry,
    slot: timedelta = SLOT_DURATION,
    grid=None,
) -> ValidationResult:
    if action_type not in (ACTION_DRAG, ACTION_RESIZE):
        raise ValueError(f"Unknown action type: {action_type}")
    rule = registry.rule_for(piece)

    if action_type == ACTION_DRAG and not rule.can_drag:
        return ValidationResult(
            valid=False,
            reason=REASON_LOCKED,
            message=f"{rule.display_name} cannot be moved",
        )
    if action_type == ACTION_RESIZE and not rule.can_resize:
        return ValidationResult(
            valid=False,
            reason=REASON_LOCKED,
            message=f"{rule.display_name} cannot be resized",
        )

    if action_type == ACTION_RESIZE and (new_end - new_start) < MIN_RESIZE_SLOTS * slot:
        return ValidationResult(
            valid=False,
            reason=REASON_MIN_DURATION,
            message="A reservation must last at least one hour"
            if slot == SLOT_DURATION
            else "A reservation must last at least one slot",
        )

    if not rule.allow_overlap:
        exclude = piece.id if source_vehicle.id == target_vehicle.id else None
        conflict = detect_overlap(
            target_vehicle.pieces, new_start, new_end, exclude, registry=registry
        )
        if conflict is not None:
            return ValidationResult(
                valid=False,
                reason=REASON_OVERLAP,
                message="Overlaps another reservation",
            )

    custom = registry.validator_for(rule)
    if custom is not None:
        context = ValidationContext(
            piece=piece,
            source_vehicle=source_vehicle,
            target_vehicle=target_vehicle,
            new_start=new_start,
            new_end=new_end,
            action_type=action_type,
            all_vehicles=list(all_vehicles),
            grid=grid,
        )
        result = custom(context)
        if not result.valid:
            if result.reason == REASON_CUSTOM:
                return result
            return ValidationResult(valid=False, reason=REASON_CUSTOM, message=result.message)

    return ACCEPTED
