from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
import logging

from .constants import DEFAULT_CURSOR, LOCKED_CURSOR, STATUS_COLORS, UNKNOWN_STATUS_COLOR

logger = logging.getLogger(__name__)

ACTION_DRAG = "drag"
ACTION_RESIZE = "resize"

REASON_LOCKED = "locked"
REASON_MIN_DURATION = "min-duration"
REASON_OVERLAP = "overlap"
REASON_CUSTOM = "custom"

WITHIN_DISPLAY_RANGE = "within-display-range"


class StatusType(str, Enum):
    MAINTENANCE = "maintenance"
    RESERVED_TEMPORARY = "reserved-temporary"
    RESERVED_FIXED = "reserved-fixed"
    RENTAL = "rental"
    IDLE = "idle"
    CHARTER = "charter"
    TRANSFER = "transfer"
    OTHER = "other"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: object) -> "StatusType":
        if isinstance(value, cls):
            return value
        tag = str(value or "").strip().lower()
        for member in cls:
            if member is not cls.UNKNOWN and member.value == tag:
                return member
        return cls.UNKNOWN


@dataclass(frozen=True)
class StatusRule:
    status_type: StatusType
    display_name: str
    can_drag: bool
    can_resize: bool
    allow_overlap: bool
    color: str = UNKNOWN_STATUS_COLOR
    locked_cursor: str | None = None
    validator: str | None = None


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    reason: str | None = None
    message: str | None = None


ACCEPTED = ValidationResult(valid=True)


@dataclass
class ValidationContext:
    piece: object
    source_vehicle: object
    target_vehicle: object
    new_start: datetime
    new_end: datetime
    action_type: str
    all_vehicles: list
    grid: object | None = None


def _rule(status_type: StatusType, name: str, drag: bool, resize: bool, overlap: bool, cursor=None) -> StatusRule:
    return StatusRule(
        status_type=status_type,
        display_name=name,
        can_drag=drag,
        can_resize=resize,
        allow_overlap=overlap,
        color=STATUS_COLORS.get(status_type.value, UNKNOWN_STATUS_COLOR),
        locked_cursor=cursor,
    )


DEFAULT_RULES = {
    rule.status_type: rule
    for rule in (
        _rule(StatusType.MAINTENANCE, "Maintenance", False, True, False, LOCKED_CURSOR),
        _rule(StatusType.RESERVED_TEMPORARY, "Reserved (Temporary)", True, False, False, LOCKED_CURSOR),
        _rule(StatusType.RESERVED_FIXED, "Reserved (Fixed)", False, False, False, LOCKED_CURSOR),
        _rule(StatusType.RENTAL, "Rental", True, True, False),
        _rule(StatusType.IDLE, "Idle", False, False, True),
        _rule(StatusType.CHARTER, "Charter", False, False, False, LOCKED_CURSOR),
        _rule(StatusType.TRANSFER, "Transfer", False, False, False, LOCKED_CURSOR),
        _rule(StatusType.OTHER, "Other", False, False, False, LOCKED_CURSOR),
    )
}

UNKNOWN_RULE = _rule(StatusType.UNKNOWN, "Unknown", False, False, False, LOCKED_CURSOR)


def within_display_range(context: ValidationContext) -> ValidationResult:
    grid = context.grid
    if grid is None or grid.contains(context.new_start, context.new_end):
        return ACCEPTED
    return ValidationResult(
        valid=False,
        reason=REASON_CUSTOM,
        message="The new time is outside the displayed range",
    )


BUILTIN_VALIDATORS = {
    WITHIN_DISPLAY_RANGE: within_display_range,
}


class RuleRegistry:
    def __init__(self, rules: dict | None = None, validators: dict | None = None) -> None:
        self._validators = dict(BUILTIN_VALIDATORS)
        self._validators.update(validators or {})
        self._rules: dict[StatusType, StatusRule] = dict(DEFAULT_RULES)
        self._warned: set[str] = set()
        for rule in (rules or {}).values():
            self.register_rule(rule)

    def register_validator(self, name: str, func) -> None:
        if not callable(func):
            raise TypeError(f"Validator {name!r} is not callable")
        self._validators[name] = func

    def register_rule(self, rule: StatusRule) -> None:
        if rule.status_type is StatusType.UNKNOWN:
            raise ValueError("The rule for unknown status types cannot be replaced")
        if rule.validator is not None and rule.validator not in self._validators:
            raise KeyError(f"Unknown validator: {rule.validator}")
        self._rules[rule.status_type] = rule

    def with_validator(self, status_type: StatusType | str, name: str | None) -> StatusRule:
        rule = self.get_rule(status_type)
        updated = replace(rule, validator=name)
        self.register_rule(updated)
        return updated

    def get_rule(self, status_type: StatusType | str) -> StatusRule:
        kind = StatusType.parse(status_type)
        rule = self._rules.get(kind)
        if rule is not None:
            return rule
        tag = str(status_type.value if isinstance(status_type, StatusType) else status_type)
        if tag not in self._warned:
            self._warned.add(tag)
            logger.warning("Unknown status type %r, treating it as locked", tag)
        return UNKNOWN_RULE

    def rule_for(self, piece) -> StatusRule:
        return self.get_rule(piece.status_type)

    def validator_for(self, rule: StatusRule):
        if rule.validator is None:
            return None
        return self._validators[rule.validator]

    def can_drag(self, piece) -> bool:
        return self.rule_for(piece).can_drag

    def can_resize(self, piece) -> bool:
        return self.rule_for(piece).can_resize

    def allows_overlap(self, piece) -> bool:
        return self.rule_for(piece).allow_overlap

    def locked_cursor(self, piece) -> str:
        rule = self.rule_for(piece)
        if not rule.can_drag and not rule.can_resize:
            return rule.locked_cursor or LOCKED_CURSOR
        return DEFAULT_CURSOR
