"""
Tests for the per-type status rules.
"""

from __future__ import annotations

import logging

import pytest

from builders import make_piece
from operationtable.rules import (
    REASON_CUSTOM,
    UNKNOWN_RULE,
    RuleRegistry,
    StatusRule,
    StatusType,
    ValidationResult,
)


class TestStatusType:
    def test_parse_known_tags(self):
        assert StatusType.parse("rental") is StatusType.RENTAL
        assert StatusType.parse(" Reserved-Fixed ") is StatusType.RESERVED_FIXED
        assert StatusType.parse(StatusType.IDLE) is StatusType.IDLE

    def test_parse_unrecognised_tag_is_unknown(self):
        assert StatusType.parse("teleport") is StatusType.UNKNOWN
        assert StatusType.parse(None) is StatusType.UNKNOWN
        assert StatusType.parse("unknown") is StatusType.UNKNOWN


class TestDefaultRules:
    @pytest.mark.parametrize(
        "status_type, can_drag, can_resize, allow_overlap",
        [
            ("maintenance", False, True, False),
            ("reserved-temporary", True, False, False),
            ("reserved-fixed", False, False, False),
            ("rental", True, True, False),
            ("idle", False, False, True),
        ],
    )
    def test_capabilities(self, status_type, can_drag, can_resize, allow_overlap):
        rule = RuleRegistry().get_rule(status_type)
        assert (rule.can_drag, rule.can_resize, rule.allow_overlap) == (
            can_drag,
            can_resize,
            allow_overlap,
        )

    def test_legacy_tags_are_locked_without_warning(self, caplog):
        registry = RuleRegistry()
        with caplog.at_level(logging.WARNING, logger="operationtable.rules"):
            for tag in ("charter", "transfer", "other"):
                rule = registry.get_rule(tag)
                assert not rule.can_drag
                assert not rule.can_resize
        assert caplog.records == []


class TestUnknownStatus:
    def test_unknown_tag_gets_conservative_rule(self):
        rule = RuleRegistry().get_rule("teleport")
        assert rule is UNKNOWN_RULE
        assert not rule.can_drag
        assert not rule.can_resize
        assert not rule.allow_overlap

    def test_unknown_tag_warns_once_per_tag(self, caplog):
        registry = RuleRegistry()
        with caplog.at_level(logging.WARNING, logger="operationtable.rules"):
            registry.get_rule("teleport")
            registry.get_rule("teleport")
            registry.get_rule("hover")
        messages = [record.getMessage() for record in caplog.records]
        assert len(messages) == 2
        assert "'teleport'" in messages[0]
        assert "'hover'" in messages[1]


class TestPieceQueries:
    def test_drag_and_resize_queries(self):
        registry = RuleRegistry()
        rental = make_piece("P1", "V1", "rental", 8, 10)
        maintenance = make_piece("P2", "V1", "maintenance", 10, 12)
        assert registry.can_drag(rental) and registry.can_resize(rental)
        assert not registry.can_drag(maintenance)
        assert registry.can_resize(maintenance)

    def test_locked_cursor(self):
        registry = RuleRegistry()
        assert registry.locked_cursor(make_piece("P1", "V1", "reserved-fixed", 8, 10)) == "not-allowed"
        assert registry.locked_cursor(make_piece("P2", "V1", "idle", 8, 10)) == "not-allowed"
        assert registry.locked_cursor(make_piece("P3", "V1", "maintenance", 8, 10)) == "default"
        assert registry.locked_cursor(make_piece("P4", "V1", "mystery", 8, 10)) == "not-allowed"


class TestValidatorStrategies:
    def test_register_rule_with_named_validator(self):
        registry = RuleRegistry()
        registry.register_validator("never", lambda context: ValidationResult(False, REASON_CUSTOM, "no"))
        rule = registry.with_validator("rental", "never")
        assert rule.validator == "never"
        assert registry.get_rule("rental").validator == "never"
        assert registry.validator_for(rule) is not None

    def test_unknown_validator_name_is_rejected(self):
        registry = RuleRegistry()
        rule = StatusRule(StatusType.RENTAL, "Rental", True, True, False, validator="missing")
        with pytest.raises(KeyError):
            registry.register_rule(rule)

    def test_unknown_rule_cannot_be_replaced(self):
        with pytest.raises(ValueError):
            RuleRegistry().register_rule(UNKNOWN_RULE)

    def test_non_callable_validator(self):
        with pytest.raises(TypeError):
            RuleRegistry().register_validator("bad", "not callable")

    def test_registries_are_independent(self):
        first = RuleRegistry()
        first.register_validator("never", lambda context: ValidationResult(False))
        first.with_validator("rental", "never")
        assert RuleRegistry().get_rule("rental").validator is None
