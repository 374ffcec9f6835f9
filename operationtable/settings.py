from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from .constants import DEFAULT_DISPLAY_SCOPE, DISPLAY_SCOPE_DAYS, PIXELS_PER_SLOT, SLOT_MINUTES

logger = logging.getLogger(__name__)

SETTINGS_FILE_NAME = "operation_table.json"
MIN_SLOT_MINUTES = 5
MAX_SLOT_MINUTES = 24 * 60


@dataclass(frozen=True)
class EditorSettings:
    slot_minutes: int = SLOT_MINUTES
    pixels_per_slot: float = PIXELS_PER_SLOT
    display_scope: str = DEFAULT_DISPLAY_SCOPE
    coalesce_updates: bool = True

    @property
    def slot(self) -> timedelta:
        return timedelta(minutes=self.slot_minutes)

    def to_dict(self) -> dict:
        return {
            "slot_minutes": self.slot_minutes,
            "pixels_per_slot": self.pixels_per_slot,
            "display_scope": self.display_scope,
            "coalesce_updates": self.coalesce_updates,
        }

    @staticmethod
    def from_dict(raw: dict) -> "EditorSettings":
        if not isinstance(raw, dict):
            raw = {}
        try:
            slot_minutes = int(raw.get("slot_minutes", SLOT_MINUTES))
        except (TypeError, ValueError):
            slot_minutes = SLOT_MINUTES
        slot_minutes = max(MIN_SLOT_MINUTES, min(MAX_SLOT_MINUTES, slot_minutes))
        try:
            pixels_per_slot = float(raw.get("pixels_per_slot", PIXELS_PER_SLOT))
        except (TypeError, ValueError):
            pixels_per_slot = PIXELS_PER_SLOT
        if pixels_per_slot <= 0:
            pixels_per_slot = PIXELS_PER_SLOT
        display_scope = str(raw.get("display_scope", DEFAULT_DISPLAY_SCOPE) or "").strip()
        if display_scope not in DISPLAY_SCOPE_DAYS:
            display_scope = DEFAULT_DISPLAY_SCOPE
        return EditorSettings(
            slot_minutes=slot_minutes,
            pixels_per_slot=pixels_per_slot,
            display_scope=display_scope,
            coalesce_updates=bool(raw.get("coalesce_updates", True)),
        )


def load_settings(path: str | Path) -> EditorSettings:
    path = Path(path)
    if path.is_dir():
        path = path / SETTINGS_FILE_NAME
    if not path.exists():
        return EditorSettings()
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("%s is malformed, using default settings: %s", path, exc)
        return EditorSettings()
    return EditorSettings.from_dict(raw)


def save_settings(path: str | Path, settings: EditorSettings) -> None:
    path = Path(path)
    if path.is_dir():
        path = path / SETTINGS_FILE_NAME
    path.write_text(json.dumps(settings.to_dict(), indent=2), encoding="utf-8")
