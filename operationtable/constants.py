from datetime import timedelta

SCHEMA_VERSION = 1

SLOT_MINUTES = 60
SLOT_DURATION = timedelta(minutes=SLOT_MINUTES)
PIXELS_PER_SLOT = 60
MIN_RESIZE_SLOTS = 1

MAX_HISTORY_SIZE = 10

DISPLAY_SCOPE_DAYS = {
    "72h": 3,
    "2weeks": 14,
}
DEFAULT_DISPLAY_SCOPE = "72h"

LOCKED_CURSOR = "not-allowed"
DEFAULT_CURSOR = "default"

STATUS_COLORS = {
    "maintenance": "#000000",
    "reserved-temporary": "#64B5F6",
    "reserved-fixed": "#1565C0",
    "rental": "#9C27B0",
    "idle": "#9E9E9E",
    "charter": "#2196F3",
    "transfer": "#FF9800",
    "other": "#9E9E9E",
}
UNKNOWN_STATUS_COLOR = "#9E9E9E"
