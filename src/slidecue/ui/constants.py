from __future__ import annotations

from slidecue.services.translation_service import LANGUAGE_NAMES

WINDOW_MIN_WIDTH = 1100
WINDOW_MIN_HEIGHT = 720

RULER_HEIGHT = 28
HANDLE_WIDTH = 8.0

SLIDE_PIXELS_PER_SECOND = 100.0
SLIDE_TRACK_HEIGHT = 80.0
SLIDE_TRACK_GAP = 15.0
SLIDE_MIN_WIDTH = 100.0
SLIDE_TIMELINE_MAX_HEIGHT = 400

FRAGMENT_TRACK_HEIGHT = 40.0
FRAGMENT_TIMELINE_HEIGHT = 90

FRAGMENT_COLORS: tuple[str, ...] = (
    "#3b82f6",
    "#10b981",
    "#f59e0b",
    "#ef4444",
    "#8b5cf6",
    "#ec4899",
)

SLIDE_FILL_COLOR = "#1f2937"
SLIDE_SELECTED_COLOR = "#6366f1"
SLIDE_BORDER_COLOR = "#4b5563"
GRID_COLOR = "#374151"
RULER_TEXT_COLOR = "#9ca3af"

LANGUAGE_CHOICES: tuple[tuple[str, str], ...] = tuple(LANGUAGE_NAMES.items())
