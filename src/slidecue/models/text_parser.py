"""Heuristic conversion of free text into timed slides.

The first non-blank line becomes the headline slide. Every following line is
either a heading (which collects the plain lines after it as its body) or a
standalone short slide. Durations follow a reading-speed estimate.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from slidecue.models.slide import (
    SLIDE_TYPE_TITLE_BODY,
    SLIDE_TYPE_TITLE_ONLY,
    Slide,
)

logger = logging.getLogger(__name__)

READING_SPEED_WPM = 160
MIN_READING_SECONDS = 2.0
MAX_READING_SECONDS = 6.0
HEADLINE_DURATION = 3.0
SHORT_SLIDE_DURATION = 2.0
SHORT_HEADING_MAX_CHARS = 80
LONGER_NEXT_LINE_RATIO = 1.5

_HEADING_MARKER = re.compile(r"^#+\s*")
_UPPER_LETTER = re.compile(r"[A-Z]")
_SENTENCE_BREAK = re.compile(r"[.!?;,]\s+[A-Z]")


def is_heading(line: str, next_line: str | None = None) -> bool:
    """Classify a line as a heading.

    The rules are checked in order and the first hit wins:
    markdown marker, all-caps phrase, short punctuated line followed by a much
    longer one, short capitalised line without an inner sentence break.
    """
    trimmed = line.strip()

    if trimmed.startswith("#"):
        return True

    words = trimmed.split()
    if len(words) >= 2 and trimmed == trimmed.upper() and _UPPER_LETTER.search(trimmed):
        return True

    if next_line and trimmed.endswith("."):
        if len(next_line.strip()) > len(trimmed) * LONGER_NEXT_LINE_RATIO:
            return True

    if len(trimmed) < SHORT_HEADING_MAX_CHARS and not _SENTENCE_BREAK.search(trimmed):
        if _UPPER_LETTER.match(trimmed):
            return True

    return False


def word_count(text: str) -> int:
    return len(text.split())


def reading_duration(text: str) -> float:
    seconds = word_count(text) / READING_SPEED_WPM * 60
    return max(MIN_READING_SECONDS, min(MAX_READING_SECONDS, seconds))


def clean_heading(text: str) -> str:
    return _HEADING_MARKER.sub("", text.strip()).strip()


def parse_text_to_slides(text: str, default_style: Any = None) -> list[Slide]:
    """Split ``text`` into slides; never raises, an empty text gives ``[]``."""
    lines = [line for line in text.split("\n") if line.strip()]
    slides: list[Slide] = []
    if not lines:
        return slides

    def emit(title: str, body: str | None, duration: float) -> None:
        slides.append(
            Slide(
                title=title,
                body=body,
                type=SLIDE_TYPE_TITLE_BODY if body else SLIDE_TYPE_TITLE_ONLY,
                duration_sec=duration,
                index=len(slides),
                style=default_style,
            )
        )

    emit(clean_heading(lines[0]), None, HEADLINE_DURATION)

    def next_of(position: int) -> str | None:
        return lines[position + 1] if position + 1 < len(lines) else None

    i = 1
    while i < len(lines):
        line = lines[i].strip()
        if not is_heading(line, next_of(i)):
            emit(clean_heading(line), None, SHORT_SLIDE_DURATION)
            i += 1
            continue

        title = clean_heading(line)
        body_lines: list[str] = []
        i += 1
        while i < len(lines) and not is_heading(lines[i], next_of(i)):
            body_lines.append(lines[i].strip())
            i += 1
        body = "\n".join(body_lines).strip()
        if body:
            emit(title, body, reading_duration(body))
        else:
            emit(title, None, SHORT_SLIDE_DURATION)

    logger.debug("Parsed %d lines into %d slides", len(lines), len(slides))
    return slides
