from __future__ import annotations

import re
from typing import Iterable

from slidecue.models.slide import Slide

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_HEADING_MARKER = re.compile(r"^#+\s*")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(value: str) -> str:
    """Lower-case, drop heading markers and collapse whitespace."""
    value = _HEADING_MARKER.sub("", value.strip())
    return _WHITESPACE.sub(" ", value).strip().lower()


def used_lines(slides: Iterable[Slide]) -> set[str]:
    used: set[str] = set()

    def add(text: str | None) -> None:
        if not text:
            return
        for line in text.splitlines():
            normalized = normalize_text(line)
            if normalized:
                used.add(normalized)

    for slide in slides:
        add(slide.title)
        add(slide.body)
        for fragment in slide.fragments:
            add(fragment.title)
            add(fragment.body)
    return used


def unused_paragraphs(source_text: str, slides: Iterable[Slide]) -> list[str]:
    """Return the parts of ``source_text`` that no slide shows any more.

    Lines are compared after normalisation; used lines are removed from their
    paragraph and paragraphs left empty are dropped.
    """
    if not source_text.strip():
        return []
    used = used_lines(slides)
    paragraphs: list[str] = []
    for paragraph in _PARAGRAPH_BREAK.split(source_text.replace("\r\n", "\n")):
        remaining = [
            line.strip()
            for line in paragraph.splitlines()
            if line.strip() and normalize_text(line) not in used
        ]
        if remaining:
            paragraphs.append("\n".join(remaining))
    return paragraphs


def unused_text(source_text: str, slides: Iterable[Slide]) -> str:
    return "\n\n".join(unused_paragraphs(source_text, slides))
