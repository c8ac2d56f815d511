from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

SLIDE_TYPE_TITLE_ONLY = "title-only"
SLIDE_TYPE_TITLE_BODY = "title-body"
SLIDE_TYPES = (SLIDE_TYPE_TITLE_ONLY, SLIDE_TYPE_TITLE_BODY)


def new_id() -> str:
    return uuid4().hex


@dataclass
class FragmentPosition:
    x: float = 50.0
    y: float = 50.0


@dataclass
class Fragment:
    title: str = ""
    body: str = ""
    delay_sec: float = 0.0
    # 0 keeps the fragment visible until the slide ends
    duration_sec: float = 0.0
    position: FragmentPosition | None = None
    id: str = field(default_factory=new_id)

    @property
    def is_open_ended(self) -> bool:
        return self.duration_sec <= 0

    def end_time(self, slide_duration: float) -> float:
        if self.is_open_ended:
            return slide_duration
        return self.delay_sec + self.duration_sec


@dataclass
class Slide:
    title: str
    body: str | None = None
    type: str = SLIDE_TYPE_TITLE_ONLY
    duration_sec: float = 3.0
    start_time_sec: float = 0.0
    index: int = 0
    fragments: list[Fragment] = field(default_factory=list)
    style: Any = None
    language: str | None = None
    id: str = field(default_factory=new_id)

    @property
    def uses_fragments(self) -> bool:
        return bool(self.fragments)

    @property
    def end_time_sec(self) -> float:
        return self.start_time_sec + self.duration_sec

    def sync_from_fragments(self) -> None:
        """Mirror the first fragment into title/body for consumers that ignore fragments."""
        if not self.fragments:
            return
        first = self.fragments[0]
        self.title = first.title
        self.body = first.body or None
        self.type = SLIDE_TYPE_TITLE_BODY if self.body else SLIDE_TYPE_TITLE_ONLY

    def find_fragment(self, fragment_id: str) -> Fragment | None:
        for fragment in self.fragments:
            if fragment.id == fragment_id:
                return fragment
        return None
