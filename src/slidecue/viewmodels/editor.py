from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Iterable

from slidecue.models.slide import (
    SLIDE_TYPE_TITLE_BODY,
    SLIDE_TYPE_TITLE_ONLY,
    Fragment,
    FragmentPosition,
    Slide,
    new_id,
)
from slidecue.models.style import default_slide_style
from slidecue.models.text_parser import parse_text_to_slides
from slidecue.models.timeline import (
    MIN_INTERVAL_DURATION,
    Interval,
    clamp_to_container,
    snap_time,
)
from slidecue.models.unused_text import unused_text
from slidecue.services.storage import DEFAULT_SLIDE_DURATION, SlideStorage
from slidecue.services.translation_service import (
    TranslationError,
    TranslationRecord,
    language_name,
    records_from_slides,
)

logger = logging.getLogger(__name__)

NEW_SLIDE_TITLE = "New slide"
NEW_FRAGMENT_TITLE = "New text"


class EditorViewModel:
    """Owns the slide collection of one editing session and applies edits to it."""

    def __init__(self, storage: SlideStorage, *, default_style: Any = None) -> None:
        self._storage = storage
        self._default_style = default_style if default_style is not None else default_slide_style()
        self._slides: list[Slide] = storage.load_slides()
        self._source_text = storage.load_source_text()
        self._current_index = 0 if self._slides else -1
        self._listeners: list[Callable[[], None]] = []

    # --- state helpers -------------------------------------------------
    @property
    def slides(self) -> list[Slide]:
        return self._slides

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def current_slide(self) -> Slide | None:
        if 0 <= self._current_index < len(self._slides):
            return self._slides[self._current_index]
        return None

    @property
    def source_text(self) -> str:
        return self._source_text

    @property
    def default_style(self) -> Any:
        return self._default_style

    def slide(self, slide_id: str) -> Slide | None:
        for slide in self._slides:
            if slide.id == slide_id:
                return slide
        return None

    def index_of(self, slide_id: str) -> int:
        for index, slide in enumerate(self._slides):
            if slide.id == slide_id:
                return index
        return -1

    def select_slide(self, index: int) -> Slide | None:
        if 0 <= index < len(self._slides):
            if index != self._current_index:
                self._current_index = index
                self._notify()
            return self.current_slide
        return None

    def select_slide_by_id(self, slide_id: str) -> Slide | None:
        return self.select_slide(self.index_of(slide_id))

    # --- text parsing --------------------------------------------------
    def create_slides_from_text(self, text: str) -> list[Slide]:
        """Replace the collection with slides parsed from ``text``."""
        slides = parse_text_to_slides(text, self._default_style)
        self._slides = slides
        self._source_text = text
        self._current_index = 0 if slides else -1
        self._storage.save_source_text(text)
        logger.info("Created %d slides from text", len(slides))
        self.persist()
        self._notify()
        return list(slides)

    def unused_text(self) -> str:
        return unused_text(self._source_text, self._slides)

    # --- slide mutations -----------------------------------------------
    def add_slide(self, title: str = NEW_SLIDE_TITLE, body: str | None = None) -> Slide:
        start = max((slide.end_time_sec for slide in self._slides), default=0.0)
        slide = Slide(
            title=title,
            body=body or None,
            type=SLIDE_TYPE_TITLE_BODY if body else SLIDE_TYPE_TITLE_ONLY,
            duration_sec=DEFAULT_SLIDE_DURATION,
            start_time_sec=snap_time(start),
            index=len(self._slides),
            style=copy.deepcopy(self._default_style),
        )
        self._slides.append(slide)
        self._current_index = len(self._slides) - 1
        self.persist()
        self._notify()
        return slide

    def update_slide_text(self, slide_id: str, title: str, body: str | None = None) -> bool:
        slide = self.slide(slide_id)
        if slide is None:
            return False
        body = (body or "").strip() or None
        if slide.fragments and not (title.strip() or body):
            return False
        if slide.title == title and slide.body == body:
            return False
        slide.title = title
        slide.body = body
        slide.type = SLIDE_TYPE_TITLE_BODY if slide.body else SLIDE_TYPE_TITLE_ONLY
        if slide.fragments:
            slide.fragments[0].title = title
            slide.fragments[0].body = body or ""
        self.persist()
        self._notify()
        return True

    def update_slide_timing(
        self,
        slide_id: str,
        *,
        start_time: float | None = None,
        duration: float | None = None,
    ) -> bool:
        slide = self.slide(slide_id)
        if slide is None:
            return False
        changed = False
        if start_time is not None:
            value = snap_time(max(0.0, start_time))
            if value != slide.start_time_sec:
                slide.start_time_sec = value
                changed = True
        if duration is not None:
            value = max(MIN_INTERVAL_DURATION, snap_time(duration))
            if value != slide.duration_sec:
                slide.duration_sec = value
                self._clamp_fragments(slide)
                changed = True
        if changed:
            self.persist()
            self._notify()
        return changed

    def apply_slide_interval(self, interval: Interval) -> bool:
        return self.update_slide_timing(
            interval.id,
            start_time=interval.start,
            duration=interval.duration,
        )

    def delete_slide(self, slide_id: str) -> Slide | None:
        index = self.index_of(slide_id)
        if index < 0:
            return None
        deleted = self._slides.pop(index)
        self._reindex()
        if self._current_index >= len(self._slides):
            self._current_index = len(self._slides) - 1
        self.persist()
        self._notify()
        return deleted

    def duplicate_slide(self, slide_id: str) -> Slide | None:
        index = self.index_of(slide_id)
        if index < 0:
            return None
        duplicate = copy.deepcopy(self._slides[index])
        duplicate.id = new_id()
        for fragment in duplicate.fragments:
            fragment.id = new_id()
        self._slides.insert(index + 1, duplicate)
        self._reindex()
        self._current_index = index + 1
        self.persist()
        self._notify()
        return duplicate

    def reorder_slides(self, start_index: int, end_index: int) -> bool:
        count = len(self._slides)
        if not (0 <= start_index < count and 0 <= end_index < count):
            return False
        if start_index == end_index:
            return False
        current = self.current_slide
        moved = self._slides.pop(start_index)
        self._slides.insert(end_index, moved)
        self._reindex()
        if current is not None:
            self._current_index = self._slides.index(current)
        self.persist()
        self._notify()
        return True

    def move_slide(self, slide_id: str, offset: int) -> bool:
        index = self.index_of(slide_id)
        if index < 0:
            return False
        return self.reorder_slides(index, index + offset)

    # --- fragments -----------------------------------------------------
    def split_into_fragments(self, slide_id: str) -> list[Fragment]:
        slide = self.slide(slide_id)
        if slide is None:
            return []
        if not slide.fragments:
            slide.fragments = [Fragment(title=slide.title, body=slide.body or "")]
            self.persist()
            self._notify()
        return list(slide.fragments)

    def collapse_fragments(self, slide_id: str) -> bool:
        slide = self.slide(slide_id)
        if slide is None or not slide.fragments:
            return False
        slide.sync_from_fragments()
        slide.fragments = []
        self.persist()
        self._notify()
        return True

    def add_fragment(self, slide_id: str, title: str = NEW_FRAGMENT_TITLE, body: str = "") -> Fragment | None:
        slide = self.slide(slide_id)
        if slide is None or not (title.strip() or body.strip()):
            return None
        if not slide.fragments:
            slide.fragments = [Fragment(title=slide.title, body=slide.body or "")]
        fragment = Fragment(title=title, body=body)
        slide.fragments.append(fragment)
        self.persist()
        self._notify()
        return fragment

    def remove_fragment(self, slide_id: str, fragment_id: str) -> bool:
        slide = self.slide(slide_id)
        if slide is None or len(slide.fragments) <= 1:
            return False
        fragment = slide.find_fragment(fragment_id)
        if fragment is None:
            return False
        slide.fragments.remove(fragment)
        slide.sync_from_fragments()
        self.persist()
        self._notify()
        return True

    def update_fragment_text(self, slide_id: str, fragment_id: str, title: str, body: str = "") -> bool:
        slide = self.slide(slide_id)
        if slide is None:
            return False
        fragment = slide.find_fragment(fragment_id)
        if fragment is None or not (title.strip() or body.strip()):
            return False
        fragment.title = title
        fragment.body = body
        slide.sync_from_fragments()
        self.persist()
        self._notify()
        return True

    def update_fragment_timing(
        self,
        slide_id: str,
        fragment_id: str,
        *,
        delay: float | None = None,
        duration: float | None = None,
    ) -> bool:
        slide = self.slide(slide_id)
        if slide is None:
            return False
        fragment = slide.find_fragment(fragment_id)
        if fragment is None:
            return False
        new_delay = fragment.delay_sec if delay is None else snap_time(max(0.0, delay))
        new_duration = fragment.duration_sec if duration is None else snap_time(max(0.0, duration))
        if duration is not None and duration > 0 and new_duration == 0.0:
            new_duration = MIN_INTERVAL_DURATION
        new_delay, new_duration = clamp_to_container(new_delay, new_duration, slide.duration_sec)
        if (new_delay, new_duration) == (fragment.delay_sec, fragment.duration_sec):
            return False
        fragment.delay_sec = new_delay
        fragment.duration_sec = new_duration
        self.persist()
        self._notify()
        return True

    def apply_fragment_interval(self, slide_id: str, interval: Interval) -> bool:
        return self.update_fragment_timing(
            slide_id,
            interval.id,
            delay=interval.start,
            duration=interval.duration,
        )

    def set_fragment_position(self, slide_id: str, fragment_id: str, x: float, y: float) -> bool:
        slide = self.slide(slide_id)
        if slide is None:
            return False
        fragment = slide.find_fragment(fragment_id)
        if fragment is None:
            return False
        position = FragmentPosition(
            float(round(max(0.0, min(100.0, x)))),
            float(round(max(0.0, min(100.0, y)))),
        )
        if fragment.position == position:
            return False
        fragment.position = position
        self.persist()
        self._notify()
        return True

    def center_fragment(
        self,
        slide_id: str,
        fragment_id: str,
        *,
        horizontal: bool = True,
        vertical: bool = True,
    ) -> bool:
        slide = self.slide(slide_id)
        fragment = slide.find_fragment(fragment_id) if slide else None
        if fragment is None:
            return False
        current = fragment.position or FragmentPosition()
        return self.set_fragment_position(
            slide_id,
            fragment_id,
            50.0 if horizontal else current.x,
            50.0 if vertical else current.y,
        )

    # --- timeline intervals -------------------------------------------
    def slide_intervals(self) -> list[Interval]:
        return [Interval(slide.id, slide.start_time_sec, slide.duration_sec) for slide in self._slides]

    def fragment_intervals(self, slide_id: str) -> list[Interval]:
        slide = self.slide(slide_id)
        if slide is None:
            return []
        return [
            Interval(fragment.id, fragment.delay_sec, fragment.duration_sec)
            for fragment in slide.fragments
        ]

    # --- translation ---------------------------------------------------
    def translation_records(self) -> list[TranslationRecord]:
        return records_from_slides(self._slides)

    def add_translated_slides(
        self,
        language_code: str,
        records: Iterable[TranslationRecord | dict[str, Any]],
    ) -> list[Slide]:
        """Append translated copies of the referenced slides.

        All records are validated before anything changes; an invalid batch
        raises :class:`TranslationError` and leaves the collection untouched.
        """
        try:
            language = language_name(language_code)
        except ValueError as exc:
            raise TranslationError(str(exc)) from exc
        resolved = self._resolve_translations(records)
        created: list[Slide] = []
        for source, record in resolved:
            translated = copy.deepcopy(source)
            translated.id = new_id()
            translated.title = f"[{language}] {record.title}"
            translated.body = record.body or None
            translated.type = SLIDE_TYPE_TITLE_BODY if translated.body else SLIDE_TYPE_TITLE_ONLY
            translated.language = language_code
            if translated.fragments:
                translated.fragments = [
                    Fragment(
                        title=translated.title,
                        body=translated.body or "",
                        delay_sec=translated.fragments[0].delay_sec,
                        duration_sec=translated.fragments[0].duration_sec,
                        position=copy.deepcopy(translated.fragments[0].position),
                    )
                ]
            created.append(translated)
        if not created:
            return []
        self._slides.extend(created)
        self._reindex()
        self.persist()
        self._notify()
        return created

    def replace_slide_text(self, records: Iterable[TranslationRecord | dict[str, Any]]) -> int:
        resolved = self._resolve_translations(records)
        for slide, record in resolved:
            slide.title = record.title
            slide.body = record.body or None
            slide.type = SLIDE_TYPE_TITLE_BODY if slide.body else SLIDE_TYPE_TITLE_ONLY
            if slide.fragments:
                slide.fragments[0].title = slide.title
                slide.fragments[0].body = slide.body or ""
        if resolved:
            self.persist()
            self._notify()
        return len(resolved)

    def _resolve_translations(
        self,
        records: Iterable[TranslationRecord | dict[str, Any]],
    ) -> list[tuple[Slide, TranslationRecord]]:
        resolved: list[tuple[Slide, TranslationRecord]] = []
        for entry in records:
            record = entry if isinstance(entry, TranslationRecord) else TranslationRecord.from_dict(entry)
            if not isinstance(record.title, str) or (record.body is not None and not isinstance(record.body, str)):
                raise TranslationError(f"Invalid translation for {record.id}.")
            slide = self.slide(record.id)
            if slide is None:
                raise TranslationError(f"Translation refers to unknown slide {record.id}.")
            resolved.append((slide, record))
        return resolved

    # --- persistence ---------------------------------------------------
    def persist(self) -> None:
        self._storage.save_slides(self._slides)

    def add_listener(self, listener: Callable[[], None]) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    # --- utility -------------------------------------------------------
    def _reindex(self) -> None:
        for index, slide in enumerate(self._slides):
            slide.index = index

    @staticmethod
    def _clamp_fragments(slide: Slide) -> None:
        for fragment in slide.fragments:
            fragment.delay_sec, fragment.duration_sec = clamp_to_container(
                fragment.delay_sec,
                fragment.duration_sec,
                slide.duration_sec,
            )
