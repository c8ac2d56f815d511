from __future__ import annotations

from typing import Any

from slidecue.models.slide import (
    SLIDE_TYPE_TITLE_BODY,
    SLIDE_TYPE_TITLE_ONLY,
    SLIDE_TYPES,
    Fragment,
    FragmentPosition,
    Slide,
    new_id,
)
from slidecue.models.style import SlideStyle, default_slide_style
from slidecue.models.timeline import clamp_to_container
from slidecue.services.project_service import ProjectStorageService

DEFAULT_SLIDE_DURATION = 3.0
SOURCE_TEXT_KEY = "last_parsed_text"


def _as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


class SlideStorage:
    """Converts slides to the plain records stored in ``project.json`` and back."""

    def __init__(self, project_service: ProjectStorageService | None = None) -> None:
        self._project_service = project_service or ProjectStorageService()

    @property
    def project_service(self) -> ProjectStorageService:
        return self._project_service

    def load_slides(self) -> list[Slide]:
        project = self._project_service.load_project()
        slides: list[Slide] = []
        for entry in project.get("slides") or []:
            if not isinstance(entry, dict):
                continue
            slide = self.slide_from_payload(entry)
            slide.index = len(slides)
            slides.append(slide)
        return slides

    def save_slides(self, slides: list[Slide]) -> None:
        project = self._project_service.load_project()
        project["slides"] = [self.slide_to_payload(slide) for slide in slides]
        self._project_service.save_project(project)

    def load_source_text(self) -> str:
        value = self._project_service.meta().get(SOURCE_TEXT_KEY)
        return value if isinstance(value, str) else ""

    def save_source_text(self, text: str) -> None:
        self._project_service.set_meta_value(SOURCE_TEXT_KEY, text)

    # ------------------------------------------------------------------ #
    # Records
    # ------------------------------------------------------------------ #
    @staticmethod
    def slide_to_payload(slide: Slide) -> dict[str, Any]:
        style = slide.style
        if isinstance(style, SlideStyle):
            style = style.to_dict()
        return {
            "id": slide.id,
            "index": slide.index,
            "type": slide.type,
            "title": slide.title,
            "body": slide.body,
            "fragments": [
                {
                    "id": fragment.id,
                    "title": fragment.title,
                    "body": fragment.body,
                    "delaySec": fragment.delay_sec,
                    "durationSec": fragment.duration_sec,
                    "position": (
                        {"x": fragment.position.x, "y": fragment.position.y}
                        if fragment.position is not None
                        else None
                    ),
                }
                for fragment in slide.fragments
            ],
            "durationSec": slide.duration_sec,
            "startTimeSec": slide.start_time_sec,
            "language": slide.language,
            "style": style,
        }

    @staticmethod
    def slide_from_payload(data: dict[str, Any]) -> Slide:
        duration = _as_float(data.get("durationSec"), DEFAULT_SLIDE_DURATION)
        if duration <= 0:
            duration = DEFAULT_SLIDE_DURATION
        body = data.get("body")
        body = body if isinstance(body, str) and body else None
        slide_type = data.get("type")
        if slide_type not in SLIDE_TYPES:
            slide_type = SLIDE_TYPE_TITLE_BODY if body else SLIDE_TYPE_TITLE_ONLY
        style_data = data.get("style")
        style = SlideStyle.from_dict(style_data) if isinstance(style_data, dict) else default_slide_style()

        fragments: list[Fragment] = []
        for entry in data.get("fragments") or []:
            if not isinstance(entry, dict):
                continue
            delay, fragment_duration = clamp_to_container(
                max(0.0, _as_float(entry.get("delaySec"))),
                max(0.0, _as_float(entry.get("durationSec"))),
                duration,
            )
            position_data = entry.get("position")
            position = None
            if isinstance(position_data, dict):
                position = FragmentPosition(
                    _as_float(position_data.get("x"), 50.0),
                    _as_float(position_data.get("y"), 50.0),
                )
            fragments.append(
                Fragment(
                    title=str(entry.get("title") or ""),
                    body=str(entry.get("body") or ""),
                    delay_sec=delay,
                    duration_sec=fragment_duration,
                    position=position,
                    id=str(entry.get("id") or new_id()),
                )
            )

        language = data.get("language")
        return Slide(
            title=str(data.get("title") or ""),
            body=body,
            type=slide_type,
            duration_sec=duration,
            start_time_sec=max(0.0, _as_float(data.get("startTimeSec"))),
            index=int(_as_float(data.get("index"))),
            fragments=fragments,
            style=style,
            language=language if isinstance(language, str) else None,
            id=str(data.get("id") or new_id()),
        )
