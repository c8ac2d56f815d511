from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any


@dataclass(slots=True)
class TextStyle:
    font_family: str = "Inter"
    font_size: int = 48
    font_weight: int = 700
    line_height: float = 1.2
    letter_spacing: float = -0.02
    color: str = "#FFFFFF"
    text_shadow: str = "0 2px 8px rgba(0,0,0,0.5)"
    alignment: str = "center"


@dataclass(slots=True)
class PlateStyle:
    padding: int = 24
    border_radius: int = 16
    opacity: float = 0.8
    background_color: str = "#000000"
    enabled: bool = True


@dataclass(slots=True)
class SlideStyle:
    """Presentation settings attached to a slide; opaque to parser and timeline."""

    text: TextStyle = field(default_factory=TextStyle)
    plate: PlateStyle = field(default_factory=PlateStyle)
    safe_margin_top: int = 10
    safe_margin_bottom: int = 10

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": {item.name: getattr(self.text, item.name) for item in fields(TextStyle)},
            "plate": {item.name: getattr(self.plate, item.name) for item in fields(PlateStyle)},
            "safe_margin_top": self.safe_margin_top,
            "safe_margin_bottom": self.safe_margin_bottom,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "SlideStyle":
        data = data or {}
        text_data = data.get("text") or {}
        plate_data = data.get("plate") or {}
        text_names = {item.name for item in fields(TextStyle)}
        plate_names = {item.name for item in fields(PlateStyle)}
        return cls(
            text=TextStyle(**{key: value for key, value in text_data.items() if key in text_names}),
            plate=PlateStyle(**{key: value for key, value in plate_data.items() if key in plate_names}),
            safe_margin_top=int(data.get("safe_margin_top", 10)),
            safe_margin_bottom=int(data.get("safe_margin_bottom", 10)),
        )


def default_slide_style() -> SlideStyle:
    return SlideStyle()
