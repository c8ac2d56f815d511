from __future__ import annotations

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QFont
from PySide6.QtWidgets import QFrame, QHBoxLayout, QLabel, QToolButton, QVBoxLayout

from slidecue.models.slide import Slide
from slidecue.services.translation_service import LANGUAGE_NAMES


class SlideListItemWidget(QFrame):
    moveRequested = Signal(object, int)

    def __init__(self, slide: Slide, parent=None) -> None:
        super().__init__(parent)
        self.setObjectName("SlideListViewItem")
        self.setAttribute(Qt.WidgetAttribute.WA_Hover, True)
        self._slide = slide

        layout = QHBoxLayout(self)
        layout.setContentsMargins(8, 8, 8, 8)
        layout.setSpacing(12)

        self._number = QLabel(self)
        self._number.setObjectName("SlideItemNumber")
        self._number.setFixedWidth(28)
        self._number.setAlignment(Qt.AlignmentFlag.AlignCenter)

        text_layout = QVBoxLayout()
        text_layout.setContentsMargins(0, 0, 0, 0)
        text_layout.setSpacing(2)

        self._title = QLabel(self)
        self._title.setObjectName("SlideItemTitle")
        title_font = QFont(self._title.font())
        title_font.setPointSize(max(12, title_font.pointSize()))
        title_font.setWeight(QFont.Weight.DemiBold)
        self._title.setFont(title_font)

        self._body = QLabel(self)
        self._body.setObjectName("SlideItemBody")

        self._meta = QLabel(self)
        self._meta.setObjectName("SlideItemMeta")
        meta_font = QFont(self._meta.font())
        meta_font.setPointSize(max(10, meta_font.pointSize() - 2))
        self._meta.setFont(meta_font)

        text_layout.addWidget(self._title)
        text_layout.addWidget(self._body)
        text_layout.addWidget(self._meta)

        layout.addWidget(self._number)
        layout.addLayout(text_layout, 1)

        controls = QVBoxLayout()
        controls.setContentsMargins(0, 0, 0, 0)
        controls.setSpacing(4)

        self._move_up = QToolButton(self)
        self._move_up.setObjectName("SlideItemMoveUp")
        self._move_up.setArrowType(Qt.ArrowType.UpArrow)
        self._move_up.setAutoRaise(True)
        self._move_up.setCursor(Qt.CursorShape.PointingHandCursor)
        self._move_up.setToolTip("Move slide up")
        self._move_up.clicked.connect(lambda: self.moveRequested.emit(self._slide, -1))

        self._move_down = QToolButton(self)
        self._move_down.setObjectName("SlideItemMoveDown")
        self._move_down.setArrowType(Qt.ArrowType.DownArrow)
        self._move_down.setAutoRaise(True)
        self._move_down.setCursor(Qt.CursorShape.PointingHandCursor)
        self._move_down.setToolTip("Move slide down")
        self._move_down.clicked.connect(lambda: self.moveRequested.emit(self._slide, 1))

        controls.addWidget(self._move_up)
        controls.addWidget(self._move_down)
        controls.addStretch(1)

        layout.addLayout(controls)

        self.set_slide(slide)

    @property
    def slide(self) -> Slide:
        return self._slide

    def set_slide(self, slide: Slide) -> None:
        self._slide = slide
        self._number.setText(str(slide.index + 1))
        self._title.setText(slide.title)
        body = (slide.body or "").splitlines()
        self._body.setText(body[0] if body else "")
        self._body.setVisible(bool(body))
        self._meta.setText(self.describe(slide))

    def set_move_enabled(self, up_enabled: bool, down_enabled: bool) -> None:
        self._move_up.setEnabled(up_enabled)
        self._move_down.setEnabled(down_enabled)

    @staticmethod
    def describe(slide: Slide) -> str:
        parts = [f"{slide.duration_sec:g}s @ {slide.start_time_sec:g}s"]
        if slide.fragments:
            parts.append(f"{len(slide.fragments)} texts")
        if slide.language:
            parts.append(LANGUAGE_NAMES.get(slide.language, slide.language))
        return " · ".join(parts)
