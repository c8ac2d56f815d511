from __future__ import annotations

from PySide6.QtCore import QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QColor, QPainter, QPen
from PySide6.QtWidgets import QFrame, QSizePolicy, QWidget

from slidecue.models.slide import Slide
from slidecue.models.timeline import (
    DragMode,
    Interval,
    IntervalGeometry,
    TimelineEngine,
    TrackLayout,
)
from slidecue.ui.constants import (
    FRAGMENT_COLORS,
    FRAGMENT_TIMELINE_HEIGHT,
    FRAGMENT_TRACK_HEIGHT,
    GRID_COLOR,
    HANDLE_WIDTH,
    RULER_HEIGHT,
    RULER_TEXT_COLOR,
    SLIDE_BORDER_COLOR,
    SLIDE_FILL_COLOR,
    SLIDE_MIN_WIDTH,
    SLIDE_PIXELS_PER_SECOND,
    SLIDE_SELECTED_COLOR,
    SLIDE_TRACK_GAP,
    SLIDE_TRACK_HEIGHT,
)


class IntervalTimelineCanvas(QFrame):
    """Paints a :class:`TimelineEngine` and feeds it mouse gestures."""

    intervalChanged = Signal(object)
    intervalCommitted = Signal(object)
    intervalSelected = Signal(str)

    def __init__(self, engine: TimelineEngine, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._engine = engine
        self._labels: dict[str, str] = {}
        self._selected_id: str | None = None
        self.setMouseTracking(True)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Fixed)

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    @property
    def engine(self) -> TimelineEngine:
        return self._engine

    def set_intervals(self, intervals: list[Interval], labels: dict[str, str] | None = None) -> None:
        self._engine.set_intervals(intervals)
        self._labels = dict(labels or {})
        if self._selected_id and self._engine.interval(self._selected_id) is None:
            self._selected_id = None
        self._update_extent()
        self.update()

    def selected_id(self) -> str | None:
        return self._selected_id

    def set_selected(self, interval_id: str | None) -> None:
        if interval_id == self._selected_id:
            return
        self._selected_id = interval_id
        self.update()

    # ------------------------------------------------------------------ #
    # QWidget overrides
    # ------------------------------------------------------------------ #
    def paintEvent(self, event) -> None:  # type: ignore[override]
        super().paintEvent(event)
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        self._draw_ruler(painter)
        for index, (interval_id, rect) in enumerate(self._engine.layout()):
            self._draw_interval(painter, index, interval_id, rect)
        painter.end()

    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        if event.button() != Qt.MouseButton.LeftButton or self._engine.is_dragging:
            super().mousePressEvent(event)
            return
        point = event.position()
        hit = self._engine.hit_test(point.x(), point.y(), handle_width=HANDLE_WIDTH)
        if hit is None:
            super().mousePressEvent(event)
            return
        interval_id, mode = hit
        self._selected_id = interval_id
        self.intervalSelected.emit(interval_id)
        self._engine.begin(interval_id, mode, point.x())
        self.update()

    def mouseMoveEvent(self, event) -> None:  # type: ignore[override]
        point = event.position()
        if not self._engine.is_dragging:
            self._update_cursor(point)
            super().mouseMoveEvent(event)
            return
        changed = self._engine.move(point.x())
        if changed is not None:
            self.intervalChanged.emit(changed)
            self._update_extent()
            self.update()

    def mouseReleaseEvent(self, event) -> None:  # type: ignore[override]
        if event.button() != Qt.MouseButton.LeftButton or not self._engine.is_dragging:
            super().mouseReleaseEvent(event)
            return
        committed = self._engine.end()
        if committed is not None:
            self.intervalCommitted.emit(committed)
        self.update()

    def resizeEvent(self, event) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        self.update()

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _update_extent(self) -> None:
        """Hook for canvases whose size follows their content."""

    def _update_cursor(self, point: QPointF) -> None:
        hit = self._engine.hit_test(point.x(), point.y(), handle_width=HANDLE_WIDTH)
        if hit is None:
            self.unsetCursor()
        elif hit[1] is DragMode.MOVE:
            self.setCursor(Qt.CursorShape.SizeAllCursor)
        else:
            self.setCursor(Qt.CursorShape.SizeHorCursor)

    def _draw_ruler(self, painter: QPainter) -> None:
        grid_pen = QPen(QColor(GRID_COLOR))
        text_pen = QPen(QColor(RULER_TEXT_COLOR))
        bottom = max(self.height(), int(self._engine.content_height()))
        for marker in self._engine.time_markers():
            x = self._engine.time_to_pixels(marker)
            painter.setPen(grid_pen)
            painter.drawLine(QPointF(x, RULER_HEIGHT), QPointF(x, bottom))
            painter.setPen(text_pen)
            painter.drawText(
                QRectF(x - 24, 0, 48, RULER_HEIGHT),
                Qt.AlignmentFlag.AlignCenter,
                f"{marker:g}s",
            )

    def _draw_interval(self, painter: QPainter, index: int, interval_id: str, rect: IntervalGeometry) -> None:
        area = QRectF(rect.left, rect.top, rect.width, rect.height)
        selected = interval_id == self._selected_id
        painter.setPen(QPen(QColor(SLIDE_SELECTED_COLOR if selected else SLIDE_BORDER_COLOR), 2 if selected else 1))
        painter.setBrush(self._fill_color(index))
        painter.drawRoundedRect(area, 6, 6)
        painter.setPen(QPen(QColor("#ffffff")))
        painter.drawText(
            area.adjusted(HANDLE_WIDTH + 4, 2, -HANDLE_WIDTH - 4, -2),
            Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter,
            self._labels.get(interval_id, ""),
        )
        handle_color = QColor("#ffffff")
        handle_color.setAlpha(70)
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(handle_color)
        modes = self._engine.available_modes()
        if DragMode.RESIZE_START in modes:
            painter.drawRect(QRectF(area.left(), area.top(), HANDLE_WIDTH, area.height()))
        if DragMode.RESIZE_END in modes:
            painter.drawRect(QRectF(area.right() - HANDLE_WIDTH, area.top(), HANDLE_WIDTH, area.height()))

    def _fill_color(self, index: int) -> QColor:
        return QColor(SLIDE_FILL_COLOR)


class SlidesTimelineCanvas(IntervalTimelineCanvas):
    """One track per slide on a fixed seconds-to-pixels scale."""

    def __init__(self, parent: QWidget | None = None) -> None:
        engine = TimelineEngine.for_slides(
            pixels_per_second=SLIDE_PIXELS_PER_SECOND,
            layout=TrackLayout(
                top=RULER_HEIGHT + 10,
                height=SLIDE_TRACK_HEIGHT,
                gap=SLIDE_TRACK_GAP,
                min_width=SLIDE_MIN_WIDTH,
            ),
        )
        super().__init__(engine, parent)
        self.setObjectName("SlidesTimelineCanvas")
        self._update_extent()

    def set_slides(self, slides: list[Slide]) -> None:
        intervals = [Interval(slide.id, slide.start_time_sec, slide.duration_sec) for slide in slides]
        labels = {
            slide.id: f"#{index + 1}  {slide.duration_sec:g}s\n{slide.title}"
            for index, slide in enumerate(slides)
        }
        self.set_intervals(intervals, labels)

    def _update_extent(self) -> None:
        width = int(self._engine.content_width())
        height = int(self._engine.content_height() + SLIDE_TRACK_GAP)
        self.setMinimumSize(width, height)


class FragmentTimelineCanvas(IntervalTimelineCanvas):
    """All fragments of one slide on a track stretched to the slide duration."""

    def __init__(self, parent: QWidget | None = None) -> None:
        engine = TimelineEngine.for_fragments(
            0.0,
            self._track_width,
            layout=TrackLayout(top=RULER_HEIGHT + 8, height=FRAGMENT_TRACK_HEIGHT),
        )
        super().__init__(engine, parent)
        self.setObjectName("FragmentTimelineCanvas")
        self.setFixedHeight(FRAGMENT_TIMELINE_HEIGHT)
        self._slide_id: str | None = None

    @property
    def slide_id(self) -> str | None:
        return self._slide_id

    def set_slide(self, slide: Slide | None) -> None:
        if slide is None:
            self._slide_id = None
            self._engine.set_container_duration(0.0)
            self.set_intervals([])
            return
        self._slide_id = slide.id
        self._engine.set_container_duration(slide.duration_sec)
        intervals = [
            Interval(fragment.id, fragment.delay_sec, fragment.duration_sec)
            for fragment in slide.fragments
        ]
        labels = {
            fragment.id: fragment.title or f"Text {index + 1}"
            for index, fragment in enumerate(slide.fragments)
        }
        self.set_intervals(intervals, labels)

    def _track_width(self) -> float:
        return float(self.width())

    def _fill_color(self, index: int) -> QColor:
        color = QColor(FRAGMENT_COLORS[index % len(FRAGMENT_COLORS)])
        color.setAlphaF(0.8)
        return color
