"""Time/pixel layout and drag handling for intervals on a timeline.

Two track modes exist. ``SLIDE_TRACKS`` gives every interval its own row on
an unbounded axis with a fixed pixel scale. ``FRAGMENT_IN_SLIDE`` puts all
intervals on one row bounded by the parent slide's duration; the scale is
stretched so the whole slide always fills the rendered width.

A gesture is captured by :meth:`TimelineEngine.begin` and every following
move/end is applied to that single session, wherever the pointer is.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Iterable, Protocol

logger = logging.getLogger(__name__)

PIXELS_PER_SECOND = 100.0
MIN_INTERVAL_DURATION = 0.1
MIN_SLIDE_TIMELINE_SECONDS = 10.0
SLIDE_TIMELINE_PADDING_SECONDS = 2.0
_EPSILON = 1e-9


class DragMode(str, Enum):
    MOVE = "move"
    RESIZE_START = "resize-start"
    RESIZE_END = "resize-end"


class TrackMode(str, Enum):
    SLIDE_TRACKS = "slide-tracks"
    FRAGMENT_IN_SLIDE = "fragment-in-slide"


@dataclass(slots=True)
class Interval:
    id: str
    start: float
    duration: float


@dataclass(slots=True, frozen=True)
class IntervalGeometry:
    left: float
    width: float
    top: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    def contains(self, x: float, y: float) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom


@dataclass(slots=True)
class TrackLayout:
    top: float = 0.0
    height: float = 40.0
    gap: float = 0.0
    min_width: float = 0.0


@dataclass(slots=True, frozen=True)
class GestureStart:
    interval_id: str
    mode: DragMode
    pointer_x: float


@dataclass(slots=True, frozen=True)
class GestureMove:
    pointer_x: float


@dataclass(slots=True, frozen=True)
class GestureEnd:
    pass


GestureEvent = GestureStart | GestureMove | GestureEnd


@dataclass(slots=True)
class DragSession:
    interval_id: str
    mode: DragMode
    start_pointer_x: float
    start_start: float
    start_duration: float
    moved: bool = False


class TimeScale(Protocol):
    def time_to_pixels(self, seconds: float) -> float: ...

    def pixels_to_time(self, pixels: float) -> float: ...


@dataclass(slots=True)
class FixedTimeScale:
    pixels_per_second: float = PIXELS_PER_SECOND

    def time_to_pixels(self, seconds: float) -> float:
        return seconds * self.pixels_per_second

    def pixels_to_time(self, pixels: float) -> float:
        if self.pixels_per_second <= 0:
            return 0.0
        return pixels / self.pixels_per_second


class ContainerTimeScale:
    """Maps the container duration onto the current width; both are sampled on every call."""

    def __init__(
        self,
        duration_provider: Callable[[], float],
        width_provider: Callable[[], float],
    ) -> None:
        self._duration_provider = duration_provider
        self._width_provider = width_provider

    def time_to_pixels(self, seconds: float) -> float:
        duration = self._duration_provider()
        width = self._width_provider()
        if duration <= 0 or width <= 0:
            return 0.0
        return seconds / duration * width

    def pixels_to_time(self, pixels: float) -> float:
        duration = self._duration_provider()
        width = self._width_provider()
        if duration <= 0 or width <= 0:
            return 0.0
        return pixels / width * duration


def snap_time(value: float, upper: float | None = None) -> float:
    """Round to 0.1 s without crossing ``upper``."""
    snapped = round(value, 1)
    if upper is not None and snapped > upper + _EPSILON:
        snapped = math.floor(upper * 10 + _EPSILON) / 10
    return max(0.0, snapped)


def clamp_to_container(start: float, duration: float, container: float) -> tuple[float, float]:
    """Force an interval back inside ``container`` after the container shrank."""
    container = max(0.0, container)
    start_limit = max(0.0, container - MIN_INTERVAL_DURATION)
    if start > start_limit:
        start = snap_time(start_limit, start_limit)
    start = max(0.0, start)
    if duration > 0 and start + duration > container + _EPSILON:
        duration = snap_time(container - start, container - start)
    return start, duration


class TimelineEngine:
    """Holds interval snapshots for one timeline and applies pointer gestures to them."""

    def __init__(
        self,
        track_mode: TrackMode | str,
        scale: TimeScale | None = None,
        *,
        container_duration: float | None = None,
        width_provider: Callable[[], float] | None = None,
        layout: TrackLayout | None = None,
        on_change: Callable[[Interval], None] | None = None,
        on_commit: Callable[[Interval], None] | None = None,
    ) -> None:
        self._track_mode = TrackMode(track_mode)
        self._container_duration = max(0.0, container_duration or 0.0)
        if scale is None:
            if self.is_bounded:
                scale = ContainerTimeScale(
                    lambda: self._container_duration,
                    width_provider or (lambda: 0.0),
                )
            else:
                scale = FixedTimeScale()
        self._scale = scale
        self._layout = layout or TrackLayout()
        self._intervals: list[Interval] = []
        self._session: DragSession | None = None
        self._on_change = on_change
        self._on_commit = on_commit

    @classmethod
    def for_slides(
        cls,
        *,
        pixels_per_second: float = PIXELS_PER_SECOND,
        layout: TrackLayout | None = None,
        on_change: Callable[[Interval], None] | None = None,
        on_commit: Callable[[Interval], None] | None = None,
    ) -> "TimelineEngine":
        return cls(
            TrackMode.SLIDE_TRACKS,
            FixedTimeScale(pixels_per_second),
            layout=layout,
            on_change=on_change,
            on_commit=on_commit,
        )

    @classmethod
    def for_fragments(
        cls,
        slide_duration: float,
        width_provider: Callable[[], float],
        *,
        layout: TrackLayout | None = None,
        on_change: Callable[[Interval], None] | None = None,
        on_commit: Callable[[Interval], None] | None = None,
    ) -> "TimelineEngine":
        return cls(
            TrackMode.FRAGMENT_IN_SLIDE,
            container_duration=slide_duration,
            width_provider=width_provider,
            layout=layout,
            on_change=on_change,
            on_commit=on_commit,
        )

    # ------------------------------------------------------------------ #
    # State
    # ------------------------------------------------------------------ #
    @property
    def track_mode(self) -> TrackMode:
        return self._track_mode

    @property
    def is_bounded(self) -> bool:
        return self._track_mode is TrackMode.FRAGMENT_IN_SLIDE

    @property
    def container_duration(self) -> float:
        return self._container_duration

    @property
    def scale(self) -> TimeScale:
        return self._scale

    @property
    def is_dragging(self) -> bool:
        return self._session is not None

    @property
    def active_session(self) -> DragSession | None:
        return self._session

    def set_container_duration(self, duration: float) -> None:
        self._container_duration = max(0.0, duration)

    def set_intervals(self, intervals: Iterable[Interval]) -> None:
        self._intervals = [replace(interval) for interval in intervals]

    def intervals(self) -> list[Interval]:
        return [replace(interval) for interval in self._intervals]

    def interval(self, interval_id: str) -> Interval | None:
        for interval in self._intervals:
            if interval.id == interval_id:
                return interval
        return None

    def available_modes(self) -> tuple[DragMode, ...]:
        if self.is_bounded:
            return (DragMode.MOVE, DragMode.RESIZE_START, DragMode.RESIZE_END)
        return (DragMode.MOVE, DragMode.RESIZE_END)

    # ------------------------------------------------------------------ #
    # Coordinates
    # ------------------------------------------------------------------ #
    def time_to_pixels(self, seconds: float) -> float:
        return self._scale.time_to_pixels(seconds)

    def pixels_to_time(self, pixels: float) -> float:
        return self._scale.pixels_to_time(pixels)

    def visible_end(self, interval: Interval) -> float:
        if self.is_bounded and interval.duration <= 0:
            return self._container_duration
        return interval.start + interval.duration

    def geometry(self, interval_id: str) -> IntervalGeometry | None:
        for index, interval in enumerate(self._intervals):
            if interval.id == interval_id:
                return self._geometry_for(index, interval)
        return None

    def layout(self) -> list[tuple[str, IntervalGeometry]]:
        return [
            (interval.id, self._geometry_for(index, interval))
            for index, interval in enumerate(self._intervals)
        ]

    def _geometry_for(self, index: int, interval: Interval) -> IntervalGeometry:
        track = self._layout
        left = self.time_to_pixels(interval.start)
        width = self.time_to_pixels(self.visible_end(interval)) - left
        width = max(width, track.min_width)
        if self.is_bounded:
            top = track.top
        else:
            top = track.top + index * (track.height + track.gap)
        return IntervalGeometry(left, width, top, track.height)

    def hit_test(
        self,
        x: float,
        y: float,
        *,
        handle_width: float = 8.0,
    ) -> tuple[str, DragMode] | None:
        modes = self.available_modes()
        for interval_id, rect in reversed(self.layout()):
            if not rect.contains(x, y):
                continue
            if DragMode.RESIZE_END in modes and x >= rect.right - handle_width:
                return interval_id, DragMode.RESIZE_END
            if DragMode.RESIZE_START in modes and x <= rect.left + handle_width:
                return interval_id, DragMode.RESIZE_START
            return interval_id, DragMode.MOVE
        return None

    def total_duration(self) -> float:
        if self.is_bounded:
            return self._container_duration
        longest = max((self.visible_end(interval) for interval in self._intervals), default=0.0)
        return max(MIN_SLIDE_TIMELINE_SECONDS, longest)

    def content_width(self) -> float:
        if self.is_bounded:
            return self.time_to_pixels(self._container_duration)
        return self.time_to_pixels(self.total_duration() + SLIDE_TIMELINE_PADDING_SECONDS)

    def content_height(self) -> float:
        track = self._layout
        if self.is_bounded:
            return track.top + track.height
        return track.top + len(self._intervals) * (track.height + track.gap)

    def time_markers(self) -> list[float]:
        total = self.total_duration()
        if not self.is_bounded:
            return [float(second) for second in range(0, math.ceil(total) + 1)]
        if total <= 0:
            return [0.0]
        if total <= 5:
            step = 0.5
        elif total <= 10:
            step = 1.0
        else:
            step = 2.0
        count = int(math.floor(total / step + _EPSILON))
        return [round(step * index, 1) for index in range(count + 1)]

    # ------------------------------------------------------------------ #
    # Gestures
    # ------------------------------------------------------------------ #
    def dispatch(self, event: GestureEvent) -> Interval | bool | None:
        if isinstance(event, GestureStart):
            return self.begin(event.interval_id, event.mode, event.pointer_x)
        if isinstance(event, GestureMove):
            return self.move(event.pointer_x)
        if isinstance(event, GestureEnd):
            return self.end()
        raise TypeError(f"Unsupported gesture event: {event!r}")

    def begin(self, interval_id: str, mode: DragMode | str, pointer_x: float) -> bool:
        drag_mode = DragMode(mode)
        if self._session is not None:
            logger.debug(
                "Ignoring gesture on %s while %s is dragging",
                interval_id,
                self._session.interval_id,
            )
            return False
        if drag_mode not in self.available_modes():
            return False
        interval = self.interval(interval_id)
        if interval is None:
            return False
        start_duration = interval.duration
        if self.is_bounded and start_duration <= 0:
            start_duration = self._container_duration
        self._session = DragSession(
            interval_id=interval_id,
            mode=drag_mode,
            start_pointer_x=pointer_x,
            start_start=interval.start,
            start_duration=start_duration,
        )
        logger.debug("Gesture %s started on %s", drag_mode.value, interval_id)
        return True

    def move(self, pointer_x: float) -> Interval | None:
        session = self._session
        if session is None:
            return None
        interval = self.interval(session.interval_id)
        if interval is None:
            logger.debug("Dropping move for unknown interval %s", session.interval_id)
            return None
        delta = self.pixels_to_time(pointer_x - session.start_pointer_x)
        if session.mode is DragMode.MOVE:
            start, duration = self._moved(session, interval, delta)
        elif session.mode is DragMode.RESIZE_END:
            start, duration = self._resized_end(session, interval, delta)
        else:
            start, duration = self._resized_start(session, delta)
        interval.start = start
        interval.duration = duration
        session.moved = True
        snapshot = replace(interval)
        if self._on_change is not None:
            self._on_change(snapshot)
        return snapshot

    def end(self) -> Interval | None:
        session = self._session
        self._session = None
        if session is None or not session.moved:
            return None
        interval = self.interval(session.interval_id)
        if interval is None:
            logger.debug("Gesture ended on removed interval %s", session.interval_id)
            return None
        committed = replace(interval)
        logger.debug(
            "Committed %s: start=%.1f duration=%.1f",
            committed.id,
            committed.start,
            committed.duration,
        )
        if self._on_commit is not None:
            self._on_commit(committed)
        return committed

    def _moved(self, session: DragSession, interval: Interval, delta: float) -> tuple[float, float]:
        start = max(0.0, session.start_start + delta)
        limit: float | None = None
        if self.is_bounded:
            if interval.duration > 0:
                limit = max(0.0, self._container_duration - interval.duration)
            else:
                limit = max(0.0, self._container_duration - MIN_INTERVAL_DURATION)
            start = min(start, limit)
        return snap_time(start, limit), interval.duration

    def _resized_end(self, session: DragSession, interval: Interval, delta: float) -> tuple[float, float]:
        duration = max(MIN_INTERVAL_DURATION, session.start_duration + delta)
        limit: float | None = None
        if self.is_bounded:
            limit = max(0.0, self._container_duration - interval.start)
            duration = min(duration, limit)
        return interval.start, snap_time(duration, limit)

    def _resized_start(self, session: DragSession, delta: float) -> tuple[float, float]:
        start = max(0.0, session.start_start + delta)
        duration = max(MIN_INTERVAL_DURATION, session.start_duration - delta)
        if not self.is_bounded:
            return snap_time(start), snap_time(duration)
        container = self._container_duration
        start_limit = max(0.0, container - MIN_INTERVAL_DURATION)
        start = snap_time(min(start, start_limit), start_limit)
        if start + duration > container:
            duration = container - start
        return start, snap_time(duration, container - start)
