from __future__ import annotations

import pytest

from slidecue.models.timeline import (
    ContainerTimeScale,
    DragMode,
    GestureEnd,
    GestureMove,
    GestureStart,
    Interval,
    TimelineEngine,
    TrackLayout,
    clamp_to_container,
    snap_time,
)


def _fragment_engine(*intervals: Interval, duration: float = 5.0, width: float = 500.0, **kwargs) -> TimelineEngine:
    engine = TimelineEngine.for_fragments(duration, lambda: width, **kwargs)
    engine.set_intervals(intervals)
    return engine


def _drag(engine: TimelineEngine, interval_id: str, mode: DragMode, dx: float) -> Interval | None:
    assert engine.begin(interval_id, mode, 1000.0)
    engine.move(1000.0 + dx)
    return engine.end()


def _has_one_decimal(value: float) -> bool:
    return round(value, 1) == value


def test_resize_end_is_clamped_to_slide_end() -> None:
    engine = _fragment_engine(Interval("f", 2.0, 1.0))
    committed = _drag(engine, "f", DragMode.RESIZE_END, 900)
    assert committed == Interval("f", 2.0, 3.0)


def test_move_is_clamped_to_slide_end() -> None:
    engine = _fragment_engine(Interval("f", 0.0, 2.0))
    committed = _drag(engine, "f", DragMode.MOVE, 1000)
    assert committed == Interval("f", 3.0, 2.0)


def test_move_never_goes_negative() -> None:
    engine = _fragment_engine(Interval("f", 1.0, 2.0))
    committed = _drag(engine, "f", DragMode.MOVE, -800)
    assert committed == Interval("f", 0.0, 2.0)


def test_committed_values_are_rounded_to_tenths() -> None:
    engine = _fragment_engine(Interval("f", 0.0, 1.0))
    moved = _drag(engine, "f", DragMode.MOVE, 123)
    assert moved is not None
    assert moved.start == pytest.approx(1.2)
    assert _has_one_decimal(moved.start)

    resized = _drag(engine, "f", DragMode.RESIZE_END, 37)
    assert resized is not None
    assert resized.duration == pytest.approx(1.4)
    assert _has_one_decimal(resized.duration)


def test_resize_start_keeps_end_and_shrinks_to_fit() -> None:
    engine = _fragment_engine(Interval("f", 1.0, 2.0))
    committed = _drag(engine, "f", DragMode.RESIZE_START, -100)
    assert committed == Interval("f", 0.0, 3.0)

    committed = _drag(engine, "f", DragMode.RESIZE_START, 1000)
    assert committed is not None
    assert committed.start == pytest.approx(4.9)
    assert committed.duration == pytest.approx(0.1)


def test_sentinel_duration_stays_open_on_move() -> None:
    engine = _fragment_engine(Interval("s", 1.0, 0.0))
    committed = _drag(engine, "s", DragMode.MOVE, 1000)
    assert committed is not None
    assert committed.duration == 0.0
    assert committed.start == pytest.approx(4.9)


def test_sentinel_resize_uses_container_duration() -> None:
    engine = _fragment_engine(Interval("s", 1.0, 0.0))
    committed = _drag(engine, "s", DragMode.RESIZE_END, -100)
    assert committed == Interval("s", 1.0, 4.0)


def test_layout_invariant_holds_after_every_gesture() -> None:
    container = 5.0
    engine = _fragment_engine(
        Interval("a", 0.0, 2.0),
        Interval("b", 1.5, 0.0),
        Interval("c", 4.0, 1.0),
        duration=container,
        width=320.0,
    )
    gestures = [
        ("a", DragMode.MOVE, 700),
        ("a", DragMode.RESIZE_END, 400),
        ("b", DragMode.RESIZE_START, -90),
        ("b", DragMode.MOVE, 2000),
        ("c", DragMode.RESIZE_START, 333),
        ("c", DragMode.RESIZE_END, -1000),
        ("a", DragMode.RESIZE_START, 1500),
        ("b", DragMode.RESIZE_END, 17),
        ("c", DragMode.MOVE, -4000),
        ("a", DragMode.MOVE, -61),
    ]
    for interval_id, mode, dx in gestures:
        committed = _drag(engine, interval_id, mode, dx)
        assert committed is not None
        assert committed.start >= 0
        assert committed.duration == 0 or committed.start + committed.duration <= container + 1e-9
        assert _has_one_decimal(committed.start)
        assert _has_one_decimal(committed.duration)


def test_slide_tracks_are_unbounded() -> None:
    engine = TimelineEngine.for_slides()
    engine.set_intervals([Interval("s", 1.0, 3.0)])
    assert _drag(engine, "s", DragMode.MOVE, 2500) == Interval("s", 26.0, 3.0)
    assert _drag(engine, "s", DragMode.RESIZE_END, -1000) == Interval("s", 26.0, 0.1)


def test_slide_tracks_do_not_offer_resize_start() -> None:
    engine = TimelineEngine.for_slides()
    engine.set_intervals([Interval("s", 1.0, 3.0)])
    assert DragMode.RESIZE_START not in engine.available_modes()
    assert engine.begin("s", DragMode.RESIZE_START, 0.0) is False
    assert not engine.is_dragging


def test_second_gesture_is_ignored_while_dragging() -> None:
    engine = _fragment_engine(Interval("a", 0.0, 1.0), Interval("b", 2.0, 1.0))
    assert engine.begin("a", DragMode.MOVE, 0.0)
    assert engine.begin("b", DragMode.MOVE, 0.0) is False
    assert engine.active_session is not None
    assert engine.active_session.interval_id == "a"


def test_begin_ignores_unknown_interval() -> None:
    engine = _fragment_engine(Interval("a", 0.0, 1.0))
    assert engine.begin("missing", DragMode.MOVE, 0.0) is False
    assert engine.move(100.0) is None
    assert engine.end() is None


def test_move_is_dropped_when_interval_disappears() -> None:
    commits: list[Interval] = []
    engine = _fragment_engine(Interval("a", 0.0, 1.0), on_commit=commits.append)
    assert engine.begin("a", DragMode.MOVE, 0.0)
    engine.set_intervals([])
    assert engine.move(100.0) is None
    assert engine.end() is None
    assert commits == []
    assert not engine.is_dragging


def test_callbacks_receive_snapshots() -> None:
    changes: list[Interval] = []
    commits: list[Interval] = []
    engine = _fragment_engine(
        Interval("a", 0.0, 1.0),
        on_change=changes.append,
        on_commit=commits.append,
    )
    engine.begin("a", DragMode.MOVE, 0.0)
    engine.move(100.0)
    engine.move(200.0)
    engine.end()
    assert [change.start for change in changes] == [1.0, 2.0]
    assert commits == [Interval("a", 2.0, 1.0)]
    commits[0].start = 99.0
    assert engine.interval("a").start == 2.0


def test_end_without_movement_commits_nothing() -> None:
    commits: list[Interval] = []
    engine = _fragment_engine(Interval("a", 0.0, 1.0), on_commit=commits.append)
    engine.begin("a", DragMode.MOVE, 0.0)
    assert engine.end() is None
    assert commits == []


def test_dispatch_routes_gesture_events() -> None:
    engine = _fragment_engine(Interval("a", 0.0, 1.0))
    assert engine.dispatch(GestureStart("a", DragMode.MOVE, 10.0)) is True
    assert engine.dispatch(GestureMove(60.0)) == Interval("a", 0.5, 1.0)
    assert engine.dispatch(GestureEnd()) == Interval("a", 0.5, 1.0)
    with pytest.raises(TypeError):
        engine.dispatch("release")  # type: ignore[arg-type]


def test_zero_width_scale_maps_to_zero() -> None:
    engine = _fragment_engine(Interval("a", 1.0, 1.0), width=0.0)
    assert engine.time_to_pixels(3.0) == 0.0
    assert engine.pixels_to_time(50.0) == 0.0
    geometry = engine.geometry("a")
    assert geometry is not None
    assert geometry.left == 0.0
    assert geometry.width == 0.0
    assert _drag(engine, "a", DragMode.MOVE, 300) == Interval("a", 1.0, 1.0)


def test_zero_duration_container_maps_to_zero() -> None:
    scale = ContainerTimeScale(lambda: 0.0, lambda: 500.0)
    assert scale.time_to_pixels(2.0) == 0.0
    assert scale.pixels_to_time(200.0) == 0.0


def test_container_width_is_sampled_on_every_call() -> None:
    widths = [500.0]
    engine = TimelineEngine.for_fragments(5.0, lambda: widths[0])
    assert engine.time_to_pixels(1.0) == pytest.approx(100.0)
    widths[0] = 1000.0
    assert engine.time_to_pixels(1.0) == pytest.approx(200.0)
    engine.set_container_duration(10.0)
    assert engine.time_to_pixels(1.0) == pytest.approx(100.0)


def test_slide_layout_stacks_tracks() -> None:
    engine = TimelineEngine.for_slides(layout=TrackLayout(top=10, height=80, gap=15, min_width=100))
    engine.set_intervals([Interval("a", 0.0, 3.0), Interval("b", 3.0, 0.5)])
    layout = dict(engine.layout())
    assert layout["a"].top == 10
    assert layout["a"].width == pytest.approx(300)
    assert layout["b"].top == 105
    assert layout["b"].left == pytest.approx(300)
    assert layout["b"].width == 100
    assert engine.content_height() == pytest.approx(10 + 2 * 95)


def test_fragment_layout_shares_one_track_and_extends_sentinels() -> None:
    engine = _fragment_engine(
        Interval("a", 0.0, 1.0),
        Interval("b", 1.0, 0.0),
        layout=TrackLayout(top=20, height=40),
    )
    layout = dict(engine.layout())
    assert layout["a"].top == layout["b"].top == 20
    assert layout["b"].left == pytest.approx(100)
    assert layout["b"].width == pytest.approx(400)
    assert engine.content_width() == pytest.approx(500)


def test_hit_test_prefers_handles_and_top_most_interval() -> None:
    engine = _fragment_engine(
        Interval("a", 1.0, 2.0),
        Interval("b", 2.0, 2.0),
        layout=TrackLayout(top=10, height=40),
    )
    assert engine.hit_test(104, 20) == ("a", DragMode.RESIZE_START)
    assert engine.hit_test(150, 20) == ("a", DragMode.MOVE)
    assert engine.hit_test(250, 20) == ("b", DragMode.MOVE)
    assert engine.hit_test(396, 20) == ("b", DragMode.RESIZE_END)
    assert engine.hit_test(250, 5) is None
    assert engine.hit_test(450, 20) is None


def test_slide_hit_test_has_no_start_handle() -> None:
    engine = TimelineEngine.for_slides(layout=TrackLayout(height=80))
    engine.set_intervals([Interval("s", 1.0, 2.0)])
    assert engine.hit_test(102, 40) == ("s", DragMode.MOVE)
    assert engine.hit_test(298, 40) == ("s", DragMode.RESIZE_END)


def test_slide_ruler_covers_at_least_ten_seconds() -> None:
    engine = TimelineEngine.for_slides()
    engine.set_intervals([Interval("a", 0.0, 4.0)])
    assert engine.total_duration() == 10
    assert engine.time_markers() == [float(second) for second in range(11)]
    engine.set_intervals([Interval("a", 10.0, 2.3)])
    assert engine.total_duration() == pytest.approx(12.3)
    assert engine.time_markers()[-1] == 13.0


@pytest.mark.parametrize(
    ("duration", "expected"),
    [
        (5.0, [0.0, 0.5, 1.0, 1.5, 2.0, 2.5, 3.0, 3.5, 4.0, 4.5, 5.0]),
        (8.0, [0.0, 1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0]),
        (12.0, [0.0, 2.0, 4.0, 6.0, 8.0, 10.0, 12.0]),
        (0.0, [0.0]),
    ],
)
def test_fragment_ruler_steps(duration: float, expected: list[float]) -> None:
    engine = _fragment_engine(duration=duration)
    assert engine.time_markers() == expected


def test_snap_time_never_crosses_upper_bound() -> None:
    assert snap_time(0.26) == 0.3
    assert snap_time(-0.04) == 0.0
    assert snap_time(2.96, 2.95) == 2.9
    assert snap_time(2.94, 2.95) == 2.9


def test_clamp_to_container() -> None:
    assert clamp_to_container(4.0, 3.0, 5.0) == (4.0, 1.0)
    assert clamp_to_container(1.0, 0.0, 5.0) == (1.0, 0.0)
    start, duration = clamp_to_container(6.0, 0.0, 5.0)
    assert start == pytest.approx(4.9)
    assert duration == 0.0
    start, duration = clamp_to_container(3.0, 2.0, 2.0)
    assert start == pytest.approx(1.9)
    assert duration == pytest.approx(0.1)
