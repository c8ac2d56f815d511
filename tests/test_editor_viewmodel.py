from __future__ import annotations

import pytest

from slidecue.models.slide import (
    SLIDE_TYPE_TITLE_BODY,
    SLIDE_TYPE_TITLE_ONLY,
    Fragment,
    FragmentPosition,
    Slide,
)
from slidecue.models.timeline import Interval
from slidecue.services.translation_service import TranslationError, TranslationRecord
from slidecue.viewmodels.editor import EditorViewModel


class _InMemoryStorage:
    def __init__(self, slides: list[Slide] | None = None, source_text: str = "") -> None:
        self.slides = list(slides or [])
        self.source_text = source_text
        self.saves = 0

    def load_slides(self) -> list[Slide]:
        return list(self.slides)

    def save_slides(self, slides: list[Slide]) -> None:
        self.slides = list(slides)
        self.saves += 1

    def load_source_text(self) -> str:
        return self.source_text

    def save_source_text(self, text: str) -> None:
        self.source_text = text


def _make_vm(*slides: Slide, source_text: str = "") -> tuple[EditorViewModel, _InMemoryStorage]:
    storage = _InMemoryStorage(list(slides), source_text)
    return EditorViewModel(storage), storage


def _fragment_slide(duration: float = 5.0) -> Slide:
    return Slide(
        title="Intro",
        body="Body",
        type=SLIDE_TYPE_TITLE_BODY,
        duration_sec=duration,
        fragments=[
            Fragment(title="Intro", body="Body"),
            Fragment(title="Second", delay_sec=3.0, duration_sec=2.0),
        ],
    )


def test_create_slides_from_text_replaces_collection() -> None:
    vm, storage = _make_vm(Slide(title="Old"))
    calls: list[int] = []
    vm.add_listener(lambda: calls.append(1))

    slides = vm.create_slides_from_text("# Talk\nINTRO PART\nsome body words")

    assert [slide.title for slide in slides] == ["Talk", "INTRO PART"]
    assert [slide.title for slide in storage.slides] == ["Talk", "INTRO PART"]
    assert storage.source_text == "# Talk\nINTRO PART\nsome body words"
    assert vm.current_index == 0
    assert calls == [1]


def test_create_slides_from_empty_text_clears_selection() -> None:
    vm, storage = _make_vm(Slide(title="Old"))
    assert vm.create_slides_from_text("") == []
    assert vm.current_slide is None
    assert storage.slides == []


def test_add_slide_appends_after_timeline_end() -> None:
    vm, storage = _make_vm(
        Slide(title="A", duration_sec=3.0),
        Slide(title="B", duration_sec=2.0, start_time_sec=4.0),
    )
    slide = vm.add_slide()
    assert slide.start_time_sec == 6.0
    assert slide.duration_sec == 3.0
    assert slide.index == 2
    assert vm.current_slide is slide
    assert storage.slides[-1] is slide


def test_unknown_ids_do_not_mutate_state() -> None:
    vm, storage = _make_vm(Slide(title="A"))
    assert vm.delete_slide("missing") is None
    assert vm.duplicate_slide("missing") is None
    assert vm.update_slide_text("missing", "x") is False
    assert vm.update_slide_timing("missing", duration=2.0) is False
    assert vm.add_fragment("missing") is None
    assert vm.set_fragment_position("missing", "f", 1, 1) is False
    assert storage.saves == 0


def test_delete_slide_reindexes_and_fixes_selection() -> None:
    a, b = Slide(title="A"), Slide(title="B")
    vm, storage = _make_vm(a, b)
    vm.select_slide(1)
    assert vm.delete_slide(b.id) is b
    assert vm.current_slide is a
    assert [slide.index for slide in vm.slides] == [0]
    assert storage.slides == [a]


def test_duplicate_slide_gets_fresh_ids() -> None:
    original = _fragment_slide()
    vm, _ = _make_vm(original, Slide(title="Last"))
    duplicate = vm.duplicate_slide(original.id)
    assert duplicate is not None
    assert vm.slides[1] is duplicate
    assert duplicate.id != original.id
    assert {f.id for f in duplicate.fragments}.isdisjoint({f.id for f in original.fragments})
    assert [f.title for f in duplicate.fragments] == ["Intro", "Second"]
    assert [slide.index for slide in vm.slides] == [0, 1, 2]


def test_move_and_reorder_slides() -> None:
    a, b, c = Slide(title="A"), Slide(title="B"), Slide(title="C")
    vm, _ = _make_vm(a, b, c)
    vm.select_slide(0)
    assert vm.move_slide(a.id, 1)
    assert [slide.title for slide in vm.slides] == ["B", "A", "C"]
    assert vm.current_slide is a
    assert vm.reorder_slides(2, 0)
    assert [slide.title for slide in vm.slides] == ["C", "B", "A"]
    assert [slide.index for slide in vm.slides] == [0, 1, 2]
    assert vm.move_slide(c.id, -1) is False
    assert vm.reorder_slides(0, 5) is False


def test_update_slide_text_sets_type_and_first_fragment() -> None:
    slide = _fragment_slide()
    vm, _ = _make_vm(slide)
    assert vm.update_slide_text(slide.id, "New", "  ")
    assert slide.body is None
    assert slide.type == SLIDE_TYPE_TITLE_ONLY
    assert slide.fragments[0].title == "New"
    assert vm.update_slide_text(slide.id, "New", None) is False


def test_fragment_timing_is_snapped() -> None:
    slide = _fragment_slide()
    vm, _ = _make_vm(slide)
    second = slide.fragments[1]
    assert vm.update_fragment_timing(slide.id, second.id, delay=1.234, duration=0.777)
    assert (second.delay_sec, second.duration_sec) == (1.2, 0.8)
    assert vm.update_fragment_timing(slide.id, second.id, duration=0.02)
    assert second.duration_sec == 0.1
    assert vm.update_fragment_timing(slide.id, second.id, duration=0.0)
    assert second.duration_sec == 0.0


def test_update_slide_text_keeps_first_fragment_non_empty() -> None:
    slide = _fragment_slide()
    vm, _ = _make_vm(slide)
    assert vm.update_slide_text(slide.id, "  ", "") is False
    assert (slide.title, slide.body) == ("Intro", "Body")
    assert (slide.fragments[0].title, slide.fragments[0].body) == ("Intro", "Body")
    assert vm.update_slide_text(slide.id, "", "Only body")
    assert slide.fragments[0].body == "Only body"


def test_shrinking_slide_clamps_fragments() -> None:
    slide = _fragment_slide()
    vm, _ = _make_vm(slide)
    assert vm.update_slide_timing(slide.id, duration=2.0)
    second = slide.fragments[1]
    assert slide.duration_sec == 2.0
    assert second.delay_sec == pytest.approx(1.9)
    assert second.duration_sec == pytest.approx(0.1)
    assert slide.fragments[0].duration_sec == 0.0


def test_slide_timing_is_snapped() -> None:
    slide = Slide(title="A")
    vm, _ = _make_vm(slide)
    assert vm.apply_slide_interval(Interval(slide.id, 1.26, 2.04))
    assert slide.start_time_sec == pytest.approx(1.3)
    assert slide.duration_sec == pytest.approx(2.0)
    assert vm.update_slide_timing(slide.id, duration=0.0)
    assert slide.duration_sec == pytest.approx(0.1)


def test_fragment_interval_is_clamped_to_slide() -> None:
    slide = _fragment_slide()
    vm, _ = _make_vm(slide)
    second = slide.fragments[1]
    assert vm.apply_fragment_interval(slide.id, Interval(second.id, 4.0, 3.0))
    assert (second.delay_sec, second.duration_sec) == (4.0, 1.0)
    assert vm.apply_fragment_interval(slide.id, Interval(second.id, 4.0, 1.0)) is False


def test_split_and_collapse_fragments() -> None:
    slide = Slide(title="Intro", body="Body", type=SLIDE_TYPE_TITLE_BODY)
    vm, _ = _make_vm(slide)
    fragments = vm.split_into_fragments(slide.id)
    assert [(f.title, f.body) for f in fragments] == [("Intro", "Body")]
    assert vm.update_fragment_text(slide.id, fragments[0].id, "Changed", "")
    assert slide.title == "Changed"
    assert slide.body is None
    assert vm.collapse_fragments(slide.id)
    assert slide.fragments == []
    assert vm.collapse_fragments(slide.id) is False


def test_fragment_add_and_remove_keeps_one() -> None:
    slide = Slide(title="Intro")
    vm, _ = _make_vm(slide)
    assert vm.add_fragment(slide.id, "  ", "") is None
    added = vm.add_fragment(slide.id)
    assert added is not None
    assert [f.title for f in slide.fragments] == ["Intro", "New text"]
    first = slide.fragments[0]
    assert vm.remove_fragment(slide.id, first.id)
    assert slide.title == "New text"
    assert vm.remove_fragment(slide.id, added.id) is False
    assert vm.update_fragment_text(slide.id, added.id, " ", " ") is False


def test_fragment_position_is_clamped_and_centered() -> None:
    slide = _fragment_slide()
    vm, _ = _make_vm(slide)
    fragment = slide.fragments[1]
    assert vm.set_fragment_position(slide.id, fragment.id, 150.4, -5)
    assert fragment.position == FragmentPosition(100.0, 0.0)
    assert vm.center_fragment(slide.id, fragment.id, vertical=False)
    assert fragment.position == FragmentPosition(50.0, 0.0)
    assert vm.center_fragment(slide.id, fragment.id)
    assert fragment.position == FragmentPosition(50.0, 50.0)
    assert vm.center_fragment(slide.id, fragment.id) is False


def test_intervals_mirror_slides_and_fragments() -> None:
    slide = _fragment_slide()
    vm, _ = _make_vm(slide)
    assert vm.slide_intervals() == [Interval(slide.id, 0.0, 5.0)]
    assert vm.fragment_intervals(slide.id) == [
        Interval(slide.fragments[0].id, 0.0, 0.0),
        Interval(slide.fragments[1].id, 3.0, 2.0),
    ]
    assert vm.fragment_intervals("missing") == []


def test_add_translated_slides_appends_language_variants() -> None:
    a = Slide(title="Hello", body="World", type=SLIDE_TYPE_TITLE_BODY)
    b = _fragment_slide()
    vm, storage = _make_vm(a, b)
    created = vm.add_translated_slides(
        "de",
        [
            TranslationRecord(a.id, "Hallo", "Welt"),
            {"id": b.id, "title": "Einleitung", "body": None},
        ],
    )
    assert [slide.title for slide in created] == ["[German] Hallo", "[German] Einleitung"]
    assert all(slide.language == "de" for slide in created)
    assert created[0].body == "Welt"
    assert created[1].type == SLIDE_TYPE_TITLE_ONLY
    assert len(created[1].fragments) == 1
    assert created[1].fragments[0].title == "[German] Einleitung"
    assert [slide.index for slide in vm.slides] == [0, 1, 2, 3]
    assert len(storage.slides) == 4
    assert a.title == "Hello"


@pytest.mark.parametrize(
    "records",
    [
        [{"id": "missing", "title": "x"}],
        [{"title": "no id"}],
        ["not a record"],
    ],
)
def test_invalid_translation_leaves_slides_untouched(records) -> None:
    a = Slide(title="Hello")
    vm, storage = _make_vm(a)
    records = [TranslationRecord(a.id, "Hallo")] + records
    with pytest.raises(TranslationError):
        vm.add_translated_slides("de", records)
    assert vm.slides == [a]
    assert storage.saves == 0


def test_invalid_body_type_is_rejected() -> None:
    a = Slide(title="Hello")
    vm, _ = _make_vm(a)
    with pytest.raises(TranslationError):
        vm.add_translated_slides("de", [{"id": a.id, "title": "Hallo", "body": 5}])
    with pytest.raises(TranslationError):
        vm.add_translated_slides("xx", [{"id": a.id, "title": "Hallo"}])
    assert vm.slides == [a]


def test_replace_slide_text() -> None:
    slide = _fragment_slide()
    vm, _ = _make_vm(slide)
    assert vm.replace_slide_text([{"id": slide.id, "title": "Einleitung", "body": "Text"}]) == 1
    assert slide.title == "Einleitung"
    assert slide.fragments[0].body == "Text"
    assert vm.translation_records() == [TranslationRecord(slide.id, "Einleitung", "Text")]


def test_unused_text_uses_stored_source() -> None:
    vm, _ = _make_vm(Slide(title="Talk"), source_text="Talk\n\nleft over")
    assert vm.unused_text() == "left over"


def test_select_slide_notifies_only_on_change() -> None:
    a, b = Slide(title="A"), Slide(title="B")
    vm, _ = _make_vm(a, b)
    calls: list[int] = []
    listener = lambda: calls.append(1)  # noqa: E731
    vm.add_listener(listener)
    assert vm.select_slide_by_id(b.id) is b
    assert vm.select_slide(1) is b
    assert vm.select_slide(7) is None
    vm.remove_listener(listener)
    vm.select_slide(0)
    assert calls == [1]
