from __future__ import annotations

import logging

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QCheckBox,
    QFrame,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QScrollArea,
    QSplitter,
    QVBoxLayout,
    QWidget,
)

from slidecue.models.slide import Slide
from slidecue.models.timeline import Interval
from slidecue.services.project_service import ProjectStorageService
from slidecue.services.storage import SlideStorage
from slidecue.services.translation_service import (
    TranslationError,
    TranslationResult,
    TranslationService,
    language_name,
)
from slidecue.ui.constants import (
    LANGUAGE_CHOICES,
    SLIDE_TIMELINE_MAX_HEIGHT,
    WINDOW_MIN_HEIGHT,
    WINDOW_MIN_WIDTH,
)
from slidecue.viewmodels.editor import EditorViewModel
from slidecue.views.widgets.slide_item_widget import SlideListItemWidget
from slidecue.views.widgets.timeline_canvas import FragmentTimelineCanvas, SlidesTimelineCanvas

logger = logging.getLogger(__name__)


class EditorWindow(QMainWindow):
    """Main editing surface: source text, slide list, timelines and translation."""

    def __init__(
        self,
        *,
        project_service: ProjectStorageService | None = None,
        translation_service: TranslationService | None = None,
    ) -> None:
        super().__init__()
        self.setWindowTitle("SlideCue")
        self.setMinimumSize(WINDOW_MIN_WIDTH, WINDOW_MIN_HEIGHT)
        self._project_service = project_service or ProjectStorageService()
        self._storage = SlideStorage(self._project_service)
        self._viewmodel = EditorViewModel(self._storage)
        self._viewmodel.add_listener(self._on_viewmodel_changed)
        self._translation_service = translation_service or TranslationService()
        self._translation_service.translation_started.connect(self._handle_translation_started)
        self._translation_service.translation_finished.connect(self._handle_translation_finished)
        self._translation_service.translation_failed.connect(self._handle_translation_failed)
        self._translated_unused: dict[str, str] = {}
        self._syncing = False
        self._current_fragment_id: str | None = None
        self._language_boxes: dict[str, QCheckBox] = {}

        self._source_edit: QPlainTextEdit | None = None
        self._unused_edit: QPlainTextEdit | None = None
        self._slide_list: QListWidget | None = None
        self._title_edit: QLineEdit | None = None
        self._body_edit: QPlainTextEdit | None = None
        self._fragment_list: QListWidget | None = None
        self._fragment_title_edit: QLineEdit | None = None
        self._fragment_body_edit: QLineEdit | None = None
        self._fragments_toggle: QPushButton | None = None
        self._translate_button: QPushButton | None = None
        self._slides_canvas: SlidesTimelineCanvas | None = None
        self._fragment_canvas: FragmentTimelineCanvas | None = None

        self._setup_ui()
        if self._source_edit is not None:
            self._source_edit.setPlainText(self._viewmodel.source_text)
        self._refresh_all()

    @property
    def viewmodel(self) -> EditorViewModel:
        return self._viewmodel

    # ------------------------------------------------------------------ #
    # Construction
    # ------------------------------------------------------------------ #
    def _setup_ui(self) -> None:
        central = QWidget(self)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(8, 8, 8, 8)
        layout.setSpacing(8)

        splitter = QSplitter(Qt.Orientation.Horizontal, central)
        splitter.setObjectName("ContentSplitter")
        splitter.setChildrenCollapsible(False)
        splitter.addWidget(self._build_source_panel(splitter))
        splitter.addWidget(self._build_slide_panel(splitter))
        splitter.addWidget(self._build_detail_panel(splitter))
        splitter.setSizes([320, 320, 460])
        layout.addWidget(splitter, 1)

        slides_canvas = SlidesTimelineCanvas()
        slides_canvas.intervalSelected.connect(self._handle_slide_interval_selected)
        slides_canvas.intervalCommitted.connect(self._handle_slide_interval_committed)
        self._slides_canvas = slides_canvas
        scroll = QScrollArea(central)
        scroll.setObjectName("SlidesTimelineScroll")
        scroll.setWidget(slides_canvas)
        scroll.setWidgetResizable(True)
        scroll.setMaximumHeight(SLIDE_TIMELINE_MAX_HEIGHT)
        layout.addWidget(scroll)

        self.setCentralWidget(central)

    def _build_source_panel(self, parent: QWidget) -> QWidget:
        panel = QFrame(parent)
        panel.setObjectName("SourceTextView")
        layout = QVBoxLayout(panel)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(6)

        layout.addWidget(QLabel("Text", panel))
        source_edit = QPlainTextEdit(panel)
        source_edit.setObjectName("SourceTextEdit")
        source_edit.setPlaceholderText("Paste your text here. Blank lines are ignored.")
        layout.addWidget(source_edit, 2)
        self._source_edit = source_edit

        create_button = QPushButton("Create slides", panel)
        create_button.setObjectName("CreateSlidesButton")
        create_button.clicked.connect(self._handle_create_slides)
        layout.addWidget(create_button)

        layout.addWidget(QLabel("Unused text", panel))
        unused_edit = QPlainTextEdit(panel)
        unused_edit.setObjectName("UnusedTextView")
        unused_edit.setReadOnly(True)
        layout.addWidget(unused_edit, 1)
        self._unused_edit = unused_edit

        languages = QFrame(panel)
        languages.setObjectName("TranslationLanguages")
        languages_layout = QHBoxLayout(languages)
        languages_layout.setContentsMargins(0, 0, 0, 0)
        languages_layout.setSpacing(4)
        for code, name in LANGUAGE_CHOICES:
            box = QCheckBox(code.upper(), languages)
            box.setObjectName(f"TranslateLanguage_{code}")
            box.setToolTip(name)
            languages_layout.addWidget(box)
            self._language_boxes[code] = box
        languages_layout.addStretch(1)
        layout.addWidget(languages)

        translate_button = QPushButton("Translate", panel)
        translate_button.setObjectName("TranslateButton")
        translate_button.clicked.connect(self._handle_translate_clicked)
        layout.addWidget(translate_button)
        self._translate_button = translate_button
        return panel

    def _build_slide_panel(self, parent: QWidget) -> QWidget:
        panel = QFrame(parent)
        panel.setObjectName("SlideExplorerView")
        layout = QVBoxLayout(panel)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(6)

        slide_list = QListWidget(panel)
        slide_list.setObjectName("SlideExplorerList")
        slide_list.setSpacing(4)
        slide_list.currentRowChanged.connect(self._handle_slide_row_changed)
        layout.addWidget(slide_list, 1)
        self._slide_list = slide_list

        crud = QHBoxLayout()
        crud.setSpacing(4)
        for label, name, handler in (
            ("Add", "SlideAddButton", self._handle_add_slide),
            ("Duplicate", "SlideDuplicateButton", self._handle_duplicate_slide),
            ("Delete", "SlideDeleteButton", self._handle_delete_slide),
        ):
            button = QPushButton(label, panel)
            button.setObjectName(name)
            button.clicked.connect(handler)
            crud.addWidget(button)
        layout.addLayout(crud)
        return panel

    def _build_detail_panel(self, parent: QWidget) -> QWidget:
        panel = QFrame(parent)
        panel.setObjectName("SlideDetailView")
        layout = QVBoxLayout(panel)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(6)

        title_edit = QLineEdit(panel)
        title_edit.setObjectName("SlideTitleEdit")
        title_edit.setPlaceholderText("Title")
        title_edit.editingFinished.connect(self._handle_slide_text_edited)
        layout.addWidget(title_edit)
        self._title_edit = title_edit

        body_edit = QPlainTextEdit(panel)
        body_edit.setObjectName("SlideBodyEdit")
        body_edit.setPlaceholderText("Body")
        body_edit.setMaximumHeight(120)
        body_edit.textChanged.connect(self._handle_slide_text_edited)
        layout.addWidget(body_edit)
        self._body_edit = body_edit

        toggle = QPushButton("Split into texts", panel)
        toggle.setObjectName("FragmentsToggleButton")
        toggle.clicked.connect(self._handle_toggle_fragments)
        layout.addWidget(toggle)
        self._fragments_toggle = toggle

        fragment_canvas = FragmentTimelineCanvas(panel)
        fragment_canvas.intervalSelected.connect(self._handle_fragment_selected)
        fragment_canvas.intervalCommitted.connect(self._handle_fragment_interval_committed)
        layout.addWidget(fragment_canvas)
        self._fragment_canvas = fragment_canvas

        fragment_list = QListWidget(panel)
        fragment_list.setObjectName("FragmentList")
        fragment_list.currentItemChanged.connect(self._handle_fragment_item_changed)
        layout.addWidget(fragment_list, 1)
        self._fragment_list = fragment_list

        fragment_title = QLineEdit(panel)
        fragment_title.setObjectName("FragmentTitleEdit")
        fragment_title.setPlaceholderText("Text title")
        fragment_title.editingFinished.connect(self._handle_fragment_text_edited)
        layout.addWidget(fragment_title)
        self._fragment_title_edit = fragment_title

        fragment_body = QLineEdit(panel)
        fragment_body.setObjectName("FragmentBodyEdit")
        fragment_body.setPlaceholderText("Text body")
        fragment_body.editingFinished.connect(self._handle_fragment_text_edited)
        layout.addWidget(fragment_body)
        self._fragment_body_edit = fragment_body

        buttons = QHBoxLayout()
        buttons.setSpacing(4)
        for label, name, handler in (
            ("Add text", "FragmentAddButton", self._handle_add_fragment),
            ("Remove text", "FragmentRemoveButton", self._handle_remove_fragment),
            ("Center", "FragmentCenterButton", self._handle_center_fragment),
        ):
            button = QPushButton(label, panel)
            button.setObjectName(name)
            button.clicked.connect(handler)
            buttons.addWidget(button)
        layout.addLayout(buttons)
        return panel

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #
    def _on_viewmodel_changed(self) -> None:
        self._refresh_all()

    def _refresh_all(self) -> None:
        self._syncing = True
        try:
            self._populate_slide_list()
            self._refresh_detail()
            self._refresh_unused_text()
            if self._slides_canvas is not None:
                self._slides_canvas.set_slides(self._viewmodel.slides)
                current = self._viewmodel.current_slide
                self._slides_canvas.set_selected(current.id if current else None)
        finally:
            self._syncing = False

    def _populate_slide_list(self) -> None:
        list_view = self._slide_list
        if list_view is None:
            return
        slides = self._viewmodel.slides
        previous_block = list_view.blockSignals(True)
        list_view.clear()
        for row, slide in enumerate(slides):
            widget = SlideListItemWidget(slide, self)
            widget.moveRequested.connect(self._move_slide)
            widget.set_move_enabled(row > 0, row < len(slides) - 1)
            list_item = QListWidgetItem()
            list_item.setSizeHint(widget.sizeHint())
            list_item.setData(Qt.ItemDataRole.UserRole, slide.id)
            list_view.addItem(list_item)
            list_view.setItemWidget(list_item, widget)
        list_view.setCurrentRow(self._viewmodel.current_index)
        list_view.blockSignals(previous_block)

    def _refresh_detail(self) -> None:
        slide = self._viewmodel.current_slide
        if self._title_edit is not None and self._title_edit.text().strip() != (slide.title if slide else ""):
            self._title_edit.setText(slide.title if slide else "")
        if self._body_edit is not None:
            body = (slide.body or "") if slide else ""
            # typed trailing whitespace is stripped on save; keep the cursor where it is
            if self._body_edit.toPlainText().strip() != body:
                self._body_edit.setPlainText(body)
        if self._fragments_toggle is not None:
            self._fragments_toggle.setEnabled(slide is not None)
            self._fragments_toggle.setText(
                "Merge texts" if slide is not None and slide.uses_fragments else "Split into texts"
            )
        if self._fragment_canvas is not None:
            self._fragment_canvas.set_slide(slide if slide is not None and slide.uses_fragments else None)
        self._populate_fragment_list(slide)

    def _populate_fragment_list(self, slide: Slide | None) -> None:
        list_view = self._fragment_list
        if list_view is None:
            return
        fragments = slide.fragments if slide is not None else []
        if self._current_fragment_id and not any(f.id == self._current_fragment_id for f in fragments):
            self._current_fragment_id = None
        if self._current_fragment_id is None and fragments:
            self._current_fragment_id = fragments[0].id
        previous_block = list_view.blockSignals(True)
        list_view.clear()
        for fragment in fragments:
            item = QListWidgetItem(
                f"{fragment.title or fragment.body}  "
                f"({fragment.delay_sec:g}s, {'open' if fragment.is_open_ended else f'{fragment.duration_sec:g}s'})"
            )
            item.setData(Qt.ItemDataRole.UserRole, fragment.id)
            list_view.addItem(item)
            if fragment.id == self._current_fragment_id:
                list_view.setCurrentItem(item)
        list_view.blockSignals(previous_block)
        if self._fragment_canvas is not None:
            self._fragment_canvas.set_selected(self._current_fragment_id)
        self._refresh_fragment_editor()

    def _refresh_fragment_editor(self) -> None:
        slide = self._viewmodel.current_slide
        fragment = slide.find_fragment(self._current_fragment_id) if slide and self._current_fragment_id else None
        for edit, value in (
            (self._fragment_title_edit, fragment.title if fragment else ""),
            (self._fragment_body_edit, fragment.body if fragment else ""),
        ):
            if edit is None:
                continue
            edit.setEnabled(fragment is not None)
            if edit.text() != value:
                edit.setText(value)

    def _refresh_unused_text(self) -> None:
        if self._unused_edit is None:
            return
        sections = [self._viewmodel.unused_text()]
        for code, text in self._translated_unused.items():
            sections.append(f"[{language_name(code)}]\n{text}")
        content = "\n\n".join(section for section in sections if section)
        if self._unused_edit.toPlainText() != content:
            self._unused_edit.setPlainText(content)

    # ------------------------------------------------------------------ #
    # Slide handlers
    # ------------------------------------------------------------------ #
    def _handle_create_slides(self) -> None:
        if self._source_edit is None:
            return
        text = self._source_edit.toPlainText()
        if not text.strip():
            QMessageBox.information(self, "SlideCue", "Enter some text first.")
            return
        self._translated_unused.clear()
        slides = self._viewmodel.create_slides_from_text(text)
        self.statusBar().showMessage(f"Created {len(slides)} slides", 4000)

    def _handle_slide_row_changed(self, row: int) -> None:
        if self._syncing or row < 0:
            return
        self._viewmodel.select_slide(row)

    def _handle_slide_interval_selected(self, slide_id: str) -> None:
        self._viewmodel.select_slide_by_id(slide_id)

    def _handle_slide_interval_committed(self, interval: Interval) -> None:
        self._viewmodel.apply_slide_interval(interval)

    def _handle_slide_text_edited(self) -> None:
        slide = self._viewmodel.current_slide
        if self._syncing or slide is None or self._title_edit is None or self._body_edit is None:
            return
        title = self._title_edit.text().strip()
        if not title:
            return
        self._viewmodel.update_slide_text(slide.id, title, self._body_edit.toPlainText())

    def _handle_add_slide(self) -> None:
        self._viewmodel.add_slide()

    def _handle_duplicate_slide(self) -> None:
        slide = self._viewmodel.current_slide
        if slide is not None:
            self._viewmodel.duplicate_slide(slide.id)

    def _handle_delete_slide(self) -> None:
        slide = self._viewmodel.current_slide
        if slide is None:
            return
        answer = QMessageBox.question(self, "SlideCue", f"Delete slide “{slide.title}”?")
        if answer == QMessageBox.StandardButton.Yes:
            self._viewmodel.delete_slide(slide.id)

    def _move_slide(self, slide: Slide, offset: int) -> None:
        self._viewmodel.move_slide(slide.id, offset)

    # ------------------------------------------------------------------ #
    # Fragment handlers
    # ------------------------------------------------------------------ #
    def _handle_toggle_fragments(self) -> None:
        slide = self._viewmodel.current_slide
        if slide is None:
            return
        if slide.uses_fragments:
            self._viewmodel.collapse_fragments(slide.id)
        else:
            self._viewmodel.split_into_fragments(slide.id)

    def _handle_fragment_selected(self, fragment_id: str) -> None:
        self._current_fragment_id = fragment_id
        self._populate_fragment_list(self._viewmodel.current_slide)

    def _handle_fragment_item_changed(self, current: QListWidgetItem | None, _previous=None) -> None:
        if current is None:
            return
        self._current_fragment_id = current.data(Qt.ItemDataRole.UserRole)
        if self._fragment_canvas is not None:
            self._fragment_canvas.set_selected(self._current_fragment_id)
        self._refresh_fragment_editor()

    def _handle_fragment_interval_committed(self, interval: Interval) -> None:
        if self._fragment_canvas is None or self._fragment_canvas.slide_id is None:
            return
        self._viewmodel.apply_fragment_interval(self._fragment_canvas.slide_id, interval)

    def _handle_fragment_text_edited(self) -> None:
        slide = self._viewmodel.current_slide
        if self._syncing or slide is None or self._current_fragment_id is None:
            return
        if self._fragment_title_edit is None or self._fragment_body_edit is None:
            return
        self._viewmodel.update_fragment_text(
            slide.id,
            self._current_fragment_id,
            self._fragment_title_edit.text(),
            self._fragment_body_edit.text(),
        )

    def _handle_add_fragment(self) -> None:
        slide = self._viewmodel.current_slide
        if slide is None:
            return
        fragment = self._viewmodel.add_fragment(slide.id)
        if fragment is not None:
            self._current_fragment_id = fragment.id
            self._populate_fragment_list(slide)

    def _handle_remove_fragment(self) -> None:
        slide = self._viewmodel.current_slide
        if slide is None or self._current_fragment_id is None:
            return
        if not self._viewmodel.remove_fragment(slide.id, self._current_fragment_id):
            self.statusBar().showMessage("A slide keeps at least one text.", 4000)

    def _handle_center_fragment(self) -> None:
        slide = self._viewmodel.current_slide
        if slide is not None and self._current_fragment_id is not None:
            self._viewmodel.center_fragment(slide.id, self._current_fragment_id)

    # ------------------------------------------------------------------ #
    # Translation
    # ------------------------------------------------------------------ #
    def selected_languages(self) -> list[str]:
        return [code for code, box in self._language_boxes.items() if box.isChecked()]

    def _handle_translate_clicked(self) -> None:
        languages = self.selected_languages()
        if not languages:
            QMessageBox.information(self, "Translation", "Select at least one language.")
            return
        if not self._viewmodel.slides:
            QMessageBox.information(self, "Translation", "Create slides first.")
            return
        if not self._translation_service.has_api_key():
            token, accepted = QInputDialog.getText(
                self,
                "Translation",
                "API key:",
                QLineEdit.EchoMode.Password,
            )
            if not accepted or not self._translation_service.set_api_key(token):
                return
        started = self._translation_service.translate_async(
            self._viewmodel.translation_records(),
            languages,
            unused_text=self._viewmodel.unused_text(),
        )
        if not started:
            self.statusBar().showMessage("A translation is already running.", 4000)

    def _handle_translation_started(self, languages: list) -> None:
        if self._translate_button is not None:
            self._translate_button.setEnabled(False)
        names = ", ".join(language_name(code) for code in languages)
        self.statusBar().showMessage(f"Translating to {names} …")

    def _handle_translation_finished(self, result: TranslationResult) -> None:
        if self._translate_button is not None:
            self._translate_button.setEnabled(True)
        created = 0
        for code, records in result.slides.items():
            try:
                created += len(self._viewmodel.add_translated_slides(code, records))
            except TranslationError as exc:
                logger.warning("Discarded %s translation: %s", code, exc)
                QMessageBox.warning(self, "Translation", str(exc))
        self._translated_unused.update(result.unused_text)
        self._refresh_unused_text()
        self.statusBar().showMessage(f"Added {created} translated slides", 4000)

    def _handle_translation_failed(self, message: str) -> None:
        if self._translate_button is not None:
            self._translate_button.setEnabled(True)
        self.statusBar().clearMessage()
        QMessageBox.warning(self, "Translation", message)
