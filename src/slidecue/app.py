from __future__ import annotations

import logging
import os
import sys

from PySide6.QtWidgets import QApplication

from slidecue.views.editor_window import EditorWindow


def configure_logging() -> None:
    log_level = os.environ.get("PYTHONLOGLEVEL", "INFO").upper()
    resolved_level = getattr(logging, log_level, logging.INFO)
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=resolved_level,
            format="%(asctime)s [%(levelname)s] %(name)s – %(message)s",
        )
    else:
        root_logger.setLevel(resolved_level)


def main() -> None:
    """Launch the SlideCue editor window."""
    app = QApplication.instance()
    owns_event_loop = app is None
    if owns_event_loop:
        app = QApplication(sys.argv)
        app.setApplicationName("SlideCue")
        app.setOrganizationName("SlideCue")
        configure_logging()

    window = EditorWindow()
    window.show()

    if owns_event_loop:
        assert app is not None
        sys.exit(app.exec())
