from __future__ import annotations

import os
import pytest
from PySide6.QtWidgets import QApplication

# Ensure headless platform for CI/dev
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(scope="session")
def qt_app() -> QApplication:
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app
    # Do not quit the global app to avoid PySide warnings between tests


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch, tmp_path):
    """Keep translation settings and dotenv lookups away from the developer's machine."""
    for name in ("SLIDECUE_TRANSLATION_API_KEY", "SLIDECUE_TRANSLATION_URL", "SLIDECUE_TRANSLATION_MODEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
