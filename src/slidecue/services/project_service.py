from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

from PySide6.QtCore import QStandardPaths

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[3]
APP_DIR_NAME = "SlideCue"
DEFAULT_PROJECT_ID = "default"


def _default_appdata_dir() -> Path:
    """Resolve a writable base directory for project data."""
    location = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.AppDataLocation)
    if location:
        return Path(location)
    # headless environments without a resolvable app data location
    return PROJECT_ROOT / ".appdata"


def _safe_project_id(value: str) -> str:
    value = re.sub(r"[^A-Za-z0-9_-]+", "-", value.strip()).strip("-")
    return value or DEFAULT_PROJECT_ID


class ProjectStorageService:
    """Reads and writes ``project.json`` for one project directory."""

    def __init__(self, project_id: str | None = None, base_dir: Path | None = None) -> None:
        self._base_dir = Path(base_dir) if base_dir else _default_appdata_dir() / APP_DIR_NAME
        self._project_id = _safe_project_id(project_id or DEFAULT_PROJECT_ID)
        self._project_payload: dict[str, Any] | None = None

    # ------------------------------------------------------------------ #
    # Paths
    # ------------------------------------------------------------------ #
    @property
    def project_id(self) -> str:
        return self._project_id

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    @property
    def projects_root(self) -> Path:
        return self._base_dir / "projects"

    @property
    def project_dir(self) -> Path:
        return self.projects_root / self._project_id

    @property
    def project_file(self) -> Path:
        return self.project_dir / "project.json"

    def list_projects(self) -> list[str]:
        root = self.projects_root
        if not root.exists():
            return []
        return sorted(entry.name for entry in root.iterdir() if (entry / "project.json").exists())

    # ------------------------------------------------------------------ #
    # Project payload
    # ------------------------------------------------------------------ #
    def load_project(self) -> dict[str, Any]:
        if self._project_payload is None:
            self._project_payload = self._read_project()
        return self._project_payload

    def save_project(self, payload: dict[str, Any] | None = None) -> None:
        if payload is not None:
            self._project_payload = payload
        if self._project_payload is None:
            return
        self.project_dir.mkdir(parents=True, exist_ok=True)
        tmp = self.project_file.with_suffix(".tmp")
        tmp.write_text(json.dumps(self._project_payload, indent=2, ensure_ascii=False), encoding="utf-8")
        tmp.replace(self.project_file)

    def meta(self) -> dict[str, Any]:
        project = self.load_project()
        meta = project.get("meta")
        if not isinstance(meta, dict):
            meta = {}
            project["meta"] = meta
        return meta

    def set_meta_value(self, key: str, value: Any) -> None:
        meta = self.meta()
        if meta.get(key) == value:
            return
        meta[key] = value
        self.save_project()

    def _read_project(self) -> dict[str, Any]:
        path = self.project_file
        if path.exists():
            try:
                payload = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError):
                logger.warning("Unreadable project file %s, starting empty", path, exc_info=True)
            else:
                if isinstance(payload, dict):
                    return payload
        return {
            "id": self._project_id,
            "name": "Untitled Project",
            "meta": {},
            "slides": [],
        }
