from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Protocol

import keyring
from keyring.errors import KeyringError, PasswordDeleteError


class _KeyringLike(Protocol):
    def get_password(self, service_name: str, username: str) -> str | None: ...

    def set_password(self, service_name: str, username: str, password: str) -> None: ...

    def delete_password(self, service_name: str, username: str) -> None: ...


def mask_key(token: str | None) -> str:
    if not token:
        return "none"
    if len(token) <= 4:
        return f"...{token}"
    return f"...{token[-4:]}"


@dataclass
class ApiKeyStore:
    """Keeps an API key in the OS keyring and mirrors it into an env var when the keyring fails."""

    service_name: str
    username: str
    env_var: str | None = None
    backend: _KeyringLike = field(default=keyring)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("slidecue.auth"))

    def load(self) -> str | None:
        try:
            stored = self.backend.get_password(self.service_name, self.username)
        except KeyringError as exc:
            self.logger.warning("Keyring read failed: %s", exc)
            stored = None
        if stored and stored.strip():
            return stored.strip()
        if self.env_var:
            return os.environ.get(self.env_var, "").strip() or None
        return None

    def save(self, token: str) -> bool:
        normalized = token.strip()
        if not normalized:
            self.clear()
            return False
        try:
            self.backend.set_password(self.service_name, self.username, normalized)
        except KeyringError as exc:
            self.logger.warning("Keyring write failed for %s: %s", mask_key(normalized), exc)
            if not self.env_var:
                return False
            os.environ[self.env_var] = normalized
            return True
        if self.env_var:
            os.environ.pop(self.env_var, None)
        return True

    def clear(self) -> None:
        try:
            self.backend.delete_password(self.service_name, self.username)
        except PasswordDeleteError:
            pass
        except KeyringError as exc:
            self.logger.warning("Keyring delete failed: %s", exc)
        if self.env_var:
            os.environ.pop(self.env_var, None)
