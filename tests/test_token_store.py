from __future__ import annotations

import os

from keyring.errors import KeyringError, PasswordDeleteError

from slidecue.services.token_store import ApiKeyStore, mask_key

ENV_VAR = "TEST_SLIDECUE_TRANSLATION_KEY"


class _FakeKeyring:
    def __init__(self) -> None:
        self.storage: dict[tuple[str, str], str] = {}
        self.fail = False

    def get_password(self, service_name: str, username: str) -> str | None:
        if self.fail:
            raise KeyringError("read-fail")
        return self.storage.get((service_name, username))

    def set_password(self, service_name: str, username: str, password: str) -> None:
        if self.fail:
            raise KeyringError("write-fail")
        self.storage[(service_name, username)] = password

    def delete_password(self, service_name: str, username: str) -> None:
        if (service_name, username) not in self.storage:
            raise PasswordDeleteError("missing")
        del self.storage[(service_name, username)]


def test_store_and_load_from_keyring(monkeypatch) -> None:
    monkeypatch.delenv(ENV_VAR, raising=False)
    fake = _FakeKeyring()
    store = ApiKeyStore("slidecue", "translation", env_var=ENV_VAR, backend=fake)

    assert store.load() is None
    assert store.save(" secret ")
    assert fake.storage == {("slidecue", "translation"): "secret"}
    assert os.environ.get(ENV_VAR) is None
    assert store.load() == "secret"

    store.clear()
    assert store.load() is None
    store.clear()


def test_env_var_is_used_when_keyring_is_empty(monkeypatch) -> None:
    monkeypatch.setenv(ENV_VAR, " from-env ")
    store = ApiKeyStore("slidecue", "translation", env_var=ENV_VAR, backend=_FakeKeyring())
    assert store.load() == "from-env"


def test_store_falls_back_to_env_when_keyring_unavailable(monkeypatch) -> None:
    monkeypatch.delenv(ENV_VAR, raising=False)
    fake = _FakeKeyring()
    fake.fail = True
    store = ApiKeyStore("slidecue", "translation", env_var=ENV_VAR, backend=fake)

    assert store.save("fallback")
    assert os.environ[ENV_VAR] == "fallback"
    assert store.load() == "fallback"

    store.clear()
    assert ENV_VAR not in os.environ


def test_save_without_env_fallback_reports_failure() -> None:
    fake = _FakeKeyring()
    fake.fail = True
    store = ApiKeyStore("slidecue", "translation", backend=fake)
    assert store.save("token") is False
    assert store.load() is None


def test_blank_token_clears_store(monkeypatch) -> None:
    monkeypatch.delenv(ENV_VAR, raising=False)
    fake = _FakeKeyring()
    store = ApiKeyStore("slidecue", "translation", env_var=ENV_VAR, backend=fake)
    store.save("secret")
    assert store.save("   ") is False
    assert fake.storage == {}


def test_mask_key() -> None:
    assert mask_key(None) == "none"
    assert mask_key("abc") == "...abc"
    assert mask_key("sk-123456789") == "...6789"
