from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from dotenv import find_dotenv, load_dotenv
from PySide6.QtCore import QObject, Signal

from slidecue.models.slide import Slide
from slidecue.services.token_store import ApiKeyStore, mask_key

logger = logging.getLogger(__name__)

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "de": "German",
    "pl": "Polish",
    "es": "Spanish",
    "fr": "French",
    "it": "Italian",
    "pt": "Portuguese",
    "uk": "Ukrainian",
    "zh": "Chinese",
    "ja": "Japanese",
}

API_KEY_ENV = "SLIDECUE_TRANSLATION_API_KEY"
ENDPOINT_ENV = "SLIDECUE_TRANSLATION_URL"
MODEL_ENV = "SLIDECUE_TRANSLATION_MODEL"
DEFAULT_ENDPOINT = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODEL = "gpt-4o-mini"

SYSTEM_PROMPT = (
    "You are a professional translator. Preserve the exact meaning, tone, and style of the "
    "original text. Return only the translated text with no labels or metadata."
)


class TranslationError(RuntimeError):
    """Translation request failed or returned records that cannot be applied."""


@dataclass(slots=True)
class TranslationRecord:
    id: str
    title: str
    body: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "body": self.body}

    @classmethod
    def from_dict(cls, data: Any) -> "TranslationRecord":
        if not isinstance(data, dict):
            raise TranslationError("Translation record must be an object.")
        record_id = data.get("id")
        title = data.get("title")
        body = data.get("body")
        if not isinstance(record_id, str) or not record_id:
            raise TranslationError("Translation record without id.")
        if not isinstance(title, str):
            raise TranslationError(f"Translated title for {record_id} is not a string.")
        if body is not None and not isinstance(body, str):
            raise TranslationError(f"Translated body for {record_id} is not a string.")
        return cls(record_id, title, body)


@dataclass(slots=True)
class TranslationResult:
    slides: dict[str, list[TranslationRecord]] = field(default_factory=dict)
    unused_text: dict[str, str] = field(default_factory=dict)


def records_from_slides(slides: Iterable[Slide]) -> list[TranslationRecord]:
    return [TranslationRecord(slide.id, slide.title, slide.body) for slide in slides]


def language_name(code: str) -> str:
    try:
        return LANGUAGE_NAMES[code]
    except KeyError:
        raise ValueError(f"Unsupported language: {code}") from None


def split_translation(text: str, has_body: bool) -> tuple[str, str | None]:
    """Split a two-part answer at its first line break into title and body."""
    text = text.strip()
    if not has_body:
        return text, None
    title, sep, body = text.partition("\n")
    if not sep or not title.strip():
        return text, None
    return title.strip(), body.strip() or None


def build_prompt(record: TranslationRecord, language: str) -> str:
    if record.body and record.body.strip():
        return (
            f"Translate this two-part text to {language}. First part is a title, second part is body text.\n\n"
            f"Title:\n{record.title}\n\n"
            f"Body:\n{record.body}\n\n"
            "Return the translation in exactly this format:\n"
            "[translated title]\n"
            "[translated body]\n\n"
            "Do not add labels, markers, or extra formatting."
        )
    return f"Translate this title to {language}:\n\n{record.title}\n\nReturn only the translated title, nothing else."


class ChatTranslationClient:
    """Minimal chat-completions client used to translate slide records."""

    def __init__(
        self,
        api_key: str,
        *,
        endpoint: str | None = None,
        model: str | None = None,
        opener: Callable[..., Any] = urlopen,
        timeout: float = 60.0,
    ) -> None:
        self._api_key = api_key
        self._endpoint = endpoint or os.environ.get(ENDPOINT_ENV, "").strip() or DEFAULT_ENDPOINT
        self._model = model or os.environ.get(MODEL_ENV, "").strip() or DEFAULT_MODEL
        self._opener = opener
        self._timeout = timeout

    def translate_record(self, record: TranslationRecord, language_code: str) -> TranslationRecord:
        language = language_name(language_code)
        has_body = bool(record.body and record.body.strip())
        content = self.complete(build_prompt(record, language))
        title, body = split_translation(content, has_body)
        return TranslationRecord(record.id, title, body)

    def translate_text(self, text: str, language_code: str) -> str:
        language = language_name(language_code)
        prompt = f"Translate the following text to {language}. Keep the same structure and formatting.\n\n{text}"
        return self.complete(prompt).strip()

    def complete(self, prompt: str) -> str:
        payload = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        }
        request = Request(
            self._endpoint,
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
        )
        request.add_header("Content-Type", "application/json")
        request.add_header("Authorization", f"Bearer {self._api_key}")
        logger.debug(
            "Translation request: %s model=%s (key=%s)",
            self._endpoint,
            self._model,
            mask_key(self._api_key),
        )
        try:
            with self._opener(request, timeout=self._timeout) as response:  # nosec - configured endpoint
                raw = response.read()
        except HTTPError as err:
            logger.error("Translation HTTP error %s", err.code, exc_info=True)
            if err.code == 429:
                raise TranslationError("Rate limit exceeded. Please try again later.") from err
            if err.code == 402:
                raise TranslationError("Payment required. Please add credits to your account.") from err
            raise TranslationError(f"Translation failed ({err.code}).") from err
        except URLError as err:
            logger.error("Translation URL error", exc_info=True)
            raise TranslationError("Translation service is not reachable.") from err
        try:
            data = json.loads((raw or b"{}").decode("utf-8", errors="ignore"))
            content = data["choices"][0]["message"]["content"]
        except (json.JSONDecodeError, KeyError, IndexError, TypeError) as err:
            raise TranslationError("Translation service returned an unexpected payload.") from err
        if not isinstance(content, str):
            raise TranslationError("Translation service returned no text.")
        return content.strip()


class TranslationService(QObject):
    """Runs slide translations on a worker thread and reports through Qt signals."""

    translation_started = Signal(list)
    translation_finished = Signal(object)  # TranslationResult
    translation_failed = Signal(str)

    def __init__(
        self,
        *,
        key_store: ApiKeyStore | None = None,
        client_factory: Callable[[str], ChatTranslationClient] | None = None,
    ) -> None:
        super().__init__()
        self._load_env()
        self._key_store = key_store or ApiKeyStore("slidecue", "translation", env_var=API_KEY_ENV)
        self._client_factory = client_factory or ChatTranslationClient
        self._lock = threading.Lock()
        self._active_thread: threading.Thread | None = None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    def has_api_key(self) -> bool:
        return bool(self._key_store.load())

    def set_api_key(self, token: str) -> bool:
        return self._key_store.save(token)

    def is_busy(self) -> bool:
        thread = self._active_thread
        return bool(thread and thread.is_alive())

    def translate(
        self,
        records: list[TranslationRecord],
        languages: list[str],
        *,
        unused_text: str = "",
    ) -> TranslationResult:
        if not records:
            raise TranslationError("No slides to translate.")
        if not languages:
            raise TranslationError("Select at least one language.")
        for code in languages:
            if code not in LANGUAGE_NAMES:
                raise TranslationError(f"Unsupported language: {code}")
        api_key = self._key_store.load()
        if not api_key:
            raise TranslationError("No translation API key configured.")
        client = self._client_factory(api_key)
        result = TranslationResult()
        for code in languages:
            if unused_text.strip():
                result.unused_text[code] = client.translate_text(unused_text, code)
            result.slides[code] = [client.translate_record(record, code) for record in records]
            logger.info("Translated %d slides to %s", len(records), code)
        return result

    def translate_async(
        self,
        records: list[TranslationRecord],
        languages: list[str],
        *,
        unused_text: str = "",
    ) -> bool:
        with self._lock:
            thread = self._active_thread
            if thread and thread.is_alive():
                return False
            worker = threading.Thread(
                target=self._translate_worker,
                args=(list(records), list(languages), unused_text),
                daemon=True,
            )
            self._active_thread = worker
        self.translation_started.emit(list(languages))
        worker.start()
        return True

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _translate_worker(self, records: list[TranslationRecord], languages: list[str], unused_text: str) -> None:
        try:
            result = self.translate(records, languages, unused_text=unused_text)
        except TranslationError as exc:
            self.translation_failed.emit(str(exc))
        else:
            self.translation_finished.emit(result)
        finally:
            with self._lock:
                self._active_thread = None

    @staticmethod
    def _load_env() -> None:
        dotenv_path = find_dotenv(usecwd=True)
        if dotenv_path:
            load_dotenv(dotenv_path, override=False)
