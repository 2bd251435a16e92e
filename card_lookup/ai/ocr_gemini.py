"""Card-name recognizer backed by the Gemini generateContent API.

One POST per recognition: a fixed instruction plus the base64 PNG. The API key
is passed as the `key` query parameter and is never logged. Blocking HTTP runs
in a worker thread so the caller's event loop is not held during the request.

Uses a persistent requests.Session with connection pooling.
"""

import asyncio
import logging

import requests

from card_lookup.ai.ocr_base import BaseTextRecognizer, clean_recognized_text
from card_lookup.ai.schema import ModelCard
from card_lookup.core.errors import InvalidCredential, RateLimited, ServiceError

_log = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash-lite"
DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models"
CARD_NAME_PROMPT = (
    "Extract Magic: The Gathering card names visible in this image. "
    "Return ONLY the single card name closest to center. If none visible, respond NONE."
)


def build_request_body(image_b64: str) -> dict:
    return {
        "contents": [
            {
                "parts": [
                    {"text": CARD_NAME_PROMPT},
                    {"inline_data": {"mime_type": "image/png", "data": image_b64}},
                ]
            }
        ]
    }


def extract_text(data: dict) -> str:
    """Join the text parts of the first candidate with spaces and trim."""
    candidates = data.get("candidates") if isinstance(data, dict) else None
    if not candidates or not isinstance(candidates[0], dict):
        return ""
    content = candidates[0].get("content")
    if not isinstance(content, dict):
        return ""
    parts = content.get("parts")
    if not isinstance(parts, list):
        return ""
    return " ".join(p["text"] for p in parts if isinstance(p, dict) and p.get("text")).strip()


class GeminiTextRecognizer(BaseTextRecognizer):
    """Recognizer that asks Gemini for the single card name nearest the capture center."""

    def __init__(
        self,
        api_key: str | None,
        model: str = DEFAULT_MODEL,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._endpoint = endpoint.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        adapter = requests.adapters.HTTPAdapter(pool_connections=4, pool_maxsize=8)
        self._session.mount("https://", adapter)
        self._session.mount("http://", adapter)

    def get_model_card(self) -> ModelCard:
        return ModelCard(name="gemini", version=self._model)

    @property
    def url(self) -> str:
        return f"{self._endpoint}/{self._model}:generateContent"

    def _post(self, json_payload: dict) -> requests.Response:
        """POST the request body; the key travels as a query parameter."""
        return self._session.post(
            self.url,
            params={"key": self._api_key},
            json=json_payload,
            headers={"Content-Type": "application/json"},
            timeout=self._timeout,
        )

    def _recognize_sync(self, image_b64: str) -> str | None:
        if not self._api_key:
            raise InvalidCredential("OCR API key is not configured")
        try:
            resp = self._post(build_request_body(image_b64))
        except requests.RequestException as e:
            _log.warning("OCR request to %s failed: %s", self.url, type(e).__name__)
            raise ServiceError(f"OCR service unreachable: {type(e).__name__}") from e

        if not resp.ok:
            body = resp.text
            _log.error("OCR service returned %s: %s", resp.status_code, body)
            if resp.status_code in (401, 403):
                raise InvalidCredential("Invalid OCR API key")
            if resp.status_code == 429:
                raise RateLimited("OCR rate limit exceeded")
            raise ServiceError(
                f"OCR service error: {resp.status_code} - {body}",
                status=resp.status_code,
                body=body,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise ServiceError("OCR service returned malformed JSON", status=resp.status_code) from e
        text = clean_recognized_text(extract_text(data))
        _log.info("OCR detected %r", text)
        return text

    async def recognize(self, image_b64: str) -> str | None:
        return await asyncio.to_thread(self._recognize_sync, image_b64)
