"""Factory for text recognizers. Imports are lazy so unused HTTP clients are never built."""

from card_lookup.ai.ocr_base import BaseTextRecognizer
from card_lookup.core.config import Settings, get_config


def get_text_recognizer(recognizer_name: str, settings: Settings | None = None) -> BaseTextRecognizer:
    """Return a text recognizer by name ("mock" or "gemini")."""
    if recognizer_name == "mock":
        from card_lookup.ai.ocr_base import MockTextRecognizer

        return MockTextRecognizer()
    if recognizer_name == "gemini":
        from card_lookup.ai.ocr_gemini import GeminiTextRecognizer

        cfg = settings or get_config()
        return GeminiTextRecognizer(
            api_key=cfg.ocr_api_key,
            model=cfg.ocr_model,
            endpoint=cfg.ocr_endpoint,
            timeout=cfg.request_timeout_seconds,
        )
    raise ValueError(f"Unknown text recognizer: {recognizer_name}")
