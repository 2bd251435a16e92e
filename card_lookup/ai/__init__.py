"""AI module: data contracts and OCR recognizer abstraction."""

from card_lookup.ai.schema import ModelCard
from card_lookup.ai.ocr_base import BaseTextRecognizer, MockTextRecognizer
from card_lookup.ai.factory import get_text_recognizer

__all__ = [
    "BaseTextRecognizer",
    "MockTextRecognizer",
    "ModelCard",
    "get_text_recognizer",
]
