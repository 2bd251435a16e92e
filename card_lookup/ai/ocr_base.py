"""Abstract base and mock implementation for card-name recognizers."""

from abc import ABC, abstractmethod

from card_lookup.ai.schema import ModelCard

NO_NAME_SENTINEL = "NONE"


class BaseTextRecognizer(ABC):
    """Abstract base for extracting a single card name from a validated capture."""

    @abstractmethod
    def get_model_card(self) -> ModelCard:
        """Return model identity (name, version)."""
        ...

    @abstractmethod
    async def recognize(self, image_b64: str) -> str | None:
        """Return the card name nearest the image center, or None when no name is legible."""
        ...


def clean_recognized_text(text: str | None) -> str | None:
    """Trim service output; empty text or the NONE sentinel means no name detected."""
    if text is None:
        return None
    text = text.strip()
    if not text or text == NO_NAME_SENTINEL:
        return None
    return text


class MockTextRecognizer(BaseTextRecognizer):
    """Fixed-answer recognizer for testing and development."""

    def __init__(self, text: str | None = "Lightning Bolt") -> None:
        self.text = text
        self.calls = 0

    def get_model_card(self) -> ModelCard:
        return ModelCard(name="mock-recognizer", version="1.0")

    async def recognize(self, image_b64: str) -> str | None:
        self.calls += 1
        return clean_recognized_text(self.text)
