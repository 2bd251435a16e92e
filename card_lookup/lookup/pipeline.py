"""Validate -> OCR -> normalize -> resolve, as individual stages and as one-shot lookups."""

import logging

from card_lookup.ai.factory import get_text_recognizer
from card_lookup.ai.ocr_base import BaseTextRecognizer
from card_lookup.cards.normalize import normalize_name
from card_lookup.cards.rate_limit import get_rate_limiter
from card_lookup.cards.resolver import ScryfallCardResolver
from card_lookup.core.config import Settings, get_config
from card_lookup.core.errors import LookupFailure, ValidationFailure
from card_lookup.imaging.validation import EXPECTED_HEIGHT, EXPECTED_WIDTH, strip_data_url, validate_capture
from card_lookup.models.entities import Found, LookupResult, NotFound

_log = logging.getLogger(__name__)

INVALID_CAPTURE_REASON = "Could not read capture"


class LookupPipeline:
    """
    Stage methods are used by the orchestrator so it can report state between
    stages; lookup_image/lookup_name run a whole lookup and never raise LookupFailure.
    """

    def __init__(
        self,
        recognizer: BaseTextRecognizer,
        resolver: ScryfallCardResolver,
        *,
        expected_width: int = EXPECTED_WIDTH,
        expected_height: int = EXPECTED_HEIGHT,
    ) -> None:
        self.recognizer = recognizer
        self.resolver = resolver
        self.expected_width = expected_width
        self.expected_height = expected_height

    def validate(self, payload: str | bytes | None) -> bool:
        return validate_capture(payload, self.expected_width, self.expected_height)

    async def recognize(self, payload: str) -> str | None:
        return await self.recognizer.recognize(strip_data_url(payload))

    async def resolve(self, name: str) -> Found | NotFound:
        return await self.resolver.resolve(name)

    async def lookup_image(self, payload: str) -> LookupResult:
        if not self.validate(payload):
            _log.warning("Rejected capture payload (format or size mismatch)")
            return ValidationFailure(INVALID_CAPTURE_REASON).to_result()
        try:
            text = await self.recognize(payload)
            if text is None:
                return NotFound()
            name = normalize_name(text)
            if not name:
                return NotFound()
            result = await self.resolve(name)
        except LookupFailure as e:
            _log.warning("Image lookup failed (%s): %s", e.kind.value, e.message)
            return e.to_result()
        if isinstance(result, Found):
            return Found(card=result.card, detected_name=name)
        return NotFound(detected_name=name)

    async def lookup_name(self, name: str) -> LookupResult:
        cleaned = normalize_name(name)
        if not cleaned:
            return NotFound()
        try:
            return await self.resolve(cleaned)
        except LookupFailure as e:
            _log.warning("Name lookup failed (%s): %s", e.kind.value, e.message)
            return e.to_result()


def build_pipeline(settings: Settings | None = None, recognizer: BaseTextRecognizer | None = None) -> LookupPipeline:
    """Wire the configured recognizer and a resolver sharing the process-wide rate limiter."""
    cfg = settings or get_config()
    width, height = cfg.expected_capture_size
    recognizer = recognizer or get_text_recognizer(cfg.ocr_analyzer, cfg)
    model_card = recognizer.get_model_card()
    _log.info("Text recognizer: %s (%s)", model_card.name, model_card.version)
    return LookupPipeline(
        recognizer,
        ScryfallCardResolver(
            get_rate_limiter(),
            base_url=cfg.card_db_base_url,
            timeout=cfg.request_timeout_seconds,
        ),
        expected_width=width,
        expected_height=height,
    )
