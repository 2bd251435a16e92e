"""Resolve a normalized name to card data through the Scryfall fuzzy-name endpoint."""

import asyncio
import logging
from typing import Any

import requests
from pydantic import ValidationError

from card_lookup import __version__
from card_lookup.cards.rate_limit import RateLimiter
from card_lookup.core.errors import ServiceError
from card_lookup.models.entities import CardRecord, Found, NotFound

_log = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.scryfall.com"
IMAGE_SIZE_PREFERENCE = ("normal", "large")


def _pick_image(image_uris: dict[str, Any] | None) -> str | None:
    if not image_uris:
        return None
    for size in IMAGE_SIZE_PREFERENCE:
        if image_uris.get(size):
            return image_uris[size]
    return None


def card_from_payload(data: dict[str, Any]) -> CardRecord:
    """
    Build a CardRecord from a Scryfall card object.

    Transform and modal double-faced cards carry images per face instead of at the
    top level; the front face supplies the primary image (and oracle text / mana cost
    when the top level has none) and the second face, when it has its own image,
    supplies back_image_url. Single-faced cards never get a back image.
    """
    faces = data.get("card_faces") or []
    front = faces[0] if faces else {}
    is_double_faced = bool(faces) and not data.get("image_uris")
    image_uris = data.get("image_uris") or front.get("image_uris")

    back_image_url = None
    if is_double_faced and len(faces) > 1 and faces[1].get("image_uris"):
        back_image_url = _pick_image(faces[1]["image_uris"])

    return CardRecord(
        name=data["name"],
        image_url=_pick_image(image_uris),
        back_image_url=back_image_url,
        set_code=data.get("set"),
        set_name=data.get("set_name"),
        type_line=data.get("type_line"),
        oracle_text=data.get("oracle_text") or front.get("oracle_text"),
        mana_cost=data.get("mana_cost") or front.get("mana_cost"),
        rarity=data.get("rarity"),
    )


class ScryfallCardResolver:
    """Rate-limited fuzzy lookups. The limiter is shared, not owned, by each resolver."""

    def __init__(
        self,
        rate_limiter: RateLimiter,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
    ) -> None:
        self._rate_limiter = rate_limiter
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers.update(
            {"User-Agent": f"card-lookup/{__version__}", "Accept": "application/json"}
        )

    def _get(self, name: str) -> requests.Response:
        return self._session.get(
            f"{self._base_url}/cards/named",
            params={"fuzzy": name},
            timeout=self._timeout,
        )

    def _fetch_sync(self, name: str) -> dict[str, Any] | None:
        """Return the card object, None on 404; raise ServiceError otherwise."""
        try:
            resp = self._get(name)
        except requests.RequestException as e:
            _log.warning("Card database request for %r failed: %s", name, e)
            raise ServiceError(f"Card database unreachable: {type(e).__name__}") from e
        if resp.status_code == 404:
            return None
        if not resp.ok:
            _log.error("Card database returned %s for %r", resp.status_code, name)
            raise ServiceError(
                f"Card database error: {resp.status_code}",
                status=resp.status_code,
                body=resp.text,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise ServiceError("Card database returned malformed JSON", status=resp.status_code) from e

    async def resolve(self, name: str) -> Found | NotFound:
        if not name:
            return NotFound()
        await self._rate_limiter.wait()
        data = await asyncio.to_thread(self._fetch_sync, name)
        if data is None:
            _log.info("Card not found: %r", name)
            return NotFound(detected_name=name)
        try:
            card = card_from_payload(data)
        except (KeyError, TypeError, AttributeError, ValidationError) as e:
            raise ServiceError(f"Card database returned an unexpected record: {e}") from e
        _log.info("Resolved %r to %r", name, card.name)
        return Found(card=card, detected_name=name)
