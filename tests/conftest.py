"""Pytest fixtures: PNG payload builders, fake clock, and stand-in pipeline collaborators."""

import asyncio
import base64
from io import BytesIO

import pytest
from PIL import Image

from card_lookup.cards import rate_limit as rate_limit_module
from card_lookup.core.config import reset_config
from card_lookup.models.entities import CardRecord, Found, NotFound


def png_bytes(width: int, height: int, color=(255, 255, 255)) -> bytes:
    buffered = BytesIO()
    Image.new("RGB", (width, height), color).save(buffered, format="PNG")
    return buffered.getvalue()


def png_b64(width: int, height: int) -> str:
    return base64.b64encode(png_bytes(width, height)).decode()


LIGHTNING_BOLT = {
    "object": "card",
    "name": "Lightning Bolt",
    "mana_cost": "{R}",
    "type_line": "Instant",
    "oracle_text": "Lightning Bolt deals 3 damage to any target.",
    "set": "clu",
    "set_name": "Ravnica: Clue Edition",
    "rarity": "uncommon",
    "image_uris": {
        "small": "https://cards.scryfall.io/small/front/bolt.jpg",
        "normal": "https://cards.scryfall.io/normal/front/bolt.jpg",
        "large": "https://cards.scryfall.io/large/front/bolt.jpg",
    },
}

DELVER = {
    "object": "card",
    "name": "Delver of Secrets // Insectile Aberration",
    "type_line": "Creature — Human Wizard // Creature — Human Insect",
    "set": "isd",
    "set_name": "Innistrad",
    "rarity": "common",
    "card_faces": [
        {
            "name": "Delver of Secrets",
            "mana_cost": "{U}",
            "oracle_text": "At the beginning of your upkeep, look at the top card of your library.",
            "image_uris": {"normal": "https://cards.scryfall.io/normal/front/delver.jpg"},
        },
        {
            "name": "Insectile Aberration",
            "mana_cost": "",
            "oracle_text": "Flying",
            "image_uris": {"large": "https://cards.scryfall.io/large/back/delver.jpg"},
        },
    ],
}


def bolt_record() -> CardRecord:
    return CardRecord(
        name="Lightning Bolt",
        image_url=LIGHTNING_BOLT["image_uris"]["normal"],
        set_code="clu",
        set_name="Ravnica: Clue Edition",
        type_line="Instant",
        oracle_text=LIGHTNING_BOLT["oracle_text"],
        mana_cost="{R}",
        rarity="uncommon",
    )


class FakeClock:
    """Monotonic clock advanced only by the fake sleep."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class FakeResolver:
    """Stand-in card resolver: fixed answers by name, optional gate to hold a request in flight."""

    def __init__(self, cards: dict[str, CardRecord] | None = None, error: Exception | None = None) -> None:
        self.cards = cards if cards is not None else {"Lightning Bolt": bolt_record()}
        self.error = error
        self.calls: list[str] = []
        self.gate: asyncio.Event | None = None

    async def resolve(self, name: str):
        self.calls.append(name)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        card = self.cards.get(name)
        if card is None:
            return NotFound(detected_name=name)
        return Found(card=card, detected_name=name)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _isolate_singletons(monkeypatch, tmp_path):
    """Fresh config and rate limiter per test; never read a developer's key or config file."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("CARD_LOOKUP_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    reset_config()
    rate_limit_module._rate_limiter = None
    yield
    reset_config()
    rate_limit_module._rate_limiter = None
