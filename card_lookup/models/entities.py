"""Domain types: card records, lookup outcomes, overlay states and capture geometry."""

import base64
from dataclasses import dataclass
from enum import Enum
from io import BytesIO
from typing import Union

from PIL import Image
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


# --- Enums ---


class FailureKind(str, Enum):
    capture_failure = "capture_failure"
    validation_failure = "validation_failure"
    invalid_credential = "invalid_credential"
    rate_limited = "rate_limited"
    service_error = "service_error"


class OverlayState(str, Enum):
    idle = "idle"
    capturing = "capturing"
    validating = "validating"
    recognizing_text = "recognizing_text"
    normalizing_input = "normalizing_input"
    resolving_card = "resolving_card"
    resolved = "resolved"
    no_match = "no_match"
    error_fallback = "error_fallback"
    debug_capturing = "debug_capturing"
    debug_resolving = "debug_resolving"
    debug_resolved = "debug_resolved"


# The loading indicator appears on entry to capturing and stays up until a terminal state.
LOADING_STATES = frozenset(
    {
        OverlayState.capturing,
        OverlayState.validating,
        OverlayState.recognizing_text,
        OverlayState.normalizing_input,
        OverlayState.resolving_card,
        OverlayState.debug_capturing,
        OverlayState.debug_resolving,
    }
)
TERMINAL_STATES = frozenset(
    {
        OverlayState.resolved,
        OverlayState.no_match,
        OverlayState.error_fallback,
        OverlayState.debug_resolved,
    }
)


# --- Card data ---


class CardRecord(BaseModel):
    """Canonical card data resolved from the card database. Serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    name: str
    image_url: str | None = None
    back_image_url: str | None = None  # only for dual-faced cards whose second face has its own image
    set_code: str | None = None
    set_name: str | None = None
    type_line: str | None = None
    oracle_text: str | None = None
    mana_cost: str | None = None
    rarity: str | None = None

    @property
    def is_double_faced(self) -> bool:
        return self.back_image_url is not None


# --- Lookup outcomes ---


@dataclass(frozen=True)
class NotFound:
    """No card matched. Not an error: the UI offers manual entry."""

    detected_name: str | None = None


@dataclass(frozen=True)
class Found:
    card: CardRecord
    detected_name: str | None = None


@dataclass(frozen=True)
class Failed:
    kind: FailureKind
    reason: str


LookupResult = Union[NotFound, Found, Failed]


# --- Geometry and captures ---


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    def contains(self, point: Point) -> bool:
        return self.left <= point.x <= self.right and self.top <= point.y <= self.bottom

    def intersects(self, other: "Rect") -> bool:
        """Strict overlap test; rectangles that only share an edge do not intersect."""
        return (
            self.left < other.right
            and self.right > other.left
            and self.top < other.bottom
            and self.bottom > other.top
        )


@dataclass(frozen=True)
class CapturedImage:
    """Raster captured around a screen point, rendered at `scale` times the logical size."""

    image: Image.Image
    source: Rect
    scale: int = 2
    format: str = "png"

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def to_png_bytes(self) -> bytes:
        buffered = BytesIO()
        self.image.save(buffered, format="PNG")
        return buffered.getvalue()

    def to_base64(self) -> str:
        return base64.b64encode(self.to_png_bytes()).decode()

    def to_data_url(self) -> str:
        return f"data:image/png;base64,{self.to_base64()}"
