"""Domain types shared by the pipeline, the orchestrator and the HTTP backend."""

from card_lookup.models.entities import (
    CapturedImage,
    CardRecord,
    Failed,
    FailureKind,
    Found,
    LookupResult,
    NotFound,
    OverlayState,
    Point,
    Rect,
)

__all__ = [
    "CapturedImage",
    "CardRecord",
    "Failed",
    "FailureKind",
    "Found",
    "LookupResult",
    "NotFound",
    "OverlayState",
    "Point",
    "Rect",
]
