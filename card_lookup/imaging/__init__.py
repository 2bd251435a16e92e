"""Region capture and capture validation."""

from card_lookup.imaging.capture import ImageElement, MediaSurface, RegionCapturer, Scene
from card_lookup.imaging.validation import validate_capture

__all__ = ["ImageElement", "MediaSurface", "RegionCapturer", "Scene", "validate_capture"]
