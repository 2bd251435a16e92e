"""Tests for capture geometry and the region capturer."""

import pytest
from PIL import Image

from card_lookup.imaging.capture import (
    BLANK_FILL,
    ImageElement,
    MediaSurface,
    RegionCapturer,
    Scene,
    compute_capture_rect,
)
from card_lookup.imaging.validation import validate_capture
from card_lookup.models.entities import Point, Rect

pytestmark = [pytest.mark.fast]


def test_rect_centered_on_point():
    rect = compute_capture_rect(Point(500, 400), 125, 60, 1920, 1080)
    assert rect == Rect(437.5, 370.0, 125, 60)


def test_rect_shifted_at_top_left_edge():
    """Clamping at the top/left moves the rectangle instead of shrinking it."""
    rect = compute_capture_rect(Point(10, 5), 125, 60, 1920, 1080)
    assert rect == Rect(0.0, 0.0, 125, 60)


def test_rect_truncated_at_bottom_right_edge():
    rect = compute_capture_rect(Point(1910, 1075), 125, 60, 1920, 1080)
    assert rect.left == pytest.approx(1847.5)
    assert rect.top == pytest.approx(1045.0)
    assert rect.width == pytest.approx(72.5)
    assert rect.height == pytest.approx(35.0)


def test_rect_none_for_empty_viewport():
    assert compute_capture_rect(Point(0, 0), 125, 60, 0, 1080) is None
    assert compute_capture_rect(Point(10, 10), 0, 60, 100, 100) is None


def test_media_surface_capture_has_fixed_pixel_size():
    """Output is always width*scale x height*scale and passes validation."""
    frame = Image.new("RGB", (3840, 2160), (200, 10, 10))
    scene = Scene(
        viewport_width=1920,
        viewport_height=1080,
        media=MediaSurface(frame=frame, rect=Rect(0, 0, 1920, 1080)),
    )
    captured = RegionCapturer(scale=2).capture(scene, Point(960, 540), 125, 60)
    assert captured is not None
    assert (captured.width, captured.height) == (250, 120)
    assert captured.source == Rect(897.5, 510.0, 125, 60)
    assert validate_capture(captured.to_base64()) is True
    r, g, b, a = captured.image.getpixel((125, 60))
    assert r > 150 and g < 60 and a == 255


def test_unready_media_falls_through_to_image_element():
    frame = Image.new("RGB", (100, 100), (255, 0, 0))
    card = Image.new("RGB", (300, 200), (0, 0, 255))
    scene = Scene(
        viewport_width=800,
        viewport_height=600,
        media=MediaSurface(frame=frame, rect=Rect(0, 0, 800, 600), ready=False),
        images=[ImageElement(image=card, rect=Rect(100, 100, 300, 200))],
    )
    captured = RegionCapturer().capture(scene, Point(250, 200), 125, 60)
    assert captured is not None
    assert captured.image.getpixel((125, 60))[:3] == (0, 0, 255)


def test_topmost_image_element_wins():
    top = ImageElement(image=Image.new("RGB", (50, 50), (0, 255, 0)), rect=Rect(0, 0, 400, 400))
    below = ImageElement(image=Image.new("RGB", (50, 50), (0, 0, 255)), rect=Rect(0, 0, 400, 400))
    scene = Scene(viewport_width=400, viewport_height=400, images=[top, below])
    assert scene.elements_at(Point(200, 200)) == [top, below]
    captured = RegionCapturer().capture(scene, Point(200, 200), 125, 60)
    assert captured.image.getpixel((10, 10))[:3] == (0, 255, 0)


def test_nothing_under_cursor_gives_blank_capture():
    """No content is not a failure: the capture is a solid fill of the full size."""
    scene = Scene(viewport_width=1024, viewport_height=768)
    captured = RegionCapturer().capture(scene, Point(512, 384), 125, 60)
    assert captured is not None
    assert (captured.width, captured.height) == (250, 120)
    assert captured.image.getpixel((0, 0)) == BLANK_FILL
    assert captured.image.getpixel((249, 119)) == BLANK_FILL


def test_edge_capture_is_smaller_and_fails_validation():
    scene = Scene(viewport_width=1024, viewport_height=768)
    captured = RegionCapturer().capture(scene, Point(1020, 760), 125, 60)
    assert captured is not None
    assert captured.width < 250
    assert validate_capture(captured.to_base64()) is False


def test_capture_geometry_failure_returns_none():
    scene = Scene(viewport_width=0, viewport_height=0)
    assert RegionCapturer().capture(scene, Point(0, 0), 125, 60) is None


def test_scene_from_image_uses_native_size():
    img = Image.new("RGB", (640, 480))
    scene = Scene.from_image(img)
    assert (scene.viewport_width, scene.viewport_height) == (640, 480)
    assert scene.media.rect == Rect(0, 0, 640, 480)


def test_data_url_encoding():
    captured = RegionCapturer().capture(Scene(viewport_width=500, viewport_height=500), Point(250, 250), 125, 60)
    assert captured.to_data_url().startswith("data:image/png;base64,iVBOR")
