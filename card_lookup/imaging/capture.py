"""Best-effort capture of a fixed-size region around a screen point.

The host describes what is on screen as a Scene: a viewport size, an optional
media surface (a playing video frame at native resolution plus where it is
displayed) and static image elements listed topmost first. The capturer samples
the media surface when it overlaps the region, otherwise the first image under
the cursor, otherwise it returns a solid white canvas. A blank capture is a
valid "no content" result and still goes through validation and OCR.
"""

import logging
from dataclasses import dataclass, field

from PIL import Image

from card_lookup.models.entities import CapturedImage, Point, Rect

_log = logging.getLogger(__name__)

DEFAULT_SCALE = 2
BLANK_FILL = (255, 255, 255, 255)


@dataclass
class MediaSurface:
    """A video-like surface: current frame at native resolution and its displayed rectangle."""

    frame: Image.Image
    rect: Rect
    ready: bool = True

    @property
    def native_size(self) -> tuple[int, int]:
        return self.frame.size


@dataclass
class ImageElement:
    image: Image.Image
    rect: Rect


@dataclass
class Scene:
    viewport_width: float
    viewport_height: float
    media: MediaSurface | None = None
    images: list[ImageElement] = field(default_factory=list)

    def elements_at(self, point: Point) -> list[ImageElement]:
        """Image elements under the point, topmost first."""
        return [el for el in self.images if el.rect.contains(point)]

    @classmethod
    def from_image(cls, image: Image.Image) -> "Scene":
        """A still image shown at its native size across the whole viewport."""
        width, height = image.size
        return cls(
            viewport_width=width,
            viewport_height=height,
            media=MediaSurface(frame=image, rect=Rect(0, 0, width, height)),
        )

    @classmethod
    def from_screen(cls) -> "Scene":
        """Grab the desktop as the media surface. Requires a display (Pillow ImageGrab)."""
        from PIL import ImageGrab

        return cls.from_image(ImageGrab.grab())


def compute_capture_rect(
    point: Point,
    width: float,
    height: float,
    viewport_width: float,
    viewport_height: float,
) -> Rect | None:
    """
    Rectangle of the given size centered on point, clamped to the viewport.

    Top/left clamping shifts the rectangle; bottom/right clamping truncates it.
    Returns None when the viewport or the resulting rectangle is empty.
    """
    if viewport_width <= 0 or viewport_height <= 0 or width <= 0 or height <= 0:
        return None
    start_x = max(0.0, point.x - width / 2)
    start_y = max(0.0, point.y - height / 2)
    end_x = min(float(viewport_width), start_x + width)
    end_y = min(float(viewport_height), start_y + height)
    if end_x <= start_x or end_y <= start_y:
        return None
    return Rect(start_x, start_y, end_x - start_x, end_y - start_y)


class RegionCapturer:
    """Renders the region around a point at a fixed upscale factor for OCR legibility."""

    def __init__(self, scale: int = DEFAULT_SCALE) -> None:
        self.scale = scale

    def capture(self, scene: Scene, point: Point, width: float, height: float) -> CapturedImage | None:
        region = compute_capture_rect(point, width, height, scene.viewport_width, scene.viewport_height)
        if region is None:
            _log.warning(
                "Capture geometry failed at (%s, %s) in %sx%s viewport",
                point.x,
                point.y,
                scene.viewport_width,
                scene.viewport_height,
            )
            return None
        size = (round(region.width * self.scale), round(region.height * self.scale))
        if size[0] <= 0 or size[1] <= 0:
            return None
        canvas = Image.new("RGBA", size, (0, 0, 0, 0))

        captured = False
        if scene.media is not None:
            try:
                captured = self._draw_media(canvas, scene.media, region)
            except (OSError, ValueError) as e:
                _log.debug("Media surface capture failed: %s", e)
        if not captured:
            for element in scene.elements_at(point):
                try:
                    if self._draw_element(canvas, element, region):
                        captured = True
                        break
                except (OSError, ValueError) as e:
                    _log.debug("Image element capture failed: %s", e)

        if not captured:
            # No visual source: solid fill, still a valid capture.
            _log.debug("No content under (%s, %s); using blank capture", point.x, point.y)
            canvas.paste(BLANK_FILL, (0, 0, size[0], size[1]))

        return CapturedImage(image=canvas, source=region, scale=self.scale)

    def _draw_media(self, canvas: Image.Image, media: MediaSurface, region: Rect) -> bool:
        if not media.ready or not region.intersects(media.rect):
            return False
        if media.rect.width <= 0 or media.rect.height <= 0:
            return False
        native_w, native_h = media.native_size
        scale_x = native_w / media.rect.width
        scale_y = native_h / media.rect.height
        src_x = max(0.0, (region.left - media.rect.left) * scale_x)
        src_y = max(0.0, (region.top - media.rect.top) * scale_y)
        src_w = min(native_w - src_x, region.width * scale_x)
        src_h = min(native_h - src_y, region.height * scale_y)
        if src_w <= 0 or src_h <= 0:
            return False
        box = (round(src_x), round(src_y), round(src_x + src_w), round(src_y + src_h))
        if box[2] <= box[0] or box[3] <= box[1]:
            return False
        patch = media.frame.convert("RGBA").crop(box).resize(canvas.size, Image.Resampling.LANCZOS)
        canvas.paste(patch, (0, 0))
        return True

    def _draw_element(self, canvas: Image.Image, element: ImageElement, region: Rect) -> bool:
        if not element.rect.intersects(region):
            return False
        x = max(0.0, element.rect.left - region.left)
        y = max(0.0, element.rect.top - region.top)
        w = min(element.rect.width, region.width - x)
        h = min(element.rect.height, region.height - y)
        target = (round(w * self.scale), round(h * self.scale))
        if target[0] <= 0 or target[1] <= 0:
            return False
        patch = element.image.convert("RGBA").resize(target, Image.Resampling.LANCZOS)
        canvas.paste(patch, (round(x * self.scale), round(y * self.scale)), patch)
        return True
