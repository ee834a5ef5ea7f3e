from __future__ import annotations

from typing import Literal, NamedTuple

from PIL import Image

Corner = Literal["top_left", "top_right", "bottom_left", "bottom_right"]

CORNERS: tuple[Corner, ...] = ("top_left", "top_right", "bottom_left", "bottom_right")

CORNER_WIDTH_FRACTION = 0.45
CORNER_HEIGHT_FRACTION = 0.25
CORNER_MAX_WIDTH = 1200


class Box(NamedTuple):
    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top


def corner_boxes(width: int, height: int) -> dict[Corner, Box]:
    """Corner rectangles of a ``width`` x ``height`` image, clipped to its bounds.

    Credential IDs tend to be printed near certificate margins, so each corner is
    scanned separately. Boxes may overlap on very small images.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")

    corner_w = max(1, min(width, int(width * CORNER_WIDTH_FRACTION)))
    corner_h = max(1, min(height, int(height * CORNER_HEIGHT_FRACTION)))
    right_x = width - corner_w
    bottom_y = height - corner_h

    return {
        "top_left": Box(0, 0, corner_w, corner_h),
        "top_right": Box(right_x, 0, width, corner_h),
        "bottom_left": Box(0, bottom_y, corner_w, height),
        "bottom_right": Box(right_x, bottom_y, width, height),
    }


def crop_corner(image: Image.Image, corner: Corner, *, max_width: int = CORNER_MAX_WIDTH) -> Image.Image:
    box = corner_boxes(image.width, image.height)[corner]
    region = image.crop(box)
    if region.width > max_width:
        scale = max_width / region.width
        region = region.resize((max_width, max(1, round(region.height * scale))), Image.Resampling.LANCZOS)
    return region
