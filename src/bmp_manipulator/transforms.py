"""
Pixel transforms for 24-bit images.

Every transform takes a PixelBuffer and returns a new one; the input is
never modified. Averages truncate toward zero, matching the reference
outputs bit for bit.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List

from .pixels import Color, PixelBuffer

logger = logging.getLogger(__name__)

TransformFunc = Callable[[PixelBuffer], PixelBuffer]

# 3x3 window around a pixel, including the pixel itself
_BLUR_OFFSETS = [(dy, dx) for dy in (-1, 0, 1) for dx in (-1, 0, 1)]


def _average(colors: List[Color]) -> Color:
    count = len(colors)
    return Color(
        sum(c.red for c in colors) // count,
        sum(c.green for c in colors) // count,
        sum(c.blue for c in colors) // count,
    )


def _map_colors(buffer: PixelBuffer, func: Callable[[Color], Color]) -> PixelBuffer:
    return PixelBuffer(
        buffer.width,
        buffer.height,
        [[func(color) for color in row] for row in buffer.pixels],
    )


def invert(buffer: PixelBuffer) -> PixelBuffer:
    """Replace every channel ``c`` with ``255 - c``."""
    return _map_colors(
        buffer,
        lambda c: Color(255 - c.red, 255 - c.green, 255 - c.blue),
    )


def _to_gray(color: Color) -> Color:
    # floor(0.3R + 0.59G + 0.11B) in exact integer arithmetic. Summing the weights
    # as doubles can land just below an integer: (0, 23, 13) would give 14, not 15,
    # and gray level 1 would map to 0.
    gray = (30 * color.red + 59 * color.green + 11 * color.blue) // 100
    return Color(gray, gray, gray)


def grayscale(buffer: PixelBuffer) -> PixelBuffer:
    """Set each pixel to its luma ``floor(0.3R + 0.59G + 0.11B)`` on all channels."""
    return _map_colors(buffer, _to_gray)


def vertical_mirror(buffer: PixelBuffer) -> PixelBuffer:
    """Flip the image upside down."""
    return PixelBuffer(
        buffer.width,
        buffer.height,
        [list(row) for row in reversed(buffer.pixels)],
    )


def blur(buffer: PixelBuffer) -> PixelBuffer:
    """
    Box blur over a 3x3 window.

    Each output pixel is the mean of the in-bounds pixels of the window
    centered on it, read from the unmodified input: 9 in the interior,
    6 along the edges, 4 in the corners.
    """
    width, height = buffer.width, buffer.height
    src = buffer.pixels
    rows = []
    for y in range(height):
        row = []
        for x in range(width):
            window = [
                src[y + dy][x + dx]
                for dy, dx in _BLUR_OFFSETS
                if 0 <= y + dy < height and 0 <= x + dx < width
            ]
            row.append(_average(window))
        rows.append(row)
    return PixelBuffer(width, height, rows)


def shrink(buffer: PixelBuffer) -> PixelBuffer:
    """
    Halve both dimensions, averaging each 2x2 block.

    An odd last row or column is dropped.
    """
    new_width, new_height = buffer.width // 2, buffer.height // 2
    src = buffer.pixels
    rows = []
    for y in range(new_height):
        top, bottom = src[2 * y], src[2 * y + 1]
        rows.append([
            _average([top[2 * x], top[2 * x + 1], bottom[2 * x], bottom[2 * x + 1]])
            for x in range(new_width)
        ])
    return PixelBuffer(new_width, new_height, rows)


def double_size(buffer: PixelBuffer) -> PixelBuffer:
    """Double both dimensions, turning each pixel into a 2x2 block."""
    rows = []
    for row in buffer.pixels:
        wide = [color for color in row for _ in range(2)]
        rows.append(wide)
        rows.append(list(wide))
    return PixelBuffer(buffer.width * 2, buffer.height * 2, rows)


def rotate_right(buffer: PixelBuffer) -> PixelBuffer:
    """Rotate 90 degrees clockwise; width and height swap."""
    width, height = buffer.width, buffer.height
    src = buffer.pixels
    # Source (row i, column j) lands on (row j, column height - 1 - i)
    rows = [
        [src[height - 1 - col][row] for col in range(height)]
        for row in range(width)
    ]
    return PixelBuffer(height, width, rows)


@dataclass(frozen=True)
class Transform:
    """A named transform with its single-character command."""
    name: str
    command: str
    description: str
    func: TransformFunc

    def __call__(self, buffer: PixelBuffer) -> PixelBuffer:
        result = self.func(buffer)
        logger.debug(
            f"{self.name}: {buffer.width}x{buffer.height} -> {result.width}x{result.height}"
        )
        return result


TRANSFORMS: Dict[str, Transform] = {
    t.name: t
    for t in (
        Transform("invert", "i", "Invert colors (negative)", invert),
        Transform("grayscale", "g", "Convert to grayscale", grayscale),
        Transform("blur", "b", "Blur with a 3x3 box filter", blur),
        Transform("vertical_mirror", "v", "Flip upside down", vertical_mirror),
        Transform("shrink", "s", "Halve width and height", shrink),
        Transform("double_size", "d", "Double width and height", double_size),
        Transform("rotate_right", "r", "Rotate 90 degrees clockwise", rotate_right),
    )
}

# Maps command characters and normalized names to transforms
TRANSFORM_ALIASES: Dict[str, Transform] = {}
for _transform in TRANSFORMS.values():
    TRANSFORM_ALIASES[_transform.command] = _transform
    TRANSFORM_ALIASES[_transform.name] = _transform
TRANSFORM_ALIASES["double"] = TRANSFORMS["double_size"]
TRANSFORM_ALIASES["mirror"] = TRANSFORMS["vertical_mirror"]
TRANSFORM_ALIASES["rotate"] = TRANSFORMS["rotate_right"]
TRANSFORM_ALIASES["gray"] = TRANSFORMS["grayscale"]


def parse_transform(value: str) -> Transform:
    """
    Look up a transform by command character or name.

    Accepts:
        - Command characters: "i", "g", "b", "v", "s", "d", "r"
        - Names: "invert", "vertical_mirror", "vertical-mirror", "Rotate Right"
        - Short aliases: "gray", "mirror", "double", "rotate"

    Raises:
        ValueError: If the value is not recognized.
    """
    normalized = value.strip().lower().replace("-", "_").replace(" ", "_")

    if normalized in TRANSFORM_ALIASES:
        return TRANSFORM_ALIASES[normalized]

    valid = ", ".join(f"{t.command} ({t.name})" for t in TRANSFORMS.values())
    raise ValueError(f"Unknown transform '{value}'. Valid transforms: {valid}")


def apply_transforms(buffer: PixelBuffer, transforms: Iterable[Transform]) -> PixelBuffer:
    """Run ``transforms`` in order, each consuming the previous result."""
    for transform in transforms:
        logger.info(f"Applying {transform.name}")
        buffer = transform(buffer)
    return buffer
