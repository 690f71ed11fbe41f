"""Pillow interop: convert between PIL images and pixel buffers."""

import logging
from pathlib import Path
from typing import Union

from PIL import Image

from .bmp_codec import BitmapIOError, save_bitmap
from .pixels import Color, PixelBuffer

logger = logging.getLogger(__name__)


def buffer_from_image(img: Image.Image) -> PixelBuffer:
    """Build a pixel buffer from any PIL image, converting it to RGB first."""
    if img.mode != "RGB":
        img = img.convert("RGB")

    width, height = img.size
    pixels = img.load()
    rows = [
        [Color(*pixels[x, y]) for x in range(width)]
        for y in range(height)
    ]
    return PixelBuffer(width, height, rows)


def buffer_to_image(buffer: PixelBuffer) -> Image.Image:
    """Render a pixel buffer as an RGB PIL image."""
    img = Image.new("RGB", (buffer.width, buffer.height))
    img.putdata([color.as_tuple() for row in buffer.pixels for color in row])
    return img


def convert_image_to_bitmap(
    input_path: Union[str, Path],
    output_path: Union[str, Path],
) -> PixelBuffer:
    """
    Convert any image Pillow can open (PNG, JPG, GIF, palette BMP...) into a
    24-bit BMP written by our encoder.

    Returns:
        The converted buffer.

    Raises:
        BitmapIOError: If the input cannot be opened or the output written.
    """
    try:
        with Image.open(input_path) as img:
            logger.debug(f"Loaded image: {img.size} {img.mode}")
            buffer = buffer_from_image(img)
    except OSError as e:
        raise BitmapIOError(f"Cannot read image {input_path}: {e}") from e

    save_bitmap(buffer, output_path)
    logger.info(f"Converted {input_path} to {buffer.width}x{buffer.height} 24-bit BMP")
    return buffer
