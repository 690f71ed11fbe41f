"""
BMP Manipulator - load, transform and save 24-bit bitmap images

Pure-Python BMP codec plus invert, grayscale, blur, mirror, shrink,
double-size and rotate transforms.
"""

__version__ = "0.1.0"

from bmp_manipulator.pixels import Color, PixelBuffer
from bmp_manipulator.bmp_codec import (
    BitmapError,
    BitmapIOError,
    UnsupportedFormatError,
    decode,
    encode,
    load_bitmap,
    save_bitmap,
)
from bmp_manipulator.transforms import (
    invert,
    grayscale,
    vertical_mirror,
    blur,
    shrink,
    double_size,
    rotate_right,
    TRANSFORMS,
    parse_transform,
    apply_transforms,
)

__all__ = [
    "Color",
    "PixelBuffer",
    "BitmapError",
    "BitmapIOError",
    "UnsupportedFormatError",
    "decode",
    "encode",
    "load_bitmap",
    "save_bitmap",
    "invert",
    "grayscale",
    "vertical_mirror",
    "blur",
    "shrink",
    "double_size",
    "rotate_right",
    "TRANSFORMS",
    "parse_transform",
    "apply_transforms",
    "__version__",
]
