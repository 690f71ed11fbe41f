"""In-memory pixel model: immutable colors and rectangular pixel buffers."""

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Tuple


@dataclass(frozen=True)
class Color:
    """A single 24-bit RGB value."""
    red: int
    green: int
    blue: int

    def __post_init__(self) -> None:
        for name in ("red", "green", "blue"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"{name} channel must be an int, got {value!r}")
            if not 0 <= value <= 255:
                raise ValueError(f"{name} channel out of range 0-255: {value}")

    @classmethod
    def from_bgr(cls, data: Sequence[int]) -> "Color":
        """Build a color from a (blue, green, red) byte triple as stored in BMP rows."""
        return cls(data[2], data[1], data[0])

    def to_bgr(self) -> bytes:
        return bytes((self.blue, self.green, self.red))

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.red, self.green, self.blue)


BLACK = Color(0, 0, 0)


@dataclass
class PixelBuffer:
    """
    Rectangular grid of colors.

    ``pixels[y][x]`` addresses row ``y`` (0 is the top row) and column ``x``
    (0 is the leftmost column).

    Attributes:
        width: Number of columns
        height: Number of rows
        pixels: ``height`` rows of ``width`` colors each
    """
    width: int
    height: int
    pixels: List[List[Color]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Invalid buffer dimensions {self.width}x{self.height}")
        if len(self.pixels) != self.height:
            raise ValueError(
                f"Buffer has {len(self.pixels)} rows, expected {self.height}"
            )
        for y, row in enumerate(self.pixels):
            if len(row) != self.width:
                raise ValueError(
                    f"Row {y} has {len(row)} pixels, expected {self.width}"
                )

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @classmethod
    def blank(cls, width: int, height: int, fill: Color = BLACK) -> "PixelBuffer":
        """Create a buffer filled with a single color."""
        return cls(width, height, [[fill] * width for _ in range(height)])

    @classmethod
    def from_rows(cls, rows: Iterable[Iterable[Tuple[int, int, int]]]) -> "PixelBuffer":
        """
        Create a buffer from nested ``(red, green, blue)`` tuples.

        An empty ``rows`` gives a 0x0 buffer.
        """
        pixels = [[Color(*rgb) for rgb in row] for row in rows]
        width = len(pixels[0]) if pixels else 0
        return cls(width, len(pixels), pixels)

    def to_rows(self) -> List[List[Tuple[int, int, int]]]:
        return [[color.as_tuple() for color in row] for row in self.pixels]

    def get(self, x: int, y: int) -> Color:
        return self.pixels[y][x]

    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0
