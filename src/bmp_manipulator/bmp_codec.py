"""24-bit uncompressed BMP encoding and decoding."""

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, Union
import io
import logging
import struct

from .pixels import Color, PixelBuffer

logger = logging.getLogger(__name__)

SIGNATURE = b"BM"
HEADER_SIZE = 54
DIB_HEADER_SIZE = 40
BITS_PER_PIXEL = 24
BI_RGB = 0

# signature, file size, reserved, data offset, DIB size, width, height,
# planes, bpp, compression, image size, x/y resolution, palette colors,
# important colors
_HEADER_STRUCT = struct.Struct("<2sI4xIIiiHHIIiiII")

PathLike = Union[str, Path]


class BitmapError(Exception):
    """Errors raised by bitmap decoding and encoding."""


class BitmapIOError(BitmapError, OSError):
    """File could not be read or written, or the stream ended early."""


class UnsupportedFormatError(BitmapError, ValueError):
    """The data is not a 24-bit uncompressed BMP."""


@dataclass(frozen=True)
class BmpHeader:
    signature: bytes
    file_size: int
    data_offset: int
    dib_header_size: int
    width: int
    height: int
    planes: int
    bits_per_pixel: int
    compression: int
    image_size: int

    @property
    def top_down(self) -> bool:
        return self.height < 0

    @property
    def abs_height(self) -> int:
        return abs(self.height)

    @property
    def row_size(self) -> int:
        return row_size_bytes(self.width)

    @property
    def padding(self) -> int:
        return self.row_size - self.width * 3


def row_size_bytes(width: int) -> int:
    """Bytes per stored row of ``width`` 24-bit pixels, padded to a multiple of 4."""
    return (width * 3 + 3) // 4 * 4


def read_header(data: bytes) -> BmpHeader:
    """
    Parse and validate the fixed 54-byte BMP header.

    Raises:
        BitmapIOError: If fewer than 54 bytes are available.
        UnsupportedFormatError: If the header does not describe a 24-bit
            uncompressed bitmap.
    """
    if len(data) < HEADER_SIZE:
        raise BitmapIOError(
            f"BMP header truncated: got {len(data)} of {HEADER_SIZE} bytes"
        )

    fields = _HEADER_STRUCT.unpack_from(data, 0)
    header = BmpHeader(
        signature=fields[0],
        file_size=fields[1],
        data_offset=fields[2],
        dib_header_size=fields[3],
        width=fields[4],
        height=fields[5],
        planes=fields[6],
        bits_per_pixel=fields[7],
        compression=fields[8],
        image_size=fields[9],
    )

    if header.signature != SIGNATURE:
        raise UnsupportedFormatError("Missing BMP signature")

    if header.bits_per_pixel != BITS_PER_PIXEL:
        raise UnsupportedFormatError(
            f"Only 24-bit BMP files are supported (got {header.bits_per_pixel}-bit)"
        )

    if header.compression != BI_RGB:
        raise UnsupportedFormatError(
            f"BMP must be uncompressed (compression type {header.compression})"
        )

    if header.width < 0:
        raise UnsupportedFormatError(f"Invalid BMP width {header.width}")

    if header.data_offset < HEADER_SIZE:
        raise UnsupportedFormatError(
            f"Pixel data offset {header.data_offset} lies inside the header"
        )

    return header


# Largest single read request; header-declared sizes are not trusted
_READ_CHUNK = 1 << 20


def _read_exact(stream: BinaryIO, size: int, what: str) -> bytes:
    data = bytearray()
    while len(data) < size:
        chunk = stream.read(min(_READ_CHUNK, size - len(data)))
        if not chunk:
            raise BitmapIOError(
                f"Unexpected end of BMP data reading {what}: got {len(data)} of {size} bytes"
            )
        data += chunk
    return bytes(data)


def _bytes_remaining(stream: BinaryIO) -> Optional[int]:
    """Bytes left after the current position, or None for unseekable streams."""
    try:
        if not stream.seekable():
            return None
        position = stream.tell()
        end = stream.seek(0, io.SEEK_END)
        stream.seek(position)
    except (AttributeError, OSError):
        return None
    return end - position


def decode(stream: BinaryIO) -> PixelBuffer:
    """
    Decode a 24-bit BMP from a binary stream.

    Rows are stored bottom-to-top unless the header height is negative.
    The returned buffer is always top-to-bottom.

    Raises:
        BitmapIOError: If the stream holds less data than the header declares.
        UnsupportedFormatError: If the header is not a 24-bit uncompressed BMP.
    """
    header = read_header(_read_exact(stream, HEADER_SIZE, "header"))
    width = header.width
    height = header.abs_height
    padding = header.padding

    extra = header.data_offset - HEADER_SIZE
    expected = extra + header.row_size * height
    available = _bytes_remaining(stream)
    if available is not None and expected > available:
        raise BitmapIOError(
            f"BMP pixel data exceeds file length: header declares {expected:,} bytes "
            f"after the header, {available:,} available"
        )

    # Extended DIB headers (V4/V5) sit between the base header and the pixels
    if extra:
        _read_exact(stream, extra, "extended header")

    row_bytes = width * 3
    rows = []
    for index in range(height):
        raw = _read_exact(stream, row_bytes, f"row {index}")
        rows.append([Color.from_bgr(raw[x:x + 3]) for x in range(0, row_bytes, 3)])
        if padding:
            _read_exact(stream, padding, f"row {index} padding")

    if not header.top_down:
        rows.reverse()

    logger.debug(
        f"Decoded {width}x{height} BMP "
        f"(offset {header.data_offset}, padding {padding}, top_down={header.top_down})"
    )
    return PixelBuffer(width, height, rows)


def decode_bytes(data: bytes) -> PixelBuffer:
    return decode(io.BytesIO(data))


def encode_to(buffer: PixelBuffer, stream: BinaryIO) -> int:
    """Write ``buffer`` as a bottom-up 24-bit BMP. Returns the number of bytes written."""
    row_size = row_size_bytes(buffer.width)
    padding = row_size - buffer.width * 3
    image_size = row_size * buffer.height
    file_size = HEADER_SIZE + image_size

    header = _HEADER_STRUCT.pack(
        SIGNATURE,
        file_size,
        HEADER_SIZE,
        DIB_HEADER_SIZE,
        buffer.width,
        buffer.height,
        1,
        BITS_PER_PIXEL,
        BI_RGB,
        image_size,
        0,
        0,
        0,
        0,
    )

    data = bytearray(header)
    pad = bytes(padding)
    for row in reversed(buffer.pixels):
        for color in row:
            data += color.to_bgr()
        data += pad

    stream.write(data)
    logger.debug(f"Encoded {buffer.width}x{buffer.height} BMP ({file_size} bytes)")
    return len(data)


def encode(buffer: PixelBuffer) -> bytes:
    out = io.BytesIO()
    encode_to(buffer, out)
    return out.getvalue()


def load_bitmap(path: PathLike) -> PixelBuffer:
    """
    Load a 24-bit BMP file.

    Raises:
        BitmapIOError: If the file is missing, unreadable or truncated.
        UnsupportedFormatError: If the file is not a 24-bit uncompressed BMP.
    """
    try:
        with open(path, "rb") as f:
            return decode(f)
    except BitmapError:
        raise
    except OSError as e:
        raise BitmapIOError(f"Cannot read {path}: {e.strerror or e}") from e


def save_bitmap(buffer: PixelBuffer, path: PathLike) -> int:
    """
    Write ``buffer`` to ``path`` as a 24-bit BMP.

    Raises:
        BitmapIOError: If the file cannot be written.
    """
    try:
        with open(path, "wb") as f:
            return encode_to(buffer, f)
    except OSError as e:
        raise BitmapIOError(f"Cannot write {path}: {e.strerror or e}") from e
