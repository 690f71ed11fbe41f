"""Tests for BMP decoding and encoding."""

import io
import struct

import pytest
from PIL import Image

from bmp_manipulator.bmp_codec import (
    BitmapError,
    BitmapIOError,
    UnsupportedFormatError,
    decode,
    decode_bytes,
    encode,
    load_bitmap,
    read_header,
    row_size_bytes,
    save_bitmap,
)
from bmp_manipulator.pixels import Color, PixelBuffer


def _sample_buffer(width: int = 3, height: int = 5) -> PixelBuffer:
    """Deterministic, non-symmetric test pattern."""
    return PixelBuffer.from_rows(
        [
            [
                ((x * 53 + y * 17) % 256, (x * 29 + y * 71) % 256, (x * 7 + y * 131) % 256)
                for x in range(width)
            ]
            for y in range(height)
        ]
    )


def _raw_bmp(
    pixel_data: bytes,
    width: int,
    height: int,
    bits_per_pixel: int = 24,
    compression: int = 0,
    extra_header: bytes = b"",
    signature: bytes = b"BM",
) -> bytes:
    """Assemble a BMP by hand so tests don't depend on the encoder."""
    offset = 54 + len(extra_header)
    header = struct.pack(
        "<2sI4xIIiiHHIIiiII",
        signature,
        offset + len(pixel_data),
        offset,
        40 + len(extra_header),
        width,
        height,
        1,
        bits_per_pixel,
        compression,
        len(pixel_data),
        0, 0, 0, 0,
    )
    return header + extra_header + pixel_data


class TestRowSize:
    """Tests for padded row size."""

    @pytest.mark.parametrize(
        "width,expected",
        [(0, 0), (1, 4), (2, 8), (3, 12), (4, 12), (5, 16)],
    )
    def test_row_size(self, width, expected):
        assert row_size_bytes(width) == expected


class TestEncode:
    """Tests for the header and pixel layout written by encode."""

    def test_header_fields(self):
        data = encode(_sample_buffer(3, 2))
        # 3 px * 3 bytes = 9, padded to 12
        assert len(data) == 54 + 12 * 2
        assert data[0:2] == b"BM"
        assert struct.unpack_from("<I", data, 2)[0] == len(data)
        assert data[6:10] == b"\x00\x00\x00\x00"
        assert struct.unpack_from("<I", data, 10)[0] == 54
        assert struct.unpack_from("<I", data, 14)[0] == 40
        assert struct.unpack_from("<i", data, 18)[0] == 3
        assert struct.unpack_from("<i", data, 22)[0] == 2
        assert struct.unpack_from("<H", data, 26)[0] == 1
        assert struct.unpack_from("<H", data, 28)[0] == 24
        assert struct.unpack_from("<I", data, 30)[0] == 0
        assert struct.unpack_from("<I", data, 34)[0] == 24

    def test_rows_bottom_up_bgr_with_padding(self):
        buffer = PixelBuffer.from_rows([
            [(1, 2, 3)],
            [(4, 5, 6)],
        ])
        data = encode(buffer)
        # Bottom row first, blue-green-red, one padding byte
        assert data[54:] == b"\x06\x05\x04\x00" + b"\x03\x02\x01\x00"

    def test_empty_buffer(self):
        data = encode(PixelBuffer(0, 0, []))
        assert len(data) == 54
        assert decode_bytes(data).size == (0, 0)


class TestDecode:
    """Tests for decoding hand-built and Pillow-built files."""

    def test_decode_hand_built(self):
        # 2x2, row size 8 (6 bytes + 2 padding), bottom row first
        bottom = b"\x00\x00\xff" + b"\xff\xff\xff" + b"\x00\x00"
        top = b"\xff\x00\x00" + b"\x00\xff\x00" + b"\x00\x00"
        buffer = decode_bytes(_raw_bmp(bottom + top, 2, 2))

        assert buffer.size == (2, 2)
        assert buffer.to_rows() == [
            [(0, 0, 255), (0, 255, 0)],
            [(255, 0, 0), (255, 255, 255)],
        ]

    def test_top_down_bitmap(self):
        """Negative height stores rows top-to-bottom."""
        top = b"\x03\x02\x01\x00"
        bottom = b"\x06\x05\x04\x00"
        buffer = decode_bytes(_raw_bmp(top + bottom, 1, -2))

        assert buffer.size == (1, 2)
        assert buffer.get(0, 0) == Color(1, 2, 3)
        assert buffer.get(0, 1) == Color(4, 5, 6)

    def test_extended_header_skipped(self):
        pixels = b"\x03\x02\x01\x00"
        data = _raw_bmp(pixels, 1, 1, extra_header=b"\xaa" * 68)
        buffer = decode_bytes(data)
        assert buffer.to_rows() == [[(1, 2, 3)]]

    def test_reads_from_stream(self):
        stream = io.BytesIO(encode(_sample_buffer()) + b"trailing")
        assert decode(stream) == _sample_buffer()

    def test_roundtrip(self):
        original = _sample_buffer(7, 3)
        first = decode_bytes(encode(original))
        second = decode_bytes(encode(first))
        assert first == original
        assert second == first

    def test_8_bit_rejected(self):
        data = _raw_bmp(b"\x00\x00\x00\x00", 1, 1, bits_per_pixel=8)
        with pytest.raises(UnsupportedFormatError):
            decode_bytes(data)

    def test_bad_signature_rejected(self):
        data = _raw_bmp(b"\x00\x00\x00\x00", 1, 1, signature=b"XX")
        with pytest.raises(UnsupportedFormatError):
            decode_bytes(data)

    def test_compressed_rejected(self):
        data = _raw_bmp(b"\x00\x00\x00\x00", 1, 1, compression=1)
        with pytest.raises(UnsupportedFormatError):
            decode_bytes(data)

    def test_unsupported_is_value_error(self):
        data = _raw_bmp(b"", 1, 1, bits_per_pixel=32)
        with pytest.raises(ValueError):
            decode_bytes(data)

    def test_truncated_header(self):
        with pytest.raises(BitmapIOError):
            decode_bytes(b"BM" + bytes(20))

    def test_truncated_pixels(self):
        data = encode(_sample_buffer(4, 4))
        with pytest.raises(BitmapIOError):
            decode_bytes(data[:-5])

    def test_truncated_is_oserror(self):
        with pytest.raises(OSError):
            decode_bytes(b"")


class _ForwardOnlyStream(io.RawIOBase):
    """Readable stream that cannot seek, like a pipe."""

    def __init__(self, data: bytes):
        self._inner = io.BytesIO(data)

    def readable(self):
        return True

    def read(self, size=-1):
        return self._inner.read(size)


class TestDeclaredSizes:
    """Header-declared sizes larger than the data are rejected as I/O errors."""

    def test_huge_width_without_pixels(self, tmp_path):
        path = tmp_path / "wide.bmp"
        path.write_bytes(_raw_bmp(b"", 0x7FFFFFFF, 1))
        with pytest.raises(BitmapIOError) as exc_info:
            load_bitmap(path)
        assert "exceeds file length" in str(exc_info.value)

    def test_huge_height_without_pixels(self):
        with pytest.raises(BitmapIOError):
            decode_bytes(_raw_bmp(b"\x00" * 4, 1, -0x7FFFFFFF))

    def test_huge_data_offset(self, tmp_path):
        data = bytearray(encode(_sample_buffer(2, 2)))
        struct.pack_into("<I", data, 10, 0xFFFFFFFF)
        path = tmp_path / "offset.bmp"
        path.write_bytes(bytes(data))
        with pytest.raises(BitmapIOError):
            load_bitmap(path)

    def test_unseekable_stream_reads_in_chunks(self):
        stream = _ForwardOnlyStream(_raw_bmp(b"", 0x7FFFFFFF, 1))
        assert not stream.seekable()
        with pytest.raises(BitmapIOError) as exc_info:
            decode(stream)
        assert "row 0" in str(exc_info.value)

    def test_exact_length_still_decodes(self):
        buffer = _sample_buffer(3, 2)
        assert decode(io.BytesIO(encode(buffer))) == buffer


class TestReadHeader:
    """Tests for header-only parsing."""

    def test_header_properties(self):
        header = read_header(encode(_sample_buffer(5, 2)))
        assert header.width == 5
        assert header.height == 2
        assert header.row_size == 16
        assert header.padding == 1
        assert not header.top_down


class TestFiles:
    """Tests for load_bitmap/save_bitmap and Pillow interoperability."""

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "image.bmp"
        buffer = _sample_buffer(6, 4)
        written = save_bitmap(buffer, path)
        assert written == path.stat().st_size
        assert load_bitmap(path) == buffer

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(BitmapIOError) as exc_info:
            load_bitmap(tmp_path / "missing.bmp")
        assert isinstance(exc_info.value, BitmapError)
        assert "missing.bmp" in str(exc_info.value)

    def test_save_to_missing_directory(self, tmp_path):
        with pytest.raises(BitmapIOError):
            save_bitmap(_sample_buffer(), tmp_path / "nope" / "out.bmp")

    def test_decode_pillow_bmp(self, tmp_path):
        """A file written by Pillow decodes to the pixels Pillow reports."""
        img = Image.new("RGB", (5, 3))
        img.putdata([(i * 10, 255 - i * 10, i * 3) for i in range(15)])
        path = tmp_path / "pillow.bmp"
        img.save(path, format="BMP")

        buffer = load_bitmap(path)
        assert buffer.size == (5, 3)
        for y in range(3):
            for x in range(5):
                assert buffer.get(x, y).as_tuple() == img.getpixel((x, y))

    def test_pillow_reads_encoded(self, tmp_path):
        """A file written by the encoder opens in Pillow with the same pixels."""
        buffer = _sample_buffer(5, 3)
        path = tmp_path / "ours.bmp"
        save_bitmap(buffer, path)

        with Image.open(path) as img:
            assert img.size == (5, 3)
            assert img.mode == "RGB"
            for y in range(3):
                for x in range(5):
                    assert img.getpixel((x, y)) == buffer.get(x, y).as_tuple()

    def test_pillow_palette_bmp_rejected(self, tmp_path):
        path = tmp_path / "palette.bmp"
        Image.new("P", (4, 4)).save(path, format="BMP")
        with pytest.raises(UnsupportedFormatError):
            load_bitmap(path)
