"""
Core workflow actions for BMP Manipulator.

Pure-ish functions that any driver (CLI, interactive session, scripts)
can call. Codec failures are reported through OperationResult rather
than raised.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Sequence, Union

from bmp_manipulator.bmp_codec import (
    BitmapError,
    BitmapIOError,
    HEADER_SIZE,
    load_bitmap,
    read_header,
    save_bitmap,
)
from bmp_manipulator.image_utils import convert_image_to_bitmap
from bmp_manipulator.transforms import Transform, apply_transforms

from .parsing import parse_commands
from .results import OperationResult

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class _ListLogHandler(logging.Handler):
    """Capture log records into a list of formatted strings."""

    def __init__(self, level: int = logging.INFO) -> None:
        super().__init__(level)
        self.records = []
        self.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(self.format(record))


@contextmanager
def _capture_logs(logger_name: str = "bmp_manipulator"):
    """Capture logs for core operations into a list."""
    target_logger = logging.getLogger(logger_name)
    handler = _ListLogHandler()
    previous_level = target_logger.level
    if previous_level in (logging.NOTSET, logging.WARNING, logging.ERROR, logging.CRITICAL):
        target_logger.setLevel(logging.INFO)
    target_logger.addHandler(handler)
    try:
        yield handler.records
    finally:
        target_logger.removeHandler(handler)
        target_logger.setLevel(previous_level)


def inspect_bitmap(path: PathLike) -> OperationResult:
    """
    Read and validate a BMP header without decoding pixels.

    Metadata holds every header field plus row size and padding.
    """
    try:
        with open(path, "rb") as f:
            header = read_header(f.read(HEADER_SIZE))
    except BitmapError as e:
        return OperationResult.failure("inspect", str(e), source=str(path))
    except OSError as e:
        return OperationResult.failure(
            "inspect", f"Cannot read {path}: {e.strerror or e}", source=str(path)
        )

    result = OperationResult.success(
        "inspect",
        source=str(path),
        input_size=(header.width, header.abs_height),
    )
    result.metadata.update({
        "file_size": header.file_size,
        "data_offset": header.data_offset,
        "dib_header_size": header.dib_header_size,
        "width": header.width,
        "height": header.height,
        "planes": header.planes,
        "bits_per_pixel": header.bits_per_pixel,
        "compression": header.compression,
        "image_size": header.image_size,
        "row_size": header.row_size,
        "padding": header.padding,
        "top_down": header.top_down,
    })

    actual_size = Path(path).stat().st_size
    if header.file_size and header.file_size != actual_size:
        result.add_warning(
            f"Header file size {header.file_size:,} does not match actual size {actual_size:,}"
        )
    if header.dib_header_size != 40:
        result.add_warning(
            f"Extended DIB header ({header.dib_header_size} bytes); extra fields are ignored"
        )
    return result


def transform_file(
    input_path: PathLike,
    output_path: PathLike,
    transforms: Union[str, Sequence[Transform]],
) -> OperationResult:
    """
    Load a BMP, run a chain of transforms and save the result.

    Args:
        input_path: 24-bit BMP to read
        output_path: Where to write the transformed BMP
        transforms: Transform objects, or a command string such as
            "igb" or "invert,rotate-right"

    Returns:
        OperationResult describing the run; codec failures are reported, not raised.
    """
    with _capture_logs() as logs:
        if isinstance(transforms, str):
            try:
                chain = parse_commands(transforms)
            except ValueError as e:
                return OperationResult.failure("apply", str(e), source=str(input_path), logs=logs)
        else:
            chain = list(transforms)

        try:
            buffer = load_bitmap(input_path)
        except BitmapError as e:
            return OperationResult.failure("apply", str(e), source=str(input_path), logs=logs)

        logger.info(f"Loaded {input_path} ({buffer.width}x{buffer.height})")
        input_size = buffer.size
        buffer = apply_transforms(buffer, chain)

        try:
            written = save_bitmap(buffer, output_path)
        except BitmapIOError as e:
            return OperationResult.failure(
                "apply",
                str(e),
                source=str(input_path),
                destination=str(output_path),
                input_size=input_size,
                transforms=[t.name for t in chain],
                logs=logs,
            )

        logger.info(f"Wrote {output_path} ({buffer.width}x{buffer.height}, {written:,} bytes)")

        result = OperationResult.success(
            "apply",
            source=str(input_path),
            destination=str(output_path),
            input_size=input_size,
            output_size=buffer.size,
            transforms=[t.name for t in chain],
            bytes_len=written,
            logs=logs,
        )
        if not chain:
            result.add_warning("No transforms given; image was re-encoded unchanged")
        if buffer.is_empty():
            result.add_warning("Output image has no pixels")
        return result


def convert_file(input_path: PathLike, output_path: PathLike) -> OperationResult:
    """Convert any Pillow-readable image to a 24-bit BMP."""
    with _capture_logs() as logs:
        try:
            buffer = convert_image_to_bitmap(input_path, output_path)
        except BitmapError as e:
            return OperationResult.failure(
                "convert", str(e), source=str(input_path), destination=str(output_path), logs=logs
            )
        return OperationResult.success(
            "convert",
            source=str(input_path),
            destination=str(output_path),
            input_size=buffer.size,
            output_size=buffer.size,
            bytes_len=Path(output_path).stat().st_size,
            logs=logs,
        )

