"""
Centralized parsing of transform command sequences.

The CLI and the interactive session import these helpers rather than
re-implement them.
"""

from typing import List

from bmp_manipulator.transforms import (
    Transform,
    TRANSFORM_ALIASES,
    parse_transform,
)


def parse_commands(value: str) -> List[Transform]:
    """
    Parse a transform sequence.

    Accepts:
        - A run of command characters: "igb" -> invert, grayscale, blur
        - A comma-separated list of names or commands:
          "invert, rotate-right, s"
        - An empty or blank string for no transforms

    Returns:
        Transforms in the order given.

    Raises:
        ValueError: If any entry is not a known transform.
    """
    value = value.strip()
    if not value:
        return []

    if "," in value:
        parts = [part for part in (p.strip() for p in value.split(",")) if part]
        return [parse_transform(part) for part in parts]

    # A single word is a name ("invert", "gray"), otherwise each character is a command
    normalized = value.lower().replace("-", "_").replace(" ", "_")
    if len(value) > 1 and normalized in TRANSFORM_ALIASES:
        return [TRANSFORM_ALIASES[normalized]]

    return [parse_transform(char) for char in value if not char.isspace()]

