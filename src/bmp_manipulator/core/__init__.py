"""
Core module for BMP Manipulator.

This module provides the single source of truth for:
- Transform sequence parsing (parsing.py)
- Result objects (results.py)
- Unified inspect/apply/convert workflows (actions.py)

The CLI and the interactive session call into this module rather than
implementing their own logic.
"""

from .parsing import parse_commands
from .results import OperationResult
from .actions import (
    inspect_bitmap,
    transform_file,
    convert_file,
)

__all__ = [
    # Parsing
    "parse_commands",
    # Results
    "OperationResult",
    # Actions
    "inspect_bitmap",
    "transform_file",
    "convert_file",
]
