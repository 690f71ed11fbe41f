"""
Result objects for core operations.

Provides a unified result structure that the CLI (and any other driver)
can use to display operation outcomes consistently.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Tuple


@dataclass
class OperationResult:
    """
    Unified result object for all core operations.

    Attributes:
        ok: Whether the operation completed successfully
        operation: Name of the operation (e.g., "apply", "inspect")
        source: Input file path
        destination: Output file path, if any
        input_size: (width, height) of the loaded image
        output_size: (width, height) of the written image
        transforms: Names of the transforms applied, in order
        bytes_len: Number of bytes written
        warnings: Non-blocking issues encountered
        errors: Blocking errors that caused failure
        metadata: Additional operation-specific data
        logs: Captured log lines from the operation
    """
    ok: bool
    operation: str
    source: str = ""
    destination: str = ""
    input_size: Optional[Tuple[int, int]] = None
    output_size: Optional[Tuple[int, int]] = None
    transforms: List[str] = field(default_factory=list)
    bytes_len: int = 0
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    logs: List[str] = field(default_factory=list)

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)

    def add_error(self, message: str) -> None:
        """Add an error message and mark result as failed."""
        self.errors.append(message)
        self.ok = False

    def to_summary(self) -> str:
        """Generate a human-readable summary string."""
        status = "SUCCESS" if self.ok else "FAILED"
        lines = [f"[{status}] {self.operation}"]

        if self.source:
            lines.append(f"  Source: {self.source}")
        if self.input_size:
            lines.append(f"  Input size: {self.input_size[0]}x{self.input_size[1]}")
        if self.transforms:
            lines.append(f"  Transforms: {', '.join(self.transforms)}")
        if self.destination:
            lines.append(f"  Destination: {self.destination}")
        if self.output_size:
            lines.append(f"  Output size: {self.output_size[0]}x{self.output_size[1]}")
        if self.bytes_len:
            lines.append(f"  Bytes: {self.bytes_len:,}")

        if self.warnings:
            lines.append("  Warnings:")
            for warn in self.warnings:
                lines.append(f"    - {warn}")

        if self.errors:
            lines.append("  Errors:")
            for err in self.errors:
                lines.append(f"    - {err}")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "ok": self.ok,
            "operation": self.operation,
            "source": self.source,
            "destination": self.destination,
            "input_size": list(self.input_size) if self.input_size else None,
            "output_size": list(self.output_size) if self.output_size else None,
            "transforms": self.transforms,
            "bytes_len": self.bytes_len,
            "warnings": self.warnings,
            "errors": self.errors,
            "metadata": self.metadata,
            "logs": self.logs,
        }

    @classmethod
    def success(cls, operation: str, **kwargs) -> "OperationResult":
        """Create a successful result."""
        return cls(ok=True, operation=operation, **kwargs)

    @classmethod
    def failure(cls, operation: str, error: str, **kwargs) -> "OperationResult":
        """Create a failed result."""
        result = cls(ok=False, operation=operation, **kwargs)
        result.errors.append(error)
        return result
