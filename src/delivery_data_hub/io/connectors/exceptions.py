"""Source query exceptions for dimension fetches."""

from typing import Dict


class SourceQueryFailed(Exception):
    """Structured error for a failed upstream dimension query.

    Raised by dimension sources and propagated unchanged through the
    resolution layer; an empty result is never reported with this error.
    """

    def __init__(self, table: str, original_error: Exception, message: str):
        self.table = table
        self.original_error = original_error
        super().__init__(message)

    def __str__(self) -> str:  # pragma: no cover - trivial string repr
        return f"Query against '{self.table}' failed: {self.args[0]}"

    def to_dict(self) -> Dict[str, str]:
        """Convert to structured dict for logging."""
        return {
            "error_type": "SourceQueryFailed",
            "table": self.table,
            "message": str(self),
            "original_error_type": type(self.original_error).__name__,
            "original_error_message": str(self.original_error),
        }
