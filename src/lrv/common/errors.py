"""Infrastructure errors raised at collaborator boundaries."""
from __future__ import annotations

from typing import Optional


class DirectoryError(Exception):
    """Raised when a mapping or reference-range lookup cannot be completed."""

    pass


class SinkError(Exception):
    """Raised when committing a finished batch fails."""

    def __init__(self, step: str, detail: str, local_test_id: Optional[str] = None):
        self.step = step
        self.detail = detail
        self.local_test_id = local_test_id
        super().__init__(f"{step}: {detail}")
