from __future__ import annotations


class ProcessError(Exception):
    """Raised when the backup itself cannot be read; aborts the whole run."""
