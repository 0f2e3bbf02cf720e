"""Process-wide switch for per-merge progress output."""

import os

_enabled: bool = True


def enable_progress() -> None:
    """Enable progress output for all minbpe operations."""
    global _enabled
    _enabled = True


def disable_progress() -> None:
    """Disable progress output for all minbpe operations."""
    global _enabled
    _enabled = False


def is_progress_enabled() -> bool:
    """Check if progress is enabled (respects env var override)."""
    if os.environ.get("MINBPE_DISABLE_PROGRESS", "").strip() == "1":
        return False
    return _enabled
