"""
Utility functions for the Pitch Board match engine.

Wall-clock and display helpers shared by the clock and the report exporter.
"""
import time


def fmt_mmss(seconds: int) -> str:
    """Render a second count as zero-padded ``MM:SS``; minutes may exceed 59.

    >>> fmt_mmss(1500)
    '25:00'
    >>> fmt_mmss(-3)
    '00:00'
    """
    seconds = max(0, int(seconds))
    m = seconds // 60
    s = seconds % 60
    return f"{m:02d}:{s:02d}"


def now_ms() -> int:
    """Current wall-clock time in integer epoch milliseconds."""
    return int(time.time() * 1000)


def whole_seconds_between(start_ms: int, end_ms: int) -> int:
    """Whole seconds elapsed from ``start_ms`` to ``end_ms``, never negative."""
    if end_ms <= start_ms:
        return 0
    return (end_ms - start_ms) // 1000
