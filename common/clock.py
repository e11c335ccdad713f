from __future__ import annotations

import math
import time
from datetime import datetime


def now_ms() -> float:
    return time.time() * 1000.0


def is_finite_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def to_clock(ms) -> str:
    """Format milliseconds as HH:MM:SS. Hours are not wrapped at 24."""
    if not is_finite_number(ms):
        return ""
    s = int(ms // 1000)
    hh = s // 3600
    mm = (s % 3600) // 60
    ss = s % 60
    return f"{hh:02d}:{mm:02d}:{ss:02d}"


def format_duration(ms: float) -> str:
    """Session timer display, m:ss."""
    s = max(0, round(ms / 1000)) if is_finite_number(ms) else 0
    return f"{s // 60}:{s % 60:02d}"


def wall_clock(ms: float) -> str:
    """Local time of day for an epoch timestamp in milliseconds."""
    if not is_finite_number(ms):
        return ""
    return datetime.fromtimestamp(ms / 1000.0).strftime("%H:%M:%S")
