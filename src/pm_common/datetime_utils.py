"""UTC time utilities."""

import math
import time


def unix_seconds(now: float | None = None) -> int:
    """Whole Unix seconds (floored). Grid timestamps are always int seconds."""
    return math.floor(time.time() if now is None else now)
