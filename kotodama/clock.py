"""Reset-boundary arithmetic on epoch-millisecond timestamps.

All timestamps in the game are integer milliseconds since the Unix epoch,
the unit the persisted saves were written in.
"""

import time
from datetime import datetime, timezone

from kotodama.config import RESET_HOUR, RESET_TZ_OFFSET_MINUTES

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS


def now_ms() -> int:
    return int(time.time() * 1000)


def to_ms(moment: datetime) -> int:
    """Convert an aware datetime to epoch milliseconds."""
    return int(moment.timestamp() * 1000)


def from_ms(timestamp: int) -> datetime:
    return datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)


def last_reset_boundary(
    timestamp: int,
    reset_hour: int = RESET_HOUR,
    tz_offset_minutes: int = RESET_TZ_OFFSET_MINUTES,
) -> int:
    """Return the most recent `reset_hour:00` in the fixed offset, at or before `timestamp`.

    Shifting by (offset - reset_hour) turns the reset instant into a local
    midnight, so truncating to a whole day lands on the boundary. Floor
    modulo keeps this correct for timestamps before the epoch.
    """
    shift = tz_offset_minutes * MINUTE_MS - reset_hour * HOUR_MS
    local = timestamp + shift
    return local - local % DAY_MS - shift
