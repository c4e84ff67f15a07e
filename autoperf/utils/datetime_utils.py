#!filepath: autoperf/utils/datetime_utils.py
from __future__ import annotations
from datetime import datetime, timezone
from typing import Callable, Optional, Union

Clock = Callable[[], float]


class DateTimeUtils:
    """
    Epoch conversions used across the engine.

    - scheduling works in whole epoch seconds
    - Result created/modified timestamps are epoch milliseconds
    - no calendar arithmetic, no local time zones
    """

    UTC = timezone.utc

    # ================================================================
    # clock -> epoch
    # ================================================================
    @classmethod
    def to_seconds(cls, now: float) -> int:
        return int(now)

    @classmethod
    def to_millis(cls, now: float) -> int:
        return int(round(now * 1000))

    # ================================================================
    # epoch -> readable
    # ================================================================
    @classmethod
    def seconds_to_iso(cls, ts: Optional[Union[int, float]]) -> Optional[str]:
        """
        1760000000 -> "2025-10-09T08:53:20+00:00"
        None       -> None
        """
        if ts is None:
            return None
        return datetime.fromtimestamp(ts, tz=cls.UTC).isoformat()

    @classmethod
    def millis_to_iso(cls, ts: Optional[Union[int, float]]) -> Optional[str]:
        if ts is None:
            return None
        return cls.seconds_to_iso(ts / 1000)
