#!filepath: autoperf/core/scheduler.py
from __future__ import annotations

from typing import Optional

from autoperf import logs
from autoperf.core.frequency import FrequencyTable
from autoperf.core.models import Recurring, Test
from autoperf.utils.datetime_utils import DateTimeUtils


class Scheduler:
    """
    Recurring trigger bookkeeping (FROZEN)

    A Test is due when its frequency is a known label and its
    nextTriggerTimestamp is missing or not in the future. Firing a due Test
    moves the trigger one full period past *now* (not past the old trigger),
    so a Test that was missed for a week fires once, not seven times.

    All times are epoch seconds taken from the caller.
    """

    def __init__(self, frequency_table: Optional[FrequencyTable] = None):
        self.frequencies = frequency_table or FrequencyTable()

    # --------------------------------------------------
    def compute_next_trigger(self, now: float, label: Optional[str]) -> Optional[int]:
        if FrequencyTable.is_empty(label):
            return None
        return DateTimeUtils.to_seconds(now) + self.frequencies.seconds(label)

    def is_recurring(self, test: Test) -> bool:
        label = test.frequency
        if FrequencyTable.is_empty(label):
            return False
        if label not in self.frequencies:
            logs.warning(f"[Scheduler] unknown frequency {label!r} for {test.url or test.label}, skipped")
            return False
        return True

    def is_due(self, test: Test, now: float) -> bool:
        if not self.is_recurring(test):
            return False
        ts = test.recurring.next_trigger_timestamp
        return ts is None or ts <= DateTimeUtils.to_seconds(now)

    # --------------------------------------------------
    def activate(self, test: Test, now: float) -> bool:
        """
        Set up the trigger for a Test whose frequency changed since the last
        activation (or that never had a trigger). Returns True when the Test
        was modified; calling it twice is a no-op the second time.
        """
        recurring = test.recurring
        if recurring is None:
            return False

        label = recurring.frequency
        if FrequencyTable.is_empty(label):
            if recurring.next_trigger_timestamp is None and recurring.activated_frequency == label:
                return False
            self._set_trigger(recurring, None, label)
            return True

        if label not in self.frequencies:
            logs.warning(f"[Scheduler] unknown frequency {label!r} for {test.url or test.label}, skipped")
            return False

        if recurring.activated_frequency == label and recurring.next_trigger_timestamp is not None:
            return False

        self._set_trigger(recurring, self.compute_next_trigger(now, label), label)
        return True

    def advance(self, test: Test, now: float) -> Optional[int]:
        """Move a fired Test to its next period; returns the new trigger."""
        recurring = test.recurring
        label = recurring.frequency if recurring else None
        if recurring is None or FrequencyTable.is_empty(label):
            return None

        next_ts = self.compute_next_trigger(now, label)
        self._set_trigger(recurring, next_ts, label)
        return next_ts

    @staticmethod
    def _set_trigger(recurring: Recurring, ts: Optional[int], label: Optional[str]) -> None:
        recurring.next_trigger_timestamp = ts
        recurring.next_trigger = DateTimeUtils.seconds_to_iso(ts)
        recurring.activated_frequency = label
