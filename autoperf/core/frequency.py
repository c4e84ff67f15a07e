#!filepath: autoperf/core/frequency.py
from __future__ import annotations

from typing import Dict, Mapping, Optional

from autoperf.utils.errors import UnknownFrequencyError

NO_FREQUENCY = "None"

# fixed buckets, not calendar arithmetic (a "month" is 30 days)
DEFAULT_FREQUENCY_MINUTES: Dict[str, int] = {
    "Hourly": 60,
    "Daily": 24 * 60,
    "Weekly": 7 * 24 * 60,
    "Bi-weekly": 14 * 24 * 60,
    "Monthly": 30 * 24 * 60,
}


class FrequencyTable:
    """
    Recurrence label -> duration in minutes.

    Lookup is case-insensitive ("daily" == "Daily"). Overrides from
    configuration replace or extend the defaults.
    """

    def __init__(self, overrides: Optional[Mapping[str, int]] = None):
        self._minutes: Dict[str, int] = {}
        self._labels: Dict[str, str] = {}
        for label, minutes in {**DEFAULT_FREQUENCY_MINUTES, **(overrides or {})}.items():
            self.register(label, minutes)

    def register(self, label: str, minutes: int) -> None:
        if minutes <= 0:
            raise ValueError(f"frequency {label!r} must last at least one minute")
        key = label.strip().lower()
        self._minutes[key] = int(minutes)
        self._labels[key] = label

    # --------------------------------------------------
    @staticmethod
    def is_empty(label: Optional[str]) -> bool:
        """None / "" / "None" all mean "not recurring"."""
        return label is None or not str(label).strip() or str(label).strip().lower() == NO_FREQUENCY.lower()

    def __contains__(self, label: object) -> bool:
        return isinstance(label, str) and label.strip().lower() in self._minutes

    def minutes(self, label: str) -> int:
        try:
            return self._minutes[label.strip().lower()]
        except (KeyError, AttributeError):
            raise UnknownFrequencyError(f"unknown frequency {label!r}") from None

    def seconds(self, label: str) -> int:
        return self.minutes(label) * 60

    def labels(self) -> list[str]:
        return list(self._labels.values())
