#!filepath: autoperf/core/metrics.py
"""
Standardized metric names, after the metrics Lighthouse scores on
(https://web.dev/performance-scoring/). Gatherers use them so that
extensions (budgets) can read any back-end's metrics the same way.
"""
from __future__ import annotations

from typing import Any, Dict, Tuple

from autoperf.utils.object_path import get_path, set_path

TIMING: Tuple[str, ...] = (
    "TimeToFirstByte",
    "FirstPaint",
    "FirstMeaningfulPaint",
    "FirstContentfulPaint",
    "VisualComplete",
    "SpeedIndex",
    "DOMContentLoaded",
    "LoadEvent",
    "TimeToInteractive",
    "TotalBlockingTime",
    "FirstCPUIdle",
    "FirstInputDelay",
    "LargestContentfulPaint",
)

RESOURCE_SIZE: Tuple[str, ...] = ("HTML", "Javascript", "CSS", "Fonts", "Images", "Videos")

RESOURCE_COUNT: Tuple[str, ...] = ("DOMElements", "Connections", "Requests")

SCORES: Tuple[str, ...] = ("Performance", "ProgressiveWebApp")

METRIC_KEYS: Tuple[str, ...] = TIMING + RESOURCE_SIZE + RESOURCE_COUNT + SCORES

# short names used in budgets and by some back-ends
ABBREVIATIONS: Dict[str, str] = {
    "TTFB": "TimeToFirstByte",
    "FP": "FirstPaint",
    "FMP": "FirstMeaningfulPaint",
    "FCP": "FirstContentfulPaint",
    "SI": "SpeedIndex",
    "TTI": "TimeToInteractive",
    "TBT": "TotalBlockingTime",
    "FCI": "FirstCPUIdle",
    "FID": "FirstInputDelay",
    "LCP": "LargestContentfulPaint",
}


def standard_name(key: str) -> str:
    """FCP -> FirstContentfulPaint; standard names pass through."""
    name = ABBREVIATIONS.get(key, key)
    if name not in METRIC_KEYS:
        raise KeyError(f'Metric key "{key}" is not supported.')
    return name


def read_metric(values: Dict[str, Any], key: str) -> Any:
    """
    Value of `key` in a back-end's metrics, under the name as given
    or under its standard name. None when absent.
    """
    if key in values:
        return values[key]
    return values.get(standard_name(key))


class Metrics:
    """
    Nested metric values keyed by standard names.

        m = Metrics()
        m.set("lighthouse.FirstContentfulPaint", 900)
        m.to_object()  # {"lighthouse": {"FirstContentfulPaint": 900}}

    set() only accepts paths ending in a standard metric key;
    set_any() accepts anything.
    """

    def __init__(self):
        self.values: Dict[str, Any] = {}

    def set(self, key: str, value: Any) -> None:
        metric_key = key.split(".")[-1]
        if metric_key not in METRIC_KEYS:
            raise KeyError(f'Metric key "{metric_key}" is not supported.')
        self.set_any(key, value)

    def set_any(self, key: str, value: Any) -> None:
        set_path(self.values, key, value)

    def get(self, key: str, default: Any = None) -> Any:
        return get_path(self.values, key, default)

    def to_object(self) -> Dict[str, Any]:
        return self.values
