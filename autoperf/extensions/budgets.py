#!filepath: autoperf/extensions/budgets.py
from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

from autoperf import logs
from autoperf.core.metrics import read_metric
from autoperf.core.models import AuditRecord
from autoperf.registry import register_extension
from autoperf.utils.object_path import set_path

# metric -> what to write for it
BUDGET_METRIC_MAP: Dict[str, List[str]] = {
    "FCP": ["milliseconds", "seconds", "overRatio"],
    "FMP": ["milliseconds", "seconds", "overRatio"],
    "SpeedIndex": ["milliseconds", "seconds", "overRatio"],
    "TTI": ["milliseconds", "seconds", "overRatio"],
    "Javascript": ["KB", "overRatio"],
    "CSS": ["KB", "overRatio"],
    "Fonts": ["KB", "overRatio"],
    "Images": ["KB", "overRatio"],
    "Videos": ["KB", "overRatio"],
}


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


@register_extension("budgets")
class BudgetsExtension:
    """
    Compare a back-end's metrics with per-Test budgets.

    Test:
        budgets: {dataSource: "webpagetest", budget: {FCP: 1000, CSS: 50}}
    Result (after run / retrieve):
        budgets: {dataSource, budget,
                  metrics: {FCP: {budget: {milliseconds: 1000, seconds: 1.0},
                                  overRatio: 0.5}}}

    overRatio = (value - budget) / budget, None while the metric is unknown.
    A back-end may report either the budget key (FCP) or the standard
    metric name (FirstContentfulPaint).
    """

    def __init__(self, data_source: str = "webpagetest"):
        self.data_source = data_source

    def after_run(self, test=None, result=None, options=None):
        if test is None or result is None:
            return
        self.process_result(result, test.extras.get("budgets"))

    def after_retrieve(self, result=None, options=None):
        if result is None:
            return
        self.process_result(result, result.extras.get("budgets"))

    # --------------------------------------------------
    def process_result(self, result: AuditRecord, budgets: Optional[Dict[str, Any]]) -> None:
        if not isinstance(budgets, dict) or not budgets.get("budget"):
            return

        data_source = budgets.get("dataSource") or self.data_source
        backend = result.backend(data_source) or {}
        values = backend.get("metrics") or {}
        if not isinstance(values, dict):
            logs.debug(f"[Budgets] {data_source}.metrics is not a mapping, skipped")
            values = {}

        out = copy.deepcopy({k: v for k, v in budgets.items() if k != "metrics"})
        out["metrics"] = {}

        for metric, targets in BUDGET_METRIC_MAP.items():
            budget = _number(budgets["budget"].get(metric))
            if not budget:
                continue

            entry: Dict[str, Any] = {}
            for target in targets:
                if target == "milliseconds":
                    set_path(entry, "budget.milliseconds", budget)
                elif target == "seconds":
                    set_path(entry, "budget.seconds", round(budget / 1000, 2))
                elif target == "KB":
                    set_path(entry, "budget.KB", budget)
                elif target == "overRatio":
                    value = _number(read_metric(values, metric))
                    entry["overRatio"] = None if value is None else round((value - budget) / budget, 4)
            out["metrics"][metric] = entry

        result.extras["budgets"] = out
