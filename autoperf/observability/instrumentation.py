#!filepath: autoperf/observability/instrumentation.py
from __future__ import annotations

from collections import OrderedDict
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict

from autoperf.observability.metrics import MetricRecorder
from autoperf.observability.timeline_reporter import TimelineReporter
from autoperf.observability.timer import Timer


@dataclass
class Instrumentation:
    """
    Leaf-only accounting + parent scope.

    Rules:
    1. The timeline only records leaf timers (record=True)
    2. Action-level timers are time boundaries only (record=False)
    3. record=False timers have no side effects
    4. A leaf name used many times (one gatherer called per Test)
       accumulates into one timeline entry
    """

    enabled: bool = True

    def __post_init__(self):
        self._timer = Timer(enabled=self.enabled)
        self.metrics = MetricRecorder(enabled=self.enabled)

        # timeline: OrderedDict[leaf_name, elapsed_seconds]
        self.timeline: Dict[str, float] = OrderedDict()

    # ---------------------------------------------------------
    # Context Manager Timer
    # ---------------------------------------------------------
    def timer(self, name: str, *, record: bool = True):
        """
        Context-manager timer.

        Parameters
        ----------
        name : str
            timer name, e.g. "gatherer.run.psi"
        record : bool
            - True  : leaf, written to the timeline
            - False : parent scope only
        """
        inst = self

        @contextmanager
        def _ctx():
            if not inst.enabled:
                yield
                return

            inst._timer.start(name)
            try:
                yield
            finally:
                elapsed = inst._timer.end(name)
                if record:
                    inst.timeline[name] = inst.timeline.get(name, 0.0) + elapsed

        return _ctx()

    # ---------------------------------------------------------
    # Timeline output (cold path)
    # ---------------------------------------------------------
    def generate_timeline_report(self, title: str):
        TimelineReporter(self.timeline, title).print()


# -------------------------------------------------------------
# No-op Instrumentation (observability disabled)
# -------------------------------------------------------------
class NoOpInstrumentation:
    """Default when no Instrumentation is injected."""

    def __init__(self):
        self.metrics = MetricRecorder(enabled=False)
        self.timeline: Dict[str, float] = {}

    def timer(self, name: str, *, record: bool = True):
        return _NoOpTimer()

    def generate_timeline_report(self, title: str):
        pass


class _NoOpTimer:
    def __enter__(self):
        pass

    def __exit__(self, exc_type, exc, tb):
        pass
