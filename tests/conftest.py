# tests/conftest.py
from __future__ import annotations

import copy
from typing import Any, Callable, Dict, List, Optional

import pytest
from loguru import logger

from autoperf.connectors.memory import MemoryConnector
from autoperf.engine import AutoWebPerf

NOW = 1_700_000_000  # 2023-11-14T22:13:20Z


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)  # or sys.stderr
    yield


# =============================================================================
# Virtual clock
# =============================================================================
class VirtualClock:
    """time.time() stand-in; only moves when told to."""

    def __init__(self, now: float = NOW):
        self.now = float(now)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()


# =============================================================================
# Fake adapters
# =============================================================================
class FakeGatherer:
    """
    Scripted gatherer.

    run_response / retrieve_response:
        dict                  -> returned for every call (copied)
        callable(record)      -> called per record
        Exception instance    -> raised
    """

    def __init__(
        self,
        run_response: Any = None,
        retrieve_response: Any = None,
        batch_response: Optional[Callable[[List[Any]], List[Any]]] = None,
        batch_only: bool = False,
    ):
        self.run_response = {"status": "Submitted"} if run_response is None else run_response
        self.retrieve_response = {"status": "Retrieved"} if retrieve_response is None else retrieve_response
        self.batch_response = batch_response
        self.batch_only = batch_only
        self.calls: List[tuple] = []

    @staticmethod
    def _answer(script: Any, record: Any) -> Any:
        if isinstance(script, Exception):
            raise script
        if callable(script):
            return script(record)
        return copy.deepcopy(script)

    def run(self, test, options=None):
        self.calls.append(("run", test.url))
        return self._answer(self.run_response, test)

    def retrieve(self, result, options=None):
        self.calls.append(("retrieve", result.id))
        return self._answer(self.retrieve_response, result)


class BatchGatherer(FakeGatherer):
    def run_batch(self, tests, options=None):
        self.calls.append(("run_batch", [t.url for t in tests]))
        if self.batch_response is not None:
            return self.batch_response(tests)
        return [self._answer(self.run_response, t) for t in tests]

    def retrieve_batch(self, results, options=None):
        self.calls.append(("retrieve_batch", [r.id for r in results]))
        return [self._answer(self.retrieve_response, r) for r in results]


class AsyncGatherer(FakeGatherer):
    async def run(self, test, options=None):
        return super().run(test, options)

    async def retrieve(self, result, options=None):
        return super().retrieve(result, options)


class RecordingExtension:
    """Records every hook call as (hook, url-or-None)."""

    def __init__(self, log: Optional[List[tuple]] = None, name: str = "rec"):
        self.log = log if log is not None else []
        self.name = name

    def before_all_runs(self, tests, options):
        self.log.append((self.name, "before_all_runs", len(tests)))

    def before_run(self, test, options):
        self.log.append((self.name, "before_run", test.url))

    def after_run(self, test, result, options):
        self.log.append((self.name, "after_run", test.url, result.id if result is not None else None))

    def after_all_runs(self, tests, results, options):
        self.log.append((self.name, "after_all_runs", len(results)))

    def before_all_retrieves(self, results, options):
        self.log.append((self.name, "before_all_retrieves", len(results)))

    def before_retrieve(self, result, options):
        self.log.append((self.name, "before_retrieve", result.id))

    def after_retrieve(self, result, options):
        self.log.append((self.name, "after_retrieve", result.id))

    def after_all_retrieves(self, results, options):
        self.log.append((self.name, "after_all_retrieves", len(results)))


@pytest.fixture
def make_engine(clock):
    """
    engine, connector = make_engine(tests=[...], gatherers={"wpt": FakeGatherer()})
    """

    def _make(
        tests: Optional[List[Dict[str, Any]]] = None,
        results: Optional[List[Dict[str, Any]]] = None,
        gatherers: Optional[Dict[str, Any]] = None,
        extensions=None,
        **kwargs,
    ):
        connector = MemoryConnector(tests=tests, results=results)
        engine = AutoWebPerf(
            connector=connector,
            gatherers=gatherers if gatherers is not None else {"wpt": FakeGatherer()},
            extensions=extensions,
            clock=clock,
            **kwargs,
        )
        return engine, connector

    return _make


def backend_result(result_id: str, status: str = "Submitted", backends: Optional[Dict[str, str]] = None, **extra):
    """A stored Result row with one sub-object per back-end."""
    backends = backends or {"wpt": status}
    record = {
        "selected": False,
        "id": result_id,
        "type": "Single",
        "status": status,
        "label": result_id,
        "url": f"https://{result_id}.example",
        "createdTimestamp": NOW * 1000,
        "modifiedTimestamp": NOW * 1000,
        "errors": [],
    }
    for name, sub_status in backends.items():
        record[name] = {"status": sub_status, "settings": {}, "metadata": {"testId": f"{name}-{result_id}"}, "metrics": {}}
    record.update(extra)
    return record
