#!filepath: tests/workflows/test_build.py
import asyncio

import pytest

from autoperf.config.app_config import AppConfig
from autoperf.config.connector_config import ConnectorConfig
from autoperf.config.engine_config import EngineConfig
from autoperf.config.plugin_config import PluginConfig
from autoperf.config.scheduler_config import SchedulerConfig
from autoperf.connectors.memory import MemoryConnector
from autoperf.engine import AutoWebPerf
from autoperf.extensions.budgets import BudgetsExtension
from autoperf.observability.instrumentation import Instrumentation
from autoperf.utils.errors import ConnectorError
from autoperf.workflows.build import abuild_autowebperf, build_autowebperf

from conftest import NOW


class ProbeGatherer:
    def __init__(self, env_vars=None, runs=1):
        self.env_vars = env_vars
        self.runs = runs

    def run(self, test, options=None):
        return {"status": "Retrieved", "metrics": {"runs": self.runs}}

    def retrieve(self, result, options=None):
        return {"status": "Retrieved"}


def make_cfg(**overrides) -> AppConfig:
    values = dict(
        connector=ConnectorConfig(type="memory", options={"env_vars": {"CONNECTOR_KEY": "c"}}),
        engine=EngineConfig(gatherers=["probe"], extensions=["budgets"], batch_update_buffer=10),
        plugins=PluginConfig(gatherers={"probe": "test_build:ProbeGatherer"}),
        scheduler=SchedulerConfig(frequencies={"Every5min": 5}),
        gatherers={"probe": {"runs": 3}},
        extensions={"budgets": {"data_source": "probe"}},
    )
    values.update(overrides)
    return AppConfig(**values)


def test_build_wires_everything(monkeypatch, clock):
    monkeypatch.setenv("AUTOPERF_PSI_API_KEY", "env")

    engine = build_autowebperf(make_cfg(), clock=clock)

    assert isinstance(engine, AutoWebPerf)
    assert isinstance(engine.connector, MemoryConnector)
    probe = engine.gatherers["probe"]
    assert probe.runs == 3
    assert probe.env_vars["CONNECTOR_KEY"] == "c"
    assert probe.env_vars["PSI_API_KEY"] == "env"
    assert engine.extensions.names == ["budgets"]
    assert isinstance(engine.extensions.select(None)._extensions[0][1], BudgetsExtension)
    assert engine.scheduler.compute_next_trigger(NOW, "Every5min") == NOW + 300
    assert engine.batch_update_buffer == 10
    assert engine.clock is clock


def test_injected_connector_is_used(clock):
    connector = MemoryConnector(tests=[{"url": "https://a.example"}])
    engine = build_autowebperf(make_cfg(), connector=connector, clock=clock)

    [result] = asyncio.run(engine.run())

    assert engine.connector is connector
    assert result.backend("probe")["metrics"] == {"runs": 3}
    assert len(connector.results) == 1


def test_async_env_vars_are_awaited():
    class AsyncStore(MemoryConnector):
        async def get_env_vars(self):
            return {"ASYNC_KEY": "a"}

    engine = build_autowebperf(make_cfg(), connector=AsyncStore())

    assert engine.gatherers["probe"].env_vars["ASYNC_KEY"] == "a"


def test_async_build_inside_a_running_loop(clock):
    async def _main():
        engine = await abuild_autowebperf(make_cfg(), clock=clock)
        return engine, await engine.run()

    engine, results = asyncio.run(_main())

    assert results == []
    assert engine.gatherers["probe"].env_vars["CONNECTOR_KEY"] == "c"


def test_instrumentation_is_built_from_config(clock):
    connector = MemoryConnector(tests=[{"url": "https://a.example"}, {"url": "https://b.example"}])
    engine = build_autowebperf(make_cfg(), connector=connector, clock=clock)

    asyncio.run(engine.run())

    assert isinstance(engine.inst, Instrumentation)
    assert list(engine.inst.timeline) == ["gatherer.run.probe"]
    assert engine.inst.metrics.metrics == {"results.created": 2}


def test_instrumentation_can_be_switched_off():
    engine = build_autowebperf(make_cfg(engine=EngineConfig(gatherers=["probe"], instrument=False)))

    assert engine.inst.enabled is False
    assert engine.inst.timeline == {}


def test_env_vars_failure_is_a_connector_error():
    class BrokenStore(MemoryConnector):
        def get_env_vars(self):
            raise OSError("unreadable")

    with pytest.raises(ConnectorError):
        build_autowebperf(make_cfg(), connector=BrokenStore())
