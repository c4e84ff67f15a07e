#!filepath: autoperf/workflows/build.py
from __future__ import annotations

import asyncio
import inspect
import time
from typing import Any, Dict, Optional

from autoperf import logs
from autoperf.config.app_config import AppConfig
from autoperf.core.frequency import FrequencyTable
from autoperf.core.scheduler import Scheduler
from autoperf.engine import AutoWebPerf
from autoperf.extensions.pipeline import ExtensionPipeline
from autoperf.observability.instrumentation import Instrumentation
from autoperf.registry import create_connector, create_extension, create_gatherer, load_plugins
from autoperf.utils.datetime_utils import Clock
from autoperf.utils.errors import ConnectorError

# built-in adapters register themselves on import
import autoperf.connectors  # noqa: F401
import autoperf.extensions  # noqa: F401


async def abuild_autowebperf(
    cfg: Optional[AppConfig] = None,
    *,
    connector: Any = None,
    clock: Clock = time.time,
    instrumentation: Any = None,
) -> AutoWebPerf:
    """
    AutoWebPerf wiring (FINAL / FROZEN)

    Order:
        plugins (module:attr)   -> registries
        connector               -> env vars (API keys, sync or awaited)
        env vars + AUTOPERF_*   -> gatherers
        extensions              -> pipeline, in configured order
        scheduler.frequencies   -> frequency table
        engine.instrument       -> Instrumentation (timeline + counters)
    """
    cfg = cfg or AppConfig.load()
    load_plugins(cfg.plugins)

    connector = connector or create_connector(cfg.connector)
    env_vars = {**await _connector_env_vars(connector), **AppConfig.env_vars()}

    gatherers = {
        name: create_gatherer(name, cfg.gatherers.get(name), env_vars)
        for name in cfg.engine.gatherers
    }
    extensions = ExtensionPipeline(
        (name, create_extension(name, cfg.extensions.get(name)))
        for name in cfg.engine.extensions
    )
    inst = instrumentation or Instrumentation(enabled=cfg.engine.instrument)

    logs.info(
        f"[Build] connector={cfg.connector.type} "
        f"gatherers={list(gatherers)} extensions={extensions.names}"
    )

    return AutoWebPerf(
        connector=connector,
        gatherers=gatherers,
        extensions=extensions,
        scheduler=Scheduler(FrequencyTable(cfg.scheduler.frequencies)),
        clock=clock,
        instrumentation=inst,
        run_by_batch=cfg.engine.run_by_batch,
        batch_update_buffer=cfg.engine.batch_update_buffer,
    )


def build_autowebperf(cfg: Optional[AppConfig] = None, **kwargs: Any) -> AutoWebPerf:
    """Blocking wrapper; inside a running loop await abuild_autowebperf instead."""
    return asyncio.run(abuild_autowebperf(cfg, **kwargs))


async def _connector_env_vars(connector: Any) -> Dict[str, Any]:
    try:
        env_vars = connector.get_env_vars()
        if inspect.isawaitable(env_vars):
            env_vars = await env_vars
    except ConnectorError:
        raise
    except Exception as e:
        raise ConnectorError(f"[Build] connector.get_env_vars failed: {e}") from e
    return dict(env_vars or {})
