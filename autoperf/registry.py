#!filepath: autoperf/registry.py
from __future__ import annotations

import importlib
from typing import Any, Callable, Dict, Mapping, Optional

from autoperf import logs
from autoperf.utils.errors import RegistryError

# ------------------------------------------------------------------
# Global registries
# ------------------------------------------------------------------
_GATHERER_REGISTRY: Dict[str, Callable[..., Any]] = {}
_CONNECTOR_REGISTRY: Dict[str, Callable[..., Any]] = {}
_EXTENSION_REGISTRY: Dict[str, Callable[..., Any]] = {}

_REGISTRIES = {
    "gatherer": _GATHERER_REGISTRY,
    "connector": _CONNECTOR_REGISTRY,
    "extension": _EXTENSION_REGISTRY,
}


# ------------------------------------------------------------------
# Registration decorators
# ------------------------------------------------------------------
def register_gatherer(name: str):
    def _wrap(factory):
        _GATHERER_REGISTRY[name] = factory
        return factory
    return _wrap


def register_connector(name: str):
    def _wrap(factory):
        _CONNECTOR_REGISTRY[name] = factory
        return factory
    return _wrap


def register_extension(name: str):
    def _wrap(factory):
        _EXTENSION_REGISTRY[name] = factory
        return factory
    return _wrap


def registered(kind: str) -> list[str]:
    return sorted(_REGISTRIES[kind])


# ------------------------------------------------------------------
# Config-driven plugins ("package.module:attr")
# ------------------------------------------------------------------
def load_plugin(target: str) -> Any:
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise RegistryError(f"plugin target must be 'module:attr', got {target!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise RegistryError(f"cannot import plugin module {module_name!r}: {e}") from e
    try:
        return getattr(module, attr)
    except AttributeError:
        raise RegistryError(f"module {module_name!r} has no attribute {attr!r}") from None


def load_plugins(plugins: Any) -> None:
    """
    Fill the registries from a PluginConfig. Plugins may replace built-ins.
    """
    for kind, table in (
        ("gatherer", plugins.gatherers),
        ("connector", plugins.connectors),
        ("extension", plugins.extensions),
    ):
        for name, target in table.items():
            _REGISTRIES[kind][name] = load_plugin(target)
            logs.debug(f"[Registry] {kind} {name!r} <- {target}")


# ------------------------------------------------------------------
# Factories
# ------------------------------------------------------------------
def _lookup(kind: str, name: str) -> Callable[..., Any]:
    registry = _REGISTRIES[kind]
    if name not in registry:
        known = ", ".join(sorted(registry)) or "none"
        raise RegistryError(f"unknown {kind} {name!r} (registered: {known})")
    return registry[name]


def create_gatherer(
    name: str,
    settings: Optional[Mapping[str, Any]] = None,
    env_vars: Optional[Mapping[str, Any]] = None,
) -> Any:
    """
    factory(env_vars=..., **settings)

    env_vars carries API keys (connector env vars + AUTOPERF_* variables).
    """
    factory = _lookup("gatherer", name)
    return factory(env_vars=dict(env_vars or {}), **dict(settings or {}))


def create_extension(name: str, settings: Optional[Mapping[str, Any]] = None) -> Any:
    factory = _lookup("extension", name)
    return factory(**dict(settings or {}))


def create_connector(cfg: Any) -> Any:
    """
    cfg: ConnectorConfig. Classes build themselves through from_config(cfg);
    plain callables are called with cfg.
    """
    name = cfg.type
    results_type = getattr(cfg, "results_type", None)
    if results_type and results_type != cfg.type:
        # Tests stay on cfg.type, Results go to results_type
        name = "multi"
    factory = _lookup("connector", name)
    build = getattr(factory, "from_config", factory)
    return build(cfg)
