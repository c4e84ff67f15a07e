#!filepath: tests/test_registry.py
import pytest

import autoperf.connectors  # noqa: F401
import autoperf.extensions  # noqa: F401
from autoperf import registry
from autoperf.config.connector_config import ConnectorConfig
from autoperf.config.plugin_config import PluginConfig
from autoperf.connectors.memory import MemoryConnector
from autoperf.extensions.budgets import BudgetsExtension
from autoperf.utils.errors import RegistryError


class EchoGatherer:
    def __init__(self, env_vars=None, region="eu"):
        self.env_vars = env_vars
        self.region = region

    def run(self, test, options=None):
        return {"status": "Submitted"}

    def retrieve(self, result, options=None):
        return {"status": "Retrieved"}


@pytest.fixture
def clean_registries(monkeypatch):
    for name in ("_GATHERER_REGISTRY", "_CONNECTOR_REGISTRY", "_EXTENSION_REGISTRY"):
        table = getattr(registry, name)
        monkeypatch.setattr(registry, name, dict(table))
    monkeypatch.setattr(
        registry,
        "_REGISTRIES",
        {
            "gatherer": registry._GATHERER_REGISTRY,
            "connector": registry._CONNECTOR_REGISTRY,
            "extension": registry._EXTENSION_REGISTRY,
        },
    )


def test_builtins_are_registered():
    assert {"json", "csv", "memory", "multi"} <= set(registry.registered("connector"))
    assert "budgets" in registry.registered("extension")


def test_register_and_create_gatherer(clean_registries):
    registry.register_gatherer("echo")(EchoGatherer)

    gatherer = registry.create_gatherer("echo", {"region": "us"}, {"API_KEY": "k"})

    assert isinstance(gatherer, EchoGatherer)
    assert gatherer.region == "us"
    assert gatherer.env_vars == {"API_KEY": "k"}


def test_create_extension_with_settings():
    extension = registry.create_extension("budgets", {"data_source": "psi"})
    assert isinstance(extension, BudgetsExtension)
    assert extension.data_source == "psi"


def test_create_connector_uses_from_config():
    store = registry.create_connector(ConnectorConfig(type="memory", options={"env_vars": {"K": "V"}}))
    assert isinstance(store, MemoryConnector)
    assert store.get_env_vars() == {"K": "V"}


def test_plain_callable_connector(clean_registries):
    seen = []
    registry.register_connector("custom")(lambda cfg: seen.append(cfg.type) or MemoryConnector())

    assert isinstance(registry.create_connector(ConnectorConfig(type="custom")), MemoryConnector)
    assert seen == ["custom"]


def test_unknown_names_raise():
    with pytest.raises(RegistryError):
        registry.create_gatherer("nope")
    with pytest.raises(RegistryError):
        registry.create_connector(ConnectorConfig(type="nope"))


def test_load_plugins_from_module_attr(clean_registries):
    plugins = PluginConfig(gatherers={"echo": "test_registry:EchoGatherer"})

    registry.load_plugins(plugins)

    assert isinstance(registry.create_gatherer("echo"), EchoGatherer)


@pytest.mark.parametrize("target", ["no_colon", "missing_module_xyz:Thing", "autoperf.registry:NoSuchThing"])
def test_bad_plugin_targets(target):
    with pytest.raises(RegistryError):
        registry.load_plugin(target)
