#!filepath: tests/config/test_app_config.py
import pytest

from autoperf.config.app_config import AppConfig, _deep_merge, default_config_path
from autoperf.utils.errors import ConfigError


def test_defaults_from_base_yml():
    cfg = AppConfig.load(env_file=None)

    assert cfg.connector.type == "json"
    assert cfg.connector.tests == "tests.json"
    assert cfg.engine.gatherers == []
    assert cfg.engine.run_by_batch is False
    assert cfg.log.dir is None
    assert cfg.extensions["budgets"] == {"data_source": "webpagetest"}


def test_user_file_is_merged_over_defaults(tmp_path):
    path = tmp_path / "autoperf.yml"
    path.write_text(
        "connector:\n"
        "  type: csv\n"
        "  results: out/results.csv\n"
        "engine:\n"
        "  gatherers: [wpt]\n"
        "scheduler:\n"
        "  frequencies:\n"
        "    Every5min: 5\n",
        encoding="utf-8",
    )

    cfg = AppConfig.load(str(path), env_file=None)

    assert cfg.connector.type == "csv"
    assert cfg.connector.results == "out/results.csv"
    assert cfg.connector.tests == "tests.json"
    assert cfg.engine.gatherers == ["wpt"]
    assert cfg.scheduler.frequencies == {"Every5min": 5}
    assert cfg.log.level == "INFO"


def test_missing_file():
    with pytest.raises(ConfigError):
        AppConfig.load("/nonexistent/autoperf.yml", env_file=None)


def test_invalid_yaml(tmp_path):
    path = tmp_path / "bad.yml"
    path.write_text("connector: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        AppConfig.load(str(path), env_file=None)


@pytest.mark.parametrize(
    "content",
    [
        "- just\n- a list\n",
        "scheduler:\n  frequencies:\n    Never: 0\n",
        "plugins:\n  gatherers:\n    psi: not_a_target\n",
        "engine:\n  batch_update_buffer: 0\n",
    ],
)
def test_invalid_values(tmp_path, content):
    path = tmp_path / "bad.yml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        AppConfig.load(str(path), env_file=None)


def test_env_file_and_prefixed_variables(tmp_path, monkeypatch):
    monkeypatch.delenv("AUTOPERF_PSI_API_KEY", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("AUTOPERF_PSI_API_KEY=secret\n", encoding="utf-8")
    monkeypatch.setenv("AUTOPERF_WPT_API_KEY", "wpt-key")
    monkeypatch.setenv("AUTOPERF_", "ignored")

    AppConfig.load(env_file=str(env_file))
    env_vars = AppConfig.env_vars()

    assert env_vars["PSI_API_KEY"] == "secret"
    assert env_vars["WPT_API_KEY"] == "wpt-key"
    assert "" not in env_vars


def test_deep_merge():
    assert _deep_merge({"a": {"b": 1, "c": 2}, "d": 1}, {"a": {"b": 3}, "d": {"e": 1}}) == {
        "a": {"b": 3, "c": 2},
        "d": {"e": 1},
    }


def test_default_config_path_exists():
    assert default_config_path().endswith("base.yml")
