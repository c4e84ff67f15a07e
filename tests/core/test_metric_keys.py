#!filepath: tests/core/test_metric_keys.py
import pytest

from autoperf.core.metrics import ABBREVIATIONS, METRIC_KEYS, Metrics, read_metric, standard_name


def test_set_standard_metrics():
    metrics = Metrics()
    metrics.set("lighthouse.FirstContentfulPaint", 900)
    metrics.set("SpeedIndex", 1200)
    assert metrics.to_object() == {
        "lighthouse": {"FirstContentfulPaint": 900},
        "SpeedIndex": 1200,
    }
    assert metrics.get("lighthouse.FirstContentfulPaint") == 900


def test_unsupported_metric_key():
    metrics = Metrics()
    with pytest.raises(KeyError):
        metrics.set("lighthouse.NotAMetric", 1)
    assert metrics.to_object() == {}


def test_set_any_accepts_anything():
    metrics = Metrics()
    metrics.set_any("crux.p75.LCP", 2500)
    assert metrics.get("crux.p75.LCP") == 2500
    assert metrics.get("crux.p90.LCP", "n/a") == "n/a"


def test_metric_keys_are_unique():
    assert len(METRIC_KEYS) == len(set(METRIC_KEYS))
    assert "Performance" in METRIC_KEYS


def test_standard_name_resolves_abbreviations():
    assert standard_name("FCP") == "FirstContentfulPaint"
    assert standard_name("CSS") == "CSS"
    assert all(name in METRIC_KEYS for name in ABBREVIATIONS.values())
    with pytest.raises(KeyError):
        standard_name("XYZ")


def test_read_metric_prefers_the_given_name():
    assert read_metric({"FCP": 1, "FirstContentfulPaint": 2}, "FCP") == 1
    assert read_metric({"FirstContentfulPaint": 2}, "FCP") == 2
    assert read_metric({}, "TTI") is None
