#!filepath: tests/core/test_models.py
import pytest
from pydantic import ValidationError

from autoperf.core.models import Result, Test
from autoperf.core.status import Status, TestType


def stored_result():
    return {
        "selected": False,
        "id": "1700000000000-https://a.example",
        "type": "Recurring",
        "status": "Submitted",
        "label": "home",
        "url": "https://a.example",
        "createdTimestamp": 1700000000000,
        "modifiedTimestamp": 1700000000000,
        "errors": [],
        "webpagetest": {"status": "Submitted", "settings": {}, "metadata": {"testId": "T1"}, "metrics": {}},
    }


def test_result_from_record():
    result = Result.coerce(stored_result())
    assert result.status == Status.SUBMITTED
    assert result.type == TestType.RECURRING
    assert result.created_timestamp == 1700000000000
    assert result.backend("webpagetest")["metadata"] == {"testId": "T1"}


def test_to_record_round_trip_is_stable():
    record = stored_result()
    assert Result.coerce(record).to_record() == record


def test_to_record_omits_keys_never_set():
    test = Test.coerce({"url": "https://a.example", "json": {"index": 0}})
    assert test.to_record() == {"url": "https://a.example", "json": {"index": 0}}


def test_engine_owned_keys_are_frozen():
    result = Result.coerce(stored_result())
    with pytest.raises(ValidationError):
        result.id = "other"
    with pytest.raises(ValidationError):
        result.created_timestamp = 1


def test_status_and_modified_are_mutable():
    result = Result.coerce(stored_result())
    result.status = "Retrieved"
    result.modified_timestamp = 1700000001000
    record = result.to_record()
    assert record["status"] == "Retrieved"
    assert record["modifiedTimestamp"] == 1700000001000


def test_numeric_id_becomes_text():
    assert Result.coerce({"id": 42}).id == "42"


def test_result_requires_id():
    with pytest.raises(ValidationError):
        Result.coerce({"url": "https://a.example"})


def test_add_error_prefixes_backend():
    result = Result.coerce(stored_result())
    result.add_error("webpagetest", "timeout")
    assert result.errors == ["[webpagetest] timeout"]
    assert result.to_record()["errors"] == ["[webpagetest] timeout"]


def test_extras_and_backends():
    test = Test.coerce({"url": "https://a.example", "psi": {"settings": {"locale": "en"}}, "note": "x"})
    assert test.backend("psi") == {"settings": {"locale": "en"}}
    assert test.backend("note") is None
    assert test.backend("missing") is None

    test.set_backend("wpt", {"settings": {}})
    assert test.to_record()["wpt"] == {"settings": {}}


def test_test_frequency_shortcut():
    assert Test.coerce({"recurring": {"frequency": "Daily"}}).frequency == "Daily"
    assert Test.coerce({}).frequency is None


def test_recurring_aliases_round_trip():
    record = {"url": "u", "recurring": {"frequency": "Daily", "nextTriggerTimestamp": 10, "custom": 1}}
    assert Test.coerce(record).to_record() == record


def test_coerce_returns_model_unchanged():
    test = Test.coerce({"url": "u"})
    assert Test.coerce(test) is test
