#!filepath: tests/connectors/test_csv_connector.py
import pytest

from autoperf.connectors.csv_connector import CSVConnector, decode_cell, encode_cell
from autoperf.core.models import Result, Test
from autoperf.utils.errors import ConnectorError

TESTS = [
    {"selected": True, "label": "home", "url": "https://a.example", "wpt": {"settings": {"runs": 3, "connection": "4G"}}},
    {"selected": False, "label": "blog", "url": "https://b.example", "recurring": {"frequency": "Daily"}},
]


@pytest.fixture
def store(tmp_path):
    store = CSVConnector(
        tests_path=str(tmp_path / "tests.csv"),
        results_path=str(tmp_path / "results.csv"),
        latest_path=str(tmp_path / "latest.csv"),
        env_vars={"psiApiKey": "KEY"},
    )
    CSVConnector.write_csv(store.tests_path, TESTS)
    return store


@pytest.mark.parametrize(
    "value, cell",
    [
        (None, None),
        ("https://a.example", "https://a.example"),
        ("12", '"12"'),
        ("true", '"true"'),
        ("", '""'),
        (12, "12"),
        (1.5, "1.5"),
        (True, "true"),
        ([1, 2], "[1, 2]"),
        ({}, "{}"),
    ],
)
def test_encode_cell(value, cell):
    assert encode_cell(value) == cell


@pytest.mark.parametrize(
    "cell, value",
    [
        ("", None),
        ("plain text", "plain text"),
        ('"12"', "12"),
        ("12", 12),
        ("false", False),
        ("[1, 2]", [1, 2]),
    ],
)
def test_decode_cell(cell, value):
    assert decode_cell(cell) == value


def test_nested_records_come_back_nested(store):
    tests = store.get_test_list()

    assert tests[0]["wpt"] == {"settings": {"runs": 3, "connection": "4G"}}
    assert tests[0]["selected"] is True
    assert tests[1]["recurring"] == {"frequency": "Daily"}
    # sparse rows lose the columns they never had
    assert "wpt" not in tests[1]
    assert [t["csv"] for t in tests] == [{"index": 0}, {"index": 1}]


def test_env_vars_come_from_settings(store):
    assert store.get_env_vars() == {"psiApiKey": "KEY"}


def test_update_test_list_round_trip(store):
    before = store.get_test_list()

    store.update_test_list([Test.coerce(t) for t in store.get_test_list()])

    assert store.get_test_list() == before
    assert "csv.index" not in store.tests_path.read_text(encoding="utf-8")


def test_update_single_test(store):
    tests = [Test.coerce(t) for t in store.get_test_list()]
    tests[1].recurring.next_trigger_timestamp = 1700086400

    store.update_test_list([tests[1]])

    reloaded = store.get_test_list()
    assert reloaded[1]["recurring"]["nextTriggerTimestamp"] == 1700086400
    assert reloaded[0]["url"] == "https://a.example"


def test_results_append_and_update(store):
    a = Result.coerce({"id": "a", "status": "Submitted", "url": "u", "wpt": {"status": "Submitted", "metrics": {}}})
    store.append_result_list([a])

    a.status = "Retrieved"
    a.backend("wpt").update({"status": "Retrieved", "metrics": {"FCP": 900}})
    store.update_result_list([a])

    [stored] = store.get_result_list()
    assert stored["status"] == "Retrieved"
    assert stored["wpt"] == {"status": "Retrieved", "metrics": {"FCP": 900}}


def test_empty_dicts_survive(store):
    a = Result.coerce({"id": "a", "wpt": {"settings": {}, "metrics": {}}})
    store.append_result_list([a])
    assert store.get_result_list()[0]["wpt"] == {"settings": {}, "metrics": {}}


def test_numeric_looking_text_stays_text(store):
    CSVConnector.write_csv(store.results_path, [{"id": "123", "label": "007"}])
    assert store.get_result_list() == [{"id": "123", "label": "007"}]


def test_missing_results_file_is_empty(store):
    assert store.get_result_list() == []


def test_latest_mirror(store):
    first = Result.coerce({"id": "1", "label": "home", "url": "https://a.example"})
    second = Result.coerce({"id": "2", "label": "home", "url": "https://a.example"})
    store.update_latest_results([first])
    store.update_latest_results([second])
    assert [r["id"] for r in CSVConnector.read_csv(store.latest_path)] == ["2"]


def test_missing_tests_file(tmp_path):
    with pytest.raises(ConnectorError):
        CSVConnector(tests_path=str(tmp_path / "missing.csv")).get_test_list()


def test_undefined_path():
    with pytest.raises(ConnectorError):
        CSVConnector().get_test_list()
