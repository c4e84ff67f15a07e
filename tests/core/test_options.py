#!filepath: tests/core/test_options.py
import pytest
from pydantic import ValidationError

from autoperf.core.options import ActionOptions


def test_defaults():
    opts = ActionOptions.coerce(None)
    assert opts.filters is None
    assert opts.extensions is None
    assert opts.run_by_batch is False
    assert opts.activate_only is False
    assert opts.batch_update_buffer is None


def test_camel_case_keys():
    opts = ActionOptions.coerce({"runByBatch": True, "activateOnly": True, "batchUpdateBuffer": 5})
    assert opts.run_by_batch and opts.activate_only
    assert opts.batch_update_buffer == 5


def test_snake_case_keys():
    opts = ActionOptions.coerce({"run_by_batch": True})
    assert opts.run_by_batch


def test_single_filter_string_becomes_list():
    assert ActionOptions.coerce({"filters": "selected"}).filters == ["selected"]


def test_buffer_must_be_positive():
    with pytest.raises(ValidationError):
        ActionOptions.coerce({"batchUpdateBuffer": 0})


def test_adapter_namespace_is_kept():
    opts = ActionOptions.coerce({"json": {"pretty": True}, "verbose": 1})
    assert opts.namespace("json") == {"pretty": True}
    assert opts.namespace("verbose") == {}
    assert opts.namespace("csv") == {}


def test_coerce_keeps_instance_and_with_filters_copies():
    opts = ActionOptions(filters=["selected"])
    assert ActionOptions.coerce(opts) is opts
    other = opts.with_filters(['status==="Error"'])
    assert other.filters == ['status==="Error"']
    assert opts.filters == ["selected"]
