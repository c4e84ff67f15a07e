#!filepath: autoperf/connectors/multi_connector.py
from __future__ import annotations

from typing import Any

from autoperf.registry import create_connector, register_connector


@register_connector("multi")
class MultiConnector:
    """
    Tests from one store, Results to another
    (e.g. tests.json -> results.csv).
    """

    def __init__(self, tests_connector: Any, results_connector: Any):
        self.tests_connector = tests_connector
        self.results_connector = results_connector

    @classmethod
    def from_config(cls, cfg) -> "MultiConnector":
        """
        cfg.options:
            tests_type:   connector type for the tests store
                          (default: cfg.type, or json when cfg.type is multi)
            results_type: connector type for the results store (default csv)
        """
        tests_type = cfg.options.get("tests_type") or (cfg.type if cfg.type != "multi" else "json")
        tests_cfg = cfg.model_copy(update={"type": tests_type, "results_type": None})
        results_cfg = cfg.model_copy(
            update={"type": cfg.results_type or cfg.options.get("results_type", "csv"), "results_type": None}
        )
        return cls(create_connector(tests_cfg), create_connector(results_cfg))

    def get_env_vars(self):
        return self.tests_connector.get_env_vars()

    def get_test_list(self, options=None):
        return self.tests_connector.get_test_list(options)

    def update_test_list(self, tests, options=None):
        return self.tests_connector.update_test_list(tests, options)

    def get_result_list(self, options=None):
        return self.results_connector.get_result_list(options)

    def append_result_list(self, results, options=None):
        return self.results_connector.append_result_list(results, options)

    def update_result_list(self, results, options=None):
        return self.results_connector.update_result_list(results, options)

    def update_latest_results(self, results, options=None):
        update = getattr(self.results_connector, "update_latest_results", None)
        if update is not None:
            return update(results, options)
        return None
