#!filepath: autoperf/connectors/memory.py
from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

from autoperf.connectors.base import as_records, replace_by_id, upsert_latest
from autoperf.registry import register_connector


@register_connector("memory")
class MemoryConnector:
    """
    In-process store. Records are deep-copied on the way in and out, so
    callers never share state with the store.
    """

    def __init__(
        self,
        tests: Optional[List[Dict[str, Any]]] = None,
        results: Optional[List[Dict[str, Any]]] = None,
        env_vars: Optional[Dict[str, Any]] = None,
    ):
        self.tests: List[Dict[str, Any]] = copy.deepcopy(list(tests or []))
        self.results: List[Dict[str, Any]] = copy.deepcopy(list(results or []))
        self.latest: List[Dict[str, Any]] = []
        self.env_vars: Dict[str, Any] = dict(env_vars or {})

    @classmethod
    def from_config(cls, cfg) -> "MemoryConnector":
        return cls(env_vars=cfg.options.get("env_vars"))

    def get_env_vars(self) -> Dict[str, Any]:
        return dict(self.env_vars)

    def get_test_list(self, options=None) -> List[Dict[str, Any]]:
        tests = copy.deepcopy(self.tests)
        for index, test in enumerate(tests):
            test["memory"] = {"index": index}
        return tests

    def update_test_list(self, tests, options=None) -> None:
        for record in copy.deepcopy(as_records(tests)):
            index = (record.pop("memory", None) or {}).get("index")
            if index is None or not 0 <= index < len(self.tests):
                continue
            self.tests[index] = record

    def get_result_list(self, options=None) -> List[Dict[str, Any]]:
        return copy.deepcopy(self.results)

    def append_result_list(self, results, options=None) -> None:
        self.results.extend(copy.deepcopy(as_records(results)))

    def update_result_list(self, results, options=None) -> None:
        self.results = replace_by_id(self.results, copy.deepcopy(as_records(results)))

    def update_latest_results(self, results, options=None) -> None:
        self.latest = upsert_latest(self.latest, results)
