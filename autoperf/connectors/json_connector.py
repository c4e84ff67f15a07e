#!filepath: autoperf/connectors/json_connector.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from autoperf import logs
from autoperf.connectors.base import as_records, replace_by_id, upsert_latest
from autoperf.registry import register_connector
from autoperf.utils.errors import ConnectorError
from autoperf.utils.filesystem import FileSystem

INDEX_KEY = "json"


@register_connector("json")
class JSONConnector:
    """
    Local JSON files as the store.

    tests file:    {"envVars": {...}, "tests": [...]}
    results file:  {"results": [...]}
    latest file:   {"results": [...]}   one row per (label, url)

    Each Test read gets {"json": {"index": <position>}} so that
    update_test_list() can write it back in place; the key is stripped
    again on save.
    """

    def __init__(
        self,
        tests_path: Optional[str] = None,
        results_path: Optional[str] = None,
        latest_path: Optional[str] = None,
    ):
        self.tests_path = Path(tests_path) if tests_path else None
        self.results_path = Path(results_path) if results_path else None
        self.latest_path = Path(latest_path) if latest_path else None

    @classmethod
    def from_config(cls, cfg) -> "JSONConnector":
        return cls(cfg.tests, cfg.results, cfg.latest)

    # --------------------------------------------------
    # file IO
    # --------------------------------------------------
    @staticmethod
    def _read(path: Optional[Path], what: str, required: bool) -> Dict[str, Any]:
        if path is None:
            raise ConnectorError(f"[JSONConnector] {what} path is not defined")
        content = FileSystem.read_text(path)
        if content is None or not content.strip():
            if required:
                raise ConnectorError(f"[JSONConnector] {what} file not found: {path}")
            return {}
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ConnectorError(f"[JSONConnector] invalid JSON in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConnectorError(f"[JSONConnector] {path}: top level must be an object")
        return data

    @staticmethod
    def _write(path: Path, data: Dict[str, Any]) -> None:
        FileSystem.safe_write(path, json.dumps(data, indent=2, ensure_ascii=False))

    def _tests_json(self) -> Dict[str, Any]:
        return self._read(self.tests_path, "tests", required=True)

    def _results_json(self) -> Dict[str, Any]:
        return self._read(self.results_path, "results", required=False)

    # --------------------------------------------------
    # Connector contract
    # --------------------------------------------------
    def get_env_vars(self) -> Dict[str, Any]:
        return self._tests_json().get("envVars") or {}

    def get_test_list(self, options=None) -> List[Dict[str, Any]]:
        tests = self._tests_json().get("tests") or []
        for index, test in enumerate(tests):
            test[INDEX_KEY] = {"index": index}
        return tests

    def update_test_list(self, tests, options=None) -> None:
        data = self._tests_json()
        stored = data.get("tests") or []

        for record in as_records(tests):
            index = (record.pop(INDEX_KEY, None) or {}).get("index")
            if index is None or not 0 <= index < len(stored):
                logs.warning(f"[JSONConnector] test without a valid json.index skipped: {record.get('url')}")
                continue
            stored[index] = record

        data["tests"] = stored
        self._write(self.tests_path, data)
        logs.debug(f"[JSONConnector] updated tests -> {self.tests_path}")

    def get_result_list(self, options=None) -> List[Dict[str, Any]]:
        return self._results_json().get("results") or []

    def append_result_list(self, results, options=None) -> None:
        data = self._results_json()
        data["results"] = (data.get("results") or []) + as_records(results)
        self._write(self.results_path, data)
        logs.debug(f"[JSONConnector] appended {len(results)} results -> {self.results_path}")

    def update_result_list(self, results, options=None) -> None:
        data = self._results_json()
        data["results"] = replace_by_id(data.get("results") or [], results)
        self._write(self.results_path, data)
        logs.debug(f"[JSONConnector] updated {len(results)} results -> {self.results_path}")

    def update_latest_results(self, results, options=None) -> None:
        if self.latest_path is None:
            return
        data = self._read(self.latest_path, "latest results", required=False)
        data["results"] = upsert_latest(data.get("results") or [], results)
        self._write(self.latest_path, data)
        logs.debug(f"[JSONConnector] latest results -> {self.latest_path}")
