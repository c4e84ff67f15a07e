#!filepath: autoperf/connectors/csv_connector.py
from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from autoperf import logs
from autoperf.connectors.base import as_records, replace_by_id, upsert_latest
from autoperf.registry import register_connector
from autoperf.utils.errors import ConnectorError
from autoperf.utils.filesystem import FileSystem
from autoperf.utils.object_path import flatten_object, unflatten_object

INDEX_KEY = "csv"


# --------------------------------------------------
# cell codec
# --------------------------------------------------
def encode_cell(value: Any) -> Any:
    """
    One CSV cell per leaf value:
        None                  -> empty cell
        plain text            -> as-is
        text that parses as JSON ("12", "true", "") -> JSON-quoted
        numbers / bools / lists / {} -> JSON
    """
    if value is None:
        return None
    if isinstance(value, str):
        if value == "" or _parses_as_json(value):
            return json.dumps(value, ensure_ascii=False)
        return value
    return json.dumps(value, ensure_ascii=False)


def decode_cell(text: str) -> Any:
    if text == "":
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


def _parses_as_json(text: str) -> bool:
    try:
        json.loads(text)
    except ValueError:
        return False
    return True


@register_connector("csv")
class CSVConnector:
    """
    Local CSV files as the store.

    Nested records are flattened to dotted column names
    ("webpagetest.settings.connection") and rebuilt on read. Empty cells
    are dropped on read, so sparse rows come back without those keys.
    Each Test read gets {"csv": {"index": <row>}}; the key is never written.
    """

    def __init__(
        self,
        tests_path: Optional[str] = None,
        results_path: Optional[str] = None,
        latest_path: Optional[str] = None,
        env_vars: Optional[Dict[str, Any]] = None,
    ):
        self.tests_path = Path(tests_path) if tests_path else None
        self.results_path = Path(results_path) if results_path else None
        self.latest_path = Path(latest_path) if latest_path else None
        self.env_vars = dict(env_vars or {})

    @classmethod
    def from_config(cls, cfg) -> "CSVConnector":
        return cls(cfg.tests, cfg.results, cfg.latest, env_vars=cfg.options.get("env_vars"))

    # --------------------------------------------------
    # file IO
    # --------------------------------------------------
    @staticmethod
    def read_csv(path: Path) -> Optional[List[Dict[str, Any]]]:
        content = FileSystem.read_text(path)
        if content is None:
            return None
        if not content.strip():
            return []

        try:
            df = pd.read_csv(io.StringIO(content), dtype=str, keep_default_na=False)
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise ConnectorError(f"[CSVConnector] cannot parse {path}: {e}") from e

        rows = []
        for flat in df.to_dict(orient="records"):
            cells = {key: decode_cell(text) for key, text in flat.items() if text != ""}
            rows.append(unflatten_object(cells))
        return rows

    @staticmethod
    def write_csv(path: Path, records: List[Dict[str, Any]]) -> None:
        rows = []
        for record in records:
            record = {k: v for k, v in record.items() if k != INDEX_KEY}
            rows.append({key: encode_cell(value) for key, value in flatten_object(record).items()})

        df = pd.DataFrame(rows)
        FileSystem.safe_write(path, df.to_csv(index=False))
        logs.debug(f"[CSVConnector] wrote {len(rows)} rows -> {path}")

    def _require(self, path: Optional[Path], what: str) -> Path:
        if path is None:
            raise ConnectorError(f"[CSVConnector] {what} path is not defined")
        return path

    def _tests(self) -> List[Dict[str, Any]]:
        path = self._require(self.tests_path, "tests")
        tests = self.read_csv(path)
        if tests is None:
            raise ConnectorError(f"[CSVConnector] tests file not found: {path}")
        return tests

    def _results(self) -> List[Dict[str, Any]]:
        return self.read_csv(self._require(self.results_path, "results")) or []

    # --------------------------------------------------
    # Connector contract
    # --------------------------------------------------
    def get_env_vars(self) -> Dict[str, Any]:
        return dict(self.env_vars)

    def get_test_list(self, options=None) -> List[Dict[str, Any]]:
        tests = self._tests()
        for index, test in enumerate(tests):
            test[INDEX_KEY] = {"index": index}
        return tests

    def update_test_list(self, tests, options=None) -> None:
        stored = self._tests()
        for record in as_records(tests):
            index = (record.pop(INDEX_KEY, None) or {}).get("index")
            if index is None or not 0 <= index < len(stored):
                logs.warning(f"[CSVConnector] test without a valid csv.index skipped: {record.get('url')}")
                continue
            stored[index] = record
        self.write_csv(self.tests_path, stored)

    def get_result_list(self, options=None) -> List[Dict[str, Any]]:
        return self._results()

    def append_result_list(self, results, options=None) -> None:
        self.write_csv(self.results_path, self._results() + as_records(results))

    def update_result_list(self, results, options=None) -> None:
        self.write_csv(self.results_path, replace_by_id(self._results(), results))

    def update_latest_results(self, results, options=None) -> None:
        if self.latest_path is None:
            return
        latest = self.read_csv(self.latest_path) or []
        self.write_csv(self.latest_path, upsert_latest(latest, results))
