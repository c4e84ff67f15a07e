#!filepath: autoperf/connectors/base.py
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, runtime_checkable

from autoperf.core.models import AuditRecord


@runtime_checkable
class Connector(Protocol):
    """
    Store contract (FROZEN)

    Every method may return a plain value or an awaitable.
    Records come back as dicts (or models); the engine hands models in.
    Adapter-private addressing (e.g. {"json": {"index": 3}}) must survive
    a get -> update round trip untouched.

    Optional:
        update_latest_results(results, options)
            upsert newly Retrieved Results into a "latest" mirror
            keyed by (label, url)
    """

    def get_env_vars(self) -> Dict[str, Any]: ...

    def get_test_list(self, options: Any = None) -> List[Any]: ...

    def update_test_list(self, tests: List[Any], options: Any = None) -> None: ...

    def get_result_list(self, options: Any = None) -> List[Any]: ...

    def append_result_list(self, results: List[Any], options: Any = None) -> None: ...

    def update_result_list(self, results: List[Any], options: Any = None) -> None: ...


# --------------------------------------------------
# helpers shared by the built-in connectors
# --------------------------------------------------
def as_record(obj: Any) -> Dict[str, Any]:
    if isinstance(obj, AuditRecord):
        return obj.to_record()
    return dict(obj)


def as_records(objs: Optional[Iterable[Any]]) -> List[Dict[str, Any]]:
    return [as_record(o) for o in (objs or [])]


def latest_key(record: Mapping[str, Any]) -> tuple:
    return record.get("label"), record.get("url")


def upsert_latest(existing: List[Dict[str, Any]], results: Iterable[Any]) -> List[Dict[str, Any]]:
    """
    Replace the row with the same (label, url), append when absent.
    """
    merged = list(existing)
    positions = {latest_key(r): i for i, r in enumerate(merged)}
    for result in as_records(results):
        key = latest_key(result)
        if key in positions:
            merged[positions[key]] = result
        else:
            positions[key] = len(merged)
            merged.append(result)
    return merged


def replace_by_id(existing: List[Dict[str, Any]], updates: Iterable[Any]) -> List[Dict[str, Any]]:
    """
    Rows whose id matches an update are replaced; order is kept.
    Ids compare as text (a stored 123 matches the model id "123").
    """
    by_id = {str(r["id"]): r for r in as_records(updates)}
    return [by_id.get(str(r.get("id")), r) for r in existing]
