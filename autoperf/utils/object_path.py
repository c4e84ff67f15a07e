#!filepath: autoperf/utils/object_path.py
from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel

# "b", "b[0]", "b[0][1]", "b[]"
_SEGMENT = re.compile(r"^([^\[\]]+)((?:\[\d*\])*)$")
_INDEX = re.compile(r"\[(\d*)\]")


class _Missing:
    """Sentinel for "no such key" (distinct from a stored None)."""

    _instance: Optional["_Missing"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


class _Append:
    def __repr__(self) -> str:
        return "APPEND"


MISSING = _Missing()
APPEND = _Append()

Key = Union[str, int, _Append]


# --------------------------------------------------
# Path parsing
# --------------------------------------------------
def parse_path(path: str) -> List[Key]:
    """
    "a.b[0].c" -> ["a", "b", 0, "c"]
    "a.b[]"    -> ["a", "b", APPEND]
    """
    keys: List[Key] = []
    for part in path.split("."):
        match = _SEGMENT.match(part.strip())
        if not match:
            raise ValueError(f"invalid path segment {part!r} in {path!r}")
        keys.append(match.group(1))
        for index in _INDEX.findall(match.group(2)):
            keys.append(int(index) if index else APPEND)
    return keys


# --------------------------------------------------
# Reflective key access (dict / list / pydantic model)
# --------------------------------------------------
def model_attr(model: BaseModel, key: str) -> Optional[str]:
    """Declared attribute name for a wire alias or attribute name."""
    for name, field in type(model).model_fields.items():
        if key == name or key == field.alias:
            return name
    return None


def lookup_key(obj: Any, key: Union[str, int]) -> Any:
    """
    One step of path access. Returns MISSING when the key is absent.
    """
    if isinstance(obj, BaseModel):
        if not isinstance(key, str):
            return MISSING
        attr = model_attr(obj, key)
        if attr is not None:
            return getattr(obj, attr)
        return (obj.model_extra or {}).get(key, MISSING)

    if isinstance(obj, Mapping):
        if key in obj:
            return obj[key]
        if isinstance(key, int) and str(key) in obj:
            return obj[str(key)]
        return MISSING

    if isinstance(obj, (list, tuple)):
        if isinstance(key, int) and 0 <= key < len(obj):
            return obj[key]
        if isinstance(key, str) and key == "length":
            return len(obj)
        return MISSING

    return MISSING


def _store(obj: Any, key: Key, value: Any) -> None:
    if isinstance(obj, BaseModel):
        attr = model_attr(obj, key)
        if attr is not None:
            setattr(obj, attr, value)
        elif obj.model_extra is not None:
            obj.model_extra[key] = value
        else:
            raise TypeError(f"{type(obj).__name__} does not accept key {key!r}")
    elif isinstance(obj, list):
        if key is APPEND:
            obj.append(value)
            return
        while len(obj) <= key:
            obj.append(None)
        obj[key] = value
    else:
        obj[key] = value


def _is_container(value: Any) -> bool:
    return isinstance(value, (dict, list, BaseModel))


# --------------------------------------------------
# Public API
# --------------------------------------------------
def get_path(obj: Any, path: str, default: Any = None) -> Any:
    """
    Read a nested value; `default` when any step is missing.
    """
    current = obj
    for key in parse_path(path):
        if key is APPEND or current is None:
            return default
        current = lookup_key(current, key)
        if current is MISSING:
            return default
    return current


def set_path(obj: Any, path: Optional[str], value: Any) -> None:
    """
    Set a nested value, creating intermediate dicts / lists on the way.

        set_path(o, "a.b[0].c", "C")  ->  {"a": {"b": [{"c": "C"}]}}
        set_path(o, "a.b[]", 1)       ->  appends 1 to o["a"]["b"]

    An empty path is a no-op. None is a legal value.
    """
    if not path:
        return

    keys = parse_path(path)
    current = obj
    for key, next_key in zip(keys[:-1], keys[1:]):
        if key is APPEND:
            child = MISSING
        else:
            child = lookup_key(current, key)

        if child is MISSING or child is None:
            child = {} if isinstance(next_key, str) else []
            _store(current, key, child)
        elif not _is_container(child):
            raise TypeError(f"cannot set {path!r}: {key!r} holds a scalar")
        current = child

    _store(current, keys[-1], value)


def flatten_object(obj: Mapping[str, Any], prefix: str = "") -> Dict[str, Any]:
    """
    {"a": {"a1": "A1"}, "c": "C1"} -> {"a.a1": "A1", "c": "C1"}

    Only dicts are flattened; lists and scalars are leaf values.
    """
    flat: Dict[str, Any] = {}
    for key, value in obj.items():
        name = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping) and value:
            flat.update(flatten_object(value, name))
        else:
            flat[name] = value
    return flat


def unflatten_object(flat: Mapping[str, Any]) -> Dict[str, Any]:
    """Inverse of flatten_object for dotted keys."""
    nested: Dict[str, Any] = {}
    for key, value in flat.items():
        if "." in key or "[" in key:
            set_path(nested, key, value)
        else:
            nested[key] = value
    return nested
