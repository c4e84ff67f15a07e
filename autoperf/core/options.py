#!filepath: autoperf/core/options.py
from __future__ import annotations

from typing import Any, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ActionOptions(BaseModel):
    """
    Options bag for run / recurring / retrieve.

    Unknown keys (per-adapter namespaces such as {"json": {...}}) are kept
    and handed to connectors and gatherers as-is.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    filters: Optional[List[str]] = None
    extensions: Optional[List[str]] = None
    gatherer: Optional[str] = None
    run_by_batch: bool = Field(default=False, alias="runByBatch")
    activate_only: bool = Field(default=False, alias="activateOnly")
    batch_update_buffer: Optional[int] = Field(default=None, alias="batchUpdateBuffer", ge=1)

    @field_validator("filters", mode="before")
    @classmethod
    def _filters_as_list(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value

    @classmethod
    def coerce(cls, options: Union["ActionOptions", Mapping[str, Any], None]) -> "ActionOptions":
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        return cls.model_validate(dict(options))

    def with_filters(self, filters: Optional[List[str]]) -> "ActionOptions":
        return self.model_copy(update={"filters": filters})

    def namespace(self, name: str) -> dict:
        """Per-adapter options, e.g. options.namespace("json")."""
        value = (self.model_extra or {}).get(name)
        return value if isinstance(value, dict) else {}
