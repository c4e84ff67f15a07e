#!filepath: autoperf/core/models.py
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from autoperf.core.status import Status, TestType

R = TypeVar("R", bound="AuditRecord")


class AuditRecord(BaseModel):
    """
    Base for Test / Result records.

    - declared fields are the keys the engine owns
    - every other key (one sub-object per back-end, adapter-private
      addressing such as {"json": {"index": 3}}) lives in model_extra and
      is carried through untouched
    - wire names are camelCase, attributes snake_case
    """

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        use_enum_values=True,
    )

    # --------------------------------------------------
    # construction / serialization
    # --------------------------------------------------
    @classmethod
    def coerce(cls: type[R], obj: Union[R, Mapping[str, Any]]) -> R:
        if isinstance(obj, cls):
            return obj
        return cls.model_validate(obj)

    def to_record(self) -> Dict[str, Any]:
        """
        camelCase dict of what the store gave us plus what the engine set.
        Keys never set are omitted, so load -> save is byte-stable.
        """
        return self.model_dump(by_alias=True, exclude_unset=True, mode="json")

    # --------------------------------------------------
    # back-end sub-objects (opaque)
    # --------------------------------------------------
    @property
    def extras(self) -> Dict[str, Any]:
        if self.__pydantic_extra__ is None:
            self.__pydantic_extra__ = {}
        return self.__pydantic_extra__

    def backend(self, name: str) -> Optional[Dict[str, Any]]:
        value = self.extras.get(name)
        return value if isinstance(value, dict) else None

    def set_backend(self, name: str, data: Dict[str, Any]) -> None:
        self.extras[name] = data


class Recurring(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    frequency: Optional[str] = None
    next_trigger_timestamp: Optional[int] = Field(default=None, alias="nextTriggerTimestamp")
    activated_frequency: Optional[str] = Field(default=None, alias="activatedFrequency")
    # readable copy of next_trigger_timestamp for stores people look at
    next_trigger: Optional[str] = Field(default=None, alias="nextTrigger")


class Test(AuditRecord):
    """One audit intent."""

    __test__ = False  # not a pytest class

    selected: bool = False
    url: str = ""
    label: str = ""
    recurring: Optional[Recurring] = None
    gatherer: Optional[str] = None

    @property
    def frequency(self) -> Optional[str]:
        return self.recurring.frequency if self.recurring else None


class Result(AuditRecord):
    """
    One audit outcome: one per Test and action, or one per batch row when a
    back-end spreads an array-valued metric over several rows.
    """

    selected: bool = False
    id: str = Field(frozen=True)
    type: TestType = Field(default=TestType.SINGLE, frozen=True)
    status: Status = Status.SUBMITTED
    label: str = ""
    url: str = ""
    created_timestamp: int = Field(default=0, alias="createdTimestamp", frozen=True)
    modified_timestamp: int = Field(default=0, alias="modifiedTimestamp")
    errors: List[str] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        return str(value) if isinstance(value, (int, float)) else value

    def add_error(self, backend: str, message: str) -> None:
        self.errors = [*self.errors, f"[{backend}] {message}"]
