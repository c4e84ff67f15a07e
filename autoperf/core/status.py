#!filepath: autoperf/core/status.py
from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Iterable

from autoperf.utils.errors import IllegalTransitionError


class Status(str, Enum):
    SUBMITTED = "Submitted"
    RETRIEVED = "Retrieved"
    ERROR = "Error"
    DUPLICATE = "Duplicate"
    CANCELLED = "Cancelled"


class TestType(str, Enum):
    __test__ = False  # not a pytest class

    SINGLE = "Single"
    RECURRING = "Recurring"


class StatusMachine:
    """
    Result lifecycle (FROZEN)

        Submitted ──> Retrieved
            │   └───> Error ──> Retrieved
            │           └─────> Error        (repeated failure)
            └──> Duplicate                   (batch-exploded sibling, at creation)

    Retrieved / Duplicate / Cancelled are terminal.
    Cancelled is only ever written by an external collaborator.
    """

    INITIAL = Status.SUBMITTED

    _TRANSITIONS: Dict[Status, FrozenSet[Status]] = {
        Status.SUBMITTED: frozenset({Status.RETRIEVED, Status.ERROR, Status.DUPLICATE}),
        Status.ERROR: frozenset({Status.RETRIEVED, Status.ERROR}),
        Status.RETRIEVED: frozenset(),
        Status.DUPLICATE: frozenset(),
        Status.CANCELLED: frozenset(),
    }

    # --------------------------------------------------
    @classmethod
    def can_transition(cls, current: str, target: str) -> bool:
        return Status(target) in cls._TRANSITIONS[Status(current)]

    @classmethod
    def transition(cls, current: str, target: str) -> Status:
        """
        Validate a status change; same-status on Submitted is "no change".
        """
        if Status(current) == Status(target) == Status.SUBMITTED:
            return Status.SUBMITTED
        if not cls.can_transition(current, target):
            raise IllegalTransitionError(str(Status(current).value), str(Status(target).value))
        return Status(target)

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return Status(status) in (Status.RETRIEVED, Status.DUPLICATE, Status.CANCELLED)

    @classmethod
    def is_retrievable(cls, status: str) -> bool:
        """Only Submitted and Error Results are handed to retrieve()."""
        return Status(status) in (Status.SUBMITTED, Status.ERROR)

    @classmethod
    def derive_overall_status(cls, statuses: Iterable[str]) -> Status:
        """
        Combine per-back-end statuses into the Result status:
            any Error          -> Error
            all Retrieved      -> Retrieved
            otherwise          -> Submitted
        """
        statuses = [Status(s) for s in statuses]
        if any(s == Status.ERROR for s in statuses):
            return Status.ERROR
        if statuses and all(s == Status.RETRIEVED for s in statuses):
            return Status.RETRIEVED
        return Status.SUBMITTED
