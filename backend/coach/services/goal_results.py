"""Outcomes of goal reads and writes.

Results are values, not exceptions: the caller (a route handler or any
other front end) decides how each one is shown. ``NotFound`` is not an
error; it means the user has no goal yet.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union


class ErrorKind(str, Enum):
    unauthenticated = "unauthenticated"
    validation = "validation"
    permission_denied = "permission_denied"
    transient = "transient"


@dataclass(frozen=True)
class Found:
    minutes: int


@dataclass(frozen=True)
class NotFound:
    pass


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    reason: str


@dataclass(frozen=True)
class Saved:
    minutes: int


@dataclass(frozen=True)
class ValidationFailed:
    message: str
    kind: ErrorKind = ErrorKind.validation


@dataclass(frozen=True)
class PermissionDenied:
    message: str
    kind: ErrorKind = ErrorKind.permission_denied


GoalResult = Union[Found, NotFound, Failure]
SaveResult = Union[Saved, ValidationFailed, PermissionDenied, Failure]
