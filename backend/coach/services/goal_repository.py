"""Daily goal reads and writes against the row-level secured ``user_goals``.

Every store call runs on a client built for a token fetched just before it.
A save therefore asks for two tokens: one for the existence probe and one
for the write, since the first may expire in between.
"""

from typing import Any, Callable, Optional

import structlog

from coach.auth.tokens import TokenSupplier
from coach.core.constants import (
    DEFAULT_GOAL_MINUTES,
    JWT_ERROR_CODES,
    PERMISSION_DENIED_CODE,
    USER_GOALS_TABLE,
)
from coach.core.observability import ErrorReporter
from coach.core.time_utils import utcnow
from coach.services.data_client import ScopedClientFactory, StoreError
from coach.services.goal_results import (
    ErrorKind,
    Failure,
    Found,
    GoalResult,
    NotFound,
    PermissionDenied,
    Saved,
    SaveResult,
    ValidationFailed,
)

log = structlog.get_logger(__name__)

INVALID_MINUTES_MESSAGE = "Please enter a valid number of minutes greater than 0"
PERMISSION_DENIED_MESSAGE = "Permission denied. This may be due to Row Level Security policies."
LOAD_FAILED_MESSAGE = "Failed to load your daily goal. Please try again."
SAVE_FAILED_MESSAGE = "Failed to save your daily goal. Please try again."
UNAUTHENTICATED_REASON = "unauthenticated"


def parse_minutes(value: Any) -> Optional[int]:
    """Return ``value`` as a positive int, or None if it is not one.

    Accepts ints and strings of ASCII digits (surrounding whitespace is
    ignored). Bools, floats, signs and anything else are rejected.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str):
        s = value.strip()
        if s and s.isascii() and s.isdigit():
            n = int(s)
            return n if n > 0 else None
    return None


def classify_store_error(err: StoreError) -> ErrorKind:
    if err.code == PERMISSION_DENIED_CODE or "permission denied" in (err.message or "").lower():
        return ErrorKind.permission_denied
    if err.code in JWT_ERROR_CODES or err.status_code == 401:
        return ErrorKind.unauthenticated
    return ErrorKind.transient


class GoalRepository:
    def __init__(
        self,
        tokens: TokenSupplier,
        clients: ScopedClientFactory,
        reporter: ErrorReporter,
        clock: Callable = utcnow,
        default_minutes: int = DEFAULT_GOAL_MINUTES,
    ):
        self._tokens = tokens
        self._clients = clients
        self._reporter = reporter
        self._clock = clock
        self.default_minutes = default_minutes

    def fetch_current_goal(self, user_id: str, provision: bool = True) -> GoalResult:
        """Read the user's goal.

        A missing row is ``NotFound``. With ``provision`` (the default) the
        default goal is written right away, so the next read finds it.
        """
        token = self._tokens.get_fresh_token()
        if token is None:
            return Failure(ErrorKind.unauthenticated, UNAUTHENTICATED_REASON)

        try:
            with self._clients.build_client(token) as client:
                row = client.select_one(USER_GOALS_TABLE, "daily_goal_minutes", user_id=user_id)
        except StoreError as e:
            if e.is_no_rows:
                log.info("goal.fetch.not_found", user_id=user_id, provision=provision)
                if provision:
                    self.save_default_goal(user_id)
                return NotFound()
            return self._failure(e, LOAD_FAILED_MESSAGE, "goal.fetch.failed", user_id)

        minutes = parse_minutes(row.get("daily_goal_minutes")) if isinstance(row, dict) else None
        if minutes is None:
            log.error("goal.fetch.malformed_row", user_id=user_id, row=row)
            return Failure(ErrorKind.transient, LOAD_FAILED_MESSAGE)
        return Found(minutes)

    def save_default_goal(self, user_id: str, minutes: Optional[int] = None) -> None:
        """Best effort: failures are reported, never raised."""
        if minutes is None:
            minutes = self.default_minutes
        try:
            token = self._tokens.get_fresh_token()
            if token is None:
                self._reporter.report("goal.default.no_token", user_id=user_id)
                return
            now = self._clock()
            with self._clients.build_client(token) as client:
                client.insert(
                    USER_GOALS_TABLE,
                    {
                        "user_id": user_id,
                        "daily_goal_minutes": minutes,
                        "created_at": now,
                        "updated_at": now,
                    },
                )
        except Exception as exc:
            self._reporter.report("goal.default.save_failed", exc, user_id=user_id)
            return
        log.info("goal.default.saved", user_id=user_id, minutes=minutes)

    def save_goal(self, user_id: str, minutes: Any) -> SaveResult:
        goal_minutes = parse_minutes(minutes)
        if goal_minutes is None:
            return ValidationFailed(INVALID_MINUTES_MESSAGE)

        token = self._tokens.get_fresh_token()
        if token is None:
            return Failure(ErrorKind.unauthenticated, UNAUTHENTICATED_REASON)

        try:
            with self._clients.build_client(token) as client:
                client.select_one(USER_GOALS_TABLE, "id", user_id=user_id)
            exists = True
        except StoreError as e:
            if not e.is_no_rows:
                return self._save_failure(e, "goal.save.probe_failed", user_id)
            exists = False

        write_token = self._tokens.get_fresh_token()
        if write_token is None:
            return Failure(ErrorKind.unauthenticated, UNAUTHENTICATED_REASON)

        now = self._clock()
        try:
            with self._clients.build_client(write_token) as client:
                if exists:
                    rows = client.update(
                        USER_GOALS_TABLE,
                        {"daily_goal_minutes": goal_minutes, "updated_at": now},
                        user_id=user_id,
                    )
                    if not rows:
                        # The probe saw the row but the update policy hid it
                        log.error("goal.save.update_matched_no_rows", user_id=user_id)
                        return PermissionDenied(PERMISSION_DENIED_MESSAGE)
                else:
                    client.insert(
                        USER_GOALS_TABLE,
                        {
                            "user_id": user_id,
                            "daily_goal_minutes": goal_minutes,
                            "created_at": now,
                            "updated_at": now,
                        },
                    )
        except StoreError as e:
            return self._save_failure(e, "goal.save.failed", user_id)

        log.info("goal.save.saved", user_id=user_id, minutes=goal_minutes, updated=exists)
        return Saved(goal_minutes)

    def _failure(self, err: StoreError, message: str, event: str, user_id: str) -> Failure:
        kind = classify_store_error(err)
        log.error(
            event,
            user_id=user_id,
            kind=kind.value,
            code=err.code,
            status=err.status_code,
            error=err.message,
        )
        if kind is ErrorKind.permission_denied:
            return Failure(kind, PERMISSION_DENIED_MESSAGE)
        if kind is ErrorKind.unauthenticated:
            return Failure(kind, UNAUTHENTICATED_REASON)
        return Failure(kind, message)

    def _save_failure(self, err: StoreError, event: str, user_id: str) -> SaveResult:
        failure = self._failure(err, SAVE_FAILED_MESSAGE, event, user_id)
        if failure.kind is ErrorKind.permission_denied:
            return PermissionDenied(failure.reason)
        return failure
