from typing import Optional, Protocol

import structlog

from coach.core.observability import ErrorReporter

log = structlog.get_logger(__name__)


class SessionProvider(Protocol):
    """Identity session able to mint a bearer token for the data store."""

    def get_token(self) -> Optional[str]:
        ...


class TokenSupplier:
    """Hands out a fresh bearer credential on every call.

    Nothing is cached: the data store checks token freshness on each request
    and a stale token fails authorization silently. A missing session or any
    provider error yields None, which callers treat as "signed out".
    """

    def __init__(self, session: Optional[SessionProvider], reporter: ErrorReporter):
        self._session = session
        self._reporter = reporter

    def get_fresh_token(self) -> Optional[str]:
        if self._session is None:
            return None
        try:
            token = self._session.get_token()
        except Exception as exc:
            self._reporter.report("auth.token.refresh_failed", exc)
            return None
        if not token:
            log.info("auth.token.no_active_session")
            return None
        return token
