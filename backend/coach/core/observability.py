"""Single hook for errors that are handled without reaching the user.

Token acquisition failures and best-effort writes (default goal
provisioning) are swallowed on purpose; they all go through an
``ErrorReporter`` so they still show up in logs and in any extra sink
(error tracker, test recorder) registered on it.
"""

from typing import Any, Callable, Optional

import structlog

log = structlog.get_logger(__name__)

Sink = Callable[[str, Optional[BaseException], dict[str, Any]], None]


class ErrorReporter:
    def __init__(self, sinks: Optional[list[Sink]] = None) -> None:
        self._sinks: list[Sink] = list(sinks or [])

    def add_sink(self, sink: Sink) -> None:
        self._sinks.append(sink)

    def report(self, event: str, exc: Optional[BaseException] = None, **context: Any) -> None:
        if exc is not None:
            context = {**context, "error": str(exc), "error_type": type(exc).__name__}
        log.warning(event, exc_info=exc, **context)
        for sink in self._sinks:
            try:
                sink(event, exc, context)
            except Exception:
                # A broken sink must not turn a swallowed error into a crash
                log.exception("observability.sink_failed", reported_event=event)
