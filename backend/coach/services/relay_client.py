"""Client-side check that the relay server (and ElevenLabs behind it) is up."""

from dataclasses import dataclass
from typing import Optional

import httpx
import structlog

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RelayCheck:
    success: bool
    message: str
    connected: Optional[bool] = None
    voices_count: Optional[int] = None


def check_relay_connection(
    base_url: str,
    timeout: float,
    transport: Optional[httpx.BaseTransport] = None,
) -> RelayCheck:
    """Call ``GET {base_url}/api/test-connection`` and summarize the outcome.

    ``success`` says whether the relay answered with 2xx; ``connected`` is
    the relay's own verdict about ElevenLabs.
    """
    url = f"{base_url.rstrip('/')}/api/test-connection"
    log.info("relay.check.started", url=url, timeout=timeout)
    try:
        with httpx.Client(timeout=timeout, transport=transport) as client:
            r = client.get(url)
    except httpx.TimeoutException:
        msg = f"Connection timed out after {timeout:g} seconds. Server at {base_url} may be unreachable."
        log.warning("relay.check.timeout", url=url)
        return RelayCheck(success=False, message=msg)
    except httpx.TransportError as e:
        log.warning("relay.check.unreachable", url=url, error=str(e))
        return RelayCheck(
            success=False,
            message=f"Network request failed. Server at {base_url} may be down or unreachable.",
        )

    if not r.is_success:
        log.warning("relay.check.bad_status", url=url, status=r.status_code)
        return RelayCheck(success=False, message=f"Server responded with status {r.status_code}")

    try:
        data = r.json()
    except ValueError:
        return RelayCheck(success=False, message="Server returned a non-JSON response")

    connected = bool(data.get("connected"))
    return RelayCheck(
        success=True,
        message=(
            f"Connected to server at {base_url}. "
            f"ElevenLabs connection: {'Success' if connected else 'Failed'}"
        ),
        connected=connected,
        voices_count=data.get("voicesCount"),
    )
