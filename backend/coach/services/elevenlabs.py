from typing import Optional

import httpx


class ElevenLabsError(Exception):
    """ElevenLabs call failed; ``detail`` is the provider body when it answered."""

    def __init__(self, message: str, detail=None, status_code: Optional[int] = None):
        super().__init__(message)
        self.detail = detail if detail is not None else message
        self.status_code = status_code


class ElevenLabsClient:
    """Session with the ElevenLabs API.

    One instance is created when the app starts, kept on ``app.state`` and
    closed on shutdown. Routes reach it through a dependency, never through
    a module-level handle.
    """

    def __init__(
        self,
        api_key: Optional[str],
        api_url: str = "https://api.elevenlabs.io/v1",
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = 30,
    ):
        self.api_key = api_key
        hdrs = {"xi-api-key": api_key} if api_key else {}
        self._client = httpx.Client(
            base_url=api_url.rstrip("/"),
            headers=hdrs,
            timeout=timeout,
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def list_voices(self) -> list[dict]:
        if not self.configured:
            raise ElevenLabsError("ElevenLabs API key not configured")
        try:
            r = self._client.get("/voices")
        except httpx.HTTPError as e:
            raise ElevenLabsError(f"{type(e).__name__}: {e}") from e
        if not r.is_success:
            try:
                detail = r.json()
            except ValueError:
                detail = r.text
            raise ElevenLabsError(
                f"ElevenLabs responded with status {r.status_code}",
                detail=detail,
                status_code=r.status_code,
            )
        try:
            body = r.json()
        except ValueError as e:
            raise ElevenLabsError(
                "ElevenLabs returned an unreadable response",
                detail=r.text,
                status_code=r.status_code,
            ) from e
        voices = body.get("voices") if isinstance(body, dict) else None
        if not isinstance(voices, list):
            raise ElevenLabsError(
                "ElevenLabs response has no voice list",
                detail=body,
                status_code=r.status_code,
            )
        return voices

    def close(self) -> None:
        self._client.close()
