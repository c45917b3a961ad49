from typing import Optional

import httpx


class ClerkSession:
    """One Clerk session, seen from the backend API.

    Mints a new session token (from a JWT template when one is configured)
    each time ``get_token`` is called.
    """

    def __init__(
        self,
        session_id: str,
        secret_key: str,
        api_url: str = "https://api.clerk.com/v1",
        template: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = 10,
    ):
        self.session_id = session_id
        self._secret_key = secret_key
        self._api_url = api_url.rstrip("/")
        self._template = template
        self._transport = transport
        self._timeout = timeout

    def _token_url(self) -> str:
        url = f"{self._api_url}/sessions/{self.session_id}/tokens"
        if self._template:
            url = f"{url}/{self._template}"
        return url

    def get_token(self) -> Optional[str]:
        hdrs = {"Authorization": f"Bearer {self._secret_key}"}
        with httpx.Client(timeout=self._timeout, headers=hdrs, transport=self._transport) as client:
            r = client.post(self._token_url())
            r.raise_for_status()
            data = r.json()
        return data.get("jwt")
