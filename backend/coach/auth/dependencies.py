"""Caller authentication for the HTTP API.

The mobile app sends its Clerk session token as a bearer credential. We
verify it (HS256 shared secret in development and tests, otherwise RS256
against Clerk's JWKS) and read two claims:

  - sub: the Clerk user id, which is the ``user_id`` of the goal row
  - sid: the session id, used to mint fresh data-store tokens per call
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Optional

import jwt
from fastapi import Depends, Header, HTTPException

from coach.auth.clerk import ClerkSession
from coach.auth.tokens import SessionProvider
from coach.core.config import Settings, settings
from coach.core.logging import bind_user_context


@dataclass(frozen=True)
class Principal:
    user_id: str
    session_id: str


class TokenValidationError(Exception):
    """Raised when a caller's session token cannot be validated."""


@lru_cache(maxsize=4)
def _jwks_client(url: str) -> jwt.PyJWKClient:
    # PyJWKClient caches the key set itself
    return jwt.PyJWKClient(url)


def decode_session_token(token: str, cfg: Settings) -> dict[str, Any]:
    options = {"require": ["sub", "sid", "exp"], "verify_aud": False}
    try:
        if cfg.clerk_jwt_secret:
            return jwt.decode(token, cfg.clerk_jwt_secret, algorithms=["HS256"], options=options)
        signing_key = _jwks_client(cfg.clerk_jwks_url).get_signing_key_from_jwt(token)
        return jwt.decode(token, signing_key.key, algorithms=["RS256"], options=options)
    except jwt.PyJWTError as exc:
        raise TokenValidationError(str(exc)) from exc


def get_settings() -> Settings:
    return settings


def get_principal(
    authorization: Optional[str] = Header(None),
    cfg: Settings = Depends(get_settings),
) -> Principal:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing bearer token")
    if not (cfg.clerk_jwt_secret or cfg.clerk_jwks_url):
        raise HTTPException(status_code=503, detail="Identity provider not configured")

    token = authorization.split(" ", 1)[1].strip()
    try:
        claims = decode_session_token(token, cfg)
    except TokenValidationError as e:
        raise HTTPException(status_code=401, detail=f"Invalid session token: {e}")

    principal = Principal(user_id=str(claims["sub"]), session_id=str(claims["sid"]))
    bind_user_context(principal.user_id)
    return principal


def get_session_provider(
    principal: Principal = Depends(get_principal),
    cfg: Settings = Depends(get_settings),
) -> SessionProvider:
    if not cfg.clerk_secret_key:
        raise HTTPException(status_code=503, detail="Identity provider not configured")
    return ClerkSession(
        principal.session_id,
        cfg.clerk_secret_key,
        api_url=cfg.clerk_api_url,
        template=cfg.clerk_jwt_template,
    )
