from fastapi import Depends, HTTPException, Request

from coach.auth.dependencies import get_session_provider, get_settings
from coach.auth.tokens import SessionProvider, TokenSupplier
from coach.core.config import Settings
from coach.core.observability import ErrorReporter
from coach.services.data_client import ScopedClientFactory
from coach.services.elevenlabs import ElevenLabsClient
from coach.services.goal_repository import GoalRepository


def get_reporter(request: Request) -> ErrorReporter:
    return request.app.state.reporter


def get_client_factory(cfg: Settings = Depends(get_settings)) -> ScopedClientFactory:
    if not (cfg.supabase_url and cfg.supabase_anon_key):
        raise HTTPException(status_code=503, detail="Data store not configured")
    return ScopedClientFactory(cfg.supabase_url, cfg.supabase_anon_key)


def get_goal_repository(
    session: SessionProvider = Depends(get_session_provider),
    clients: ScopedClientFactory = Depends(get_client_factory),
    reporter: ErrorReporter = Depends(get_reporter),
    cfg: Settings = Depends(get_settings),
) -> GoalRepository:
    return GoalRepository(
        TokenSupplier(session, reporter),
        clients,
        reporter,
        default_minutes=cfg.default_goal_minutes,
    )


def get_voice_client(request: Request) -> ElevenLabsClient:
    return request.app.state.voice
