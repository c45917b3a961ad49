from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import structlog

from coach.api.goals import router as goals_router
from coach.api.relay import router as relay_router
from coach.core.config import settings
from coach.core.logging import RequestIdMiddleware, configure_logging
from coach.core.observability import ErrorReporter
from coach.services.elevenlabs import ElevenLabsClient

configure_logging(json_logs=settings.log_json, log_level=settings.log_level)
log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.reporter = ErrorReporter()
    app.state.voice = ElevenLabsClient(settings.elevenlabs_api_key, settings.elevenlabs_api_url)
    log.info(
        "app.started",
        deployment_target=settings.deployment_target.value,
        data_store=bool(settings.supabase_url),
        elevenlabs=app.state.voice.configured,
    )
    try:
        yield
    finally:
        app.state.voice.close()


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT"],
    allow_headers=["*"],
)
app.add_middleware(RequestIdMiddleware)

app.include_router(goals_router)
app.include_router(relay_router)


@app.get("/")
def root():
    return {"message": "Voice coach backend is running"}
