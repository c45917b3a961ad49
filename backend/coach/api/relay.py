from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import structlog

from coach.api.deps import get_voice_client
from coach.schemas.relay import ConnectionStatus
from coach.services.elevenlabs import ElevenLabsClient, ElevenLabsError

router = APIRouter(prefix="/api", tags=["relay"])

log = structlog.get_logger(__name__)


@router.get(
    "/test-connection",
    response_model=ConnectionStatus,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
def test_connection(voice: ElevenLabsClient = Depends(get_voice_client)):
    """Check that the relay can reach ElevenLabs with its API key."""
    log.info("relay.test_connection.started")
    try:
        voices = voice.list_voices()
    except ElevenLabsError as e:
        log.error("relay.test_connection.failed", error=str(e), detail=e.detail)
        body = ConnectionStatus(
            connected=False,
            message="Failed to connect to ElevenLabs API",
            error=e.detail,
        )
        return JSONResponse(status_code=500, content=body.model_dump(by_alias=True, exclude_none=True))

    log.info("relay.test_connection.succeeded", voices=len(voices))
    return ConnectionStatus(
        connected=True,
        message="Successfully connected to ElevenLabs API",
        voices_count=len(voices),
    )
