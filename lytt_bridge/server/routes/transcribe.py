"""POST /transcribe — relay an uploaded recording to the transcription API."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from lytt_bridge.config.settings import ServerSettings  # noqa: TC001
from lytt_bridge.language import normalize_language
from lytt_bridge.logging import get_logger
from lytt_bridge.server.dependencies import get_server_settings, get_transcription_client
from lytt_bridge.server.upload import read_upload
from lytt_bridge.upstream.client import TranscriptionClient  # noqa: TC001

router = APIRouter(tags=["Audio"])

logger = get_logger("server.routes")


@router.post("/transcribe")
async def transcribe(
    request: Request,
    client: TranscriptionClient = Depends(get_transcription_client),  # noqa: B008
    server_settings: ServerSettings = Depends(get_server_settings),  # noqa: B008
) -> dict[str, str]:
    """Transcribe one recording.

    Expects multipart/form-data with a required ``file`` field and an
    optional free-text ``language`` field. Failures are raised as typed
    exceptions and rendered by ``register_error_handlers``.
    """
    request_id = getattr(request.state, "request_id", None)

    upload = await read_upload(request, server_settings.max_body_bytes)
    language = normalize_language(upload.language_hint)

    logger.info(
        "transcribe_request",
        request_id=request_id,
        bytes=len(upload.audio_bytes),
        filename=upload.filename,
        mime=upload.mime_type,
        language_hint=upload.language_hint,
        language=language or "auto",
    )

    result = await client.transcribe(
        upload.audio_bytes,
        upload.filename,
        upload.mime_type,
        language,
    )

    logger.info("transcribe_complete", request_id=request_id, chars=len(result.text))
    return {"text": result.text}
