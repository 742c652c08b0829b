"""
Upload endpoint for transcribe-server.

Accepts a multipart ``audio`` field, relays it to the speech provider
through the gateway and answers with the transcript text.
"""

import logging
import tempfile
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.datastructures import UploadFile

from transcribe_server.core.errors import InputError, ProviderError, StoreError

logger = logging.getLogger(__name__)

router = APIRouter()

AUDIO_FIELD = "audio"

MSG_NO_AUDIO = "No audio file provided."
MSG_PROCESSING_FAILED = "Error processing speech."
MSG_SAVE_FAILED = "Failed to save transcript"

# The form is parsed by hand (a non-file ``audio`` value answers 400, not 422),
# so the multipart body is declared for OpenAPI here.
_UPLOAD_REQUEST_BODY = {
    "required": True,
    "content": {
        "multipart/form-data": {
            "schema": {
                "type": "object",
                "properties": {AUDIO_FIELD: {"type": "string", "format": "binary"}},
                "required": [AUDIO_FIELD],
            }
        }
    },
}


class UploadResponse(BaseModel):
    """Response model for a successful upload."""

    transcript: str


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={400: {"model": UploadResponse}, 500: {"model": UploadResponse}},
    openapi_extra={"requestBody": _UPLOAD_REQUEST_BODY},
)
async def upload_audio(request: Request):
    """
    Transcribe an uploaded audio blob and store the transcript.

    Failure responses keep the ``transcript`` key so clients can show it
    verbatim; a store failure after a successful transcription also
    carries ``error``.
    """
    form = await request.form()
    try:
        audio = form.get(AUDIO_FIELD)
        if not isinstance(audio, UploadFile):
            logger.warning("Upload rejected: no audio file attached")
            return JSONResponse(status_code=400, content={"transcript": MSG_NO_AUDIO})

        return await _transcribe_upload(request, audio)
    finally:
        await form.close()


async def _transcribe_upload(request: Request, audio: UploadFile):
    gateway = request.app.state.gateway
    upload_dir: Optional[Path] = request.app.state.upload_dir

    logger.info(f"Received file: {audio.filename} ({audio.content_type})")

    suffix = Path(audio.filename or "").suffix or ".webm"
    tmp_path: Optional[Path] = None
    try:
        with tempfile.NamedTemporaryFile(delete=False, suffix=suffix, dir=upload_dir) as tmp:
            tmp_path = Path(tmp.name)
            tmp.write(await audio.read())

        record = await gateway.submit(tmp_path.read_bytes(), audio.filename)

    except InputError as e:
        logger.warning(f"Upload rejected: {e}")
        return JSONResponse(status_code=400, content={"transcript": MSG_NO_AUDIO})

    except ProviderError as e:
        logger.error(f"Transcription failed: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"transcript": MSG_PROCESSING_FAILED})

    except StoreError:
        return JSONResponse(
            status_code=500,
            content={"transcript": MSG_PROCESSING_FAILED, "error": MSG_SAVE_FAILED},
        )

    except OSError as e:
        logger.error(f"Could not spool upload {audio.filename}: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"transcript": MSG_PROCESSING_FAILED})

    finally:
        if tmp_path is not None:
            try:
                tmp_path.unlink()
            except OSError as e:
                logger.warning(f"Failed to cleanup temp file {tmp_path}: {e}")

    return {"transcript": record.text}
