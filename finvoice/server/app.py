"""aiohttp application exposing the transcription endpoint."""

import logging
from typing import Optional

from aiohttp import web

from ..config import FinVoiceConfig
from ..exceptions import VoiceInputError
from ..models.transcription import AudioUpload, FormType
from ..services.voice_pipeline import VoicePipeline

logger = logging.getLogger(__name__)

PIPELINE_KEY = web.AppKey("pipeline", VoicePipeline)


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Convert every failure into a ``{"error": ...}`` JSON body."""
    try:
        return await handler(request)
    except VoiceInputError as e:
        if e.status_code >= 500:
            logger.error(f"{request.method} {request.path} failed: {e.message}")
        else:
            logger.warning(f"{request.method} {request.path} rejected: {e.message}")
        return web.json_response({"error": e.message}, status=e.status_code)
    except web.HTTPException as e:
        if e.status < 400:
            raise
        return web.json_response({"error": e.reason}, status=e.status)
    except Exception as e:
        logger.exception(f"Unhandled error in {request.method} {request.path}")
        return web.json_response({"error": str(e) or "Processing failed"}, status=500)


async def handle_transcribe(request: web.Request) -> web.Response:
    """POST /api/transcribe?type=expense|income with a multipart ``audio`` field."""
    form_type = FormType.parse(request.query.get("type"))

    post = await request.post()
    field = post.get("audio")
    audio = None
    if isinstance(field, web.FileField):
        audio = AudioUpload(
            data=field.file.read(),
            filename=field.filename or "recording.wav",
            content_type=field.content_type or "application/octet-stream",
        )

    result = await request.app[PIPELINE_KEY].process(audio, form_type)
    return web.json_response(result.to_dict())


async def handle_health(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


def create_app(config: FinVoiceConfig, pipeline: Optional[VoicePipeline] = None) -> web.Application:
    """Build the web application.

    Args:
        config: Application configuration
        pipeline: Pipeline to serve; built from ``config`` when omitted
    """
    max_upload_bytes = int(config.get('server.max_upload_mb', 25) * 1024 * 1024)
    app = web.Application(middlewares=[error_middleware], client_max_size=max_upload_bytes)
    app[PIPELINE_KEY] = pipeline or VoicePipeline(config)

    app.router.add_post("/api/transcribe", handle_transcribe)
    app.router.add_get("/health", handle_health)

    logger.info(f"Web application created (max upload {max_upload_bytes} bytes)")
    return app
