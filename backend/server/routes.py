"""
Route registration for the speech API.

Responsibilities:
- Define HTTP endpoints
- Translate request-path errors into HTTP responses
- Pull dependencies from app.state
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from errors import (
    InputMissing,
    InputTooLong,
    NoAudioData,
    RateLimitExceeded,
    ServiceNotConfigured,
    SpeechRequestError,
    UpstreamFailure,
)
from observability.logger import log_event
from ratelimit.identity import caller_identity
from ratelimit.sliding_window import Admission
from services.speech_service import SpeechService
from spec import ms_to_whole_seconds


def register_routes(app: FastAPI) -> None:
    """Register all routes and error handlers on the FastAPI app."""
    app.add_exception_handler(SpeechRequestError, _speech_error_handler)

    @app.get("/health")
    async def health() -> dict[str, str]: # pyright: ignore[reportUnusedFunction]
        return {"status": "ok", "message": "API is working"}

    api = APIRouter(prefix="/api", dependencies=[Depends(enforce_default_quota)])

    @api.post("/tts")
    async def tts(request: Request) -> JSONResponse: # pyright: ignore[reportUnusedFunction]
        service: SpeechService = request.app.state.speech_service
        identity = request_identity(request)
        request_id = uuid.uuid4().hex[:12]
        body = await read_json_object(request)
        voice = body.get("voice")

        try:
            framed = await service.synthesize(
                body.get("text"),
                identity=identity,
                voice=voice if isinstance(voice, str) else None,
                request_id=request_id,
            )

        except SpeechRequestError:
            raise

        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "TTS_FATAL_ERROR",
                "request_id": request_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            return JSONResponse(status_code=500, content={"error": "Internal Server Error"})

        log_event({
            "event_type": "TTS_RESPONSE_SENT",
            "request_id": request_id,
            "identity": identity,
            "mime_type": framed.mime_type,
            "bytes": len(framed.data),
        })

        return JSONResponse(
            status_code=200,
            content={"audioBase64": framed.to_base64(), "mimeType": framed.mime_type},
            headers={"Cache-Control": "no-store"},
        )

    app.include_router(api)


# ------------------------------------------------------------------
# Dependencies
# ------------------------------------------------------------------

async def read_json_object(request: Request) -> dict[str, Any]:
    """
    Request body as a JSON object.

    Empty, malformed or non-object bodies read as {} so the service reports
    the missing text itself.
    """
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def request_identity(request: Request) -> str:
    """Rate-limit identity of the caller behind `request`."""
    return caller_identity(
        request.headers,
        request.client.host if request.client else None,
        trust_forwarded_for=request.app.state.config.trust_forwarded_for,
    )


def enforce_default_quota(request: Request) -> None:
    """General-purpose quota shared by every /api route."""
    limiter = request.app.state.default_limiter
    identity = request_identity(request)
    now = request.app.state.now_ms()

    if limiter.check_and_record(identity, now) is Admission.REJECTED:
        retry_after_ms = limiter.retry_after_ms(identity, now)
        log_event({
            "event_type": "API_RATE_LIMITED",
            "identity": identity,
            "limiter": limiter.name,
            "path": request.url.path,
            "retry_after_ms": retry_after_ms,
        })
        raise RateLimitExceeded(limiter.name, retry_after_ms)


# ------------------------------------------------------------------
# Error translation
# ------------------------------------------------------------------

async def _speech_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    return error_response(exc)


def error_response(exc: Exception) -> JSONResponse:
    """Map a request-path error to its HTTP status and JSON body."""
    if isinstance(exc, InputMissing):
        return JSONResponse(status_code=400, content={"error": 'Missing "text" in request body'})

    if isinstance(exc, InputTooLong):
        return JSONResponse(
            status_code=400,
            content={"error": f"Text too long. Maximum {exc.max_chars} characters allowed."},
        )

    if isinstance(exc, RateLimitExceeded):
        return JSONResponse(
            status_code=429,
            content={"error": "Too Many Requests. Please try again later."},
            headers={"Retry-After": str(ms_to_whole_seconds(exc.retry_after_ms))},
        )

    if isinstance(exc, ServiceNotConfigured):
        return JSONResponse(
            status_code=500,
            content={"error": "Server configuration error: Missing API Key"},
        )

    if isinstance(exc, NoAudioData):
        log_event({"event_type": "TTS_NO_AUDIO_DATA", "message": str(exc)})
        return JSONResponse(status_code=500, content={"error": "Failed to generate audio from AI"})

    if isinstance(exc, UpstreamFailure):
        return JSONResponse(status_code=500, content={"error": str(exc) or "Upstream failure"})

    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})
