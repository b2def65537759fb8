"""
FastAPI app factory.

Responsibilities:
- Create and configure FastAPI app
- Set up middleware
- Initialize shared resources (OpenAI client, rate limiters, speech service)
- Register routes
"""

from __future__ import annotations

from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from openai import AsyncOpenAI

from adapters.tts.base import SpeechSynthesizer
from adapters.tts.openai_speech import OpenAISpeechSynthesizer
from config import AppConfig
from observability.logger import log_event, now_ms as wall_clock_ms
from ratelimit.sliding_window import SlidingWindowRateLimiter
from services.speech_service import SpeechService

from server.routes import register_routes


def create_app(
    config: Optional[AppConfig] = None,
    *,
    synthesizer: Optional[SpeechSynthesizer] = None,
    now_ms: Callable[[], int] = wall_clock_ms,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    This is the app factory pattern that allows:
    - Testing with injected collaborators (synthesizer, clock)
    - Environment-specific setup
    - ASGI server compatibility

    Each app owns its limiters; two apps never share quota state.
    """
    config = config or AppConfig.load_from_env()

    app = FastAPI(title="Interview Coach Speech API")

    app.state.config = config
    app.state.now_ms = now_ms

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # One limiter per quota; the speech endpoint is the expensive one
    app.state.default_limiter = SlidingWindowRateLimiter(
        name="default",
        max_calls=config.rate_limit_default_max_calls,
        window_ms=config.rate_limit_window_ms,
    )
    tts_limiter = SlidingWindowRateLimiter(
        name="tts",
        max_calls=config.rate_limit_tts_max_calls,
        window_ms=config.rate_limit_window_ms,
    )

    if synthesizer is None:
        synthesizer = build_synthesizer(config)

    if synthesizer is None:
        log_event({
            "event_type": "TTS_NOT_CONFIGURED",
            "env": config.env,
            "message": "OPENAI_API_KEY not set; /api/tts will report a configuration error",
        })

    app.state.speech_service = SpeechService(
        synthesizer=synthesizer,
        limiter=tts_limiter,
        now_ms=now_ms,
    )

    # Routes
    register_routes(app)

    return app


def build_synthesizer(config: AppConfig) -> Optional[SpeechSynthesizer]:
    """
    Build the speech adapter from configuration.

    The OpenAI client is created ONCE per process. Returns None when no
    API key is configured.
    """
    if not config.openai_api_key:
        return None

    return OpenAISpeechSynthesizer(
        client=AsyncOpenAI(api_key=config.openai_api_key),
        model=config.tts_model,
        voice=config.tts_voice,
        response_format=config.tts_response_format,
        instructions=config.tts_instructions,
    )
