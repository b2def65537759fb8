"""
Application configuration.

Responsibilities:
- Load deployment-specific configuration
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No request handling
- No protocol constants (see spec.py)
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from spec import (
    RATE_LIMIT_MAX_CALLS_DEFAULT,
    RATE_LIMIT_MAX_CALLS_TTS,
    RATE_LIMIT_WINDOW_MS,
)


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup.
    Passed downward to the app factory, which builds limiters and adapters.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str
    log_level: str

    # ------------------------------------------------------------------
    # TTS
    # ------------------------------------------------------------------

    openai_api_key: str | None
    tts_model: str
    tts_voice: str
    tts_response_format: str
    tts_instructions: str | None

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    cors_origins: tuple[str, ...]
    trust_forwarded_for: bool

    # ------------------------------------------------------------------
    # Rate limiting (one instance per quota, no runtime reconfiguration)
    # ------------------------------------------------------------------

    rate_limit_window_ms: int = RATE_LIMIT_WINDOW_MS
    rate_limit_default_max_calls: int = RATE_LIMIT_MAX_CALLS_DEFAULT
    rate_limit_tts_max_calls: int = RATE_LIMIT_MAX_CALLS_TTS

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Missing OPENAI_API_KEY is allowed: the app still serves /health and
        the speech endpoint reports a configuration error.

        Raises:
            ValueError if a numeric variable is not an integer.
        """
        origins = os.environ.get("CORS_ORIGINS", "*")

        return AppConfig(
            env=os.environ.get("ENV", "dev"),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),

            openai_api_key=os.environ.get("OPENAI_API_KEY") or None,
            tts_model=os.environ.get("TTS_MODEL", "gpt-4o-mini-tts"),
            tts_voice=os.environ.get("TTS_VOICE", "alloy"),
            tts_response_format=os.environ.get("TTS_RESPONSE_FORMAT", "pcm"),
            tts_instructions=os.environ.get("TTS_INSTRUCTIONS") or None,

            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
            trust_forwarded_for=_env_flag("TRUST_FORWARDED_FOR", "1"),

            rate_limit_window_ms=_env_int("RATE_LIMIT_WINDOW_MS", RATE_LIMIT_WINDOW_MS),
            rate_limit_default_max_calls=_env_int(
                "RATE_LIMIT_DEFAULT_MAX_CALLS", RATE_LIMIT_MAX_CALLS_DEFAULT
            ),
            rate_limit_tts_max_calls=_env_int(
                "RATE_LIMIT_TTS_MAX_CALLS", RATE_LIMIT_MAX_CALLS_TTS
            ),
        )
