# pylint: disable=missing-module-docstring,missing-function-docstring

import base64
import struct
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from adapters.tts.base import SpeechSynthesizer
from audio.payload import AudioPayload
from config import AppConfig
from errors import UpstreamFailure
from server.app import create_app


class FakeSynthesizer(SpeechSynthesizer):
    def __init__(self, payload: Optional[AudioPayload] = None, error: Optional[Exception] = None) -> None:
        self.payload = payload
        self.error = error
        self.calls = 0

    async def synthesize(self, *, text: str, voice: Optional[str] = None) -> Optional[AudioPayload]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.payload


class FakeClock:
    def __init__(self) -> None:
        self.now = 1_700_000_000_000

    def __call__(self) -> int:
        return self.now


def make_config(**overrides) -> AppConfig:
    values = dict(
        env="test",
        log_level="INFO",
        openai_api_key=None,
        tts_model="gpt-4o-mini-tts",
        tts_voice="alloy",
        tts_response_format="pcm",
        tts_instructions=None,
        cors_origins=("*",),
        trust_forwarded_for=True,
    )
    values.update(overrides)
    return AppConfig(**values)


def make_client(
    synthesizer: Optional[SpeechSynthesizer],
    clock: Optional[FakeClock] = None,
    **config_overrides,
) -> TestClient:
    app = create_app(
        make_config(**config_overrides),
        synthesizer=synthesizer,
        now_ms=clock or FakeClock(),
    )
    return TestClient(app)


_ip_counter = 0


def unique_ip() -> dict[str, str]:
    global _ip_counter  # pylint: disable=global-statement
    _ip_counter += 1
    return {"x-forwarded-for": f"127.0.0.{_ip_counter}"}


# ---------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------

def test_health():
    client = make_client(None)

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "message": "API is working"}


# ---------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------

def test_rejects_non_post():
    client = make_client(FakeSynthesizer())

    assert client.get("/api/tts", headers=unique_ip()).status_code == 405


@pytest.mark.parametrize("body", [{}, {"text": ""}, {"text": "   "}, {"text": 5}])
def test_rejects_missing_text(body):
    synth = FakeSynthesizer()
    client = make_client(synth)

    response = client.post("/api/tts", json=body, headers=unique_ip())

    assert response.status_code == 400
    assert response.json() == {"error": 'Missing "text" in request body'}
    assert synth.calls == 0


@pytest.mark.parametrize("body", [[], ["hello"], "hello", None, 42])
def test_non_object_body_is_missing_text(body):
    synth = FakeSynthesizer()
    client = make_client(synth)

    response = client.post("/api/tts", json=body, headers=unique_ip())

    assert response.status_code == 400
    assert response.json() == {"error": 'Missing "text" in request body'}
    assert synth.calls == 0


@pytest.mark.parametrize("content", [b"not json", b"", b"{\"text\": ", b"\xff\xfe"])
def test_unparseable_body_is_missing_text(content):
    synth = FakeSynthesizer()
    client = make_client(synth)

    response = client.post(
        "/api/tts",
        content=content,
        headers={**unique_ip(), "Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": 'Missing "text" in request body'}
    assert synth.calls == 0


def test_rejects_long_text():
    synth = FakeSynthesizer()
    client = make_client(synth)

    response = client.post("/api/tts", json={"text": "a" * 201}, headers=unique_ip())

    assert response.status_code == 400
    assert response.json() == {"error": "Text too long. Maximum 200 characters allowed."}
    assert synth.calls == 0


def test_missing_api_key_is_server_error():
    client = make_client(None)

    response = client.post("/api/tts", json={"text": "Hello world"}, headers=unique_ip())

    assert response.status_code == 500
    assert "Missing API Key" in response.json()["error"]


# ---------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------

def test_pcm_response_is_wav():
    pcm = bytes(2000)
    client = make_client(FakeSynthesizer(AudioPayload(data=pcm, mime_type="audio/L16")))

    response = client.post("/api/tts", json={"text": "Hello world"}, headers=unique_ip())

    assert response.status_code == 200
    assert response.headers["cache-control"] == "no-store"
    body = response.json()
    assert body["mimeType"] == "audio/wav"

    audio = base64.b64decode(body["audioBase64"])
    assert audio[0:4] == b"RIFF"
    assert audio[8:12] == b"WAVE"
    assert struct.unpack_from("<H", audio, 20)[0] == 1
    assert struct.unpack_from("<H", audio, 22)[0] == 1
    assert struct.unpack_from("<I", audio, 24)[0] == 24000
    assert struct.unpack_from("<I", audio, 40)[0] == 2000


def test_mp3_response_is_unchanged():
    mp3_b64 = base64.b64encode(b"fake-mp3").decode("ascii")
    client = make_client(FakeSynthesizer(AudioPayload(data=b"fake-mp3", mime_type="audio/mp3")))

    response = client.post("/api/tts", json={"text": "Hello world"}, headers=unique_ip())

    assert response.status_code == 200
    assert response.json() == {"audioBase64": mp3_b64, "mimeType": "audio/mpeg"}


def test_missing_audio_data():
    client = make_client(FakeSynthesizer(payload=None))

    response = client.post("/api/tts", json={"text": "Hello world"}, headers=unique_ip())

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate audio from AI"}


def test_upstream_error_message_is_surfaced():
    client = make_client(FakeSynthesizer(error=UpstreamFailure("Quota exceeded")))

    response = client.post("/api/tts", json={"text": "Hello world"}, headers=unique_ip())

    assert response.status_code == 500
    assert "Quota exceeded" in response.json()["error"]


# ---------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------

def test_sixth_request_from_same_ip_is_429():
    mp3 = AudioPayload(data=b"abc", mime_type="audio/mp3")
    client = make_client(FakeSynthesizer(mp3))
    headers = {"x-forwarded-for": "192.168.1.1"}

    for _ in range(5):
        assert client.post("/api/tts", json={"text": "Hello"}, headers=headers).status_code == 200

    response = client.post("/api/tts", json={"text": "Hello"}, headers=headers)

    assert response.status_code == 429
    assert "Too Many Requests" in response.json()["error"]
    assert response.headers["retry-after"] == "61"


def test_other_ip_unaffected_by_saturated_ip():
    mp3 = AudioPayload(data=b"abc", mime_type="audio/mp3")
    client = make_client(FakeSynthesizer(mp3))

    for _ in range(6):
        client.post("/api/tts", json={"text": "Hello"}, headers={"x-forwarded-for": "10.0.0.1"})

    response = client.post("/api/tts", json={"text": "Hello"}, headers={"x-forwarded-for": "10.0.0.2"})

    assert response.status_code == 200


def test_quota_returns_after_window():
    mp3 = AudioPayload(data=b"abc", mime_type="audio/mp3")
    clock = FakeClock()
    client = make_client(FakeSynthesizer(mp3), clock=clock)
    headers = {"x-forwarded-for": "10.9.9.9"}

    for _ in range(5):
        client.post("/api/tts", json={"text": "Hello"}, headers=headers)
    assert client.post("/api/tts", json={"text": "Hello"}, headers=headers).status_code == 429

    clock.now += 60_001

    assert client.post("/api/tts", json={"text": "Hello"}, headers=headers).status_code == 200


def test_default_quota_covers_invalid_requests():
    client = make_client(FakeSynthesizer(), rate_limit_default_max_calls=2)
    headers = {"x-forwarded-for": "10.7.7.7"}

    for _ in range(2):
        assert client.post("/api/tts", json={}, headers=headers).status_code == 400

    assert client.post("/api/tts", json={}, headers=headers).status_code == 429


def test_apps_do_not_share_quota():
    mp3 = AudioPayload(data=b"abc", mime_type="audio/mp3")
    headers = {"x-forwarded-for": "10.3.3.3"}
    first = make_client(FakeSynthesizer(mp3), rate_limit_tts_max_calls=1)
    second = make_client(FakeSynthesizer(mp3), rate_limit_tts_max_calls=1)

    assert first.post("/api/tts", json={"text": "Hi"}, headers=headers).status_code == 200
    assert first.post("/api/tts", json={"text": "Hi"}, headers=headers).status_code == 429
    assert second.post("/api/tts", json={"text": "Hi"}, headers=headers).status_code == 200
