import asyncio

import httpx
import pytest
from openai import AsyncOpenAI

from reelscribe.errors import ConfigurationError, TranscriptionError
from reelscribe.services.transcription import TranscriptionClient


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


class ScriptedAPI:
    """Returns the scripted responses in order, repeating the last one."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.responses)) - 1
        return self.responses[index]


def openai_client(api: ScriptedAPI) -> AsyncOpenAI:
    return AsyncOpenAI(
        api_key="sk-test",
        base_url="https://api.openai.test/v1",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(api)),
        max_retries=0,
    )


def ok(text=" hello world ", language="english"):
    return httpx.Response(200, json={"text": text, "language": language, "duration": 3.2})


def server_error(status=500):
    return httpx.Response(status, json={"error": {"message": "upstream failure", "type": "server_error"}})


class TestTranscribe:
    def test_success(self, config):
        api = ScriptedAPI(ok())
        sleep = SleepRecorder()
        result = asyncio.run(TranscriptionClient(config, openai_client(api), sleep=sleep).transcribe(b"mp3"))

        assert result.text == "hello world"
        assert result.language == "english"
        assert sleep.delays == []

        request = api.requests[0]
        assert request.url.path == "/v1/audio/transcriptions"
        body = request.content
        assert b"whisper-1" in body
        assert b'filename="audio.mp3"' in body
        assert b"verbose_json" in body

    def test_language_hint_sent(self, make_config):
        api = ScriptedAPI(ok())
        client = TranscriptionClient(make_config(transcription_language="es"), openai_client(api), sleep=SleepRecorder())
        asyncio.run(client.transcribe(b"mp3"))
        assert b'name="language"' in api.requests[0].content

    def test_missing_text_and_language_defaults(self, config):
        api = ScriptedAPI(httpx.Response(200, json={}))
        result = asyncio.run(TranscriptionClient(config, openai_client(api), sleep=SleepRecorder()).transcribe(b"mp3"))
        assert result.text == ""
        assert result.language == "en"

    def test_recovers_after_transient_failure(self, config):
        api = ScriptedAPI(server_error(429), ok(text="second time"))
        sleep = SleepRecorder()
        result = asyncio.run(TranscriptionClient(config, openai_client(api), sleep=sleep).transcribe(b"mp3"))

        assert result.text == "second time"
        assert len(api.requests) == 2
        assert sleep.delays == [1.0]

    def test_gives_up_after_three_attempts_with_linear_backoff(self, config):
        api = ScriptedAPI(server_error())
        sleep = SleepRecorder()
        with pytest.raises(TranscriptionError) as info:
            asyncio.run(TranscriptionClient(config, openai_client(api), sleep=sleep).transcribe(b"mp3"))

        assert len(api.requests) == 3
        assert sleep.delays == [1.0, 2.0]
        assert info.value.attempts == 3
        assert "3 attempts" in str(info.value)
        assert info.value.status_code == 502

    def test_authentication_failures_are_retried_like_others(self, config):
        api = ScriptedAPI(server_error(401))
        with pytest.raises(TranscriptionError):
            asyncio.run(TranscriptionClient(config, openai_client(api), sleep=SleepRecorder()).transcribe(b"mp3"))
        assert len(api.requests) == 3

    def test_attempts_and_backoff_follow_config(self, make_config):
        config = make_config(transcription_max_attempts=4, transcription_backoff_seconds=0.5)
        api = ScriptedAPI(server_error(503))
        sleep = SleepRecorder()
        with pytest.raises(TranscriptionError):
            asyncio.run(TranscriptionClient(config, openai_client(api), sleep=sleep).transcribe(b"mp3"))
        assert len(api.requests) == 4
        assert sleep.delays == [0.5, 1.0, 1.5]


class TestConfiguration:
    def test_missing_key_fails_before_any_request(self, make_config, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        client = TranscriptionClient(make_config(openai_api_key=""))

        with pytest.raises(ConfigurationError):
            client.ensure_configured()
        with pytest.raises(ConfigurationError):
            asyncio.run(client.transcribe(b"mp3"))

    def test_key_present(self, config):
        assert TranscriptionClient(config).ensure_configured() == "sk-test"
