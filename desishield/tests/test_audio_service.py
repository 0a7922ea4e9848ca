"""Tests for the recorded-audio transcriber."""

from types import SimpleNamespace

import httpx
import openai
import pytest

from desishield.services.audio_service import RecordedAudioTranscriber
from desishield.utils.errors import (
    DictationFailedError,
    DICTATION_UNAVAILABLE_MESSAGE,
    MISSING_CREDENTIALS_MESSAGE,
)


class FakeTranscriptions:
    def __init__(self, response="", error=None):
        self.response = response
        self.error = error
        self.calls = []
        self.closed = False

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response

    async def close(self):
        self.closed = True


def make_transcriber(transcriptions, audio=b"RIFF....", api_key="test-key"):
    sdk = SimpleNamespace(
        audio=SimpleNamespace(transcriptions=transcriptions),
        close=transcriptions.close,
    )
    return RecordedAudioTranscriber(
        audio,
        filename="clip.wav",
        api_key=api_key,
        model="gpt-4o-mini-transcribe",
        language="en",
        client=sdk,
    )


class TestAvailability:
    def test_available_with_audio_and_key(self):
        assert make_transcriber(FakeTranscriptions()).is_available() is True

    def test_unavailable_without_audio(self):
        assert make_transcriber(FakeTranscriptions(), audio=None).is_available() is False
        assert make_transcriber(FakeTranscriptions(), audio=b"").is_available() is False

    def test_unavailable_without_key(self):
        assert make_transcriber(FakeTranscriptions(), api_key="").is_available() is False

    def test_reason_without_audio(self):
        transcriber = make_transcriber(FakeTranscriptions(), audio=None, api_key="")
        assert transcriber.unavailable_reason == DICTATION_UNAVAILABLE_MESSAGE

    def test_reason_without_key_names_the_key(self):
        """A recorded clip with no API key is a configuration problem, not a browser one."""
        transcriber = make_transcriber(FakeTranscriptions(), api_key="  ")
        assert transcriber.unavailable_reason == MISSING_CREDENTIALS_MESSAGE

    def test_no_reason_when_available(self):
        assert make_transcriber(FakeTranscriptions()).unavailable_reason is None


class TestListen:
    @pytest.mark.asyncio
    async def test_returns_stripped_transcript(self):
        transcriptions = FakeTranscriptions(response="  Aapka KYC pending hai \n")
        transcriber = make_transcriber(transcriptions)

        assert await transcriber.listen() == "Aapka KYC pending hai"

        call = transcriptions.calls[0]
        assert call["model"] == "gpt-4o-mini-transcribe"
        assert call["language"] == "en"
        assert call["response_format"] == "text"
        assert call["file"].name == "clip.wav"
        assert call["file"].read() == b"RIFF...."

    @pytest.mark.asyncio
    async def test_object_response_uses_text(self):
        transcriptions = FakeTranscriptions(response=SimpleNamespace(text="hello"))
        assert await make_transcriber(transcriptions).listen() == "hello"

    @pytest.mark.asyncio
    async def test_empty_transcript_fails(self):
        with pytest.raises(DictationFailedError):
            await make_transcriber(FakeTranscriptions(response="   ")).listen()

    @pytest.mark.asyncio
    async def test_api_error_fails(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/audio/transcriptions")
        transcriptions = FakeTranscriptions(error=openai.APIConnectionError(request=request))

        with pytest.raises(DictationFailedError):
            await make_transcriber(transcriptions).listen()


class TestClientLifecycle:
    @pytest.mark.asyncio
    async def test_injected_client_left_open(self):
        transcriptions = FakeTranscriptions(response="hello")
        transcriber = make_transcriber(transcriptions)

        await transcriber.listen()

        assert transcriptions.closed is False

    @pytest.mark.asyncio
    async def test_owned_client_closed(self):
        transcriber = RecordedAudioTranscriber(b"RIFF....", api_key="test-key")
        client = transcriber.client

        await transcriber.aclose()

        assert client.is_closed() is True
        assert transcriber._client is None

    @pytest.mark.asyncio
    async def test_aclose_without_client_is_noop(self):
        transcriber = RecordedAudioTranscriber(b"RIFF....", api_key="test-key")
        await transcriber.aclose()
        assert transcriber._client is None
