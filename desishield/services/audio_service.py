from io import BytesIO
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from desishield.config import settings
from desishield.utils.errors import (
    DictationFailedError,
    DICTATION_UNAVAILABLE_MESSAGE,
    MISSING_CREDENTIALS_MESSAGE,
)


class RecordedAudioTranscriber:
    """
    Speech recognizer for one clip recorded in the browser.

    Transcribes the clip with OpenAI's audio API and returns the final
    transcript only. Unavailable when there is no clip or no API key.
    A client created here is closed once the clip has been transcribed;
    an injected client belongs to the caller.
    """

    def __init__(
        self,
        audio: Optional[bytes],
        filename: str = "dictation.wav",
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        language: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.audio = audio
        self.filename = filename
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.model = model or settings.openai_transcription_model
        self.language = language or settings.dictation_language
        self.timeout = timeout if timeout is not None else settings.openai_timeout
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    @property
    def unavailable_reason(self) -> Optional[str]:
        if not self.audio:
            return DICTATION_UNAVAILABLE_MESSAGE
        if not self.api_key.strip():
            return MISSING_CREDENTIALS_MESSAGE
        return None

    def is_available(self) -> bool:
        return self.unavailable_reason is None

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None

    async def listen(self) -> str:
        # Wrap in a file-like object for the OpenAI client
        audio_file = BytesIO(self.audio or b"")
        audio_file.name = self.filename

        try:
            response = await self.client.audio.transcriptions.create(
                model=self.model,
                file=audio_file,
                language=self.language,
                response_format="text",
            )
        except OpenAIError as e:
            raise DictationFailedError(f"Transcription failed: {e}") from e
        finally:
            await self.aclose()

        # response is just the transcript text in this mode
        transcript = response if isinstance(response, str) else getattr(response, "text", "")
        transcript = (transcript or "").strip()
        if not transcript:
            raise DictationFailedError("No speech detected in the recording")
        return transcript
