"""Text-to-speech through the ElevenLabs HTTP API."""

from typing import Any, AsyncIterator, Dict, Optional

import httpx

from seva.core.config import DEFAULT_VOICE_ID, Settings
from seva.core.exceptions import SpeechSynthesisError
from seva.core.logger import get_logger

logger = get_logger(__name__)

ELEVENLABS_API_URL = "https://api.elevenlabs.io/v1"
DEFAULT_MODEL_ID = "eleven_multilingual_v2"
DEFAULT_OUTPUT_FORMAT = "mp3_44100_128"
DEFAULT_VOICE_SETTINGS: Dict[str, Any] = {
    "stability": 0.5,
    "similarity_boost": 0.75,
    "style": 0.0,
    "use_speaker_boost": True,
}


class SpeechStream:
    """An open audio stream from the speech provider.

    Iterating yields MP3 chunks; the underlying response is closed when iteration ends
    or when :meth:`aclose` is called.
    """

    media_type = "audio/mpeg"

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    async def __aiter__(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.aiter_bytes():
                yield chunk
        finally:
            await self._response.aclose()

    async def aclose(self) -> None:
        await self._response.aclose()


class ElevenLabsSpeechClient:
    """Converts assistant text to speech."""

    def __init__(
        self,
        api_key: str,
        default_voice_id: str = DEFAULT_VOICE_ID,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: str = ELEVENLABS_API_URL,
        model_id: str = DEFAULT_MODEL_ID,
        output_format: str = DEFAULT_OUTPUT_FORMAT,
        timeout: float = 30.0,
    ) -> None:
        self.default_voice_id = default_voice_id
        self.base_url = base_url.rstrip("/")
        self.model_id = model_id
        self.output_format = output_format
        self._api_key = api_key
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(
        cls, settings: Settings, http_client: Optional[httpx.AsyncClient] = None
    ) -> "ElevenLabsSpeechClient":
        settings.require("elevenlabs_api_key")
        return cls(
            api_key=settings.elevenlabs_api_key,  # type: ignore[arg-type]
            default_voice_id=settings.elevenlabs_voice_id,
            http_client=http_client,
            timeout=settings.http_timeout,
        )

    async def open_stream(self, text: str, voice_id: Optional[str] = None) -> SpeechStream:
        """Start synthesizing ``text``.

        The provider's status is checked before returning, so errors surface here and
        not halfway through the audio.

        Args:
            text: Text to speak.
            voice_id: Voice to use; the configured default when None or empty.

        Returns:
            The open audio stream.

        Raises:
            SpeechSynthesisError: If the provider rejects the request or is unreachable.
        """
        target_voice = voice_id or self.default_voice_id
        request = self._http.build_request(
            "POST",
            f"{self.base_url}/text-to-speech/{target_voice}/stream",
            params={"output_format": self.output_format},
            headers={"xi-api-key": self._api_key, "Accept": "audio/mpeg"},
            json={"text": text, "model_id": self.model_id, "voice_settings": DEFAULT_VOICE_SETTINGS},
        )

        try:
            response = await self._http.send(request, stream=True)
        except httpx.HTTPError as exc:
            logger.error(f"ElevenLabs API error: {exc}")
            raise SpeechSynthesisError(str(exc) or "Failed to convert text to speech.") from exc

        if response.is_error:
            await response.aread()
            await response.aclose()
            message = self._error_message(response)
            logger.error(f"ElevenLabs API error ({response.status_code}): {message}")
            raise SpeechSynthesisError(message, status_code=response.status_code)

        logger.debug(f"Streaming speech for {len(text)} character(s) with voice '{target_voice}'.")
        return SpeechStream(response)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        message = "Failed to convert text to speech."
        try:
            body = response.json()
        except ValueError:
            return message
        if not isinstance(body, dict):
            return message
        if isinstance(body.get("message"), str):
            message = body["message"]
        # detail is more specific than message when both are present
        detail = body.get("detail")
        if isinstance(detail, str):
            message = detail
        elif isinstance(detail, dict) and isinstance(detail.get("message"), str):
            message = detail["message"]
        return message
