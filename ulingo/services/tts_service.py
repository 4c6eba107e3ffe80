"""
Text-to-speech through the ElevenLabs API

``TextToSpeechClient`` owns its HTTP connection pool; use it as an async
context manager (or call ``aclose``) so the pool is released when the
caller is done with it.
"""
import logging
from typing import List, Optional

import httpx

from ulingo.config import get_settings
from ulingo.exceptions import ExternalServiceError

settings = get_settings()
logger = logging.getLogger(__name__)

# Neutral, clear delivery for pronunciation models
VOICE_SETTINGS = {
    "stability": 0.5,
    "similarity_boost": 0.75,
    "style": 0.0,
    "use_speaker_boost": True,
}


class TextToSpeechClient:

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        voice_id: Optional[str] = None,
        model_id: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = settings.ELEVENLABS_API_KEY if api_key is None else api_key
        self.voice_id = voice_id or settings.ELEVENLABS_VOICE_ID
        self.model_id = model_id or settings.ELEVENLABS_MODEL_ID
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.ELEVENLABS_BASE_URL,
            timeout=timeout or settings.HTTP_TIMEOUT_SECONDS,
            headers={"xi-api-key": self.api_key},
            transport=transport,
        )

    async def __aenter__(self) -> "TextToSpeechClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _check_configured(self) -> None:
        if not self.api_key:
            raise ExternalServiceError("Speech synthesis is not configured")

    async def speak(self, text: str, voice_id: Optional[str] = None) -> bytes:
        """
        Synthesize ``text`` (Chinese or English)

        Returns:
            bytes: MP3 audio

        Raises:
            ExternalServiceError: bad status, timeout or network failure
        """
        self._check_configured()
        path = f"/text-to-speech/{voice_id or self.voice_id}"
        payload = {
            "text": text,
            "model_id": self.model_id,
            "voice_settings": VOICE_SETTINGS,
        }

        try:
            response = await self._client.post(path, json=payload, headers={"Accept": "audio/mpeg"})
        except httpx.TimeoutException as e:
            logger.error("TTS request timed out for %r", text[:40])
            raise ExternalServiceError("Audio took too long to load, please try again") from e
        except httpx.HTTPError as e:
            logger.error("TTS request failed: %s", e)
            raise ExternalServiceError("Failed to load audio") from e

        if response.status_code != 200:
            # 401 invalid key, 429 quota exceeded, 400 invalid text
            logger.error("TTS API error %s: %s", response.status_code, response.text[:200])
            raise ExternalServiceError("Failed to load audio")

        return response.content

    async def list_voices(self) -> List[dict]:
        self._check_configured()
        try:
            response = await self._client.get("/voices", headers={"Accept": "application/json"})
        except httpx.HTTPError as e:
            logger.error("Voice listing failed: %s", e)
            raise ExternalServiceError("Could not load voices") from e

        if response.status_code != 200:
            logger.error("Voice listing error %s", response.status_code)
            raise ExternalServiceError("Could not load voices")

        try:
            data = response.json()
        except ValueError as e:
            raise ExternalServiceError("Could not load voices") from e
        voices = data.get("voices") if isinstance(data, dict) else None
        if not isinstance(voices, list):
            return []
        return [voice for voice in voices if isinstance(voice, dict)]


async def get_tts_client():
    """FastAPI dependency: one client per request, closed afterwards"""
    async with TextToSpeechClient() as client:
        yield client
