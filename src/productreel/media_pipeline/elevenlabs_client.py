from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_VOICE_ID = "21m00Tcm4TlvDq8ikWAM"


class ElevenLabsError(RuntimeError):
    """Raised when the ElevenLabs API reports an error."""


class ElevenLabsClient:
    """Text-to-speech client for the narration voiceover."""

    def __init__(
        self,
        api_key: str,
        voice_id: str = DEFAULT_VOICE_ID,
        model_id: str = "eleven_turbo_v2",
        base_url: str = "https://api.elevenlabs.io",
        voice_settings: Optional[Dict[str, Any]] = None,
        audio_format: str = "mp3",
        request_timeout: float = 60.0,
    ) -> None:
        if not api_key:
            raise ValueError("ElevenLabs API key is required")
        self.api_key = api_key
        self.voice_id = voice_id
        self.model_id = model_id
        self.base_url = base_url.rstrip("/")
        self.voice_settings = voice_settings or {"stability": 0.4, "similarity_boost": 0.75}
        self.audio_format = audio_format
        self.request_timeout = request_timeout

    def synthesize(self, text: str, output_audio: Path, voice_id: str | None = None) -> Path:
        voice = voice_id or self.voice_id
        output_audio.parent.mkdir(parents=True, exist_ok=True)
        response = requests.post(
            f"{self.base_url}/v1/text-to-speech/{voice}",
            headers={
                "xi-api-key": self.api_key,
                "accept": f"audio/{self.audio_format}",
                "content-type": "application/json",
            },
            json={"text": text, "model_id": self.model_id, "voice_settings": self.voice_settings},
            timeout=self.request_timeout,
        )
        if response.status_code >= 400:
            raise ElevenLabsError(self._format_error(response))
        if not response.content:
            raise ElevenLabsError("ElevenLabs returned an empty audio body")
        output_audio.write_bytes(response.content)
        logger.info("Synthesized %d chars of narration to %s", len(text), output_audio)
        return output_audio

    @staticmethod
    def _format_error(response: requests.Response) -> str:
        try:
            payload = response.json()
            message = payload.get("detail") or payload
        except ValueError:
            message = response.text
        return f"{response.status_code} {message}"
