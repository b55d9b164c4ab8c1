from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .elevenlabs_client import ElevenLabsClient

logger = logging.getLogger(__name__)


@dataclass
class NarrationAsset:
    transcript_path: Path
    audio_path: Optional[Path] = None

    @property
    def file_name(self) -> Optional[str]:
        return self.audio_path.name if self.audio_path else None


class NarrationManager:
    """Writes the narration transcript and, when possible, synthesizes it."""

    def __init__(
        self,
        audio_dir: Path,
        *,
        eleven_client: ElevenLabsClient | None = None,
        file_stem: str = "narration",
    ) -> None:
        self.audio_dir = Path(audio_dir)
        self.eleven_client = eleven_client
        self.file_stem = file_stem

    def prepare(self, script_text: str, *, dry_run: bool = False) -> NarrationAsset:
        self.audio_dir.mkdir(parents=True, exist_ok=True)
        transcript_path = self.audio_dir / f"{self.file_stem}.txt"
        transcript_path.write_text(script_text, encoding="utf-8")

        if not script_text.strip():
            logger.info("No narration script; video will play music only")
            return NarrationAsset(transcript_path=transcript_path)
        if dry_run:
            logger.info("Dry run: captured narration transcript only")
            return NarrationAsset(transcript_path=transcript_path)
        if not self.eleven_client:
            raise RuntimeError("ElevenLabs client not configured; cannot synthesize narration")

        audio_path = self.audio_dir / f"{self.file_stem}.{self.eleven_client.audio_format}"
        self.eleven_client.synthesize(script_text, audio_path)
        return NarrationAsset(transcript_path=transcript_path, audio_path=audio_path)
