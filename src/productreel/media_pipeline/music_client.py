from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)


class MusicJobError(RuntimeError):
    """Raised when the music generation API reports a failure."""


@dataclass
class MusicTrack:
    path: Path
    job_id: str
    source_url: str

    @property
    def file_name(self) -> str:
        return self.path.name


class WaveSpeedMusicClient:
    """Submit-then-poll wrapper around the WaveSpeed music generation endpoint."""

    def __init__(
        self,
        api_key: str,
        output_dir: Path,
        *,
        base_url: str = "https://api.wavespeed.ai/api/v3",
        model_path: str = "minimax/music-2.5",
        bitrate: int = 256000,
        sample_rate: int = 44100,
        poll_interval: float = 5.0,
        max_wait: float = 300.0,
        request_timeout: float = 30.0,
        file_name: str = "music_track.mp3",
    ) -> None:
        if not api_key:
            raise ValueError("WaveSpeed API key is required for music generation")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model_path = model_path.strip("/")
        self.bitrate = bitrate
        self.sample_rate = sample_rate
        self.poll_interval = poll_interval
        self.max_wait = max_wait
        self.request_timeout = request_timeout
        self.file_name = file_name
        self.output_dir = Path(output_dir)

    def compose(self, *, prompt: str, lyrics: str) -> MusicTrack:
        job_id = self._submit(prompt=prompt, lyrics=lyrics)
        logger.info("Music job %s submitted", job_id)
        source_url = self._poll_until_complete(job_id)
        target = self.output_dir / self.file_name
        self._download(source_url, target)
        logger.info("Music job %s downloaded to %s", job_id, target)
        return MusicTrack(path=target, job_id=job_id, source_url=source_url)

    # ------------------------------------------------------------------
    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _submit(self, *, prompt: str, lyrics: str) -> str:
        payload: Dict[str, Any] = {
            "prompt": prompt,
            "lyrics": lyrics,
            "bitrate": self.bitrate,
            "sample_rate": self.sample_rate,
        }
        response = requests.post(
            f"{self.base_url}/{self.model_path}",
            headers=self._headers(),
            json=payload,
            timeout=self.request_timeout,
        )
        if response.status_code >= 400:
            raise MusicJobError(self._format_error(response))
        data = response.json()
        job_id = self._job_id(data)
        if not job_id:
            raise MusicJobError(f"Music submit response missing job id: {data}")
        return job_id

    @staticmethod
    def _job_id(data: Dict[str, Any]) -> Optional[str]:
        inner = data.get("data")
        if isinstance(inner, dict) and inner.get("id"):
            return str(inner["id"])
        value = data.get("id") or data.get("requestId")
        return str(value) if value else None

    def _poll_until_complete(self, job_id: str) -> str:
        start = time.monotonic()
        while True:
            if time.monotonic() - start > self.max_wait:
                raise TimeoutError(f"Music job {job_id} timed out after {self.max_wait} seconds")
            try:
                response = requests.get(
                    f"{self.base_url}/predictions/{job_id}/result",
                    headers=self._headers(),
                    timeout=self.request_timeout,
                )
                response.raise_for_status()
                status_payload = response.json().get("data") or {}
            except (requests.exceptions.RequestException, ValueError) as exc:
                logger.warning("Music poll failed for %s (%s); retrying", job_id, exc)
                time.sleep(self.poll_interval)
                continue
            status = status_payload.get("status")
            if status == "completed":
                outputs = status_payload.get("outputs") or []
                if not outputs:
                    raise MusicJobError(f"Music job {job_id} completed without outputs")
                logger.info("Music job %s completed", job_id)
                return str(outputs[0])
            if status == "failed":
                error_message = status_payload.get("error") or "unknown error"
                raise MusicJobError(f"Music job {job_id} failed: {error_message}")
            logger.debug("Music job %s status: %s", job_id, status or "unknown")
            time.sleep(self.poll_interval)

    def _download(self, url: str, target: Path) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        response = requests.get(url, stream=True, timeout=self.request_timeout)
        if response.status_code >= 400:
            raise MusicJobError(f"Music download failed: {self._format_error(response)}")
        with target.open("wb") as handle:
            for chunk in response.iter_content(chunk_size=1 << 16):
                if chunk:
                    handle.write(chunk)

    @staticmethod
    def _format_error(response: requests.Response) -> str:
        try:
            payload = response.json()
            message = payload.get("detail") or payload.get("message") or payload
        except ValueError:
            message = response.text
        return f"{response.status_code} {message}"
