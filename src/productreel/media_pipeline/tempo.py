from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import ffmpeg
import librosa
import numpy as np

from productreel.frames import round_half_up
from productreel.timeline.model import TempoData

logger = logging.getLogger(__name__)


class TempoEstimator:
    """Estimate BPM and beat positions of a generated music track.

    Decoding goes through ffmpeg to mono float32 PCM; beat tracking uses
    librosa. Any failure yields ``None`` so the caller can fall back to the
    planned tempo.
    """

    def __init__(self, sample_rate: int = 44100) -> None:
        self.sample_rate = sample_rate

    def analyze(self, audio_path: Path) -> Optional[TempoData]:
        try:
            samples = self._decode(Path(audio_path))
        except ffmpeg.Error as exc:
            stderr = exc.stderr.decode(errors="ignore") if exc.stderr else str(exc)
            logger.warning("Could not decode %s for beat analysis: %s", audio_path, stderr.strip())
            return None
        except OSError as exc:
            # Raised when the ffmpeg binary itself cannot be started.
            logger.warning("ffmpeg unavailable for beat analysis of %s: %s", audio_path, exc)
            return None
        if samples.size == 0:
            logger.warning("Decoded audio for %s is empty; skipping beat analysis", audio_path)
            return None

        try:
            tempo, beat_times = librosa.beat.beat_track(y=samples, sr=self.sample_rate, units="time")
            bpm = float(np.atleast_1d(tempo)[0])
        except Exception as exc:  # librosa raises assorted error types
            logger.warning("Beat tracking failed for %s: %s", audio_path, exc)
            return None
        if not np.isfinite(bpm) or bpm <= 0:
            logger.warning("Beat detection returned no tempo for %s", audio_path)
            return None

        beat_times_ms = [round_half_up(float(t) * 1000) for t in np.atleast_1d(beat_times)]
        data = TempoData(bpm=round_half_up(bpm), beat_times_ms=beat_times_ms)
        logger.info("Detected %.0f BPM with %d beats in %s", data.bpm, len(beat_times_ms), audio_path)
        return data

    def _decode(self, audio_path: Path) -> np.ndarray:
        out, _ = (
            ffmpeg.input(str(audio_path))
            .output("pipe:", format="f32le", acodec="pcm_f32le", ac=1, ar=self.sample_rate)
            .run(capture_stdout=True, capture_stderr=True, quiet=True)
        )
        return np.frombuffer(out, dtype=np.float32)
