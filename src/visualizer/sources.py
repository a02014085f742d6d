"""Decoded file source with a virtual playback clock."""

from __future__ import annotations

import io
import logging
import time
from collections.abc import Callable

import numpy as np
import soundfile as sf

from wizard.schemas import AudioInput

LOGGER = logging.getLogger(__name__)


def decode_audio(audio: AudioInput) -> tuple[np.ndarray, int]:
    """Decode an audio blob to mono float32 samples and its sample rate."""

    with sf.SoundFile(io.BytesIO(audio.data), mode="r") as audio_file:
        samples = audio_file.read(dtype="float32")
        sample_rate = int(audio_file.samplerate)

    if samples.ndim > 1:
        samples = np.mean(samples, axis=1)  # convert to mono
    return samples.astype(np.float32, copy=False), sample_rate


class FileSource:
    """Plays a decoded clip against a monotonic clock.

    Nothing is sent to a speaker; the clock only decides which samples the
    analyzer sees. A paused or finished source reads as silence.
    """

    def __init__(self, audio: AudioInput, *, clock: Callable[[], float] = time.monotonic) -> None:
        self.audio = audio
        self._clock = clock
        self._offset = 0.0
        self._started_at: float | None = None
        self._closed = False
        try:
            self._samples, self._sample_rate = decode_audio(audio)
        except (sf.LibsndfileError, RuntimeError, ValueError) as exc:
            LOGGER.warning("Could not decode %s audio for visualization: %s", audio.mime_type or "untyped", exc)
            self._samples, self._sample_rate = np.zeros(0, dtype=np.float32), 1

    @property
    def duration(self) -> float:
        return self._samples.size / self._sample_rate

    @property
    def decoded(self) -> bool:
        return self._samples.size > 0

    @property
    def closed(self) -> bool:
        return self._closed

    def position(self) -> float:
        if self._started_at is None:
            return self._offset
        return min(self.duration, self._offset + self._clock() - self._started_at)

    @property
    def is_playing(self) -> bool:
        if self._started_at is None:
            return False
        if self.position() >= self.duration:
            # Ended: freeze at the end and drop back to paused.
            self._offset = self.duration
            self._started_at = None
            return False
        return True

    def play(self) -> None:
        if self._closed:
            raise RuntimeError("File source is closed.")
        if not self.decoded or self.is_playing:
            return
        if self._offset >= self.duration:
            self._offset = 0.0
        self._started_at = self._clock()

    def pause(self) -> None:
        if self._started_at is not None:
            self._offset = self.position()
            self._started_at = None

    def read_window(self, size: int) -> np.ndarray:
        if not self.is_playing:
            return np.zeros(0, dtype=np.float32)
        end = int(self.position() * self._sample_rate)
        return self._samples[max(0, end - size) : end]

    def close(self) -> None:
        self.pause()
        self._samples = np.zeros(0, dtype=np.float32)
        self._closed = True
