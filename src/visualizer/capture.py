"""Live capture stream and recorder fed by the browser."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Literal

import numpy as np

from wizard.schemas import RECORDING_MIME_TYPE, AudioInput

LOGGER = logging.getLogger(__name__)

TrackState = Literal["live", "ended"]


def pcm16_decode(payload: bytes) -> np.ndarray:
    """Decode little-endian PCM16 bytes to float32 samples in [-1, 1)."""

    usable = len(payload) - (len(payload) % 2)
    pcm = np.frombuffer(payload[:usable], dtype="<i2")
    return pcm.astype(np.float32) / 32768.0


@dataclass
class MediaTrack:
    kind: str = "audio"
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    ready_state: TrackState = "live"

    def stop(self) -> None:
        self.ready_state = "ended"


class LiveStream:
    """Microphone stream whose PCM frames arrive over the network.

    Only the most recent ``buffer_samples`` samples are retained; that is all
    the analyzer ever reads.
    """

    def __init__(self, sample_rate: int, *, buffer_samples: int = 4096) -> None:
        if sample_rate <= 0:
            raise ValueError("Sample rate must be positive.")
        self.sample_rate = sample_rate
        self.tracks: list[MediaTrack] = [MediaTrack()]
        self._buffer = np.zeros(0, dtype=np.float32)
        self._buffer_samples = buffer_samples

    @property
    def active(self) -> bool:
        return any(track.ready_state == "live" for track in self.tracks)

    def push_pcm(self, payload: bytes) -> None:
        if not self.active:
            LOGGER.debug("Dropping PCM frame for ended stream")
            return
        frame = pcm16_decode(payload)
        if frame.size == 0:
            return
        self._buffer = np.concatenate([self._buffer, frame])[-self._buffer_samples :]

    def read_window(self, size: int) -> np.ndarray:
        if not self.active:
            return np.zeros(0, dtype=np.float32)
        return self._buffer[-size:]

    def stop(self) -> None:
        for track in self.tracks:
            track.stop()
        self._buffer = np.zeros(0, dtype=np.float32)


class MediaRecorder:
    """Collects encoded chunks of a live stream into one blob."""

    mime_type = RECORDING_MIME_TYPE

    def __init__(self, stream: LiveStream) -> None:
        self.stream = stream
        self.state: Literal["recording", "inactive"] = "recording"
        self._chunks: list[bytes] = []

    def push_chunk(self, data: bytes) -> None:
        if self.state != "recording":
            raise RuntimeError("Recorder is not recording.")
        if data:
            self._chunks.append(data)

    def stop(self) -> AudioInput:
        """Stop recording, end the stream's tracks and return the merged blob."""

        if self.state != "recording":
            raise RuntimeError("Recorder is not recording.")
        self.state = "inactive"
        blob = AudioInput(data=b"".join(self._chunks), mime_type=self.mime_type)
        self._chunks.clear()
        self.stream.stop()
        LOGGER.info("Recording stopped: %d bytes", blob.size)
        return blob
