"""Spectrum visualizer state machine and repaint loop."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Literal, Union

import numpy as np

from config.settings import Settings
from visualizer.analyzer import AnalyzerConfig, Bar, FrequencyAnalyzer, render_bars
from visualizer.capture import LiveStream
from visualizer.sources import FileSource
from wizard.schemas import AudioInput

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class VisualizerConfig:
    analyzer: AnalyzerConfig = field(default_factory=AnalyzerConfig)
    width: int = 600
    height: int = 150
    frame_rate: float = 60.0

    @classmethod
    def from_settings(cls, settings: Settings) -> VisualizerConfig:
        return cls(
            analyzer=AnalyzerConfig(
                fft_size=settings.visualizer_fft_size,
                smoothing=settings.visualizer_smoothing,
                min_decibels=settings.visualizer_min_decibels,
                max_decibels=settings.visualizer_max_decibels,
            ),
            width=settings.visualizer_width,
            height=settings.visualizer_height,
            frame_rate=settings.visualizer_frame_rate,
        )


@dataclass(slots=True, frozen=True)
class Idle:
    name: Literal["idle"] = "idle"


@dataclass(slots=True, frozen=True)
class Recording:
    stream: LiveStream
    name: Literal["recording"] = "recording"


@dataclass(slots=True, frozen=True)
class Loaded:
    audio: AudioInput
    source: FileSource
    name: Literal["loaded"] = "loaded"


VisualizerState = Union[Idle, Recording, Loaded]


@dataclass(slots=True)
class SpectrumFrame:
    state: str
    playing: bool
    bins: list[int]
    bars: list[Bar]

    def to_payload(self) -> dict[str, Any]:
        return {
            "state": self.state,
            "playing": self.playing,
            "bins": self.bins,
            "bars": [
                {"x": round(bar.x, 2), "y": round(bar.y, 2), "width": round(bar.width, 2), "height": bar.height}
                for bar in self.bars
            ],
        }


class AudioGraph:
    """Source -> analyzer chain owned by exactly one visualizer state."""

    def __init__(self, source: LiveStream | FileSource, analyzer: FrequencyAnalyzer) -> None:
        self.source = source
        self.analyzer = analyzer
        self.state: Literal["running", "closed"] = "running"

    def sample(self) -> np.ndarray:
        if self.state == "closed":
            raise RuntimeError("Audio graph is closed.")
        window = self.source.read_window(self.analyzer.cfg.fft_size)
        return self.analyzer.byte_frequency_data(window)

    def close(self) -> None:
        self.state = "closed"
        self.analyzer.reset()


class SpectrumVisualizer:
    """Paints a bar spectrum of the active source once per frame.

    Each transition tears down the previous graph (repaint task, graph,
    stream tracks, decoded file) before the next one is built.
    """

    def __init__(self, cfg: VisualizerConfig | None = None) -> None:
        self.cfg = cfg or VisualizerConfig()
        self._state: VisualizerState = Idle()
        self._graph: AudioGraph | None = None
        self._repaint_task: asyncio.Task | None = None
        self._subscribers: set[asyncio.Queue[SpectrumFrame]] = set()
        self._transition_lock = asyncio.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def state(self) -> VisualizerState:
        return self._state

    @property
    def graph(self) -> AudioGraph | None:
        return self._graph

    @property
    def repainting(self) -> bool:
        return self._repaint_task is not None and not self._repaint_task.done()

    @property
    def is_playing(self) -> bool:
        if isinstance(self._state, Recording):
            return self._state.stream.active
        if isinstance(self._state, Loaded):
            return self._state.source.is_playing
        return False

    def subscribe(self) -> asyncio.Queue[SpectrumFrame]:
        queue: asyncio.Queue[SpectrumFrame] = asyncio.Queue(maxsize=1)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[SpectrumFrame]) -> None:
        self._subscribers.discard(queue)

    async def show_stream(self, stream: LiveStream) -> None:
        async with self._transition_lock:
            self._ensure_open()
            if isinstance(self._state, Recording) and self._state.stream is stream:
                return
            await self._teardown()
            self._activate(Recording(stream=stream), stream)

    async def show_file(self, audio: AudioInput) -> None:
        async with self._transition_lock:
            self._ensure_open()
            if isinstance(self._state, Loaded) and self._state.audio is audio:
                return
            await self._teardown()
            source = await asyncio.to_thread(FileSource, audio)
            self._activate(Loaded(audio=audio, source=source), source)

    async def clear(self) -> None:
        async with self._transition_lock:
            if isinstance(self._state, Idle):
                return
            await self._teardown()

    async def close(self) -> None:
        async with self._transition_lock:
            self._closed = True
            await self._teardown()
            self._subscribers.clear()

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Visualizer is closed.")

    def play(self) -> None:
        if not isinstance(self._state, Loaded):
            raise RuntimeError("Playback requires a loaded file.")
        self._state.source.play()

    def pause(self) -> None:
        if not isinstance(self._state, Loaded):
            raise RuntimeError("Playback requires a loaded file.")
        self._state.source.pause()

    def _activate(self, state: VisualizerState, source: LiveStream | FileSource) -> None:
        self._state = state
        self._graph = AudioGraph(source, FrequencyAnalyzer(self.cfg.analyzer))
        self._repaint_task = asyncio.create_task(self._repaint(self._graph))
        LOGGER.debug("Visualizer entered %s", state.name)

    async def _teardown(self) -> None:
        task, self._repaint_task = self._repaint_task, None
        if task is not None:
            task.cancel()
            await asyncio.wait({task})
            if not task.cancelled() and task.exception() is not None:
                LOGGER.warning("Repaint loop stopped with an error: %s", task.exception())

        if self._graph is not None:
            self._graph.close()
            self._graph = None

        previous, self._state = self._state, Idle()
        if isinstance(previous, Recording):
            previous.stream.stop()
        elif isinstance(previous, Loaded):
            previous.source.close()

        if not isinstance(previous, Idle):
            self._publish(SpectrumFrame(state="idle", playing=False, bins=[], bars=[]))

    async def _repaint(self, graph: AudioGraph) -> None:
        interval = 1.0 / self.cfg.frame_rate
        while True:
            data = graph.sample()
            self._publish(
                SpectrumFrame(
                    state=self._state.name,
                    playing=self.is_playing,
                    bins=data.tolist(),
                    bars=render_bars(data, self.cfg.width, self.cfg.height),
                )
            )
            await asyncio.sleep(interval)

    def _publish(self, frame: SpectrumFrame) -> None:
        for queue in self._subscribers:
            if queue.full():
                # Subscribers only care about the latest frame.
                queue.get_nowait()
            queue.put_nowait(frame)
