"""Per-user wizard session: model upload, audio input, classification, results."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Protocol, TypeVar

from visualizer.capture import LiveStream, MediaRecorder
from visualizer.widget import SpectrumVisualizer, VisualizerConfig
from wizard.errors import (
    ClassificationFailedError,
    InvalidModelFileError,
    InvalidStepError,
    MicrophoneAccessDeniedError,
    SessionNotFoundError,
    UnsupportedAudioError,
)
from wizard.schemas import AudioInput, ClassificationResult, ModelMetadata
from wizard.states import Analyzing, ProvideAudio, SelectModel, ShowResults, WizardStep

LOGGER = logging.getLogger(__name__)

MODEL_FILE_SUFFIX = ".ipynb"

StepT = TypeVar("StepT", SelectModel, ProvideAudio, Analyzing, ShowResults)


class AudioClassifier(Protocol):
    async def classify(self, audio: AudioInput, model_context: str) -> ClassificationResult:  # pragma: no cover - protocol stub
        ...


class ClassifierSession:
    """Linear wizard driven by user actions.

    ``error`` holds the single user-visible message; it is set alongside the
    raised ``WizardError`` for the failures the user needs to see.
    """

    def __init__(
        self,
        session_id: str | None = None,
        *,
        visualizer: SpectrumVisualizer | None = None,
        visualizer_config: VisualizerConfig | None = None,
    ) -> None:
        self.session_id = session_id or uuid.uuid4().hex
        self.step: WizardStep = SelectModel()
        self.error: str | None = None
        self.visualizer = visualizer or SpectrumVisualizer(visualizer_config)
        self._recorder: MediaRecorder | None = None
        self._closed = False

    @property
    def model(self) -> ModelMetadata | None:
        return getattr(self.step, "model", None)

    @property
    def audio(self) -> AudioInput | None:
        return getattr(self.step, "audio", None)

    @property
    def result(self) -> ClassificationResult | None:
        return getattr(self.step, "result", None)

    @property
    def recording(self) -> bool:
        return self._recorder is not None

    @property
    def recording_stream(self) -> LiveStream | None:
        return self._recorder.stream if self._recorder else None

    # Step 1: model notebook

    def upload_model(self, filename: str, data: bytes) -> ModelMetadata:
        self._require(SelectModel)
        if not filename.endswith(MODEL_FILE_SUFFIX):
            self.error = InvalidModelFileError.default_detail
            raise InvalidModelFileError()

        model = ModelMetadata(
            name=filename,
            size=len(data),
            content=data.decode("utf-8", errors="replace"),
        )
        self.error = None
        self.step = ProvideAudio(model=model)
        LOGGER.info("Session %s loaded model %s (%d bytes)", self.session_id, model.name, model.size)
        return model

    async def change_model(self) -> None:
        self._require(ProvideAudio)
        self._discard_recording()
        self.step = SelectModel()
        await self._sync_visualizer()

    # Step 2: audio input

    async def select_audio(self, filename: str | None, content_type: str | None, data: bytes) -> AudioInput:
        step = self._require(ProvideAudio)
        if self.recording:
            raise InvalidStepError("Stop the recording before choosing a file.")
        if not content_type or not content_type.startswith("audio/"):
            raise UnsupportedAudioError()

        audio = AudioInput(data=data, mime_type=content_type, name=filename)
        self.error = None
        self.step = ProvideAudio(model=step.model, audio=audio)
        await self._sync_visualizer()
        return audio

    async def start_recording(self, sample_rate: int) -> LiveStream:
        step = self._require(ProvideAudio)
        if self.recording:
            raise InvalidStepError("A recording is already in progress.")

        stream = LiveStream(sample_rate)
        self._recorder = MediaRecorder(stream)
        # Clear previous file
        self.step = ProvideAudio(model=step.model, audio=None)
        await self._sync_visualizer()
        LOGGER.info("Session %s started recording at %d Hz", self.session_id, sample_rate)
        return stream

    def deny_microphone(self) -> None:
        self._require(ProvideAudio)
        self.error = MicrophoneAccessDeniedError.default_detail
        raise MicrophoneAccessDeniedError()

    def push_recording_chunk(self, data: bytes) -> None:
        self._active_recorder().push_chunk(data)

    def push_recording_pcm(self, data: bytes) -> None:
        self._active_recorder().stream.push_pcm(data)

    async def stop_recording(self) -> AudioInput:
        step = self._require(ProvideAudio)
        recorder = self._active_recorder()
        self._recorder = None
        audio = recorder.stop()
        self.step = ProvideAudio(model=step.model, audio=audio)
        await self._sync_visualizer()
        return audio

    # Step 3: classification

    async def classify(self, classifier: AudioClassifier) -> ClassificationResult:
        step = self._require(ProvideAudio)
        if self.recording:
            raise InvalidStepError("Stop the recording before classifying.")
        if step.audio is None:
            raise InvalidStepError("Select or record audio first.")

        self.step = Analyzing(model=step.model, audio=step.audio)
        try:
            result = await classifier.classify(step.audio, step.model.content)
        except asyncio.CancelledError:
            self.step = ProvideAudio(model=step.model, audio=step.audio)
            raise
        except ClassificationFailedError:
            # Already logged by the classifier.
            self.error = ClassificationFailedError.default_detail
            self.step = ProvideAudio(model=step.model, audio=step.audio)
            raise
        except Exception as exc:
            LOGGER.exception("Classification failed for session %s: %s", self.session_id, exc)
            self.error = ClassificationFailedError.default_detail
            self.step = ProvideAudio(model=step.model, audio=step.audio)
            raise ClassificationFailedError() from exc

        self.error = None
        self.step = ShowResults(model=step.model, audio=step.audio, result=result)
        await self._sync_visualizer()
        LOGGER.info("Session %s classified audio as %s (%.1f)", self.session_id, result.label, result.accuracy)
        return result

    # Step 4: results

    async def reset(self) -> None:
        step = self._require(ShowResults)
        self.step = ProvideAudio(model=step.model, audio=None)
        await self._sync_visualizer()

    def play(self) -> None:
        self._require(ProvideAudio)
        try:
            self.visualizer.play()
        except RuntimeError as exc:
            raise InvalidStepError(str(exc)) from exc

    def pause(self) -> None:
        self._require(ProvideAudio)
        try:
            self.visualizer.pause()
        except RuntimeError as exc:
            raise InvalidStepError(str(exc)) from exc

    @property
    def closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        self._closed = True
        self._discard_recording()
        await self.visualizer.close()

    def _require(self, step_type: type[StepT]) -> StepT:
        # A socket may still hold a session that was deleted from the store.
        if self._closed:
            raise SessionNotFoundError()
        if not isinstance(self.step, step_type):
            raise InvalidStepError(f"Action not allowed in step '{self.step.name}'.")
        return self.step

    def _active_recorder(self) -> MediaRecorder:
        if self._recorder is None:
            raise InvalidStepError("No recording in progress.")
        return self._recorder

    def _discard_recording(self) -> None:
        if self._recorder is not None:
            self._recorder.stream.stop()
            self._recorder = None

    async def _sync_visualizer(self) -> None:
        if self._recorder is not None:
            await self.visualizer.show_stream(self._recorder.stream)
        elif isinstance(self.step, (ProvideAudio, Analyzing)) and self.step.audio is not None:
            await self.visualizer.show_file(self.step.audio)
        else:
            await self.visualizer.clear()
