"""API-facing Pydantic models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from wizard.schemas import ClassificationResult
from wizard.session import ClassifierSession
from wizard.states import StepName


class ModelSummary(BaseModel):
    name: str
    size: int


class AudioSummary(BaseModel):
    mime_type: str
    size: int = Field(description="Audio size in bytes.")
    name: str | None = None


class VisualizerSummary(BaseModel):
    state: str
    playing: bool


class SessionResponse(BaseModel):
    session_id: str
    step: StepName
    model: ModelSummary | None = None
    audio: AudioSummary | None = None
    recording: bool = False
    result: ClassificationResult | None = None
    error: str | None = None
    visualizer: VisualizerSummary

    @classmethod
    def from_session(cls, session: ClassifierSession) -> SessionResponse:
        model = session.model
        audio = session.audio
        return cls(
            session_id=session.session_id,
            step=session.step.name,
            model=ModelSummary(name=model.name, size=model.size) if model else None,
            audio=(
                AudioSummary(mime_type=audio.mime_type, size=audio.size, name=audio.name)
                if audio
                else None
            ),
            recording=session.recording,
            result=session.result,
            error=session.error,
            visualizer=VisualizerSummary(
                state=session.visualizer.state.name,
                playing=session.visualizer.is_playing,
            ),
        )
