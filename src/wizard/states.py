"""Tagged wizard steps; each variant carries only the data valid for it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

from wizard.schemas import AudioInput, ClassificationResult, ModelMetadata

StepName = Literal["select_model", "provide_audio", "analyzing", "results"]


@dataclass(slots=True, frozen=True)
class SelectModel:
    name: StepName = "select_model"


@dataclass(slots=True, frozen=True)
class ProvideAudio:
    model: ModelMetadata
    audio: AudioInput | None = None
    name: StepName = "provide_audio"


@dataclass(slots=True, frozen=True)
class Analyzing:
    model: ModelMetadata
    audio: AudioInput
    name: StepName = "analyzing"


@dataclass(slots=True, frozen=True)
class ShowResults:
    model: ModelMetadata
    audio: AudioInput
    result: ClassificationResult
    name: StepName = "results"


WizardStep = Union[SelectModel, ProvideAudio, Analyzing, ShowResults]
