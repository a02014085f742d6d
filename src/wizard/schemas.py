"""Pydantic schemas for wizard data."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

URBAN_SOUND_CATEGORIES: tuple[str, ...] = (
    "Siren",
    "Dog Bark",
    "Drilling",
    "Car Horn",
    "Street Music",
    "Engine Idling",
    "Gun Shot",
    "Jackhammer",
    "Children Playing",
    "Air Conditioner",
    "Traffic",
)

RECORDING_MIME_TYPE = "audio/webm"


class ModelMetadata(BaseModel):
    """Uploaded notebook used as prompt context."""

    model_config = ConfigDict(frozen=True)

    name: str
    size: int = Field(ge=0)
    content: str


class AudioInput(BaseModel):
    """In-memory audio blob selected or recorded by the user."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str = ""
    name: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)


class ClassProbability(BaseModel):
    name: str
    value: float


class ClassificationResult(BaseModel):
    """Structured reply of the remote classifier.

    Values are taken as returned; the 0-100 range is not enforced.
    """

    label: str
    accuracy: float
    probabilities: list[ClassProbability]
    explanation: str
