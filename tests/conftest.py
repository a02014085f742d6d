from __future__ import annotations

import io
import os
import sys
from pathlib import Path

import numpy as np
import pytest
import soundfile as sf
from fastapi.testclient import TestClient

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from wizard.schemas import ClassificationResult, ClassProbability  # noqa: E402

NOTEBOOK_BYTES = b'{"cells": [{"cell_type": "code", "source": ["model = build_cnn()"]}]}'


def fake_result() -> ClassificationResult:
    return ClassificationResult(
        label="Siren",
        accuracy=92.5,
        probabilities=[
            ClassProbability(name="Siren", value=92.5),
            ClassProbability(name="Car Horn", value=4.0),
            ClassProbability(name="Traffic", value=2.0),
            ClassProbability(name="Dog Bark", value=1.0),
            ClassProbability(name="Drilling", value=0.5),
        ],
        explanation="Rising and falling harmonic sweep typical of an emergency siren.",
    )


class FakeClassifier:
    def __init__(self) -> None:
        self.calls: list[tuple[bytes, str]] = []

    async def classify(self, audio, model_context: str) -> ClassificationResult:
        self.calls.append((audio.data, model_context))
        return fake_result()


class FailingClassifier:
    async def classify(self, audio, model_context: str) -> ClassificationResult:
        raise ConnectionError("network unreachable")


def make_wav_bytes(*, seconds: float = 1.0, sample_rate: int = 8000, freq: float = 440.0) -> bytes:
    t = np.arange(int(seconds * sample_rate), dtype=np.float32) / sample_rate
    samples = (0.5 * np.sin(2 * np.pi * freq * t)).astype(np.float32)
    buffer = io.BytesIO()
    sf.write(buffer, samples, sample_rate, format="WAV", subtype="PCM_16")
    return buffer.getvalue()


@pytest.fixture()
def wav_bytes() -> bytes:
    return make_wav_bytes()


@pytest.fixture()
def settings_env(monkeypatch: pytest.MonkeyPatch):
    """Apply environment overrides and rebuild the cached settings."""

    from config.settings import get_settings

    def _apply(**values: str) -> None:
        for key, value in values.items():
            monkeypatch.setenv(key.upper(), value)
        get_settings.cache_clear()

    yield _apply
    get_settings.cache_clear()


@pytest.fixture(scope="session")
def app():
    # Must be set before importing modules that read settings.
    os.environ.pop("GEMINI_API_KEY", None)
    os.environ.pop("API_KEY", None)
    os.environ["CLASSIFIER_PROVIDER"] = "gemini_rest"
    os.environ["VISUALIZER_FRAME_RATE"] = "200"

    import importlib

    from config.settings import get_settings

    get_settings.cache_clear()
    main = importlib.import_module("main")
    return main.app


@pytest.fixture()
def fake_classifier() -> FakeClassifier:
    return FakeClassifier()


@pytest.fixture()
def client(app, fake_classifier):
    # Override the classifier so tests never reach the hosted model.
    import api.dependencies as deps

    app.dependency_overrides[deps.get_classifier] = lambda: fake_classifier

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def session_id(client) -> str:
    response = client.post("/api/sessions")
    assert response.status_code == 201
    return response.json()["session_id"]


@pytest.fixture()
def audio_session_id(client, session_id) -> str:
    response = client.post(
        f"/api/sessions/{session_id}/model",
        files={"model_file": ("urban_cnn.ipynb", NOTEBOOK_BYTES, "application/json")},
    )
    assert response.status_code == 200
    return session_id
