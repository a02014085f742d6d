"""FastAPI routes exposing the classification wizard."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Response, UploadFile

from api.dependencies import get_classifier, get_session, get_session_store
from api.schemas import SessionResponse
from config.settings import get_settings
from wizard.errors import UploadTooLargeError
from wizard.session import AudioClassifier, ClassifierSession
from wizard.store import SessionStore

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


async def _read_upload(upload: UploadFile) -> bytes:
    limit = get_settings().max_upload_bytes
    data = await upload.read(limit + 1)
    if len(data) > limit:
        raise UploadTooLargeError(f"Uploaded file exceeds {limit} bytes.")
    return data


@router.post("", response_model=SessionResponse, status_code=201)
async def create_session(
    store: SessionStore = Depends(get_session_store),
) -> SessionResponse:
    session = await store.create()
    return SessionResponse.from_session(session)


@router.get("/{session_id}", response_model=SessionResponse)
async def read_session(
    session: ClassifierSession = Depends(get_session),
) -> SessionResponse:
    return SessionResponse.from_session(session)


@router.delete("/{session_id}", status_code=204)
async def delete_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
) -> Response:
    await store.delete(session_id)
    return Response(status_code=204)


@router.post("/{session_id}/model", response_model=SessionResponse)
async def upload_model(
    model_file: UploadFile = File(...),
    session: ClassifierSession = Depends(get_session),
) -> SessionResponse:
    data = await _read_upload(model_file)
    session.upload_model(model_file.filename or "", data)
    return SessionResponse.from_session(session)


@router.delete("/{session_id}/model", response_model=SessionResponse)
async def change_model(
    session: ClassifierSession = Depends(get_session),
) -> SessionResponse:
    await session.change_model()
    return SessionResponse.from_session(session)


@router.post("/{session_id}/audio", response_model=SessionResponse)
async def upload_audio(
    audio_file: UploadFile = File(...),
    session: ClassifierSession = Depends(get_session),
) -> SessionResponse:
    data = await _read_upload(audio_file)
    await session.select_audio(audio_file.filename, audio_file.content_type, data)
    return SessionResponse.from_session(session)


@router.post("/{session_id}/classify", response_model=SessionResponse)
async def classify(
    session: ClassifierSession = Depends(get_session),
    classifier: AudioClassifier = Depends(get_classifier),
) -> SessionResponse:
    await session.classify(classifier)
    return SessionResponse.from_session(session)


@router.post("/{session_id}/reset", response_model=SessionResponse)
async def reset(
    session: ClassifierSession = Depends(get_session),
) -> SessionResponse:
    await session.reset()
    return SessionResponse.from_session(session)


@router.post("/{session_id}/playback/play", response_model=SessionResponse)
async def play(
    session: ClassifierSession = Depends(get_session),
) -> SessionResponse:
    session.play()
    return SessionResponse.from_session(session)


@router.post("/{session_id}/playback/pause", response_model=SessionResponse)
async def pause(
    session: ClassifierSession = Depends(get_session),
) -> SessionResponse:
    session.pause()
    return SessionResponse.from_session(session)
