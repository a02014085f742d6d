from __future__ import annotations

from fastapi.testclient import TestClient

from conftest import NOTEBOOK_BYTES, FailingClassifier


def _upload_audio(client, session_id: str, wav_bytes: bytes):
    return client.post(
        f"/api/sessions/{session_id}/audio",
        files={"audio_file": ("siren.wav", wav_bytes, "audio/wav")},
    )


def test_create_session_starts_at_model_step(client):
    response = client.post("/api/sessions")
    assert response.status_code == 201
    payload = response.json()
    assert payload["step"] == "select_model"
    assert payload["model"] is None
    assert payload["audio"] is None
    assert payload["result"] is None
    assert payload["visualizer"] == {"state": "idle", "playing": False}


def test_unknown_session_returns_404(client):
    response = client.get("/api/sessions/does-not-exist")
    assert response.status_code == 404
    assert response.json()["detail"] == "Session not found."


def test_non_notebook_upload_is_rejected_without_advancing(client, session_id):
    response = client.post(
        f"/api/sessions/{session_id}/model",
        files={"model_file": ("model.py", b"print('hi')", "text/x-python")},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Please upload a valid .ipynb file."

    payload = client.get(f"/api/sessions/{session_id}").json()
    assert payload["step"] == "select_model"
    assert payload["error"] == "Please upload a valid .ipynb file."


def test_notebook_upload_stores_name_and_size(client, session_id):
    response = client.post(
        f"/api/sessions/{session_id}/model",
        files={"model_file": ("urban_cnn.ipynb", NOTEBOOK_BYTES, "application/json")},
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["step"] == "provide_audio"
    assert payload["model"] == {"name": "urban_cnn.ipynb", "size": len(NOTEBOOK_BYTES)}
    assert payload["error"] is None


def test_upload_audio_rejects_unsupported_content_type(client, audio_session_id):
    response = client.post(
        f"/api/sessions/{audio_session_id}/audio",
        files={"audio_file": ("notes.txt", b"not audio", "text/plain")},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Unsupported audio format."


def test_audio_upload_before_model_is_a_conflict(client, session_id, wav_bytes):
    response = _upload_audio(client, session_id, wav_bytes)
    assert response.status_code == 409


def test_classify_success_shows_results(client, audio_session_id, wav_bytes, fake_classifier):
    assert _upload_audio(client, audio_session_id, wav_bytes).status_code == 200

    response = client.post(f"/api/sessions/{audio_session_id}/classify")
    assert response.status_code == 200
    payload = response.json()

    assert payload["step"] == "results"
    assert payload["result"]["label"] == "Siren"
    assert payload["result"]["accuracy"] == 92.5
    assert [p["name"] for p in payload["result"]["probabilities"]][:2] == ["Siren", "Car Horn"]
    assert payload["result"]["explanation"].startswith("Rising")
    assert fake_classifier.calls == [(wav_bytes, NOTEBOOK_BYTES.decode())]


def test_classify_without_audio_is_a_conflict(client, audio_session_id):
    response = client.post(f"/api/sessions/{audio_session_id}/classify")
    assert response.status_code == 409


def test_classify_failure_returns_to_audio_step(app, wav_bytes):
    import api.dependencies as deps

    app.dependency_overrides[deps.get_classifier] = lambda: FailingClassifier()

    with TestClient(app) as client:
        session_id = client.post("/api/sessions").json()["session_id"]
        client.post(
            f"/api/sessions/{session_id}/model",
            files={"model_file": ("urban_cnn.ipynb", NOTEBOOK_BYTES, "application/json")},
        )
        _upload_audio(client, session_id, wav_bytes)

        response = client.post(f"/api/sessions/{session_id}/classify")
        snapshot = client.get(f"/api/sessions/{session_id}").json()

    app.dependency_overrides.clear()

    assert response.status_code == 502
    assert response.json()["detail"].startswith("Classification failed.")
    assert snapshot["step"] == "provide_audio"
    assert snapshot["audio"] == {"mime_type": "audio/wav", "size": len(wav_bytes), "name": "siren.wav"}
    assert snapshot["result"] is None
    assert snapshot["error"].startswith("Classification failed.")


def test_classify_without_credentials_reports_generic_failure(app, wav_bytes):
    with TestClient(app) as client:
        session_id = client.post("/api/sessions").json()["session_id"]
        client.post(
            f"/api/sessions/{session_id}/model",
            files={"model_file": ("urban_cnn.ipynb", NOTEBOOK_BYTES, "application/json")},
        )
        _upload_audio(client, session_id, wav_bytes)
        response = client.post(f"/api/sessions/{session_id}/classify")

    assert response.status_code == 502
    assert "API key" in response.json()["detail"]


def test_reset_clears_audio_and_result_but_keeps_model(client, audio_session_id, wav_bytes):
    _upload_audio(client, audio_session_id, wav_bytes)
    client.post(f"/api/sessions/{audio_session_id}/classify")

    response = client.post(f"/api/sessions/{audio_session_id}/reset")
    assert response.status_code == 200
    payload = response.json()
    assert payload["step"] == "provide_audio"
    assert payload["audio"] is None
    assert payload["result"] is None
    assert payload["model"]["name"] == "urban_cnn.ipynb"


def test_change_model_returns_to_model_step(client, audio_session_id, wav_bytes):
    _upload_audio(client, audio_session_id, wav_bytes)

    response = client.delete(f"/api/sessions/{audio_session_id}/model")
    assert response.status_code == 200
    payload = response.json()
    assert payload["step"] == "select_model"
    assert payload["model"] is None
    assert payload["audio"] is None


def test_playback_controls_loaded_file(client, audio_session_id, wav_bytes):
    payload = _upload_audio(client, audio_session_id, wav_bytes).json()
    assert payload["visualizer"] == {"state": "loaded", "playing": False}

    payload = client.post(f"/api/sessions/{audio_session_id}/playback/play").json()
    assert payload["visualizer"]["playing"] is True

    payload = client.post(f"/api/sessions/{audio_session_id}/playback/pause").json()
    assert payload["visualizer"]["playing"] is False


def test_playback_without_file_is_a_conflict(client, audio_session_id):
    response = client.post(f"/api/sessions/{audio_session_id}/playback/play")
    assert response.status_code == 409


def test_delete_session(client, session_id):
    assert client.delete(f"/api/sessions/{session_id}").status_code == 204
    assert client.get(f"/api/sessions/{session_id}").status_code == 404


def test_oversized_upload_is_rejected(client, session_id, settings_env):
    settings_env(max_upload_bytes="16")

    response = client.post(
        f"/api/sessions/{session_id}/model",
        files={"model_file": ("urban_cnn.ipynb", NOTEBOOK_BYTES, "application/json")},
    )
    assert response.status_code == 413
