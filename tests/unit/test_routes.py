"""
Route tests for the session and flow endpoints.

The app is built without running its lifespan so fake clients can be placed
on `app.state` directly.
"""

import asyncio
from types import SimpleNamespace

import httpx
import pytest
from fastapi.testclient import TestClient

from controllers.analysis_controller import FILE_ERROR_TITLE, upload_image
from controllers.chat_controller import CHAT_FALLBACK_ANSWER
from main import create_app
from services.openai.media_inputs import MAX_UPLOAD_BYTES
from services.openai.schemas import ANSWER_FUNCTION_NAME, DETECTION_FUNCTION_NAME, REPORT_FUNCTION_NAME
from services.session_store import SessionStore


class BoundedUpload:
    """Minimal UploadFile stand-in recording the sizes it was asked for."""

    filename = "scan.png"
    content_type = "image/png"

    def __init__(self, data):
        self.data = data
        self.sizes = []

    async def read(self, size=-1):
        self.sizes.append(size)
        return self.data if size < 0 else self.data[:size]


@pytest.fixture
def build_client(make_client):
    def _build(*results):
        app = create_app()
        app.state.session_store = SessionStore()
        app.state.openai_client = make_client(*results)
        return TestClient(app), app

    return _build


def _new_session(client):
    response = client.post("/sessions")
    assert response.status_code == 200
    return response.json()["session_id"]


class TestSessionRoutes:

    def test_create_and_fetch(self, build_client):
        client, _ = build_client()
        session_id = _new_session(client)

        body = client.get(f"/sessions/{session_id}").json()

        assert body["session_id"] == session_id
        assert body["original_image"] is None
        assert body["loading"] == {"detection": False, "report": False, "chat": False}

    def test_unknown_session(self, build_client):
        client, _ = build_client()

        assert client.get("/sessions/nope").status_code == 404
        assert client.post("/sessions/nope/reset").status_code == 404
        assert client.delete("/sessions/nope").status_code == 404
        assert client.post("/sessions/nope/chat", json={"question": "hi"}).status_code == 404

    def test_delete(self, build_client):
        client, _ = build_client()
        session_id = _new_session(client)

        assert client.delete(f"/sessions/{session_id}").json() == {"session_id": session_id, "deleted": True}
        assert client.get(f"/sessions/{session_id}").status_code == 404

    def test_reset(self, build_client):
        client, app = build_client()
        session_id = _new_session(client)
        store = app.state.session_store
        state = store.get(session_id)
        store.update(session_id, state.generation, original_image="data:image/png;base64,AAA", report="x")

        body = client.post(f"/sessions/{session_id}/reset").json()

        assert body["original_image"] is None
        assert body["report"] == ""
        assert body["generation"] == 1

    def test_report_edit(self, build_client):
        client, _ = build_client()
        session_id = _new_session(client)

        body = client.put(f"/sessions/{session_id}/report", json={"report": "Edited by clinician."}).json()

        assert body["report"] == "Edited by clinician."

    def test_report_edit_blocked_while_generating(self, build_client):
        client, app = build_client()
        session_id = _new_session(client)
        store = app.state.session_store
        store.set_loading(session_id, store.get(session_id).generation, report=True)

        response = client.put(f"/sessions/{session_id}/report", json={"report": "Too early"})

        assert response.status_code == 409


class TestUploadRoute:

    def test_non_image_upload(self, build_client):
        """Unreadable files raise a notice and leave the session empty."""
        client, app = build_client()
        session_id = _new_session(client)

        response = client.post(
            f"/sessions/{session_id}/upload", files={"file": ("notes.txt", b"plain text", "text/plain")}
        )

        assert response.status_code == 400
        body = client.get(f"/sessions/{session_id}").json()
        assert body["original_image"] is None
        assert [notice["title"] for notice in body["notices"]] == [FILE_ERROR_TITLE]

    def test_upload_starts_analysis(self, build_client, tool_response, png_bytes, png_data_uri):
        client, app = build_client(
            tool_response(DETECTION_FUNCTION_NAME, {"anomalies": ["Cyst"], "annotatedImage": png_data_uri}),
            tool_response(REPORT_FUNCTION_NAME, {"report": "Report."}),
        )
        session_id = _new_session(client)
        store = app.state.session_store
        generation = store.get(session_id).generation
        store.update(session_id, generation, anomalies=["old"], report="old report")
        asked_generation, placeholder = store.begin_question(session_id, "Earlier question?")
        store.resolve_question(session_id, asked_generation, placeholder, "Earlier answer.")
        assert len(store.get(session_id).chat_history) == 2

        response = client.post(f"/sessions/{session_id}/upload", files={"file": ("scan.png", png_bytes, "image/png")})

        assert response.status_code == 200
        body = response.json()
        assert body["original_image"] == png_data_uri
        assert body["anomalies"] == []
        assert body["report"] == ""
        assert body["chat_history"] == []
        assert body["loading"]["detection"] is True
        assert body["loading"]["report"] is True
        assert body["generation"] == generation + 1

    def test_oversized_upload_rejected(self, build_client, png_bytes, monkeypatch):
        """Uploads past the size limit are refused without starting analysis."""
        monkeypatch.setattr("controllers.analysis_controller.MAX_UPLOAD_BYTES", 16)
        monkeypatch.setattr("services.openai.media_inputs.MAX_UPLOAD_BYTES", 16)
        client, app = build_client()
        session_id = _new_session(client)

        response = client.post(f"/sessions/{session_id}/upload", files={"file": ("scan.png", png_bytes, "image/png")})

        assert response.status_code == 400
        body = client.get(f"/sessions/{session_id}").json()
        assert body["original_image"] is None
        assert body["loading"] == {"detection": False, "report": False, "chat": False}
        assert [notice["title"] for notice in body["notices"]] == [FILE_ERROR_TITLE]
        assert app.state.openai_client.responses.calls == []

    def test_upload_reads_at_most_limit_plus_one(self, make_client, png_bytes):
        """The upload is read with a bound instead of all at once."""
        app = create_app()
        app.state.session_store = SessionStore()
        app.state.openai_client = make_client()
        session_id = app.state.session_store.create().session_id
        upload = BoundedUpload(png_bytes)
        request = SimpleNamespace(app=app)

        async def scenario():
            body = await upload_image(request, session_id, upload)
            await app.state.session_store.aclose()
            return body

        body = asyncio.run(scenario())

        assert upload.sizes == [MAX_UPLOAD_BYTES + 1]
        assert body["original_image"].startswith("data:image/png;base64,")

    def test_pipeline_completes_after_upload(self, make_client, tool_response, png_bytes, png_data_uri):
        """Polling the session shows detection and report written by the background task."""
        app = create_app()
        app.state.session_store = SessionStore()
        app.state.openai_client = make_client(
            tool_response(DETECTION_FUNCTION_NAME, {"anomalies": ["Cyst"], "annotatedImage": "not an image"}),
            tool_response(REPORT_FUNCTION_NAME, {"report": "Report."}),
        )

        async def scenario():
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
                session_id = (await client.post("/sessions")).json()["session_id"]
                upload = await client.post(
                    f"/sessions/{session_id}/upload", files={"file": ("scan.png", png_bytes, "image/png")}
                )
                assert upload.status_code == 200
                for _ in range(200):
                    body = (await client.get(f"/sessions/{session_id}")).json()
                    if not body["loading"]["report"]:
                        return body
                    await asyncio.sleep(0.01)
                raise AssertionError("analysis did not finish")

        body = asyncio.run(scenario())

        assert body["anomalies"] == ["Cyst"]
        assert body["annotated_image"] == png_data_uri
        assert body["report"] == "Report."
        assert body["loading"] == {"detection": False, "report": False, "chat": False}
        assert body["notices"] == []
        assert len(app.state.openai_client.responses.calls) == 2


class TestChatRoute:

    def _session_with_image(self, client, app, png_data_uri):
        session_id = _new_session(client)
        store = app.state.session_store
        store.update(session_id, store.get(session_id).generation, original_image=png_data_uri)
        return session_id

    def test_blank_question_is_noop(self, build_client, png_data_uri):
        client, app = build_client()
        session_id = self._session_with_image(client, app, png_data_uri)

        body = client.post(f"/sessions/{session_id}/chat", json={"question": "   "}).json()

        assert body["chat_history"] == []
        assert app.state.openai_client.responses.calls == []

    def test_question_without_image_is_noop(self, build_client):
        client, app = build_client()
        session_id = _new_session(client)

        body = client.post(f"/sessions/{session_id}/chat", json={"question": "Anything?"}).json()

        assert body["chat_history"] == []
        assert app.state.openai_client.responses.calls == []

    def test_question_answered(self, build_client, tool_response, png_data_uri):
        client, app = build_client(tool_response(ANSWER_FUNCTION_NAME, {"answer": "Liver."}))
        session_id = self._session_with_image(client, app, png_data_uri)

        body = client.post(f"/sessions/{session_id}/chat", json={"question": "Which organ?"}).json()

        assert body["chat_history"] == [
            {"role": "user", "content": "Which organ?"},
            {"role": "ai", "content": "Liver."},
        ]
        assert body["loading"]["chat"] is False

    def test_question_failure_fallback(self, build_client, png_data_uri):
        client, app = build_client(RuntimeError("service unavailable"))
        session_id = self._session_with_image(client, app, png_data_uri)

        body = client.post(f"/sessions/{session_id}/chat", json={"question": "Which organ?"}).json()

        assert body["chat_history"][-1] == {"role": "ai", "content": CHAT_FALLBACK_ANSWER}
        assert len(body["chat_history"]) == 2
        assert body["notices"][-1]["title"] == "Chat Error"

    def test_concurrent_question_rejected(self, build_client, png_data_uri):
        client, app = build_client()
        session_id = self._session_with_image(client, app, png_data_uri)
        app.state.session_store.get(session_id).loading.chat = True

        response = client.post(f"/sessions/{session_id}/chat", json={"question": "Again?"})

        assert response.status_code == 409


class TestFlowRoutes:

    def test_detect_anomalies(self, build_client, tool_response, png_data_uri):
        client, _ = build_client(
            tool_response(DETECTION_FUNCTION_NAME, {"anomalies": [], "annotatedImage": png_data_uri})
        )

        response = client.post("/api/flows/detect-anomalies", json={"photoDataUri": png_data_uri})

        assert response.status_code == 200
        assert response.json() == {"anomalies": [], "annotatedImage": png_data_uri}

    def test_generate_report(self, build_client, tool_response, png_data_uri):
        client, _ = build_client(tool_response(REPORT_FUNCTION_NAME, {"report": "Normal."}))

        response = client.post(
            "/api/flows/generate-report",
            json={
                "originalImageDataUri": png_data_uri,
                "annotatedImageDataUri": png_data_uri,
                "detectedAnomalies": [],
            },
        )

        assert response.json() == {"report": "Normal."}

    def test_answer_question_validation_error(self, build_client, png_data_uri):
        client, _ = build_client()

        response = client.post("/api/flows/answer-question", json={"photoDataUri": png_data_uri, "question": " "})

        assert response.status_code == 400

    def test_upstream_failure(self, build_client, png_data_uri):
        client, _ = build_client(RuntimeError("upstream"))

        response = client.post(
            "/api/flows/answer-question", json={"photoDataUri": png_data_uri, "question": "Why?"}
        )

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to answer the question."

    def test_missing_field(self, build_client):
        client, _ = build_client()

        assert client.post("/api/flows/detect-anomalies", json={}).status_code == 422


class TestHealth:

    def test_health(self, build_client):
        client, _ = build_client()

        assert client.get("/health").json() == {"ok": True, "sessions_available": True, "openai_available": True}
