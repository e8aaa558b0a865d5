"""
HTTP API 테스트 (FastAPI TestClient)

서비스 의존성을 가짜 구현으로 교체하여 /, /voices, /chat 응답 형태를 확인합니다.
"""
import base64
import json

import pytest
from fastapi.testclient import TestClient

from app.dependencies import get_avatar_chat_service, get_tts_agent
from app.main import app, prefetch_azure_token

from conftest import FAKE_MP3_BYTES, FakeReplyAgent, FakeTTSAgent, build_chat_service, make_settings

REPLY = json.dumps([
    {"text": "Oh hi!", "facialExpression": "smile", "animation": "Talking_2"},
    {"text": "Let's dance", "facialExpression": "funnyFace", "animation": "Rumba"},
])


class FailingVoicesAgent:
    async def list_voices(self):
        raise RuntimeError("401 Unauthorized")


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _use_service(service):
    app.dependency_overrides[get_avatar_chat_service] = lambda: service


class TestRootEndpoints:

    def test_liveness(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "running" in response.text

    def test_voices_passthrough(self, client):
        app.dependency_overrides[get_tts_agent] = lambda: FakeTTSAgent()

        response = client.get("/voices")

        assert response.status_code == 200
        assert response.json()[0]["ShortName"] == "en-US-JennyNeural"

    def test_voices_failure(self, client):
        app.dependency_overrides[get_tts_agent] = lambda: FailingVoicesAgent()

        response = client.get("/voices")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch voices"}


class TestChatEndpoint:

    def test_greeting_without_message(self, client, settings):
        _use_service(build_chat_service(settings, FakeReplyAgent(reply=REPLY)))

        response = client.post("/chat", json={})

        assert response.status_code == 200
        messages = response.json()["messages"]
        assert len(messages) == 2
        assert {m["facialExpression"] for m in messages} <= {"smile", "sad"}
        assert {m["animation"] for m in messages} <= {"Talking_1", "Crying"}
        assert base64.b64decode(messages[0]["audio"]) == b"wav:intro_0"

    def test_greeting_without_body(self, client, settings):
        _use_service(build_chat_service(settings, FakeReplyAgent(reply=REPLY)))

        response = client.post("/chat")

        assert response.status_code == 200
        assert messages_texts(response) == [
            "Hey dear... How was your day?",
            "I missed you so much... Please don't go for so long!",
        ]

    def test_missing_keys(self, client, tmp_path, assets_dir):
        config = make_settings(tmp_path, AZURE_SPEECH_KEY="")
        _use_service(build_chat_service(config, FakeReplyAgent(reply=REPLY)))

        response = client.post("/chat", json={"message": "Hello"})

        assert response.status_code == 200
        messages = response.json()["messages"]
        assert [m["facialExpression"] for m in messages] == ["angry", "smile"]

    def test_normal_reply(self, client, settings):
        _use_service(build_chat_service(settings, FakeReplyAgent(reply=REPLY)))

        response = client.post("/chat", json={"message": "Dance with me"})

        assert response.status_code == 200
        messages = response.json()["messages"]
        assert messages_texts(response) == ["Oh hi!", "Let's dance"]
        assert messages[1]["animation"] == "Rumba"
        assert base64.b64decode(messages[0]["audio"]) == FAKE_MP3_BYTES
        assert "mouthCues" in messages[0]["lipsync"]

    def test_degraded_fragment_omits_media_keys(self, client, settings):
        tts_agent = FakeTTSAgent(fail_texts={"Oh hi!"})
        _use_service(build_chat_service(settings, FakeReplyAgent(reply=REPLY), tts_agent))

        response = client.post("/chat", json={"message": "Dance with me"})

        assert response.status_code == 200
        first, second = response.json()["messages"]
        assert set(first) == {"text", "facialExpression", "animation"}
        assert {"audio", "lipsync"} <= set(second)

    def test_malformed_model_output_is_500(self, client, settings):
        _use_service(build_chat_service(settings, FakeReplyAgent(reply="not json at all")))

        response = client.post("/chat", json={"message": "Hello"})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Failed to process message"
        assert "Invalid JSON" in body["details"]
        assert "messages" not in body


def messages_texts(response):
    return [m["text"] for m in response.json()["messages"]]


class BrokenTokenManager:
    async def prefetch_token(self):
        raise RuntimeError("DNS lookup failed")


class TestStartupPrefetch:

    @pytest.mark.asyncio
    async def test_prefetch_failure_is_logged_not_raised(self, monkeypatch, caplog):
        monkeypatch.setattr(
            "app.main.AzureSpeechTokenManager.get_instance",
            lambda: BrokenTokenManager()
        )

        with caplog.at_level("WARNING", logger="app.main"):
            await prefetch_azure_token()

        assert "DNS lookup failed" in caplog.text
