from fastapi import FastAPI
from fastapi.testclient import TestClient

from slotcraft.core.middleware import RequestSizeLimitMiddleware


def test_health_endpoints(client):
    assert client.get("/api/health").json() == {"status": "ok"}

    live = client.get("/api/health/live")
    assert live.status_code == 200
    assert live.json()["status"] == "ok"

    ready = client.get("/api/health/ready")
    assert ready.status_code in {200, 503}
    payload = ready.json()
    assert "database" in payload
    assert "configured" in payload["generator"]


def test_oversized_body_is_rejected():
    app = FastAPI()
    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=16)

    @app.post("/echo")
    def echo(payload: dict) -> dict:
        return payload

    with TestClient(app) as small_client:
        assert small_client.post("/echo", json={"a": 1}).status_code == 200
        response = small_client.post("/echo", json={"text": "x" * 64})
    assert response.status_code == 413
    assert "too large" in response.json()["message"]
