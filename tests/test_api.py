"""
HTTP tests for the JSON API and status page.
"""

import time

import pytest
from fastapi.testclient import TestClient

from conftest import FakeDetector, make_loader
from models.config import Config
from web.app import create_app
from web.state import ServiceState


@pytest.fixture
def client(service_state):
    return TestClient(create_app(service_state=service_state, preload=False))


@pytest.fixture
def unloaded_client(valid_config, tracker):
    svc = ServiceState(
        config=Config.from_dict(valid_config),
        tracker=tracker,
        loader=make_loader(detector=FakeDetector()),
    )
    return TestClient(create_app(service_state=svc, preload=False))


class TestStatusEndpoints:
    def test_root(self, client):
        body = client.get("/").json()

        assert body == {
            "name": "Test Detection Server",
            "version": "9.9.9",
            "status": "online",
            "modelLoaded": True,
            "backend": "cpu",
            "activeUsers": 0,
            "error": None,
        }

    def test_health(self, client):
        body = client.get("/health").json()

        assert body["status"] == "healthy"
        assert body["modelReady"] is True
        assert body["modelState"] == "loaded"
        assert body["backend"] == "cpu"

    def test_health_when_unloaded(self, unloaded_client):
        body = unloaded_client.get("/health").json()

        assert body["modelReady"] is False
        assert body["modelState"] == "unloaded"

    def test_stats(self, client):
        client.post("/connect", json={"userId": "alice"})
        body = client.get("/stats").json()

        assert body["activeUsers"] == 1
        assert body["peakUsers"] == 1
        assert body["totalConnections"] == 1
        assert body["totalDetections"] == 0
        assert isinstance(body["uptime"], str)
        assert body["modelLoaded"] is True

    def test_status_page_renders(self, client):
        resp = client.get("/status")

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        assert 'http-equiv="refresh"' in resp.text
        assert "OPERATIONAL" in resp.text

    def test_status_page_shows_load_error(self, valid_config, tracker):
        loader = make_loader(artifact_error=RuntimeError("weights missing"))
        loader.load()
        svc = ServiceState(config=Config.from_dict(valid_config), tracker=tracker, loader=loader)
        resp = TestClient(create_app(service_state=svc, preload=False)).get("/status")

        assert "MODEL NOT LOADED" in resp.text
        assert "weights missing" in resp.text

    def test_cors_headers(self, client):
        resp = client.get("/health", headers={"Origin": "https://example.com"})

        assert resp.headers["access-control-allow-origin"] == "*"


class TestPresenceEndpoints:
    def test_connect_generates_id(self, client):
        body = client.post("/connect").json()

        assert body["success"] is True
        assert body["userId"].startswith("user_")
        assert body["activeUsers"] == 1
        assert body["modelReady"] is True

    def test_connect_with_id(self, client):
        body = client.post("/connect", json={"userId": "alice"}).json()

        assert body["userId"] == "alice"

    @pytest.mark.parametrize("user_id", [0, False, ""])
    def test_connect_with_falsy_id_generates_one(self, client, user_id):
        body = client.post("/connect", json={"userId": user_id}).json()

        assert body["userId"].startswith("user_")

    def test_malformed_body_is_treated_as_empty(self, client):
        resp = client.post("/connect", content=b"{not json", headers={"Content-Type": "application/json"})

        assert resp.status_code == 200
        assert resp.json()["userId"].startswith("user_")

    def test_disconnect_without_id(self, client):
        client.post("/connect", json={"userId": "alice"})
        body = client.post("/disconnect", json={}).json()

        assert body == {"success": True, "activeUsers": 1}

    def test_alice_bob_sequence(self, client, tracker):
        client.post("/connect", json={"userId": "alice"})
        client.post("/connect", json={"userId": "bob"})
        assert client.post("/disconnect", json={"userId": "alice"}).json()["activeUsers"] == 1

        body = client.post("/heartbeat", json={"userId": "alice"}).json()

        assert body == {"success": True, "activeUsers": 2, "modelReady": True}
        stats = client.get("/stats").json()
        assert stats["totalConnections"] == 3
        assert stats["peakUsers"] == 2

    def test_heartbeat_reports_model_not_ready(self, unloaded_client):
        body = unloaded_client.post("/heartbeat", json={"userId": "alice"}).json()

        assert body["modelReady"] is False


class TestDetectEndpoint:
    def test_detect_people(self, client, jpeg_b64):
        body = client.post("/detect", json={"image": "data:image/jpeg;base64," + jpeg_b64}).json()

        assert body["count"] == len(body["predictions"]) == 2
        assert all(p["class"] == "person" for p in body["predictions"])
        assert set(body["predictions"][0]) == {"class", "score", "bbox"}
        assert "error" not in body
        assert client.get("/stats").json()["totalDetections"] == 1

    def test_detect_short_payload(self, client):
        body = client.post("/detect", json={"image": "abc"}).json()

        assert body == {"predictions": [], "error": "Invalid image data"}

    def test_detect_model_not_loaded(self, unloaded_client, jpeg_b64):
        resp = unloaded_client.post("/detect", json={"image": jpeg_b64})

        assert resp.status_code == 200
        assert resp.json() == {"predictions": [], "error": "Model not loaded"}

    def test_detect_bad_image_type(self, client):
        resp = client.post("/detect", json={"image": {"nested": True}})

        assert resp.status_code == 200
        assert resp.json()["predictions"] == []
        assert resp.json()["error"].startswith("Invalid request")

    @pytest.mark.parametrize("params", ['"maxDetections": 1e400', '"confidence": NaN', '"confidence": -Infinity'])
    def test_detect_out_of_range_numbers(self, service_state, jpeg_b64, params):
        client = TestClient(create_app(service_state=service_state, preload=False), raise_server_exceptions=False)
        raw = '{"image": "%s", %s}' % (jpeg_b64, params)

        resp = client.post("/detect", content=raw, headers={"Content-Type": "application/json"})

        assert resp.status_code == 200
        assert resp.json()["count"] == 2

    def test_detect_payload_too_large(self, valid_config, tracker, loaded_loader, jpeg_b64):
        valid_config["server"]["max_body_bytes"] = 200
        svc = ServiceState(config=Config.from_dict(valid_config), tracker=tracker, loader=loaded_loader)
        client = TestClient(create_app(service_state=svc, preload=False))

        body = client.post("/detect", json={"image": jpeg_b64}).json()

        assert body == {"predictions": [], "error": "Payload too large"}


class TestReloadEndpoint:
    def test_reload_success(self, client):
        body = client.post("/reload-model").json()

        assert body == {"success": True, "backend": "cpu", "error": None}

    def test_reload_failure(self, valid_config, tracker):
        loader = make_loader(artifact_error=RuntimeError("no weights"))
        svc = ServiceState(config=Config.from_dict(valid_config), tracker=tracker, loader=loader)
        client = TestClient(create_app(service_state=svc, preload=False))

        body = client.post("/reload-model").json()

        assert body["success"] is False
        assert body["error"] == "Model failed to load: no weights"
        assert client.get("/health").json()["modelState"] == "failed"


def test_startup_triggers_background_load(valid_config, tracker):
    loader = make_loader(detector=FakeDetector())
    svc = ServiceState(config=Config.from_dict(valid_config), tracker=tracker, loader=loader)

    with TestClient(create_app(service_state=svc, preload=True)) as client:
        for _ in range(100):
            if loader.loaded:
                break
            time.sleep(0.01)
        assert client.get("/health").json()["modelReady"] is True
