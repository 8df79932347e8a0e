"""
Pytest configuration and shared fixtures.
"""

import base64
import os
import sys

import cv2
import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from inference.loader import BackendCandidate, ModelLoader  # noqa: E402
from models.config import Config  # noqa: E402
from models.detection import Detection  # noqa: E402
from presence.tracker import PresenceTracker  # noqa: E402
from web.services.config_service import ConfigService  # noqa: E402
from web.state import ServiceState  # noqa: E402


class FakeClock:
    """Manually advanced clock for TTL and uptime tests."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeDetector:
    """Detector double returning canned detections and recording calls."""

    name = "fake"

    def __init__(self, detections=None, error=None):
        self.detections = list(detections or [])
        self.error = error
        self.calls = []

    def detect(self, frame, max_detections, confidence):
        self.calls.append((frame.shape, max_detections, confidence))
        if self.error is not None:
            raise self.error
        return list(self.detections)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tracker(clock):
    return PresenceTracker(ttl_seconds=0, clock=clock)


@pytest.fixture
def fake_detector():
    return FakeDetector(
        detections=[
            Detection.from_xyxy(10, 20, 60, 120, confidence=0.91, class_id=0, class_name="person"),
            Detection.from_xyxy(200, 40, 260, 90, confidence=0.77, class_id=2, class_name="car"),
            Detection.from_xyxy(300, 30, 340, 150, confidence=0.52, class_id=0, class_name="person"),
        ]
    )


def make_loader(detector=None, backends=("cpu",), artifact_error=None):
    """Build a ModelLoader whose candidates and artifact loader are stubs."""
    candidates = [BackendCandidate(name=name, init=lambda name=name: name) for name in backends]

    def artifact_loader(path, device):
        if artifact_error is not None:
            raise artifact_error
        return detector

    return ModelLoader(model_path="test.pt", candidates=candidates, artifact_loader=artifact_loader)


@pytest.fixture
def loaded_loader(fake_detector):
    loader = make_loader(detector=fake_detector)
    assert loader.load().success
    return loader


@pytest.fixture
def jpeg_b64():
    """A real JPEG, base64-encoded, comfortably above the minimum payload length."""
    img = np.zeros((64, 48, 3), dtype=np.uint8)
    cv2.rectangle(img, (8, 8), (40, 56), (255, 255, 255), -1)
    ok, buf = cv2.imencode(".jpg", img)
    assert ok
    return base64.b64encode(buf.tobytes()).decode("ascii")


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "server": {
            "host": "0.0.0.0",
            "port": 3000,
            "name": "Test Detection Server",
            "version": "9.9.9",
            "max_body_bytes": 1024 * 1024,
        },
        "model": {
            "path": "yolov8n.pt",
            "backends": ["cuda", "cpu"],
            "load_on_startup": False,
        },
        "detection": {
            "default_confidence": 0.35,
            "default_max_detections": 5,
            "max_detections_limit": 100,
            "min_payload_chars": 100,
            "target_class": "person",
        },
        "presence": {"ttl_seconds": 0},
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }


@pytest.fixture
def service_state(valid_config, tracker, loaded_loader):
    return ServiceState(config=Config.from_dict(valid_config), tracker=tracker, loader=loaded_loader)


@pytest.fixture
def temp_config_dir(tmp_path, monkeypatch):
    """Point ConfigService at a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    (config_dir / "default.yaml").write_text("""
server:
  host: "0.0.0.0"
  port: 3000
  name: "Person Detection Server"

model:
  path: "yolov8n.pt"
  backends: ["cuda", "cpu"]

detection:
  default_confidence: 0.35
  default_max_detections: 5
  min_payload_chars: 100

presence:
  ttl_seconds: 120

log_path: "logs/test.log"
log_level: "INFO"
""")

    monkeypatch.setattr(ConfigService, "DEFAULT_PATH", str(config_dir / "default.yaml"))
    monkeypatch.setattr(ConfigService, "OVERRIDES_PATH", str(config_dir / "config.yaml"))
    for var in ConfigService.ENV_OVERRIDES:
        monkeypatch.delenv(var, raising=False)
    return config_dir
