"""
Detection request handling.

Validates the payload, decodes it, runs the detector and keeps only the
target class. Every outcome is a response dict; nothing is raised to the
route layer.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from inference.decoding import decoded_image, strip_data_url_prefix
from inference.loader import ModelLoader
from models.config import DetectionConfig
from presence.tracker import PresenceTracker


def _coerce(value: Any, cast, default):
    # Falsy, non-finite or unparseable values fall back to the default.
    if not value:
        return default
    if isinstance(value, float) and not math.isfinite(value):
        return default
    try:
        result = cast(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if isinstance(result, float) and not math.isfinite(result):
        return default
    return result


@dataclass
class DetectionService:
    tracker: PresenceTracker
    loader: ModelLoader
    cfg: DetectionConfig

    def resolve_params(self, confidence: Any = None, max_detections: Any = None):
        """Apply defaults and clamp to the supported range."""
        conf = _coerce(confidence, float, self.cfg.default_confidence)
        conf = min(1.0, max(0.0, conf))
        max_det = _coerce(max_detections, int, self.cfg.default_max_detections)
        max_det = min(self.cfg.max_detections_limit, max(1, max_det))
        return conf, max_det

    def detect(
        self,
        image: Optional[str],
        confidence: Any = None,
        max_detections: Any = None,
    ) -> Dict[str, Any]:
        detector = self.loader.detector()
        if detector is None:
            return {"predictions": [], "error": self.loader.last_error or "Model not loaded"}

        payload = strip_data_url_prefix(image or "")
        if not payload or len(payload) < self.cfg.min_payload_chars:
            return {"predictions": [], "error": "Invalid image data"}

        try:
            conf, max_det = self.resolve_params(confidence, max_detections)
            with decoded_image(payload) as frame:
                detections = detector.detect(frame, max_det, conf)
            del frame
            self.tracker.record_detection()
        except Exception as e:
            logging.exception("Detection error")
            return {"predictions": [], "error": str(e) or e.__class__.__name__}

        predictions = [
            d.to_prediction() for d in detections if d.class_name == self.cfg.target_class
        ]
        return {
            "predictions": predictions,
            "count": len(predictions),
            "backend": self.loader.backend,
        }
