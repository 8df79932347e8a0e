"""
Ultralytics YOLO inference backend.

The device (cuda, mps, cpu) is chosen by the model loader; this module only
wraps a loaded YOLO model behind the InferenceBackend interface.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List

import numpy as np

from models.detection import Detection
from .backend import InferenceBackend


@dataclass(frozen=True)
class UltralyticsConfig:
    model: str
    device: str = "cpu"
    iou_threshold: float = 0.45


class UltralyticsBackend(InferenceBackend):
    def __init__(self, cfg: UltralyticsConfig, model: Any = None):
        self.cfg = cfg
        self.name = cfg.device
        if model is None:
            try:
                from ultralytics import YOLO  # type: ignore
            except Exception as e:  # pragma: no cover
                raise ImportError(
                    "Ultralytics is not installed. Install with `pip install ultralytics`."
                ) from e
            model = YOLO(cfg.model)
            model.to(cfg.device)
        self._model = model

    def detect(self, frame: np.ndarray, max_detections: int, confidence: float) -> List[Detection]:
        results = self._model.predict(
            source=frame,
            conf=confidence,
            iou=self.cfg.iou_threshold,
            max_det=max_detections,
            device=self.cfg.device,
            verbose=False,
        )
        if not results:
            return []

        r0 = results[0]
        names = getattr(r0, "names", None) or {}
        boxes = getattr(r0, "boxes", None)
        if boxes is None:
            return []

        xyxy = boxes.xyxy.cpu().numpy() if hasattr(boxes.xyxy, "cpu") else np.asarray(boxes.xyxy)
        conf = boxes.conf.cpu().numpy() if hasattr(boxes.conf, "cpu") else np.asarray(boxes.conf)
        cls = boxes.cls.cpu().numpy() if hasattr(boxes.cls, "cpu") else np.asarray(boxes.cls)

        out: List[Detection] = []
        for (x1, y1, x2, y2), c, k in zip(xyxy, conf, cls):
            class_id = int(k)
            class_name = names.get(class_id) or str(class_id)
            out.append(
                Detection.from_xyxy(
                    x1=float(x1),
                    y1=float(y1),
                    x2=float(x2),
                    y2=float(y2),
                    confidence=float(c),
                    class_id=class_id,
                    class_name=class_name,
                )
            )

        return out[:max_detections]
