#!/usr/bin/env python3
"""
Offline check of model loading and person detection.

This utility helps verify that:
1. At least one configured inference backend initializes (cuda, mps, cpu)
2. The model artifact loads on that backend
3. A local image goes through the same path as POST /detect

Usage:
    python tools/check_detection.py
    python tools/check_detection.py --image path/to/image.jpg --backends cpu
"""

import argparse
import base64
import json
import os
import sys
import time

# Add project directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from inference.loader import BACKEND_INITIALIZERS, ModelLoader, candidates_from_names  # noqa: E402
from models.config import DetectionConfig  # noqa: E402
from ops.logging import setup_logging  # noqa: E402
from presence.tracker import PresenceTracker  # noqa: E402
from web.services.detection_service import DetectionService  # noqa: E402


def probe_backends():
    """Try every known backend on its own and report the outcome."""
    print("Backend probe:")
    for name, init in BACKEND_INITIALIZERS.items():
        try:
            device = init()
            print(f"  ✅ {name}: available (device={device})")
        except Exception as e:
            print(f"  ⚠️  {name}: {e}")


def main():
    parser = argparse.ArgumentParser(description="Check model loading and person detection")
    parser.add_argument("--model", default="yolov8n.pt", help="Model path or name")
    parser.add_argument("--backends", default="cuda,cpu", help="Comma-separated fallback order")
    parser.add_argument("--image", default=None, help="Image to run detection on")
    parser.add_argument("--confidence", type=float, default=0.35)
    parser.add_argument("--max-detections", type=int, default=5)
    args = parser.parse_args()

    setup_logging("", "INFO")
    probe_backends()

    loader = ModelLoader(
        model_path=args.model,
        candidates=candidates_from_names([b.strip() for b in args.backends.split(",") if b.strip()]),
    )
    print(f"\n📦 Loading model: {args.model}")
    start = time.time()
    result = loader.load()
    print(f"   Finished in {time.time() - start:.2f}s: success={result.success} backend={result.backend}")
    if not result.success:
        print(f"❌ {result.error}")
        return 1

    if not args.image:
        return 0

    with open(args.image, "rb") as f:
        payload = base64.b64encode(f.read()).decode("ascii")

    service = DetectionService(tracker=PresenceTracker(ttl_seconds=0), loader=loader, cfg=DetectionConfig())
    start = time.time()
    response = service.detect(payload, args.confidence, args.max_detections)
    print(f"\n🔍 Detection took {(time.time() - start) * 1000:.1f}ms")
    print(json.dumps(response, indent=2))
    return 0 if "error" not in response else 1


if __name__ == "__main__":
    sys.exit(main())
