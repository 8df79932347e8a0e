"""
Image payload decoding.

Clients send base64 images, optionally as a data URL
(``data:image/jpeg;base64,...``). Decoding goes through OpenCV's native codec
and always yields a 3-channel BGR array.
"""

from __future__ import annotations

import base64
import binascii
from contextlib import contextmanager
from typing import Iterator

import cv2
import numpy as np


class ImageDecodeError(ValueError):
    """Raised when a payload cannot be turned into a pixel array."""


def strip_data_url_prefix(payload: str) -> str:
    """Keep the segment after the data URL header, if a comma is present."""
    if "," in payload:
        return payload.split(",")[1]
    return payload


def decode_base64(payload: str) -> bytes:
    try:
        return base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"Invalid base64 image data: {e}") from e


def decode_image(data: bytes) -> np.ndarray:
    """Decode encoded image bytes (JPEG, PNG, ...) to an HxWx3 uint8 array."""
    if not data:
        raise ImageDecodeError("Empty image data")
    buf = np.frombuffer(data, dtype=np.uint8)
    frame = cv2.imdecode(buf, cv2.IMREAD_COLOR)
    if frame is None:
        raise ImageDecodeError("Unsupported or corrupt image data")
    return frame


@contextmanager
def decoded_image(payload: str) -> Iterator[np.ndarray]:
    """
    Decode a base64 payload for the duration of a with-block.

    Only the context manager's own reference is dropped on exit; callers
    that bind ``as frame`` must ``del`` their name to free the buffer early.
    """
    frame = decode_image(decode_base64(payload))
    try:
        yield frame
    finally:
        del frame
