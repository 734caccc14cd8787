"""Load chart images from disk as base64 text."""

from __future__ import annotations

import base64
from pathlib import Path

from chart_signal.core.errors import InvalidRequestError


def load_image_base64(path: str | Path) -> str:
    """Read a chart image from disk and return it base64-encoded."""
    image_path = Path(path).expanduser()
    if not image_path.is_file():
        raise InvalidRequestError(f"Chart image not found: {image_path}")
    data = image_path.read_bytes()
    if not data:
        raise InvalidRequestError(f"Chart image is empty: {image_path}")
    return base64.b64encode(data).decode("ascii")
