"""Durable string key-value storage backed by a single JSON file."""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class JsonFileStorage:
    """Persist ``key -> string`` pairs; every write rewrites the file atomically."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()
        self._lock = threading.Lock()
        self._data: Dict[str, str] = self._read()

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value
            self._write()

    def _read(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Could not read storage file %s: %s", self._path, exc)
            return {}
        if not isinstance(raw, dict):
            logger.error("Storage file %s does not hold a JSON object; ignoring it", self._path)
            return {}
        return {str(key): value for key, value in raw.items() if isinstance(value, str)}

    def _write(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(self._data, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp_path, self._path)
