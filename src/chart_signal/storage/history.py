"""Local history of completed chart analyses."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import List, Sequence
from uuid import uuid4

from pydantic import TypeAdapter, ValidationError

from chart_signal.core.errors import HistoryItemNotFoundError
from chart_signal.core.models import ChartAnalysis, HistoryItem, Timeframe
from chart_signal.storage.kv_store import JsonFileStorage

logger = logging.getLogger(__name__)

HISTORY_STORAGE_KEY = "trading_analysis_history"

_ITEMS_ADAPTER = TypeAdapter(List[HistoryItem])


class HistoryStore:
    """Newest-first list of ``HistoryItem`` persisted under one storage key.

    Call ``load()`` once before use; every mutation saves immediately.
    """

    def __init__(self, storage: JsonFileStorage, storage_key: str = HISTORY_STORAGE_KEY) -> None:
        self._storage = storage
        self._key = storage_key
        self._items: List[HistoryItem] = []
        self._loaded = False

    @property
    def items(self) -> Sequence[HistoryItem]:
        return tuple(self._items)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def __len__(self) -> int:
        return len(self._items)

    def load(self) -> None:
        stored = self._storage.get_item(self._key)
        self._items = []
        if stored:
            try:
                self._items = _ITEMS_ADAPTER.validate_python(json.loads(stored))
            except (json.JSONDecodeError, ValidationError) as exc:
                logger.error("Error loading history: %s", exc)
        self._loaded = True

    def save(self) -> None:
        payload = _ITEMS_ADAPTER.dump_json(self._items, by_alias=True).decode("utf-8")
        self._storage.set_item(self._key, payload)

    def append(
        self,
        analysis: ChartAnalysis,
        image_base64: str,
        timeframe: Timeframe | str,
        indicators: Sequence[str],
    ) -> HistoryItem:
        item = HistoryItem(
            id=str(uuid4()),
            timestamp=datetime.now(tz=timezone.utc),
            analysis=analysis,
            image_base64=image_base64,
            timeframe=Timeframe(timeframe),
            indicators=list(indicators),
        )
        self._items.insert(0, item)
        self.save()
        return item

    def get(self, item_id: str) -> HistoryItem:
        for item in self._items:
            if item.id == item_id:
                return item
        raise HistoryItemNotFoundError(item_id)

    def remove(self, item_id: str) -> bool:
        """Delete the item with ``item_id``; return False when none matched."""
        remaining = [item for item in self._items if item.id != item_id]
        if len(remaining) == len(self._items):
            return False
        self._items = remaining
        self.save()
        return True

    def clear(self) -> None:
        self._items = []
        self.save()
