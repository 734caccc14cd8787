"""Application state shared by the front end: current analysis and history."""

from __future__ import annotations

import logging
from typing import Optional

from chart_signal.ai.openrouter_client import ChartAnalysisClient
from chart_signal.core.errors import AnalysisInProgressError
from chart_signal.core.models import AnalysisRequest, ChartAnalysis
from chart_signal.storage.history import HistoryStore

logger = logging.getLogger(__name__)


class AnalysisSession:
    """Run one analysis at a time and record each result in history."""

    def __init__(self, client: ChartAnalysisClient, history: HistoryStore) -> None:
        self._client = client
        self._history = history
        self._analysis: Optional[ChartAnalysis] = None
        self._is_loading = False

    @property
    def analysis(self) -> Optional[ChartAnalysis]:
        return self._analysis

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def history(self) -> HistoryStore:
        return self._history

    async def run(self, request: AnalysisRequest, *, save: bool = True) -> ChartAnalysis:
        if self._is_loading:
            raise AnalysisInProgressError("An analysis is already running.")

        self._is_loading = True
        try:
            analysis = await self._client.analyze(request)
        finally:
            self._is_loading = False

        self._analysis = analysis
        if save:
            if not self._history.is_loaded:
                self._history.load()
            item = self._history.append(
                analysis,
                request.image_base64,
                request.timeframe,
                request.indicators,
            )
            logger.info("Stored analysis %s", item.id)
        return analysis
