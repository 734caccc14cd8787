from __future__ import annotations

import json
from typing import Callable, List

import httpx
import pytest

from chart_signal.core.config import AiConfig
from chart_signal.core.models import AnalysisRequest, Timeframe

API_URL = "https://openrouter.test/api/v1/chat/completions"

VALID_REPLY = {
    "signal": {
        "action": "BUY_LONG",
        "confidence": 72,
        "reasoning": "Higher lows with MACD crossing above signal.",
        "timeframe": "INTRADAY",
        "indicators": ["RSI", "MACD"],
        "riskLevel": "LOW",
    },
    "marketCondition": "Bullish",
    "supportResistance": "Support 101.5, resistance 108",
    "trendAnalysis": "Uptrend, moderate strength",
    "volumeAnalysis": "Rising volume on green candles",
}


def completion(content: object) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class RecordingHandler:
    """Serve queued responses and remember every request body."""

    def __init__(self, responses: List[Callable[[httpx.Request], httpx.Response]]) -> None:
        self._responses = list(responses)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            return httpx.Response(500, text="no response queued")
        return self._responses.pop(0)(request)

    @property
    def bodies(self) -> List[dict]:
        return [json.loads(req.content) for req in self.requests]

    @property
    def models(self) -> List[str]:
        return [body["model"] for body in self.bodies]


def reply_with(content: object) -> Callable[[httpx.Request], httpx.Response]:
    return lambda request: httpx.Response(200, json=completion(content))


def status(code: int) -> Callable[[httpx.Request], httpx.Response]:
    return lambda request: httpx.Response(code, json={"error": {"message": "upstream says no"}})


@pytest.fixture
def ai_config() -> AiConfig:
    return AiConfig(
        api_url=API_URL,
        api_key="test-key",
        analysis_models=["vision/model-a", "vision/model-b"],
        probe_models=["text/probe-1", "text/probe-2", "text/probe-3"],
        insight_model="text/insight",
        timeout_seconds=1.0,
    )


@pytest.fixture
def chart_request() -> AnalysisRequest:
    return AnalysisRequest(
        image_base64="iVBORw0KGgoAAAANSUhEUg==",
        timeframe=Timeframe.INTRADAY,
        indicators=["RSI", "MACD"],
        symbol="BTCUSDT",
    )


def make_http_client(handler: Callable[[httpx.Request], object]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
