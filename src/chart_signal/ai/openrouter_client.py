"""OpenRouter chat-completion client for chart analysis."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Sequence

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from chart_signal.ai.parsing import fallback_analysis, parse_analysis
from chart_signal.ai.prompts import PROBE_PROMPT, build_analysis_prompt, build_insight_prompt
from chart_signal.core.config import AiConfig
from chart_signal.core.errors import AnalysisParseError, InvalidRequestError, UpstreamError
from chart_signal.core.models import AnalysisRequest, ChartAnalysis, Timeframe

logger = logging.getLogger(__name__)

INSIGHT_UNAVAILABLE = "Unable to fetch market insight at this time."


class ChartAnalysisClient:
    """Send chart images to a chain of multimodal models and parse the verdict.

    Transport failures (timeouts, non-2xx, malformed envelopes) move on to the
    next model in ``analysis_models``. A reply that arrives but cannot be
    parsed is not retried: the fixed fallback record is returned instead.
    """

    def __init__(self, config: AiConfig, http_client: httpx.AsyncClient | None = None) -> None:
        self._cfg = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout_seconds)

    async def __aenter__(self) -> "ChartAnalysisClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def analyze(self, request: AnalysisRequest) -> ChartAnalysis:
        if not request.image_base64:
            raise InvalidRequestError("A chart image is required before analysis.")

        prompt = build_analysis_prompt(request.timeframe, request.indicators, request.symbol)
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {
                        "type": "image_url",
                        "image_url": {"url": f"data:image/png;base64,{request.image_base64}"},
                    },
                ],
            }
        ]
        logger.info(
            "Analyzing chart timeframe=%s indicators=%s image_chars=%d",
            Timeframe(request.timeframe).value,
            ",".join(request.indicators),
            len(request.image_base64),
        )

        try:
            content = await self._complete_with_fallback(
                self._cfg.analysis_models,
                messages,
                max_tokens=self._cfg.analysis_max_tokens,
                temperature=self._cfg.temperature,
            )
        except UpstreamError as exc:
            logger.warning("All analysis models failed (last: %s); returning fallback", exc)
            return fallback_analysis()

        try:
            analysis = parse_analysis(content, request.timeframe, request.indicators)
        except AnalysisParseError as exc:
            logger.warning("Could not parse model reply (%s); returning fallback", exc)
            logger.debug("Unparseable reply: %.500s", content)
            return fallback_analysis()

        logger.info(
            "Analysis complete action=%s confidence=%d",
            analysis.signal.action.value,
            analysis.signal.confidence,
        )
        return analysis

    async def test_connection(self) -> bool:
        """Return True once any probe model answers with non-empty content."""
        if not self._cfg.api_key:
            logger.warning("No API key configured; connection probe skipped")
            return False

        messages = [{"role": "user", "content": PROBE_PROMPT}]
        for model in self._cfg.probe_models:
            try:
                content = await self._complete(model, messages, max_tokens=50, temperature=0.1)
            except UpstreamError as exc:
                logger.warning("Probe failed: %s", exc)
                continue
            if content.strip():
                logger.info("Probe succeeded with %s", model)
                return True
            logger.warning("Probe model %s returned empty content", model)
        return False

    async def get_insight(self, symbol: str) -> str:
        if not self._cfg.api_key:
            logger.warning("No API key configured; insight unavailable")
            return INSIGHT_UNAVAILABLE
        messages = [{"role": "user", "content": build_insight_prompt(symbol)}]
        try:
            content = await self._complete(
                self._cfg.insight_model,
                messages,
                max_tokens=500,
                temperature=self._cfg.temperature,
            )
        except UpstreamError as exc:
            logger.warning("Insight request failed: %s", exc)
            return INSIGHT_UNAVAILABLE
        return content if content.strip() else INSIGHT_UNAVAILABLE

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _complete_with_fallback(
        self,
        models: Sequence[str],
        messages: List[Dict[str, Any]],
        *,
        max_tokens: int,
        temperature: float,
    ) -> str:
        async for attempt in self._retrying(len(models)):
            with attempt:
                model = models[attempt.retry_state.attempt_number - 1]
                return await self._complete(model, messages, max_tokens=max_tokens, temperature=temperature)
        raise RuntimeError("Unreachable model fallback loop")

    async def _complete(
        self,
        model: str,
        messages: List[Dict[str, Any]],
        *,
        max_tokens: int,
        temperature: float,
    ) -> str:
        request_body = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        try:
            response = await asyncio.wait_for(
                self._client.post(self._cfg.api_url, headers=self._headers(), json=request_body),
                timeout=self._cfg.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise UpstreamError(model, f"timed out after {self._cfg.timeout_seconds}s") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(model, f"transport error {type(exc).__name__}") from exc

        if not response.is_success:
            raise UpstreamError(model, f"HTTP {response.status_code}: {response.text[:200]}")

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, RecursionError, KeyError, IndexError, TypeError) as exc:
            raise UpstreamError(model, "unexpected response structure") from exc
        if not isinstance(content, str):
            raise UpstreamError(model, "message content is not text")
        logger.debug("Model %s replied with %d chars", model, len(content))
        return content

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "HTTP-Referer": self._cfg.referer,
            "X-Title": self._cfg.title,
        }
        if self._cfg.api_key:
            headers["Authorization"] = f"Bearer {self._cfg.api_key}"
        return headers

    def _retrying(self, attempts: int) -> AsyncRetrying:
        return AsyncRetrying(
            wait=wait_fixed(self._cfg.retry_wait_seconds),
            stop=stop_after_attempt(attempts),
            retry=retry_if_exception_type(UpstreamError),
            reraise=True,
        )
