"""Prompt templates sent to the chat-completion models."""

from __future__ import annotations

import json
from typing import Sequence

from chart_signal.core.models import Timeframe

NO_INDICATORS = "None selected"
UNKNOWN_SYMBOL = "Unknown"

PROBE_PROMPT = "Hello, respond with 'API working'"

_ANALYSIS_TEMPLATE = """\
You are an expert trading analyst. Analyze this trading chart image and provide a comprehensive trading recommendation.

CHART ANALYSIS REQUIREMENTS:
1. Analyze the chart pattern, trend, and price action
2. Consider the following indicators: {indicators}
3. Timeframe context: {timeframe}
4. Symbol: {symbol}

RESPONSE FORMAT (return as JSON):
{{
  "signal": {{
    "action": "HOLD|BUY_LONG|BUY_SHORT|SELL",
    "confidence": 85,
    "reasoning": "Detailed explanation of the analysis",
    "timeframe": "{timeframe}",
    "indicators": {indicator_list},
    "riskLevel": "LOW|MEDIUM|HIGH"
  }},
  "marketCondition": "Bullish/Bearish/Sideways market conditions",
  "supportResistance": "Key support and resistance levels identified",
  "trendAnalysis": "Current trend direction and strength",
  "volumeAnalysis": "Volume analysis and its significance"
}}

ANALYSIS GUIDELINES:
- Be conservative with confidence levels (integer from 0 to 100)
- Consider risk management
- Provide clear reasoning for your recommendation
- Focus on technical analysis from the chart
- Consider the timeframe context for the recommendation

Return only the JSON object, no additional text, no markdown fences.
"""

_INSIGHT_TEMPLATE = """\
Provide a brief market insight for {symbol} based on current market conditions.
Focus on:
- Key market drivers
- Recent price action
- Important levels to watch
- Risk factors

Keep it concise and actionable.
"""


def build_analysis_prompt(
    timeframe: Timeframe | str,
    indicators: Sequence[str],
    symbol: str | None = None,
) -> str:
    token = Timeframe(timeframe).value
    return _ANALYSIS_TEMPLATE.format(
        indicators=", ".join(indicators) if indicators else NO_INDICATORS,
        timeframe=token,
        symbol=symbol or UNKNOWN_SYMBOL,
        indicator_list=json.dumps(list(indicators)),
    )


def build_insight_prompt(symbol: str) -> str:
    return _INSIGHT_TEMPLATE.format(symbol=symbol)
