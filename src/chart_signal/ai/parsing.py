"""Turn free-text model replies into validated ``ChartAnalysis`` records."""

from __future__ import annotations

import json
import math
from typing import Any, List, Mapping, Sequence

from pydantic import ValidationError

from chart_signal.core.errors import AnalysisParseError
from chart_signal.core.models import (
    ChartAnalysis,
    RiskLevel,
    SignalAction,
    Timeframe,
    TradingSignal,
)

NOT_PROVIDED = "Not provided"
DEFAULT_CONFIDENCE = 50

_NARRATIVE_FIELDS = ("marketCondition", "supportResistance", "trendAnalysis", "volumeAnalysis")


def fallback_analysis() -> ChartAnalysis:
    """The fixed record returned whenever no genuine analysis is available."""
    return ChartAnalysis(
        signal=TradingSignal(
            action=SignalAction.HOLD,
            confidence=50,
            reasoning="Unable to parse AI response. Please try again.",
            timeframe=Timeframe.INTRADAY,
            indicators=[],
            risk_level=RiskLevel.MEDIUM,
        ),
        market_condition="Unable to determine",
        support_resistance="Unable to identify",
        trend_analysis="Unable to analyze",
        volume_analysis="Unable to analyze",
    )


def extract_json_object(text: str) -> str | None:
    """Return the span from the first ``{`` to the last ``}``, if any.

    Braces inside prose around the object widen the span and make the
    subsequent ``json.loads`` fail; callers treat that as a parse failure.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return None
    return text[start : end + 1]


def parse_analysis(
    text: str,
    timeframe: Timeframe,
    indicators: Sequence[str] = (),
) -> ChartAnalysis:
    """Parse a model reply, raising ``AnalysisParseError`` on any defect."""
    raw = extract_json_object(text)
    if raw is None:
        raise AnalysisParseError("no JSON object found in reply")
    try:
        payload = json.loads(raw)
    except (ValueError, RecursionError) as exc:
        raise AnalysisParseError(f"invalid JSON: {type(exc).__name__}") from exc
    if not isinstance(payload, dict):
        raise AnalysisParseError("reply JSON is not an object")

    signal = payload.get("signal")
    if not isinstance(signal, dict) or not signal.get("action"):
        raise AnalysisParseError("reply is missing signal.action")

    normalized = {
        "signal": {
            "action": _coerce_enum(signal["action"], SignalAction, "action"),
            "confidence": _coerce_confidence(signal.get("confidence")),
            "reasoning": _text(signal.get("reasoning")),
            "timeframe": Timeframe(timeframe),
            "indicators": _indicators(signal.get("indicators"), indicators),
            "riskLevel": _coerce_enum(
                signal.get("riskLevel") or signal.get("risk_level") or RiskLevel.MEDIUM.value,
                RiskLevel,
                "riskLevel",
            ),
        },
        **{name: _text(payload.get(name)) for name in _NARRATIVE_FIELDS},
    }
    try:
        return ChartAnalysis.model_validate(normalized)
    except ValidationError as exc:
        raise AnalysisParseError(f"reply failed validation: {exc.error_count()} error(s)") from exc


def _coerce_enum(value: Any, enum_cls: type, field_name: str) -> Any:
    if not isinstance(value, str):
        raise AnalysisParseError(f"{field_name} must be a string")
    token = value.strip().upper().replace(" ", "_").replace("-", "_")
    try:
        return enum_cls(token)
    except ValueError as exc:
        raise AnalysisParseError(f"unknown {field_name}: {value!r}") from exc


def _coerce_confidence(value: Any) -> int:
    if value is None:
        return DEFAULT_CONFIDENCE
    if isinstance(value, bool):
        raise AnalysisParseError("confidence must be numeric")
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise AnalysisParseError(f"confidence must be numeric, got {type(value).__name__}") from exc
    if not math.isfinite(number):
        raise AnalysisParseError(f"confidence must be finite, got {value!r}")
    return max(0, min(100, int(round(number))))


def _indicators(value: Any, requested: Sequence[str]) -> List[str]:
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    return list(requested)


def _text(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return NOT_PROVIDED


def analysis_to_json(analysis: ChartAnalysis) -> Mapping[str, Any]:
    """camelCase JSON-compatible dict, matching the reply format."""
    return analysis.model_dump(mode="json", by_alias=True)
