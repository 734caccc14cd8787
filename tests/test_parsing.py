from __future__ import annotations

import json

import pytest

from conftest import VALID_REPLY

from chart_signal.ai.parsing import (
    NOT_PROVIDED,
    extract_json_object,
    fallback_analysis,
    parse_analysis,
)
from chart_signal.core.errors import AnalysisParseError
from chart_signal.core.models import RiskLevel, SignalAction, Timeframe


def _reply(**signal_overrides):
    payload = json.loads(json.dumps(VALID_REPLY))
    payload["signal"].update(signal_overrides)
    return json.dumps(payload)


def test_extract_json_object_spans_first_to_last_brace():
    text = 'Sure! ```json\n{"a": {"b": 1}}\n``` hope it helps'
    assert extract_json_object(text) == '{"a": {"b": 1}}'


@pytest.mark.parametrize("text", ["", "no braces here", "} backwards {"])
def test_extract_json_object_returns_none_without_object(text):
    assert extract_json_object(text) is None


def test_fallback_record_values():
    fallback = fallback_analysis()
    assert fallback.signal.action is SignalAction.HOLD
    assert fallback.signal.confidence == 50
    assert fallback.signal.reasoning == "Unable to parse AI response. Please try again."
    assert fallback.signal.timeframe is Timeframe.INTRADAY
    assert fallback.signal.indicators == []
    assert fallback.signal.risk_level is RiskLevel.MEDIUM
    assert fallback.market_condition == "Unable to determine"
    assert fallback.support_resistance == "Unable to identify"
    assert fallback.trend_analysis == "Unable to analyze"
    assert fallback.volume_analysis == "Unable to analyze"


def test_parse_valid_reply():
    analysis = parse_analysis(json.dumps(VALID_REPLY), Timeframe.INTRADAY, ["RSI"])
    assert analysis.signal.action is SignalAction.BUY_LONG
    assert analysis.signal.indicators == ["RSI", "MACD"]
    assert analysis.trend_analysis == "Uptrend, moderate strength"


def test_timeframe_echoes_request():
    analysis = parse_analysis(_reply(timeframe="POSITION"), Timeframe.SCALPING)
    assert analysis.signal.timeframe is Timeframe.SCALPING


@pytest.mark.parametrize(
    "raw, expected",
    [(85, 85), (64.6, 65), ("40", 40), ("75%", 75), (130, 100), (-5, 0), (None, 50)],
)
def test_confidence_is_coerced_into_range(raw, expected):
    analysis = parse_analysis(_reply(confidence=raw), Timeframe.INTRADAY)
    assert analysis.signal.confidence == expected


@pytest.mark.parametrize("raw", ["high", True, [80]])
def test_non_numeric_confidence_is_a_parse_failure(raw):
    with pytest.raises(AnalysisParseError):
        parse_analysis(_reply(confidence=raw), Timeframe.INTRADAY)


def test_action_spelling_is_normalized():
    analysis = parse_analysis(_reply(action="buy short", riskLevel="high"), Timeframe.SWING)
    assert analysis.signal.action is SignalAction.BUY_SHORT
    assert analysis.signal.risk_level is RiskLevel.HIGH


@pytest.mark.parametrize("action", ["STRONG_BUY", "", None, 3])
def test_unknown_or_missing_action_is_a_parse_failure(action):
    with pytest.raises(AnalysisParseError):
        parse_analysis(_reply(action=action), Timeframe.INTRADAY)


def test_missing_optional_fields_are_filled():
    reply = json.dumps({"signal": {"action": "SELL"}})
    analysis = parse_analysis(reply, Timeframe.SWING, ["ATR"])
    assert analysis.signal.action is SignalAction.SELL
    assert analysis.signal.confidence == 50
    assert analysis.signal.risk_level is RiskLevel.MEDIUM
    assert analysis.signal.indicators == ["ATR"]
    assert analysis.signal.reasoning == NOT_PROVIDED
    assert analysis.market_condition == NOT_PROVIDED
    assert analysis.volume_analysis == NOT_PROVIDED


@pytest.mark.parametrize(
    "text",
    [
        "no json at all",
        "{not valid json}",
        "[1, 2, 3]",
        '{"signal": "BUY_LONG"}',
        'Reasoning {with braces} then {"signal": {"action": "HOLD"}}',
    ],
)
def test_malformed_replies_raise(text):
    with pytest.raises(AnalysisParseError):
        parse_analysis(text, Timeframe.INTRADAY)


@pytest.mark.parametrize(
    "text",
    [
        '{"signal": {"action": "HOLD", "confidence": ' + "9" * 400 + "}}",
        '{"signal": {"action": "HOLD", "confidence": ' + "9" * 5000 + "}}",
        '{"signal": ' + "[" * 100_000 + "]" * 100_000 + "}",
    ],
)
def test_oversized_numbers_and_nesting_raise_parse_error(text):
    with pytest.raises(AnalysisParseError):
        parse_analysis(text, Timeframe.INTRADAY)
