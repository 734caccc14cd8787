"""Shared data models used across modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Timeframe(str, Enum):
    SCALPING = "SCALPING"
    INTRADAY = "INTRADAY"
    SWING = "SWING"
    POSITION = "POSITION"


class SignalAction(str, Enum):
    HOLD = "HOLD"
    BUY_LONG = "BUY_LONG"
    BUY_SHORT = "BUY_SHORT"
    SELL = "SELL"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


@dataclass
class AnalysisRequest:
    image_base64: str
    timeframe: Timeframe = Timeframe.INTRADAY
    indicators: List[str] = field(default_factory=list)
    symbol: Optional[str] = None


class _WireModel(BaseModel):
    """Base for models stored and exchanged as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class TradingSignal(_WireModel):
    action: SignalAction
    confidence: int = Field(ge=0, le=100)
    reasoning: str
    timeframe: Timeframe
    indicators: List[str] = Field(default_factory=list)
    risk_level: RiskLevel


class ChartAnalysis(_WireModel):
    signal: TradingSignal
    market_condition: str
    support_resistance: str
    trend_analysis: str
    volume_analysis: str


class HistoryItem(_WireModel):
    id: str
    timestamp: datetime
    analysis: ChartAnalysis
    image_base64: str
    timeframe: Timeframe
    indicators: List[str] = Field(default_factory=list)
