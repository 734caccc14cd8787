"""Configuration loading utilities for the chart analysis assistant."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List

import yaml
from pydantic import BaseModel, Field

CONFIG_ENV_PREFIX = "CHART_SIGNAL_"


class AiConfig(BaseModel):
    api_url: str = "https://openrouter.ai/api/v1/chat/completions"
    api_key: str | None = None
    analysis_models: List[str] = Field(
        default_factory=lambda: [
            "google/gemma-3-27b-it:free",
            "meta-llama/llama-3.2-11b-vision-instruct:free",
        ],
        min_length=1,
    )
    probe_models: List[str] = Field(
        default_factory=lambda: [
            "google/gemma-3-27b-it:free",
            "meta-llama/llama-3.3-8b-instruct:free",
            "mistralai/mistral-7b-instruct:free",
        ],
        min_length=1,
    )
    insight_model: str = "google/gemma-3-27b-it:free"
    timeout_seconds: float = 30.0
    analysis_max_tokens: int = 2000
    temperature: float = 0.7
    retry_wait_seconds: float = 0.0
    # Attribution headers requested by OpenRouter.
    referer: str = "https://aitrade.app"
    title: str = "AI Trading Assistant"


class HistoryConfig(BaseModel):
    path: Path = Field(default_factory=lambda: Path.home() / ".chart_signal" / "storage.json")
    storage_key: str = "trading_analysis_history"


class Config(BaseModel):
    ai: AiConfig = Field(default_factory=AiConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)

    @staticmethod
    def load(path: str | Path | None = None, env_prefix: str = CONFIG_ENV_PREFIX) -> "Config":
        """Load config from YAML file if provided, then apply environment overrides."""
        if path is None:
            config = Config()
        else:
            config_path = Path(path)
            if not config_path.exists():
                raise FileNotFoundError(f"Config file not found: {config_path}")
            data = yaml.safe_load(config_path.read_text()) or {}
            config = Config(**data)
        return _apply_env_overrides(config, env_prefix=env_prefix)


def _apply_env_overrides(config: Config, env_prefix: str) -> Config:
    api_key = os.getenv(f"{env_prefix}API_KEY") or os.getenv("OPENROUTER_API_KEY")
    api_url = os.getenv(f"{env_prefix}API_URL")
    history_path = os.getenv(f"{env_prefix}HISTORY_PATH")

    ai_updates: dict[str, object] = {}
    if api_key:
        ai_updates["api_key"] = api_key
    if api_url:
        ai_updates["api_url"] = api_url

    ai_cfg = config.ai.model_copy(update=ai_updates) if ai_updates else config.ai
    history_cfg = config.history
    if history_path:
        history_cfg = history_cfg.model_copy(update={"path": Path(history_path).expanduser()})

    return Config(ai=ai_cfg, history=history_cfg)
