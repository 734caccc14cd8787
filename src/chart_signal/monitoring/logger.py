"""Console rendering helpers using Rich."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from chart_signal.core.models import ChartAnalysis, HistoryItem, RiskLevel, SignalAction


class AnalysisLogger:
    _LEVEL_STYLES = {
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "red",
    }
    _ACTION_STYLES = {
        SignalAction.BUY_LONG: "green",
        SignalAction.BUY_SHORT: "dark_orange",
        SignalAction.SELL: "red",
        SignalAction.HOLD: "grey62",
    }
    _RISK_STYLES = {
        RiskLevel.LOW: "green",
        RiskLevel.MEDIUM: "yellow",
        RiskLevel.HIGH: "red",
    }

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    def log_event(
        self,
        message: str,
        *,
        level: str = "info",
        details: Mapping[str, Any] | None = None,
    ) -> None:
        """Render a short status message (optionally with structured details)."""
        style = self._LEVEL_STYLES.get(level, "white")
        if details:
            table = Table.grid(expand=True)
            table.add_column(justify="right", style="bold")
            table.add_column(ratio=1)
            for key, value in details.items():
                table.add_row(escape(str(key)), escape(str(value)))
            panel = Panel(table, title=f"[bold]{escape(message)}", border_style=style)
            self._console.print(panel)
            return
        self._console.print(f"[bold {style}]{escape(message)}[/bold {style}]")

    def info(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        self.log_event(message, level="info", details=details)

    def success(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        self.log_event(message, level="success", details=details)

    def warning(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        self.log_event(message, level="warning", details=details)

    def error(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        self.log_event(message, level="error", details=details)

    def log_analysis(self, analysis: ChartAnalysis, *, title: str = "Chart Analysis") -> None:
        signal = analysis.signal
        action_style = self._ACTION_STYLES.get(signal.action, "white")
        risk_style = self._RISK_STYLES.get(signal.risk_level, "white")
        table = Table(title=title, show_lines=True, show_header=False)
        table.add_column("Field", style="bold")
        table.add_column("Value")
        table.add_row("Action", f"[bold {action_style}]{signal.action.value.replace('_', ' ')}[/]")
        table.add_row("Confidence", f"{signal.confidence}%")
        table.add_row("Risk", f"[{risk_style}]{signal.risk_level.value}[/]")
        table.add_row("Timeframe", signal.timeframe.value)
        table.add_row("Indicators", escape(", ".join(signal.indicators)) or "-")
        table.add_row("Reasoning", escape(signal.reasoning))
        table.add_row("Market", escape(analysis.market_condition))
        table.add_row("Levels", escape(analysis.support_resistance))
        table.add_row("Trend", escape(analysis.trend_analysis))
        table.add_row("Volume", escape(analysis.volume_analysis))
        self._console.print(table)

    def log_history(self, items: Sequence[HistoryItem]) -> None:
        if not items:
            self.info("No analyses stored yet.")
            return
        table = Table(title=f"History ({len(items)})")
        for column in ("ID", "When", "Timeframe", "Indicators", "Action", "Conf."):
            table.add_column(column)
        for item in items:
            signal = item.analysis.signal
            table.add_row(
                escape(item.id),
                item.timestamp.astimezone().strftime("%Y-%m-%d %H:%M:%S"),
                item.timeframe.value,
                escape(", ".join(item.indicators)) or "-",
                f"[{self._ACTION_STYLES.get(signal.action, 'white')}]{signal.action.value}[/]",
                f"{signal.confidence}%",
            )
        self._console.print(table)

    def print_text(self, title: str, text: str) -> None:
        self._console.print(Panel(escape(text), title=f"[bold]{escape(title)}", border_style="cyan"))

    def print_json(self, data: Mapping[str, Any]) -> None:
        self._console.print_json(data=data)
