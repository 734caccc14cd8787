"""Command line front end for the chart analysis assistant."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Sequence

from chart_signal.ai.openrouter_client import ChartAnalysisClient
from chart_signal.ai.parsing import analysis_to_json
from chart_signal.core.config import Config
from chart_signal.core.errors import HistoryItemNotFoundError, InvalidRequestError
from chart_signal.core.models import AnalysisRequest, Timeframe
from chart_signal.monitoring.logger import AnalysisLogger
from chart_signal.session.analysis_session import AnalysisSession
from chart_signal.session.image_source import load_image_base64
from chart_signal.storage.history import HistoryStore
from chart_signal.storage.kv_store import JsonFileStorage

DEFAULT_INDICATORS = ("RSI", "MACD")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="AI trading chart assistant (educational use only)")
    parser.add_argument("--config", type=str, help="Path to YAML config", default=None)
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    analyze = commands.add_parser("analyze", help="Analyze a chart image")
    analyze.add_argument("image", help="Path to the chart image (PNG)")
    analyze.add_argument(
        "--timeframe",
        type=str.upper,
        choices=[tf.value for tf in Timeframe],
        default=Timeframe.INTRADAY.value,
    )
    analyze.add_argument(
        "--indicator",
        dest="indicators",
        action="append",
        help="Indicator to consider (repeatable, default: RSI and MACD)",
    )
    analyze.add_argument("--symbol", default=None)
    analyze.add_argument("--no-save", action="store_true", help="Do not store the result in history")
    analyze.add_argument("--json", action="store_true", help="Print the raw analysis JSON")

    commands.add_parser("probe", help="Check that the upstream API answers")

    insight = commands.add_parser("insight", help="Brief market insight for a symbol")
    insight.add_argument("symbol")

    history = commands.add_parser("history", help="Browse stored analyses")
    history_cmds = history.add_subparsers(dest="history_command", required=True)
    history_cmds.add_parser("list")
    show = history_cmds.add_parser("show")
    show.add_argument("id")
    delete = history_cmds.add_parser("delete")
    delete.add_argument("id")
    history_cmds.add_parser("clear")
    return parser


async def run_command(args: argparse.Namespace, config: Config, out: AnalysisLogger) -> int:
    history = HistoryStore(JsonFileStorage(config.history.path), config.history.storage_key)
    history.load()

    if args.command == "history":
        return _run_history(args, history, out)

    async with ChartAnalysisClient(config.ai) as client:
        if args.command == "probe":
            ok = await client.test_connection()
            if ok:
                out.success("API connection OK")
                return 0
            out.error("API connection failed")
            return 1

        if args.command == "insight":
            out.print_text(f"Market insight: {args.symbol}", await client.get_insight(args.symbol))
            return 0

        request = AnalysisRequest(
            image_base64=load_image_base64(args.image),
            timeframe=Timeframe(args.timeframe),
            indicators=list(args.indicators or DEFAULT_INDICATORS),
            symbol=args.symbol,
        )
        session = AnalysisSession(client, history)
        analysis = await session.run(request, save=not args.no_save)
        if args.json:
            out.print_json(analysis_to_json(analysis))
        else:
            out.log_analysis(analysis)
        return 0


def _run_history(args: argparse.Namespace, history: HistoryStore, out: AnalysisLogger) -> int:
    if args.history_command == "list":
        out.log_history(history.items)
    elif args.history_command == "show":
        item = history.get(args.id)
        out.info(
            "Stored analysis",
            details={
                "id": item.id,
                "when": item.timestamp.astimezone().isoformat(timespec="seconds"),
                "timeframe": item.timeframe.value,
                "indicators": ", ".join(item.indicators) or "-",
            },
        )
        out.log_analysis(item.analysis)
    elif args.history_command == "delete":
        if not history.remove(args.id):
            out.warning(f"No stored analysis with id {args.id}; nothing deleted")
            return 1
        out.success(f"Deleted {args.id}")
    else:
        history.clear()
        out.success("History cleared")
    return 0


def cli(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    out = AnalysisLogger()
    try:
        config = Config.load(args.config)
        return asyncio.run(run_command(args, config, out))
    except InvalidRequestError as exc:
        out.error(str(exc))
        return 2
    except HistoryItemNotFoundError as exc:
        out.error(f"No stored analysis with id {exc.args[0]}")
        return 1
    except FileNotFoundError as exc:
        out.error(str(exc))
        return 2


if __name__ == "__main__":
    sys.exit(cli())
