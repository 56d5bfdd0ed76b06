from __future__ import annotations

import argparse
import asyncio
import logging
import os
from pathlib import Path
from typing import Iterable

from rich.console import Console
from rich.table import Table

from .keywords import describe_mood
from .logging_utils import configure_logging, get_log_path, log_exception
from .params import ParseResult
from .pipeline import MoodPipeline
from .presets import PresetCatalog, embed_catalog, load_catalog
from .providers.ollama import OllamaClient
from .settings import EngineSettings, load_settings

_LOGGER = logging.getLogger("moodnav.cli")
_CONSOLE = Console()


def _render_error(context: str, exc: BaseException) -> None:
    _CONSOLE.print(f"[bold red]{context} failed:[/] {type(exc).__name__}: {exc}")
    _CONSOLE.print(f"[dim]Details in {get_log_path()}[/]")


def _print_lines(lines: Iterable[str]) -> None:
    for line in lines:
        _CONSOLE.print(line)


def _render_result(text: str, result: ParseResult) -> None:
    table = Table(title=f"Mood: {text!r}", show_header=False)
    table.add_row("method", result.method)
    table.add_row("confidence", f"{result.confidence:.2f}")
    table.add_row("category", result.category or "-")
    table.add_row("time", f"{result.processing_time_ms:.1f} ms")
    if result.params is not None:
        params = result.params
        table.add_row("summary", describe_mood(params))
        table.add_row("energy", f"{params.energy:.2f}")
        table.add_row("valence", f"{params.valence:.2f}")
        table.add_row("danceability", f"{params.danceability:.2f}")
        table.add_row("tempo", f"{params.tempo.min:.0f}-{params.tempo.max:.0f} BPM")
        if params.acousticness is not None:
            table.add_row("acousticness", f"{params.acousticness:.2f}")
        if params.instrumentalness is not None:
            table.add_row("instrumentalness", f"{params.instrumentalness:.2f}")
    _CONSOLE.print(table)


def _render_catalog(catalog: PresetCatalog) -> None:
    table = Table(title=f"Presets (v{catalog.version})")
    table.add_column("category")
    table.add_column("phrases", justify="right")
    table.add_column("vectors", justify="right")
    table.add_column("summary")
    for preset in catalog:
        table.add_row(
            preset.category,
            str(len(preset.phrases)),
            str(len(preset.embeddings)),
            describe_mood(preset.params),
        )
    _CONSOLE.print(table)


async def _parse(settings: EngineSettings, text: str, quick: bool) -> ParseResult:
    pipeline = MoodPipeline.from_settings(settings)
    if quick:
        return pipeline.resolve_quick(text)
    return await pipeline.resolve(text)


async def _doctor(settings: EngineSettings) -> list[str]:
    pipeline = MoodPipeline.from_settings(settings)
    status = await pipeline.status()
    models = ", ".join(status.local_models) or "none"
    return [
        f"Ollama URL: {settings.ollama_url}",
        f"Ollama running: {status.local_model_running}",
        f"Pulled models: {models}",
        f"LLM model {settings.llm_model!r} available: {status.llm_available}",
        f"Preset catalog: {settings.presets_path or 'built-in'} ({len(pipeline.catalog)} presets)",
        f"Preset embeddings present: {status.has_embeddings}",
        f"Log file: {get_log_path()}",
        "Hints:",
        f"- Run `ollama pull {settings.llm_model}` and `ollama pull {settings.embed_model}`.",
        "- Run `moodnav presets --embed --output presets.json` and point MOODNAV_PRESETS at it.",
    ]


async def _embed_presets(settings: EngineSettings, output: Path) -> Path:
    client = OllamaClient(settings)
    catalog = load_catalog(settings.presets_path)
    embedded = await embed_catalog(catalog, client, embed_model=settings.embed_model)
    return embedded.to_json(output, model=settings.llm_model)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="moodnav")
    sub = parser.add_subparsers(dest="command", required=True)

    parse = sub.add_parser("parse", help="Resolve a mood description into target params.")
    parse.add_argument("text", type=str)
    parse.add_argument("--quick", action="store_true", help="Skip the local model tiers.")

    sub.add_parser("doctor", help="Check the local model server and preset catalog.")

    presets = sub.add_parser("presets", help="List presets or write them with embeddings.")
    presets.add_argument("--embed", action="store_true", help="Compute phrase embeddings.")
    presets.add_argument("--output", type=Path, default=Path("presets.json"))
    return parser


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    try:
        parser = build_parser()
        args = parser.parse_args(argv)
        settings = load_settings()

        if args.command == "parse":
            with _CONSOLE.status("Resolving mood"):
                result = asyncio.run(_parse(settings, args.text, args.quick))
            _render_result(args.text, result)
            return 0

        if args.command == "doctor":
            _print_lines(asyncio.run(_doctor(settings)))
            return 0

        if args.command == "presets":
            if args.embed:
                with _CONSOLE.status("Embedding preset phrases"):
                    path = asyncio.run(_embed_presets(settings, args.output))
                _CONSOLE.print(f"Wrote embedded catalog to {path}")
                return 0
            _render_catalog(load_catalog(settings.presets_path))
            return 0

        parser.print_help()
        return 1
    except Exception as exc:
        debug = bool(os.environ.get("MOODNAV_DEBUG"))
        _LOGGER.warning("moodnav CLI failed: %s", exc, exc_info=debug)
        log_exception("moodnav CLI", exc)
        _render_error("moodnav CLI", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
