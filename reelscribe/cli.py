"""Command-line entry point: scrape a URL, transcribe it, print JSON."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from .config import load_config
from .errors import ReelScribeError
from .logging_utils import bind_run_id, configure_logging
from .pipeline import MediaPipeline

LOGGER = logging.getLogger(__name__)
CLIENT_ERROR_EXIT = 2


@dataclass(frozen=True, slots=True)
class RunContext:
    """Captures immutable metadata for a single CLI invocation."""

    trace_id: str
    wall_clock_ns: int

    @property
    def started_at_iso(self) -> str:
        seconds = self.wall_clock_ns / 1_000_000_000
        return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat().replace("+00:00", "Z")


def _log_event(level: int, event: str, context: RunContext, **fields: Any) -> None:
    """Emit structured JSON logs with consistent tracing metadata."""
    payload: dict[str, Any] = {
        "event": event,
        "trace_id": context.trace_id,
        "started_at": context.started_at_iso,
        **fields,
    }
    LOGGER.log(level, json.dumps(payload, default=str, separators=(",", ":")))


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="reelscribe",
        description="Scrape a reel, video, or web page and transcribe its audio.",
    )
    p.add_argument("url")
    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--scrape-only", action="store_true", help="Print scraped metadata without transcribing")
    mode.add_argument("--audio-out", type=Path, help="Write the extracted MP3 to this path (a directory keeps the derived name)")
    p.add_argument("--env-file", type=Path, help="Load settings from this .env file")
    p.add_argument("--compact", action="store_true", help="Print single-line JSON")
    return p


async def run(args: argparse.Namespace, context: RunContext) -> dict[str, Any]:
    config = load_config(args.env_file)
    configure_logging(config)

    async with MediaPipeline(config) as pipeline:
        with bind_run_id(context.trace_id):
            return await _dispatch(pipeline, args, context)


async def _dispatch(pipeline: MediaPipeline, args: argparse.Namespace, context: RunContext) -> dict[str, Any]:
    if args.scrape_only:
        content = await pipeline.dispatch_and_scrape(args.url, run_id=context.trace_id)
        return content.model_dump(mode="json")

    if args.audio_out:
        download = await pipeline.extract_audio_for_url(args.url)
        target = args.audio_out / download.filename if args.audio_out.is_dir() else args.audio_out
        target.write_bytes(download.data)
        _log_event(logging.INFO, "cli.audio_written", context, path=str(target), bytes=len(download.data))
        return {"audio_path": str(target), "bytes": len(download.data), "source_url": download.content.url}

    response = await pipeline.run_full_pipeline(args.url)
    return response.to_api_payload()


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    context = RunContext(
        trace_id=os.getenv("REELSCRIBE_TRACE_ID") or uuid.uuid4().hex,
        wall_clock_ns=time.time_ns(),
    )
    started_ns = time.perf_counter_ns()
    indent = None if args.compact else 2

    try:
        result = asyncio.run(run(args, context))
    except ReelScribeError as exc:
        _log_event(
            logging.ERROR,
            "cli.failed",
            context,
            error_type=type(exc).__name__,
            error_message=exc.detail,
            status=exc.status_code,
        )
        print(json.dumps(exc.to_payload(), indent=indent))
        return CLIENT_ERROR_EXIT if 400 <= exc.status_code < 500 else 1
    except KeyboardInterrupt:
        _log_event(logging.WARNING, "cli.interrupted", context, signal="SIGINT")
        return 130

    duration_ms = round((time.perf_counter_ns() - started_ns) / 1_000_000, 2)
    _log_event(logging.INFO, "cli.completed", context, duration_ms=duration_ms)
    print(json.dumps(result, indent=indent, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
