#!/usr/bin/env python3
"""
typelog replay - command line entry point

Replays a note's edit history in the terminal, or serves the replay
controls over HTTP.
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

import uvicorn

from typelog.config import ReplayConfig, load_config, setup_logging
from typelog.documents import JsonDocumentSource
from typelog.replay import (
    AsyncioFrameScheduler,
    ReplayCoordinator,
    ReplayListener,
    split_selection,
)
from typelog.shared.errors import DocumentNotFoundError
from typelog.shared.protocol import PlaybackPhase, ReplayFrame

logger = logging.getLogger(__name__)


class TerminalPrinter(ReplayListener):
    """Prints the replayed text whenever it changes."""

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout
        self._last = None
        self.finished = asyncio.Event()

    def on_frame(self, frame: ReplayFrame) -> None:
        state = frame.state
        key = (state.text, state.selection_start, state.selection_end)
        if key == self._last:
            return
        self._last = key

        seg = split_selection(state.text, state.selection_start, state.selection_end)
        if seg.has_selection:
            caret = f"{seg.before}[{seg.selected}]{seg.after}"
        else:
            caret = f"{seg.before}|{seg.after}"
        self.stream.write(f"[{frame.virtual_time / 1000:7.2f}s] {caret!r}\n")
        self.stream.flush()

    def on_phase_change(self, phase: PlaybackPhase) -> None:
        if phase in (PlaybackPhase.FINISHED, PlaybackPhase.STOPPED):
            self.finished.set()


def build_coordinator(
    config: ReplayConfig,
    notes_path: Optional[str] = None,
    note_id: Optional[str] = None,
) -> ReplayCoordinator:
    """Wire a coordinator from config and command line overrides."""
    path = notes_path or config.documents.path
    if not path:
        raise ValueError("No notes file given (use --notes or documents.path)")

    documents = JsonDocumentSource(path)
    active = note_id or config.documents.active
    if active is None:
        listed = documents.list_documents()
        if listed:
            active = listed[0].id
    if active is not None:
        documents.select(active)

    coordinator = ReplayCoordinator(
        documents=documents,
        scheduler=AsyncioFrameScheduler(frame_interval_ms=config.replay.frame_interval_ms),
        speed=config.replay.default_speed,
        default_speed=config.replay.default_speed,
        speeds=config.replay.speeds,
    )
    return coordinator


async def run_headless(coordinator: ReplayCoordinator) -> bool:
    """Replay the active document to stdout until it finishes."""
    printer = TerminalPrinter()
    coordinator.refresh()
    coordinator.add_listener(printer)

    if not coordinator.start():
        print(coordinator.status)
        return False

    try:
        await printer.finished.wait()
    finally:
        coordinator.stop()

    return True


def main():
    parser = argparse.ArgumentParser(description="typelog note history replay")
    parser.add_argument(
        "-c", "--config",
        default="config/config.yaml",
        help="Path to configuration file",
    )
    parser.add_argument("--notes", help="Notes export (JSON) to load")
    parser.add_argument("--note", help="Id of the note to replay")
    parser.add_argument("--speed", help="Playback speed multiplier")
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Serve the replay API instead of replaying in the terminal",
    )

    args = parser.parse_args()

    config = load_config(args.config)
    setup_logging(config.logging)

    try:
        coordinator = build_coordinator(config, args.notes, args.note)
    except (ValueError, RuntimeError, DocumentNotFoundError, OSError) as e:
        logger.error(str(e))
        sys.exit(1)

    if args.speed is not None:
        coordinator.set_speed(args.speed)

    if args.serve:
        from typelog.api import create_app

        app = create_app(coordinator)
        uvicorn.run(
            app,
            host=config.server.host,
            port=config.server.port,
            log_level=config.logging.level.lower(),
        )
        return

    try:
        ok = asyncio.run(run_headless(coordinator))
    except KeyboardInterrupt:
        ok = True
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
