"""Tests for themesync.infrastructure.watch and the watch service."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, Tuple

import httpx
from watchdog.events import (
    DirCreatedEvent,
    DirDeletedEvent,
    DirModifiedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from themesync.domain.sync import WatchService, build_components
from themesync.infrastructure.watch import WatchEventBridge


def collect() -> Tuple[WatchEventBridge, List[Tuple[str, Path]]]:
    events: List[Tuple[str, Path]] = []
    return WatchEventBridge(lambda kind, path: events.append((kind, path))), events


def test_watchdog_events_map_to_change_kinds() -> None:
    bridge, events = collect()

    bridge.dispatch(FileCreatedEvent("/p/scripts/a.js"))
    bridge.dispatch(FileModifiedEvent("/p/scripts/a.js"))
    bridge.dispatch(FileDeletedEvent("/p/scripts/a.js"))
    bridge.dispatch(DirCreatedEvent("/p/scripts/widgets"))
    bridge.dispatch(DirDeletedEvent("/p/scripts/widgets"))

    assert events == [
        ("add", Path("/p/scripts/a.js")),
        ("change", Path("/p/scripts/a.js")),
        ("unlink", Path("/p/scripts/a.js")),
        ("addDir", Path("/p/scripts/widgets")),
        ("unlinkDir", Path("/p/scripts/widgets")),
    ]


def test_directory_modifications_are_dropped() -> None:
    bridge, events = collect()

    bridge.dispatch(DirModifiedEvent("/p/theme/assets"))

    assert events == []


def test_move_is_unlink_then_add() -> None:
    bridge, events = collect()

    bridge.dispatch(FileMovedEvent("/p/theme/snippets/a.liquid", "/p/theme/snippets/b.liquid"))

    assert events == [
        ("unlink", Path("/p/theme/snippets/a.liquid")),
        ("add", Path("/p/theme/snippets/b.liquid")),
    ]


def test_sink_errors_do_not_reach_the_observer() -> None:
    def broken(kind: str, path: Path) -> None:
        raise RuntimeError("loop closed")

    WatchEventBridge(broken).dispatch(FileCreatedEvent("/p/x"))


def test_watch_start_clears_stale_scratch_files(project, config, minifier, compiler) -> None:
    config.server.port = 0
    components = build_components(
        config,
        minifier=minifier,
        compiler=compiler,
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={})),
    )
    stale = components.local_data.artifact_path("leftover.min.js")
    stale.write_text("var stale;", encoding="utf-8")
    seen: List[List[str]] = []

    async def main() -> None:
        stop = asyncio.Event()

        def on_ready(url: str) -> None:
            seen.append(components.local_data.list())
            stop.set()

        await WatchService(config, components, on_ready=on_ready).run(stop)

    asyncio.run(main())

    assert seen == [[]]
    assert not stale.exists()
