"""
File-system watch bridge on top of watchdog
"""
import os
from pathlib import Path
from typing import Callable, Dict

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ...core.logging import get_logger

logger = get_logger(__name__)

# (kind, path) with kind in add | change | unlink | addDir | unlinkDir
EventSink = Callable[[str, Path], None]


class WatchEventBridge(FileSystemEventHandler):
    """
    Translates watchdog events into add/change/unlink/addDir/unlinkDir.

    Callbacks run on the observer thread; the sink is responsible for
    handing events over to the event loop.
    """

    def __init__(self, sink: EventSink):
        super().__init__()
        self.sink = sink

    def _emit(self, kind: str, raw_path) -> None:
        path = Path(os.fsdecode(raw_path))
        logger.debug(f"watch: {kind} {path}")
        try:
            self.sink(kind, path)
        except Exception:
            logger.exception(f"Could not deliver {kind} {path}")

    def on_created(self, event: FileSystemEvent) -> None:
        self._emit("addDir" if event.is_directory else "add", event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        # Directory mtime changes accompany every child event
        if not event.is_directory:
            self._emit("change", event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._emit("unlinkDir" if event.is_directory else "unlink", event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            self._emit("unlinkDir", event.src_path)
            self._emit("addDir", event.dest_path)
        else:
            self._emit("unlink", event.src_path)
            self._emit("add", event.dest_path)


def start_watchers(roots: Dict[str, Path], sink: Callable[[str, str, Path], None]) -> Observer:
    """
    Watch each root recursively with one shared observer.

    Pre-existing files produce no events; only changes made after the
    observer started are reported.

    Args:
        roots: Root name → directory
        sink: Called with (root name, kind, path) on the observer thread

    Returns:
        Started observer; the caller stops and joins it
    """
    observer = Observer()
    for name, directory in roots.items():

        def root_sink(kind: str, path: Path, _name: str = name) -> None:
            sink(_name, kind, path)

        observer.schedule(WatchEventBridge(root_sink), str(directory), recursive=True)
        logger.info(f"Watching {name}: {directory}")
    observer.start()
    return observer
