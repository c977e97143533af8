"""Filesystem watcher that triggers local source reloads."""

from __future__ import annotations

import threading
from collections import defaultdict
from pathlib import Path
from typing import Callable, Iterable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from hover_lookup.core.logging import get_logger

SourceChangeCallback = Callable[[Path], None]

logger = get_logger(__name__)


class SourceEventHandler(FileSystemEventHandler):
    """Dispatch events touching one of the watched source files."""

    def __init__(self, files: set[Path], callback: SourceChangeCallback) -> None:
        super().__init__()
        self.files = files
        self.callback = callback

    def _dispatch_path(self, raw_path: str | bytes) -> None:
        path = Path(raw_path if isinstance(raw_path, str) else raw_path.decode()).resolve()
        if path in self.files:
            self.callback(path)

    def on_created(self, event: FileSystemEvent) -> None:  # pragma: no cover - requires filesystem
        if not event.is_directory:
            self._dispatch_path(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:  # pragma: no cover - requires filesystem
        if not event.is_directory:
            self._dispatch_path(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:  # pragma: no cover - requires filesystem
        if not event.is_directory:
            self._dispatch_path(event.dest_path)

    def on_deleted(self, event: FileSystemEvent) -> None:  # pragma: no cover - requires filesystem
        if not event.is_directory:
            self._dispatch_path(event.src_path)


class SourceWatcher:
    """High-level wrapper around a watchdog observer for source files."""

    def __init__(self, callback: SourceChangeCallback) -> None:
        self.callback = callback
        self._observer: BaseObserver | None = None
        self._lock = threading.Lock()
        self._files: set[Path] = set()

    @property
    def watching(self) -> set[Path]:
        return set(self._files)

    def start(self, paths: Iterable[Path]) -> None:
        """(Re)start watching the given files; missing parent directories are skipped."""
        self.stop()
        files = {Path(path).expanduser().resolve() for path in paths}
        by_directory: dict[Path, set[Path]] = defaultdict(set)
        for path in files:
            if path.parent.is_dir():
                by_directory[path.parent].add(path)
            else:
                logger.warning("Not watching %s: directory does not exist", path)
        if not by_directory:
            return
        observer = Observer()
        for directory, directory_files in by_directory.items():
            handler = SourceEventHandler(directory_files, self.callback)
            observer.schedule(handler, str(directory), recursive=False)
        with self._lock:
            self._observer = observer
            self._files = files
            observer.start()

    def stop(self) -> None:
        with self._lock:
            observer, self._observer = self._observer, None
            self._files = set()
        if observer is None:
            return
        observer.stop()
        observer.join(timeout=5)


__all__ = ["SourceWatcher", "SourceChangeCallback"]
