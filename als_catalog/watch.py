from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler

logger = logging.getLogger(__name__)


class ProjectWatchHandler(FileSystemEventHandler):
    """Queues the folder of every created/modified/moved-in project document."""

    def __init__(
        self,
        queue: asyncio.Queue[Path],
        extension: str,
        *,
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        super().__init__()
        self.queue = queue
        self.extension = extension.lower()
        self.loop = loop

    def on_created(self, event: FileSystemEvent) -> None:
        self._maybe_enqueue(event.src_path, event.is_directory)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._maybe_enqueue(event.src_path, event.is_directory)

    def on_moved(self, event: FileSystemEvent) -> None:
        # Live saves through a temp file that is renamed over the set.
        self._maybe_enqueue(getattr(event, "dest_path", "") or event.src_path, event.is_directory)

    def _maybe_enqueue(self, src: str | bytes, is_directory: bool) -> None:
        if is_directory:
            return
        if isinstance(src, bytes):
            src = src.decode("utf-8", errors="replace")
        path = Path(src)
        if path.suffix.lower() != self.extension:
            return
        logger.debug("Queued project change: %s", path.parent)
        self.loop.call_soon_threadsafe(self.queue.put_nowait, path.parent)
