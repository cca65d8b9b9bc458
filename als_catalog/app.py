from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from watchdog.observers import Observer

from .config import Settings
from .discovery import ProjectDiscoverer
from .errors import CatalogError
from .models import ProjectRecord
from .store import CatalogStore, dedupe, merge
from .tags import TagExtractor
from .watch import ProjectWatchHandler

logger = logging.getLogger(__name__)


@dataclass
class CatalogApp:
    settings: Settings
    store: CatalogStore
    discoverer: ProjectDiscoverer
    tags: TagExtractor
    projects: List[ProjectRecord] = field(default_factory=list)

    @classmethod
    def create(cls, settings: Settings, catalog_path: Optional[Path] = None) -> "CatalogApp":
        return cls(
            settings=settings,
            store=CatalogStore(catalog_path or settings.catalog.path),
            discoverer=ProjectDiscoverer(settings.library, settings.scan),
            tags=TagExtractor(settings.tags.sidecar_folder, settings.tags.variant),
        )

    async def discover(self, roots: Iterable[Path]) -> List[ProjectRecord]:
        """Discover every root concurrently; results are deduplicated by folder."""
        loop = asyncio.get_running_loop()
        semaphore = asyncio.Semaphore(self.settings.scan.worker_concurrency)

        async def _one(root: Path) -> List[ProjectRecord]:
            async with semaphore:
                return await loop.run_in_executor(None, self.discoverer.discover, root)

        results = await asyncio.gather(*(_one(Path(root)) for root in roots))
        return dedupe(record for batch in results for record in batch)

    async def scan(self, roots: Iterable[Path]) -> List[ProjectRecord]:
        found = await self.discover(roots)
        self.projects = merge(self.store.load(), found)
        self.store.save(self.projects)
        logger.info("Catalogued %d project(s); catalog holds %d", len(found), len(self.projects))
        return found

    def refresh(self) -> List[ProjectRecord]:
        self.projects = self.store.reconcile(self.projects, self.discoverer)
        return self.projects

    def update_folder(self, folder: Path) -> Optional[ProjectRecord]:
        try:
            record = self.discoverer.load_project(folder)
        except (CatalogError, OSError) as exc:
            logger.warning("Could not update %s: %s", folder, exc)
            return None
        if not self.projects:
            self.projects = self.store.load()
        merge(self.projects, [record])
        self.store.save(self.projects)
        logger.info("Updated %s", record.title)
        return record

    async def watch(self) -> None:
        roots = [root for root in self.settings.library.roots if root.is_dir()]
        if not roots:
            raise CatalogError("No library roots to watch. Set library.roots in config.yaml.")
        await self.scan(roots)
        queue: asyncio.Queue[Path] = asyncio.Queue()
        loop = asyncio.get_running_loop()
        handler = ProjectWatchHandler(queue, self.settings.library.document_extension, loop=loop)
        observer = Observer()
        for root in roots:
            observer.schedule(handler, str(root), recursive=True)
        observer.start()
        logger.info("Watching %d root(s) for project changes", len(roots))
        try:
            while True:
                folder = await queue.get()
                try:
                    await loop.run_in_executor(None, self.update_folder, folder)
                except CatalogError:  # pragma: no cover - logged and ignored
                    logger.exception("Failed to update catalog for %s", folder)
                finally:
                    queue.task_done()
        except asyncio.CancelledError:
            logger.debug("Watcher stopping")
            raise
        except KeyboardInterrupt:
            logger.debug("Watcher stopping")
        finally:
            observer.stop()
            observer.join()
