from __future__ import annotations

import logging
from pathlib import Path
from threading import Lock
from typing import Iterable, List, Optional, Protocol

from pydantic import TypeAdapter, ValidationError

from .errors import CatalogError, StorageReadError, StorageWriteError
from .fs_utils import default_catalog_path, write_text_atomic
from .models import ProjectRecord

logger = logging.getLogger(__name__)

_RECORDS = TypeAdapter(List[ProjectRecord])


class Discoverer(Protocol):
    def discover(self, root: Path) -> List[ProjectRecord]: ...


def merge(current: List[ProjectRecord], incoming: Iterable[ProjectRecord]) -> List[ProjectRecord]:
    """Merge ``incoming`` into ``current`` in place; the later record for a path wins."""
    index = {record.key: pos for pos, record in enumerate(current)}
    for record in incoming:
        pos = index.get(record.key)
        if pos is None:
            index[record.key] = len(current)
            current.append(record)
        else:
            current[pos] = record
    return current


def dedupe(records: Iterable[ProjectRecord]) -> List[ProjectRecord]:
    return merge([], records)


class CatalogStore:
    """JSON file holding the list of known projects.

    Single writer per process: ``save`` holds a lock for the whole write and
    replaces the file atomically.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path or default_catalog_path()
        self._lock = Lock()

    def load(self) -> List[ProjectRecord]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StorageReadError(self.path, str(exc)) from exc
        try:
            records = _RECORDS.validate_json(raw)
        except ValidationError as exc:
            logger.warning(
                "Ignoring unreadable catalog %s (%d error(s)): %s",
                self.path,
                exc.error_count(),
                exc.errors(include_url=False)[0]["msg"],
            )
            return []
        return dedupe(records)

    def save(self, records: Iterable[ProjectRecord]) -> None:
        payload = _RECORDS.dump_json(list(records), indent=2, by_alias=True).decode("utf-8")
        with self._lock:
            try:
                write_text_atomic(self.path, payload + "\n")
            except OSError as exc:
                raise StorageWriteError(self.path, str(exc)) from exc
        logger.debug("Saved catalog to %s", self.path)

    def clear(self) -> None:
        with self._lock:
            try:
                self.path.unlink()
            except FileNotFoundError:
                return
            except OSError as exc:
                raise StorageWriteError(self.path, str(exc)) from exc
        logger.info("Cleared catalog %s", self.path)

    def reconcile(self, current: List[ProjectRecord], discoverer: Discoverer) -> List[ProjectRecord]:
        """Bring saved projects back into ``current`` and persist the result.

        Saved folders that still exist are re-scanned; fresh records win. A
        folder that yields nothing or fails to scan keeps its saved record.
        Folders gone from disk are dropped.
        """
        known = {record.key for record in current}
        for saved in self.load():
            if saved.key in known:
                continue
            if not saved.project_folder.is_dir():
                logger.info("Dropping %s: folder no longer exists", saved.project_folder)
                continue
            try:
                fresh = discoverer.discover(saved.project_folder)
            except (CatalogError, OSError) as exc:
                logger.warning("Re-scan of %s failed, keeping saved entry: %s", saved.project_folder, exc)
                fresh = []
            if not fresh:
                current.append(saved)
                known.add(saved.key)
                continue
            for record in fresh:
                if record.key not in known:
                    current.append(record)
                    known.add(record.key)
        self.save(current)
        return current
