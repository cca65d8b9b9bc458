from __future__ import annotations

import fnmatch
import logging
import os
from pathlib import Path
from threading import Lock
from typing import List, Optional

from .config import LibrarySettings, ScanSettings
from .document import read_document
from .errors import CatalogError, MissingDocumentError
from .extractor import extract
from .models import ProjectRecord

logger = logging.getLogger(__name__)


class ProjectDiscoverer:
    """Finds project folders below a root and turns each into a ``ProjectRecord``.

    A folder that directly holds a project document is a project folder.
    The root is loaded and its immediate subfolders still checked; any
    other project folder is never descended into. Failures are recorded
    per folder in ``skipped`` and never abort the walk.
    """

    def __init__(
        self,
        library: Optional[LibrarySettings] = None,
        scan: Optional[ScanSettings] = None,
    ) -> None:
        self.library = library or LibrarySettings()
        self.scan = scan or ScanSettings()
        self._ext = self.library.document_extension.lower()
        self.skipped: dict[Path, str] = {}
        self._skip_lock = Lock()

    def find_document(self, folder: Path) -> Optional[Path]:
        """First project document in ``folder`` by case-folded filename."""
        try:
            with os.scandir(folder) as it:
                names = [
                    entry.name
                    for entry in it
                    if entry.name.lower().endswith(self._ext) and entry.is_file()
                ]
        except OSError:
            return None
        if not names:
            return None
        names.sort(key=lambda name: (name.casefold(), name))
        return folder / names[0]

    def is_project_folder(self, folder: Path) -> bool:
        return self.find_document(folder) is not None

    def load_project(self, folder: Path) -> ProjectRecord:
        folder = Path(os.path.abspath(folder))
        document_path = self.find_document(folder)
        if document_path is None:
            raise MissingDocumentError(folder, self._ext)
        logger.debug("Loading project %s from %s", folder, document_path.name)
        document = read_document(document_path, max_size=self.scan.max_document_bytes)
        return extract(document, folder, document_path)

    def discover(self, root: Path) -> List[ProjectRecord]:
        root = Path(os.path.abspath(root))
        records: List[ProjectRecord] = []
        if self.is_project_folder(root):
            self._try_load(root, records)
        for directory in self._subdirectories(root):
            if self.is_project_folder(directory):
                self._try_load(directory, records)
            else:
                records.extend(self.discover(directory))
        return records

    def _try_load(self, folder: Path, records: List[ProjectRecord]) -> None:
        try:
            records.append(self.load_project(folder))
        except (CatalogError, OSError) as exc:
            logger.warning("Skipping project %s: %s", folder, exc)
            with self._skip_lock:
                self.skipped[folder] = str(exc)

    def _subdirectories(self, folder: Path) -> List[Path]:
        try:
            with os.scandir(folder) as it:
                entries = [
                    Path(entry.path)
                    for entry in it
                    if entry.is_dir(follow_symlinks=False) and not entry.name.startswith(".")
                ]
        except OSError as exc:
            logger.warning("Cannot list %s: %s", folder, exc)
            with self._skip_lock:
                self.skipped[folder] = str(exc)
            return []
        entries.sort(key=lambda p: (p.name.casefold(), p.name))
        return [path for path in entries if not self._is_excluded(path)]

    def _is_excluded(self, path: Path) -> bool:
        rel = str(path)
        for pattern in self.library.exclude_patterns:
            if fnmatch.fnmatch(rel, pattern) or fnmatch.fnmatch(path.name, pattern):
                return True
        return False
