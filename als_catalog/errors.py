"""Exception hierarchy for the project catalog.

Messages say what happened and what the user can do about it, so the
CLI can print them as-is.
"""

from __future__ import annotations

from pathlib import Path


class CatalogError(Exception):
    """Base class for all catalog errors."""


class DecompressionError(CatalogError):
    """The project document is not a valid (or complete) gzip stream."""

    def __init__(self, detail: str, path: Path | None = None) -> None:
        where = f" '{path}'" if path else ""
        super().__init__(
            f"Could not decompress project document{where}: {detail}. "
            f"The file may be truncated or not a Live Set."
        )
        self.path = path
        self.detail = detail


class MalformedDocumentError(CatalogError):
    """The decompressed document is not well-formed XML."""

    def __init__(self, detail: str, path: Path | None = None) -> None:
        where = f" '{path}'" if path else ""
        super().__init__(f"Project document{where} is not valid XML: {detail}.")
        self.path = path
        self.detail = detail


class ScaleDecodeError(CatalogError, IndexError):
    """Scale index outside the lookup table."""

    def __init__(self, index: int, size: int) -> None:
        super().__init__(
            f"Scale type index {index} is outside the known scale table (0-{size - 1}). "
            f"The document is corrupt or was saved by a newer Live version."
        )
        self.index = index
        self.size = size


class MissingDocumentError(CatalogError, FileNotFoundError):
    """A folder claimed to be a project holds no project document."""

    def __init__(self, folder: Path, extension: str = ".als") -> None:
        super().__init__(f"No '{extension}' file found in '{folder}'.")
        self.folder = folder
        self.extension = extension


class StorageReadError(CatalogError):
    """The persisted catalog exists but cannot be read."""

    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(
            f"Could not read catalog '{path}': {detail}. "
            f"Check file permissions or pass --catalog to use another file."
        )
        self.path = path
        self.detail = detail


class StorageWriteError(CatalogError):
    """The persisted catalog cannot be written."""

    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(
            f"Could not write catalog '{path}': {detail}. "
            f"The previous catalog file was left untouched."
        )
        self.path = path
        self.detail = detail
