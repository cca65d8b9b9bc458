from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .fs_utils import default_catalog_path


class LibrarySettings(BaseModel):
    roots: List[Path] = Field(default_factory=list)
    document_extension: str = ".als"
    exclude_patterns: List[str] = Field(default_factory=list)

    @field_validator("roots", mode="before")
    @classmethod
    def _expand_roots(cls, values: Optional[List[str]]) -> List[Path]:
        return [Path(v).expanduser().resolve() for v in values or []]

    @field_validator("document_extension")
    @classmethod
    def _normalize_extension(cls, value: str) -> str:
        value = value.strip().lower()
        return value if value.startswith(".") else f".{value}"


class CatalogSettings(BaseModel):
    path: Path = Field(default_factory=default_catalog_path)

    @field_validator("path", mode="before")
    @classmethod
    def _expand_path(cls, value: str | Path) -> Path:
        return Path(value).expanduser().resolve()


class ScanSettings(BaseModel):
    max_document_bytes: int = Field(default=512 * 1024 * 1024, gt=0)
    worker_concurrency: int = Field(default=4, ge=1)


class TagSettings(BaseModel):
    sidecar_folder: str = "Ableton Folder Info"
    variant: str = "outline"


class Settings(BaseModel):
    library: LibrarySettings = LibrarySettings()
    catalog: CatalogSettings = CatalogSettings()
    scan: ScanSettings = ScanSettings()
    tags: TagSettings = TagSettings()

    @classmethod
    def load(cls, path: Path) -> "Settings":
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
        return cls.model_validate(raw or {})


def find_config(explicit_path: Optional[Path]) -> Optional[Path]:
    if explicit_path:
        return explicit_path
    cwd = Path.cwd()
    for candidate in (cwd / "config.yaml", cwd / "config.yml"):
        if candidate.exists():
            return candidate
    return None


def load_settings(explicit_path: Optional[Path] = None) -> Settings:
    path = find_config(explicit_path)
    if path is None:
        return Settings()
    return Settings.load(path)
