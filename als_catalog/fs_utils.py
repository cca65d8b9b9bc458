from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

APP_DIR_NAME = "AbletonProjectManager"
CATALOG_FILENAME = "projects.json"


def normalize_path(path: Path | str) -> str:
    """Key used to compare project folders; case-insensitive on every platform."""
    return os.path.normpath(os.path.abspath(os.fspath(path))).casefold()


def same_path(a: Path | str, b: Path | str) -> bool:
    return normalize_path(a) == normalize_path(b)


def user_data_dir() -> Path:
    if sys.platform.startswith("win"):
        base = os.environ.get("APPDATA")
        root = Path(base) if base else Path.home() / "AppData" / "Roaming"
    elif sys.platform == "darwin":
        root = Path.home() / "Library" / "Application Support"
    else:
        base = os.environ.get("XDG_DATA_HOME")
        root = Path(base) if base else Path.home() / ".local" / "share"
    return root / APP_DIR_NAME


def default_catalog_path() -> Path:
    return user_data_dir() / CATALOG_FILENAME


def write_bytes_atomic(path: Path, data: bytes) -> None:
    """Write to a sibling temp file and rename it over ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def write_text_atomic(path: Path, text: str) -> None:
    write_bytes_atomic(path, text.encode("utf-8"))
