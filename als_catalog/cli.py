from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional, Sequence

from .app import CatalogApp
from .commands import list_projects as cmd_list
from .commands import strip_devices as cmd_strip_devices
from .commands import tags as cmd_tags
from .config import load_settings
from .errors import CatalogError

LOG_FORMAT = "%(levelname).1s | %(name)s | %(message)s"

C_RESET = "\033[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",  # Cyan
    logging.INFO: "\033[37m",  # Light gray
    logging.WARNING: "\033[33m",  # Yellow
    logging.ERROR: "\033[31m",  # Red
    logging.CRITICAL: "\033[35m",  # Magenta
}


class ShortPathFormatter(logging.Formatter):
    def __init__(self, fmt: str, roots: list[Path]) -> None:
        super().__init__(fmt)
        self.roots = [str(root) for root in roots if root]

    def _shorten(self, message: str) -> str:
        for root in self.roots:
            if not message:
                break
            message = message.replace(f"{root}/", "")
            message = message.replace(root, "")
        return message

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        return self._shorten(message)


class ColorFormatter(ShortPathFormatter):
    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        if not color:
            return message
        return f"{color}{message}{C_RESET}"


class WarningBufferHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.WARNING)
        self.records: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
        except Exception:  # pragma: no cover
            msg = record.getMessage()
        self.records.append(msg)


def configure_logging(level_name: str, roots: list[Path]) -> WarningBufferHandler:
    log_level = getattr(logging, level_name.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level)

    color_handler = logging.StreamHandler()
    color_handler.setFormatter(ColorFormatter(LOG_FORMAT, roots))
    root_logger.addHandler(color_handler)

    warn_buffer = WarningBufferHandler()
    warn_buffer.setFormatter(ShortPathFormatter(LOG_FORMAT, roots))
    root_logger.addHandler(warn_buffer)

    logging.getLogger("watchdog").setLevel(logging.WARNING)
    return warn_buffer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Catalog Ableton Live project folders")
    parser.add_argument("--config", type=Path, help="Path to config.yaml")
    parser.add_argument("--catalog", type=Path, help="Catalog file (overrides config)")
    parser.add_argument("--log-level", default="INFO", help="Python logging level")

    subparsers = parser.add_subparsers(dest="command", required=True)
    scan_parser = subparsers.add_parser("scan", help="Find projects below folders and add them to the catalog")
    scan_parser.add_argument(
        "paths",
        nargs="*",
        type=Path,
        help="Folders to scan (default: library.roots from the config)",
    )
    list_parser = subparsers.add_parser("list", help="Show the saved catalog")
    list_parser.add_argument("--json", action="store_true", help="Emit JSON to stdout")
    subparsers.add_parser("refresh", help="Re-read every catalogued project and drop vanished folders")
    tags_parser = subparsers.add_parser("tags", help="Show sidecar tags of a project folder")
    tags_parser.add_argument("folder", type=Path)
    tags_parser.add_argument("--json", action="store_true", help="Emit JSON to stdout")
    strip_parser = subparsers.add_parser(
        "strip-devices", help="Write a copy of a project's set without the named devices"
    )
    strip_parser.add_argument("folder", type=Path)
    strip_parser.add_argument(
        "--device",
        dest="devices",
        action="append",
        required=True,
        help="Device value to remove (repeatable)",
    )
    strip_parser.add_argument("--out", type=Path, required=True, help="Destination .als file")
    subparsers.add_parser("clear", help="Forget every catalogued project")
    subparsers.add_parser("watch", help="Keep the catalog updated while projects are saved")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = load_settings(args.config)
    warn_buffer = configure_logging(args.log_level, list(settings.library.roots))
    app = CatalogApp.create(settings, catalog_path=args.catalog)

    try:
        match args.command:
            case "scan":
                roots = args.paths or list(settings.library.roots)
                if not roots:
                    parser.error("No folders given and library.roots is empty")
                found = asyncio.run(app.scan(roots))
                print(f"Found {len(found)} project(s); catalog saved to {app.store.path}")
            case "list":
                cmd_list.run(app.store, json_output=args.json)
            case "refresh":
                projects = app.refresh()
                print(f"Catalog holds {len(projects)} project(s)")
            case "tags":
                cmd_tags.run(app.tags, args.folder, json_output=args.json)
            case "strip-devices":
                cmd_strip_devices.run(app.discoverer, args.folder, args.devices, out=args.out)
            case "clear":
                app.store.clear()
                print(f"Cleared {app.store.path}")
            case "watch":
                try:
                    asyncio.run(app.watch())
                except KeyboardInterrupt:
                    pass
            case _:
                parser.error("Unknown command")
    except CatalogError as exc:
        logging.getLogger(__name__).error("%s", exc)
        raise SystemExit(1) from exc
    finally:
        if app.discoverer.skipped:
            print(f"\nSkipped {len(app.discoverer.skipped)} unreadable folder(s).")
        if warn_buffer.records:
            print("\n\033[33mWarnings/Errors summary:\033[0m")
            for line in warn_buffer.records:
                print(f" - {line}")


if __name__ == "__main__":  # pragma: no cover
    main()
