from __future__ import annotations

from pathlib import Path
from typing import Iterable

from ..devices import strip_devices, write_document
from ..discovery import ProjectDiscoverer
from ..document import read_document
from ..errors import MissingDocumentError


def run(
    discoverer: ProjectDiscoverer,
    folder: Path,
    devices: Iterable[str],
    *,
    out: Path,
) -> int:
    document_path = discoverer.find_document(folder)
    if document_path is None:
        raise MissingDocumentError(folder, discoverer.library.document_extension)
    if out.resolve() == document_path.resolve():
        raise SystemExit("Refusing to overwrite the original set; choose another --out path.")
    values = set(devices)
    document = read_document(document_path, max_size=discoverer.scan.max_document_bytes)
    text, removed = strip_devices(document.root, values)
    write_document(out, text)
    print(f"Removed {removed} element(s) from {document_path.name}; wrote {out}")
    return removed
