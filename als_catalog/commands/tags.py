from __future__ import annotations

from pathlib import Path

from ..tags import TagExtractor
from .output import format_tag, tags_json


def run(extractor: TagExtractor, folder: Path, *, json_output: bool = False) -> None:
    tags = extractor.extract(folder)
    if json_output:
        print(tags_json(tags))
        return
    if not tags:
        print(f"No tags found in {folder / extractor.sidecar_folder}")
        return
    for tag in tags:
        print(format_tag(tag))
