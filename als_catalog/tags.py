from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterator, List

from .models import TagRecord

logger = logging.getLogger(__name__)

RDF_NS = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
ABLETON_FOLDER_INFO_NS = "http://ns.ableton.com/xmp/folderinfo/1.0/"

_DESCRIPTION = f"{{{RDF_NS}}}Description"
_BAG = f"{{{RDF_NS}}}Bag"
_LI = f"{{{RDF_NS}}}li"
_ITEMS = f"{{{ABLETON_FOLDER_INFO_NS}}}items"
_KEYWORDS = f"{{{ABLETON_FOLDER_INFO_NS}}}keywords"

DEFAULT_SIDECAR_FOLDER = "Ableton Folder Info"


def iter_keywords(root: ET.Element) -> Iterator[str]:
    """Yield keyword strings from an Ableton folder-info XMP document.

    Layout: Description // items / Bag / li / keywords / Bag / li.
    """
    for description in root.iter(_DESCRIPTION):
        for items in description.iter(_ITEMS):
            for item in items.findall(f"{_BAG}/{_LI}"):
                for keywords in item.findall(_KEYWORDS):
                    for keyword in keywords.findall(f"{_BAG}/{_LI}"):
                        value = (keyword.text or "").strip()
                        if value:
                            yield value


class TagExtractor:
    def __init__(self, sidecar_folder: str = DEFAULT_SIDECAR_FOLDER, variant: str = "outline") -> None:
        self.sidecar_folder = sidecar_folder
        self.variant = variant

    def sidecar_files(self, project_folder: Path) -> List[Path]:
        folder = project_folder / self.sidecar_folder
        if not folder.is_dir():
            logger.debug("No sidecar folder in %s", project_folder)
            return []
        return sorted(
            (path for path in folder.iterdir() if path.suffix.lower() == ".xmp" and path.is_file()),
            key=lambda p: p.name.casefold(),
        )

    def extract(self, project_folder: Path) -> List[TagRecord]:
        tags: List[TagRecord] = []
        seen: set[str] = set()
        for path in self.sidecar_files(project_folder):
            try:
                root = ET.parse(path).getroot()
                values = list(iter_keywords(root))
            except (ET.ParseError, OSError) as exc:
                logger.warning("Skipping sidecar %s: %s", path, exc)
                continue
            for value in values:
                if value in seen:
                    continue
                seen.add(value)
                tags.append(TagRecord.parse(value, variant=self.variant))
        return tags


def extract_tags(project_folder: Path) -> List[TagRecord]:
    return TagExtractor().extract(project_folder)
