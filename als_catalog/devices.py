from __future__ import annotations

import copy
import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import AbstractSet, Dict, List, Tuple

from .document import encode
from .errors import MalformedDocumentError
from .fs_utils import write_bytes_atomic

logger = logging.getLogger(__name__)

DEVICES_TAG = "Devices"
VALUE_ATTRIBUTE = "Value"


def _parent_map(root: ET.Element) -> Dict[ET.Element, ET.Element]:
    return {child: parent for parent in root.iter() for child in parent}


def _inside_devices(element: ET.Element, parents: Dict[ET.Element, ET.Element]) -> bool:
    node = parents.get(element)
    while node is not None:
        if node.tag == DEVICES_TAG:
            return True
        node = parents.get(node)
    return False


def find_device_matches(
    root: ET.Element, values: AbstractSet[str]
) -> List[Tuple[ET.Element, ET.Element]]:
    """Return (parent, element) pairs whose ``Value`` is in ``values`` and
    which sit somewhere below a ``Devices`` element."""
    parents = _parent_map(root)
    matches: List[Tuple[ET.Element, ET.Element]] = []
    for element in root.iter():
        if element.get(VALUE_ATTRIBUTE) not in values:
            continue
        if not _inside_devices(element, parents):
            continue
        matches.append((parents[element], element))
    return matches


def serialize(root: ET.Element) -> str:
    tree = ET.ElementTree(root)
    ET.indent(tree, space="  ")
    return ET.tostring(root, encoding="utf-8", xml_declaration=True).decode("utf-8")


def strip_devices(root: ET.Element, values: AbstractSet[str]) -> Tuple[str, int]:
    """Remove matching elements from a copy of ``root`` and serialize it.

    Returns the serialized text and the number of removed elements;
    ``root`` itself is left untouched.
    """
    try:
        clone = copy.deepcopy(root)
        matches = find_device_matches(clone, values)
        for parent, element in matches:
            parent.remove(element)
        text = serialize(clone)
    except RecursionError as exc:
        raise MalformedDocumentError("document nests too deeply to rewrite") from exc
    logger.info("Removed %d element(s) matching %s", len(matches), sorted(values))
    return text, len(matches)


def remove_devices(root: ET.Element, values: AbstractSet[str]) -> str:
    text, _ = strip_devices(root, values)
    return text


def write_document(path: Path, text: str) -> None:
    write_bytes_atomic(path, encode(text))
