"""Decoding of Live Set documents.

A Live Set is a gzip stream wrapping an XML document. ``decode`` returns
both the parsed ElementTree root (for positional work such as the device
filter) and a ``Node`` tree (for lookups by tag path).
"""

from __future__ import annotations

import gzip
import io
import xml.etree.ElementTree as ET
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from .errors import DecompressionError, MalformedDocumentError


DEFAULT_MAX_SIZE = 512 * 1024 * 1024
_CHUNK_SIZE = 1024 * 1024


@dataclass(slots=True)
class Node:
    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List["Node"] = field(default_factory=list)
    text: Optional[str] = None

    def child(self, tag: str) -> Optional["Node"]:
        for node in self.children:
            if node.tag == tag:
                return node
        return None

    def children_named(self, tag: str) -> List["Node"]:
        return [node for node in self.children if node.tag == tag]

    def find(self, *tags: str) -> Optional["Node"]:
        node: Optional[Node] = self
        for tag in tags:
            if node is None:
                return None
            node = node.child(tag)
        return node

    def attribute(self, name: str) -> Optional[str]:
        return self.attributes.get(name)

    def value(self, *tags: str, attribute: str = "Value") -> Optional[str]:
        node = self.find(*tags)
        if node is None:
            return None
        return node.attribute(attribute)

    def iter(self) -> Iterator["Node"]:
        stack: List[Node] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


@dataclass(slots=True)
class DecodedDocument:
    root: ET.Element
    tree: Node


def _shallow(element: ET.Element) -> Node:
    text = element.text.strip() if element.text else None
    return Node(tag=element.tag, attributes=dict(element.attrib), text=text or None)


def project(element: ET.Element) -> Node:
    """Project an element into a ``Node``; repeated tags stay a list.

    Walks with an explicit stack so nesting depth is not bounded by the
    interpreter's recursion limit.
    """
    root = _shallow(element)
    stack = [(element, root)]
    while stack:
        source, node = stack.pop()
        for child in source:
            projected = _shallow(child)
            node.children.append(projected)
            stack.append((child, projected))
    return root


def decompress(blob: bytes, *, max_size: int = DEFAULT_MAX_SIZE) -> bytes:
    out = bytearray()
    try:
        with gzip.GzipFile(fileobj=io.BytesIO(blob), mode="rb") as fh:
            while True:
                chunk = fh.read(_CHUNK_SIZE)
                if not chunk:
                    break
                out.extend(chunk)
                if len(out) > max_size:
                    raise DecompressionError(f"decompressed size exceeds {max_size} bytes")
    except (gzip.BadGzipFile, EOFError, zlib.error) as exc:
        raise DecompressionError(str(exc) or exc.__class__.__name__) from exc
    if not out:
        raise DecompressionError("empty stream")
    return bytes(out)


def parse(xml_bytes: bytes) -> ET.Element:
    try:
        return ET.fromstring(xml_bytes)
    except ET.ParseError as exc:
        raise MalformedDocumentError(str(exc)) from exc


def decode(blob: bytes, *, max_size: int = DEFAULT_MAX_SIZE) -> DecodedDocument:
    root = parse(decompress(blob, max_size=max_size))
    return DecodedDocument(root=root, tree=project(root))


def read_document(path: Path, *, max_size: int = DEFAULT_MAX_SIZE) -> DecodedDocument:
    blob = path.read_bytes()
    try:
        return decode(blob, max_size=max_size)
    except DecompressionError as exc:
        raise DecompressionError(exc.detail, path) from exc
    except MalformedDocumentError as exc:
        raise MalformedDocumentError(exc.detail, path) from exc


def encode(text: str) -> bytes:
    return gzip.compress(text.encode("utf-8"))
