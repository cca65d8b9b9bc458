from __future__ import annotations

import logging
import math
from datetime import datetime
from pathlib import Path
from typing import Optional

from .document import DecodedDocument, Node
from .errors import ScaleDecodeError
from .models import ProjectRecord

logger = logging.getLogger(__name__)

NOTE_NAMES = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")

# Index is the ScaleInformation/Name value stored by Live.
SCALE_NAMES = (
    "Major",
    "Minor",
    "Dorian",
    "Mixolydian",
    "Lydian",
    "Phrygian",
    "Locrian",
    "Whole Tone",
    "Half-whole Dim.",
    "Whole-half Dim.",
    "Minor Blues",
    "Minor Pentatonic",
    "Major Pentatonic",
    "Harmonic Minor",
    "Harmonic Major",
    "Dorian #4",
    "Phrygian Dominant",
    "Melodic Minor",
    "Lydian Augmented",
    "Lydian Dominant",
    "Super Locrian",
    "8-Tone Spanish",
    "Bhairav",
    "Hungarian Minor",
    "Hirajoshi",
    "In-Sen",
    "Iwato",
    "Kumoi",
    "Pelog Selisir",
    "Pelog Tembung",
    "Messiaen 3",
    "Messiaen 4",
    "Messiaen 5",
    "Messiaen 6",
    "Messiaen 7",
)

# Live 12 renamed MasterTrack to MainTrack.
_MASTER_TRACK_TAGS = ("MainTrack", "MasterTrack")
_TEMPO_PATH = ("DeviceChain", "Mixer", "Tempo", "Manual")


def decode_scale(root: int, scale_type: int) -> str:
    """Compose "<note> <scale>"; an unknown scale type is an error, not a default."""
    if not 0 <= scale_type < len(SCALE_NAMES):
        raise ScaleDecodeError(scale_type, len(SCALE_NAMES))
    return f"{NOTE_NAMES[root % 12]} {SCALE_NAMES[scale_type]}"


def _live_set(tree: Node) -> Node:
    # Documents normally wrap LiveSet in an Ableton root element.
    if tree.tag == "LiveSet":
        return tree
    return tree.child("LiveSet") or tree


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def extract_bpm(tree: Node) -> float:
    live_set = _live_set(tree)
    for track_tag in _MASTER_TRACK_TAGS:
        raw = live_set.value(track_tag, *_TEMPO_PATH)
        if raw is None:
            continue
        try:
            bpm = float(raw)
        except ValueError:
            logger.debug("Ignoring unparsable tempo %r", raw)
            return 0.0
        if not math.isfinite(bpm) or bpm < 0:
            return 0.0
        return bpm
    return 0.0


def extract_scale(tree: Node) -> str:
    scale_info = _live_set(tree).child("ScaleInformation")
    if scale_info is None:
        return ""
    root = _parse_int(scale_info.value("Root"))
    scale_type = _parse_int(scale_info.value("Name"))
    if root is None or scale_type is None:
        return ""
    return decode_scale(root, scale_type)


def extract(
    document: DecodedDocument,
    folder: Path,
    document_path: Path,
) -> ProjectRecord:
    """Build the catalog record for ``folder`` from its decoded document.

    Missing tempo or scale sections leave ``bpm=0`` / ``scale=""``. A scale
    index outside the table raises ``ScaleDecodeError``.
    """
    mtime = document_path.stat().st_mtime
    return ProjectRecord(
        title=folder.name,
        bpm=extract_bpm(document.tree),
        scale=extract_scale(document.tree),
        project_folder=folder,
        last_modified=datetime.fromtimestamp(mtime),
    )
