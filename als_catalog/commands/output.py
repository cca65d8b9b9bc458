from __future__ import annotations

import json
from typing import Iterable, Sequence

from ..models import ProjectRecord, TagRecord


def format_project(record: ProjectRecord) -> str:
    bpm = f"{record.bpm:g} BPM" if record.bpm else "- BPM"
    scale = record.scale or "-"
    modified = record.last_modified.strftime("%Y-%m-%d %H:%M")
    return f"{record.title:<40} {bpm:>12}  {scale:<24} {modified}  {record.project_folder}"


def format_tag(tag: TagRecord) -> str:
    if tag.group:
        return f"{tag.group}: {tag.label}" if tag.label else tag.group
    return tag.label


def projects_json(records: Iterable[ProjectRecord]) -> str:
    return json.dumps([record.to_record() for record in records], indent=2, ensure_ascii=False)


def tags_json(tags: Sequence[TagRecord]) -> str:
    return json.dumps([tag.to_record() for tag in tags], indent=2, ensure_ascii=False)
