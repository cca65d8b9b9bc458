from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .fs_utils import normalize_path


class ProjectRecord(BaseModel):
    """Catalog summary of one project folder.

    ``project_folder`` is the identity key. Records are replaced wholesale on
    re-discovery, never patched field by field.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str
    bpm: float = Field(default=0.0, ge=0.0)
    scale: str = ""
    project_folder: Path
    last_modified: datetime

    @property
    def key(self) -> str:
        return normalize_path(self.project_folder)

    def to_record(self) -> Dict[str, object]:
        return self.model_dump(mode="json", by_alias=True)


@dataclass(frozen=True, slots=True)
class TagRecord:
    raw_value: str
    label: str
    group: str
    variant: str = "outline"

    @classmethod
    def parse(cls, raw_value: str, variant: str = "outline") -> "TagRecord":
        group, _, label = raw_value.partition("|")
        return cls(raw_value=raw_value, label=label, group=group, variant=variant)

    def to_record(self) -> Dict[str, str]:
        return {
            "value": self.raw_value,
            "label": self.label,
            "group": self.group,
            "variant": self.variant,
        }
