from __future__ import annotations

from ..store import CatalogStore
from .output import format_project, projects_json


def run(store: CatalogStore, *, json_output: bool = False) -> None:
    records = sorted(store.load(), key=lambda r: r.title.casefold())
    if json_output:
        print(projects_json(records))
        return
    if not records:
        print(f"Catalog {store.path} is empty. Run 'als-catalog scan <folder>' first.")
        return
    for record in records:
        print(format_project(record))
    print(f"\n{len(records)} project(s)")
