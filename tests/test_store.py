import gzip
import json
import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from live_set_fixtures import write_project

from als_catalog.discovery import ProjectDiscoverer
from als_catalog.errors import MalformedDocumentError
from als_catalog.models import ProjectRecord
from als_catalog.store import CatalogStore, merge


def _record(folder: Path, title: str | None = None, bpm: float = 0.0) -> ProjectRecord:
    return ProjectRecord(
        title=title or folder.name,
        bpm=bpm,
        scale="",
        project_folder=folder,
        last_modified=datetime(2024, 5, 1, 12, 30, 15),
    )


class _FailingDiscoverer:
    def discover(self, root: Path) -> list[ProjectRecord]:
        raise MalformedDocumentError("boom", root)


class _EmptyDiscoverer:
    def discover(self, root: Path) -> list[ProjectRecord]:
        return []


class TestMerge(unittest.TestCase):
    def test_later_record_wins_case_insensitively(self) -> None:
        current = [_record(Path("/music/Song Project"), bpm=100)]
        merge(current, [_record(Path("/music/song project"), bpm=120), _record(Path("/music/Other"))])
        self.assertEqual(len(current), 2)
        self.assertEqual(current[0].bpm, 120)
        self.assertEqual(current[1].title, "Other")


class TestCatalogStore(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.store = CatalogStore(self.tmp / "data" / "projects.json")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_missing_file_loads_empty(self) -> None:
        self.assertEqual(self.store.load(), [])

    def test_save_then_load_round_trips(self) -> None:
        records = [
            ProjectRecord(
                title="Night Drive",
                bpm=122.5,
                scale="C# Dorian",
                project_folder=Path("/music/Night Drive"),
                last_modified=datetime(2024, 2, 3, 4, 5, 6, 789000),
            ),
            _record(Path("/music/Sketch")),
        ]
        self.store.save(records)
        self.assertEqual(self.store.load(), records)

    def test_saved_file_is_indented_camel_case_json(self) -> None:
        self.store.save([_record(Path("/music/Sketch"))])
        text = self.store.path.read_text(encoding="utf-8")
        self.assertIn('\n  {\n    "title": "Sketch"', text)
        payload = json.loads(text)
        self.assertEqual(
            set(payload[0]),
            {"title", "bpm", "scale", "projectFolder", "lastModified"},
        )

    def test_malformed_file_loads_empty(self) -> None:
        self.store.path.parent.mkdir(parents=True)
        for content in ("{not json", '[{"title": 3}]', '{"title": "x"}'):
            self.store.path.write_text(content, encoding="utf-8")
            with self.assertLogs("als_catalog.store", level="WARNING"):
                self.assertEqual(self.store.load(), [])

    def test_clear_removes_file(self) -> None:
        self.store.save([_record(Path("/music/Sketch"))])
        self.store.clear()
        self.assertFalse(self.store.path.exists())
        self.store.clear()

    def test_reconcile_drops_vanished_folders(self) -> None:
        self.store.save([_record(self.tmp / "Gone Project")])
        current: list[ProjectRecord] = []

        self.store.reconcile(current, ProjectDiscoverer())

        self.assertEqual(current, [])
        self.assertEqual(self.store.load(), [])

    def test_reconcile_survives_deeply_nested_document(self) -> None:
        good = self.tmp / "Good Project"
        write_project(good, tempo="120")
        deep = self.tmp / "Deep Project"
        deep.mkdir()
        (deep / "Deep.als").write_bytes(gzip.compress(b"<a>" * 5000 + b"</a>" * 5000))
        self.store.save([_record(good), _record(deep)])

        current = self.store.reconcile([], ProjectDiscoverer())

        self.assertEqual(sorted(r.title for r in current), ["Deep Project", "Good Project"])
        self.assertEqual(len(self.store.load()), 2)

    def test_reconcile_prefers_fresh_data(self) -> None:
        folder = self.tmp / "Live Project"
        write_project(folder, tempo="133")
        self.store.save([_record(folder, bpm=90)])

        current = self.store.reconcile([], ProjectDiscoverer())

        self.assertEqual(len(current), 1)
        self.assertEqual(current[0].bpm, 133.0)
        self.assertEqual(self.store.load()[0].bpm, 133.0)

    def test_reconcile_keeps_saved_record_when_rescan_fails(self) -> None:
        folder = self.tmp / "Locked Project"
        folder.mkdir()
        saved = _record(folder, bpm=90)
        self.store.save([saved])

        with self.assertLogs("als_catalog.store", level="WARNING"):
            failed = self.store.reconcile([], _FailingDiscoverer())
        self.assertEqual(failed, [saved])

        self.assertEqual(self.store.reconcile([], _EmptyDiscoverer()), [saved])

    def test_reconcile_does_not_duplicate_current_paths(self) -> None:
        folder = self.tmp / "Live Project"
        write_project(folder, tempo="133")
        self.store.save([_record(folder, bpm=90)])
        upper = Path(str(folder).upper())
        current = [_record(upper, title="Live Project", bpm=140)]

        self.store.reconcile(current, ProjectDiscoverer())

        self.assertEqual(len(current), 1)
        self.assertEqual(current[0].bpm, 140)

    def test_reconcile_twice_is_stable(self) -> None:
        write_project(self.tmp / "A Project", tempo="100")
        write_project(self.tmp / "B Project", tempo="110")
        discoverer = ProjectDiscoverer()
        self.store.save(discoverer.discover(self.tmp) + [_record(self.tmp / "Gone Project")])

        once = self.store.reconcile([], discoverer)
        twice = self.store.reconcile([], discoverer)

        self.assertEqual([r.title for r in once], ["A Project", "B Project"])
        self.assertEqual(once, twice)
        self.assertEqual(self.store.load(), twice)


if __name__ == "__main__":
    unittest.main()
