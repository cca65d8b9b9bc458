import gzip
import tempfile
import unittest
from pathlib import Path

from live_set_fixtures import write_project

from als_catalog.config import LibrarySettings, ScanSettings
from als_catalog.discovery import ProjectDiscoverer
from als_catalog.errors import MissingDocumentError


class TestProjectDiscoverer(unittest.TestCase):
    def test_root_project_folder_still_checks_its_subfolders(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir) / "Root Project"
            write_project(root, tempo="100")
            write_project(root / "Child Project", tempo="90")
            write_project(root / "Child Project" / "Grandchild Project", tempo="80")
            write_project(root / "Stems" / "Nested Project", tempo="70")

            records = ProjectDiscoverer().discover(root)

            self.assertEqual(
                sorted(r.title for r in records),
                ["Child Project", "Nested Project", "Root Project"],
            )
            self.assertEqual(records[0].title, "Root Project")
            self.assertEqual(records[0].bpm, 100.0)

    def test_deeply_nested_document_does_not_stop_the_walk(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            write_project(root / "Good Project", tempo="120")
            deep = root / "Deep Project"
            deep.mkdir()
            (deep / "Deep.als").write_bytes(gzip.compress(b"<a>" * 5000 + b"</a>" * 5000))

            records = ProjectDiscoverer().discover(root)

            by_title = {r.title: r for r in records}
            self.assertEqual(sorted(by_title), ["Deep Project", "Good Project"])
            self.assertEqual(by_title["Deep Project"].bpm, 0.0)
            self.assertEqual(by_title["Good Project"].bpm, 120.0)

    def test_nested_folders_are_found_without_double_counting(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            write_project(root / "2023" / "Alpha Project", tempo="120")
            write_project(root / "2023" / "Alpha Project" / "Inner Project", tempo="80")
            write_project(root / "2024" / "deep" / "Beta Project", root="0", scale="0")
            (root / "empty" / "nothing").mkdir(parents=True)

            records = ProjectDiscoverer().discover(root)

            self.assertEqual(sorted(r.title for r in records), ["Alpha Project", "Beta Project"])
            beta = next(r for r in records if r.title == "Beta Project")
            self.assertEqual(beta.scale, "C Major")
            self.assertTrue(beta.project_folder.is_absolute())

    def test_bad_project_is_skipped_and_reported(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            write_project(root / "Good Project", tempo="120")
            broken = root / "Broken Project"
            broken.mkdir()
            (broken / "Broken.als").write_bytes(b"not gzip")
            write_project(root / "Odd Scale Project", root="0", scale="400")

            discoverer = ProjectDiscoverer()
            with self.assertLogs("als_catalog.discovery", level="WARNING"):
                records = discoverer.discover(root)

            self.assertEqual([r.title for r in records], ["Good Project"])
            self.assertEqual(
                sorted(p.name for p in discoverer.skipped),
                ["Broken Project", "Odd Scale Project"],
            )

    def test_first_document_by_name_wins(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir) / "Two Sets"
            write_project(folder, name="b.als", tempo="140")
            write_project(folder, name="A.als", tempo="70")

            discoverer = ProjectDiscoverer()
            self.assertEqual(discoverer.find_document(folder), folder / "A.als")
            self.assertEqual(discoverer.load_project(folder).bpm, 70.0)

    def test_load_project_without_document_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(MissingDocumentError):
                ProjectDiscoverer().load_project(Path(tmpdir))

    def test_exclude_patterns_and_hidden_directories(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            write_project(root / "Keep Project")
            write_project(root / "Archive" / "Old Project")
            write_project(root / ".trash" / "Gone Project")

            discoverer = ProjectDiscoverer(LibrarySettings(exclude_patterns=["Archive"]))
            records = discoverer.discover(root)

            self.assertEqual([r.title for r in records], ["Keep Project"])

    def test_document_size_limit_applies(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir) / "Huge Project"
            folder.mkdir()
            (folder / "Huge.als").write_bytes(gzip.compress(b"<Ableton>" + b" " * 5000 + b"</Ableton>"))

            discoverer = ProjectDiscoverer(scan=ScanSettings(max_document_bytes=1000))
            with self.assertLogs("als_catalog.discovery", level="WARNING"):
                self.assertEqual(discoverer.discover(folder), [])

    def test_missing_root_returns_empty(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            discoverer = ProjectDiscoverer()
            with self.assertLogs("als_catalog.discovery", level="WARNING"):
                self.assertEqual(discoverer.discover(Path(tmpdir) / "nope"), [])


if __name__ == "__main__":
    unittest.main()
