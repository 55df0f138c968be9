from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from sheet_linker.discovery import find_document_folder, find_workbook, resolve_inputs
from sheet_linker.errors import EXIT_PRECONDITION_FAILED, DiscoveryError


class DiscoveryTests(unittest.TestCase):
    def test_single_workbook_and_folder_are_found(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "register.xlsx").write_bytes(b"")
            (root / "~$register.xlsx").write_bytes(b"")
            (root / "notes.txt").write_text("x", encoding="utf-8")
            (root / "Evidence").mkdir()
            (root / ".git").mkdir()
            workbook, folder = resolve_inputs(root)
        self.assertEqual(workbook.name, "register.xlsx")
        self.assertEqual(folder.name, "Evidence")

    def test_zero_or_several_workbooks_are_fatal(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            with self.assertRaises(DiscoveryError) as ctx:
                find_workbook(root)
            self.assertEqual(ctx.exception.code, EXIT_PRECONDITION_FAILED)
            (root / "a.xlsx").write_bytes(b"")
            (root / "b.xlsm").write_bytes(b"")
            with self.assertRaises(DiscoveryError) as ctx:
                find_workbook(root)
            self.assertIn("found 2", str(ctx.exception))

    def test_zero_or_several_folders_are_fatal(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            with self.assertRaises(DiscoveryError):
                find_document_folder(root)
            (root / "Documents").mkdir()
            (root / "Evidence").mkdir()
            with self.assertRaises(DiscoveryError) as ctx:
                find_document_folder(root)
            self.assertIn("Documents, Evidence", str(ctx.exception))

    def test_errata_output_folder_is_not_a_document_folder_candidate(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "register.xlsx").write_bytes(b"")
            (root / "Documents").mkdir()
            (root / "reports").mkdir()
            with self.assertRaises(DiscoveryError):
                resolve_inputs(root)
            _, folder = resolve_inputs(root, out_dir=root / "reports")
        self.assertEqual(folder.name, "Documents")

    def test_explicit_paths_bypass_discovery(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "a.xlsx").write_bytes(b"")
            (root / "b.xlsx").write_bytes(b"")
            (root / "Documents").mkdir()
            (root / "Evidence").mkdir()
            workbook, folder = resolve_inputs(root, root / "b.xlsx", root / "Evidence")
        self.assertEqual((workbook.name, folder.name), ("b.xlsx", "Evidence"))


if __name__ == "__main__":
    unittest.main()
