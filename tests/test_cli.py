from __future__ import annotations

import importlib.util
import io
import json
import os
import subprocess
import sys
import tempfile
import unittest
from contextlib import redirect_stderr
from pathlib import Path
from unittest import mock

from openpyxl import load_workbook

from sheet_linker import cli
from sheet_linker.workbook_store import WorkbookStore

ROOT = Path(__file__).resolve().parents[1]
CLI = [sys.executable, "-m", "sheet_linker.cli"]
FIXED_STAMP = "20260301T010203Z"
SAMPLE_GENERATOR = ROOT / "sample-data" / "generate_sample.py"


def load_module(module_path: Path, module_name: str):
    spec = importlib.util.spec_from_file_location(module_name, module_path)
    module = importlib.util.module_from_spec(spec)
    assert spec and spec.loader
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return module


SAMPLE = load_module(SAMPLE_GENERATOR, "sheet_linker_sample_for_cli_tests")


def run_cli(*args: str, env: dict[str, str] | None = None) -> subprocess.CompletedProcess[str]:
    merged_env = dict(os.environ)
    merged_env["SHEET_LINKER_OUTPUT_STAMP"] = FIXED_STAMP
    if env:
        merged_env.update(env)
    return subprocess.run(
        [*CLI, *args],
        cwd=ROOT,
        capture_output=True,
        text=True,
        env=merged_env,
    )


class SheetLinkerCliTests(unittest.TestCase):
    def test_link_sample_writes_hyperlinks_and_errata(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            workbook = SAMPLE.build_sample(Path(tmpdir))
            proc = run_cli("link", tmpdir)
            self.assertEqual(proc.returncode, 0, proc.stderr)
            self.assertIn("Hyperlinks created: 4", proc.stderr)
            self.assertIn("Skipped: Notes", proc.stderr)

            errata = Path(tmpdir) / f"errata-{FIXED_STAMP}.txt"
            self.assertIn(f"Errata written: {errata}", proc.stderr)
            text = errata.read_text(encoding="utf-8")
            self.assertIn("  A-103.pdf", text)
            self.assertIn("  A-104", text)

            book = load_workbook(workbook)
            self.assertEqual(book["Register"]["B3"].hyperlink.target, "Documents/A-100.pdf")
            self.assertEqual(book["Register"]["B4"].hyperlink.target, "Documents/A-101.pdf")
            self.assertIsNone(book["Register"]["B6"].hyperlink)
            self.assertEqual(book["Exhibits"]["A3"].hyperlink.target, "Documents/A-102.docx")

    def test_link_json_stdout_contains_only_json(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            SAMPLE.build_sample(Path(tmpdir))
            proc = run_cli("link", tmpdir, "--json", "--dry-run")
            self.assertEqual(proc.returncode, 0, proc.stderr)
            payload = json.loads(proc.stdout)
            self.assertEqual(proc.stderr.strip(), "")
        self.assertEqual(payload["contract"]["name"], "sheet_linker.run_summary")
        self.assertTrue(payload["dry_run"])
        self.assertEqual(payload["hyperlinks"], 4)
        self.assertEqual(payload["missing"], ["A-104"])
        self.assertEqual(payload["extraneous"], ["A-103.pdf"])
        self.assertEqual(payload["run_summary"]["status"], "errata")
        self.assertEqual(payload["run_summary"]["metrics"]["regions_skipped"], 1)
        self.assertEqual(payload["run_summary"]["generated_at"], "1970-01-01T00:00:00Z")

    def test_fail_on_errata_returns_exit_4(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            SAMPLE.build_sample(Path(tmpdir))
            out_dir = Path(tmpdir) / "reports"
            proc = run_cli("link", tmpdir, "--out", str(out_dir), "--fail-on-errata", "-q")
            self.assertEqual(proc.returncode, 4, proc.stderr)
            self.assertTrue((out_dir / f"errata-{FIXED_STAMP}.txt").exists())

            again = run_cli("link", tmpdir, "--out", str(out_dir), "-q")
            self.assertEqual(again.returncode, 0, again.stderr)

    def test_fully_reconciled_run_reports_no_errata(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            SAMPLE.build_sample(Path(tmpdir))
            (Path(tmpdir) / "Documents" / "A-103.pdf").unlink()
            (Path(tmpdir) / "Documents" / "A-104.pdf").write_text("x", encoding="utf-8")
            proc = run_cli("link", tmpdir, "--fail-on-errata")
            self.assertEqual(proc.returncode, 0, proc.stderr)
            self.assertIn("No errata needed", proc.stderr)
            self.assertEqual(list(Path(tmpdir).glob("errata-*.txt")), [])

    def test_two_workbooks_is_a_precondition_failure(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            SAMPLE.build_sample(Path(tmpdir))
            (Path(tmpdir) / "copy.xlsx").write_bytes((Path(tmpdir) / "register.xlsx").read_bytes())
            proc = run_cli("link", tmpdir)
        self.assertEqual(proc.returncode, 2)
        self.assertIn("Expected exactly one workbook", proc.stderr)

    def test_duplicate_document_keys_are_a_precondition_failure(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            SAMPLE.build_sample(Path(tmpdir))
            (Path(tmpdir) / "Documents" / "a-100.docx").write_text("x", encoding="utf-8")
            proc = run_cli("link", tmpdir)
        self.assertEqual(proc.returncode, 2)
        self.assertIn("Duplicate document key 'A-100'", proc.stderr)

    def test_header_label_flag_overrides_default(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            SAMPLE.build_sample(Path(tmpdir))
            proc = run_cli("link", tmpdir, "--header-label", "Exhibit", "--json", "--dry-run")
            self.assertEqual(proc.returncode, 0, proc.stderr)
            payload = json.loads(proc.stdout)
        self.assertEqual(payload["config"]["header_label"], "Exhibit")
        self.assertEqual(payload["hyperlinks"], 0)

    def test_unreadable_workbook_returns_exit_3(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "broken.xlsx").write_bytes(b"not a workbook")
            (Path(tmpdir) / "Documents").mkdir()
            proc = run_cli("link", tmpdir)
        self.assertEqual(proc.returncode, 3)
        self.assertIn("Could not read workbook", proc.stderr)

    def test_workbook_write_failure_returns_an_exit_code(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            SAMPLE.build_sample(Path(tmpdir))
            buffer = io.StringIO()
            denied = PermissionError(13, "Permission denied", "register.xlsx")
            with mock.patch.object(WorkbookStore, "save", side_effect=denied), redirect_stderr(buffer):
                code = cli.main(["link", tmpdir, "-q"])
        self.assertEqual(code, 3)
        self.assertIn("Permission denied", buffer.getvalue())

    def test_config_init_refuses_to_overwrite(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "sheet-linker.yml"
            first = run_cli("config", "init", "--path", str(config_path))
            second = run_cli("config", "init", "--path", str(config_path))
            self.assertEqual(first.returncode, 0, first.stderr)
            self.assertIn("header_label: Document ID", config_path.read_text(encoding="utf-8"))
        self.assertEqual(second.returncode, 1)
        self.assertIn("Refusing to overwrite", second.stderr)

    def test_usage_error_returns_exit_1(self):
        proc = run_cli("link", "--progress-every", "often")
        self.assertEqual(proc.returncode, 1)

    def test_version(self):
        proc = run_cli("version")
        self.assertEqual(proc.returncode, 0)
        self.assertEqual(proc.stdout.strip(), "0.1.0")


if __name__ == "__main__":
    unittest.main()
