#!/usr/bin/env python3
"""
Builds a small sheet-linker workspace with deliberate discrepancies.

Run from the repo root:
    python sample-data/generate_sample.py [target-dir]

Layout produced:
  register.xlsx
    Sheet "Register"
      - Title row above the header (header "Document ID" sits in row 2, column B)
      - "a-100" and " A-101 " differ from the file names only by case/whitespace
      - "A-104" has no file (missing)
      - Blank identifier row (ignored)
    Sheet "Exhibits"
      - Structured table "ExhibitTable" whose header is "Document ID (legacy)"
      - "A-101" referenced again (linked again, reported once)
    Sheet "Notes"
      - Free text, no identifier column (skipped)
  Documents/
    A-100.pdf, A-101.pdf, A-102.docx, A-103.pdf (A-103 is never referenced)
"""

from __future__ import annotations

import sys
from pathlib import Path

import openpyxl
from openpyxl.worksheet.table import Table

DOCUMENT_FILES = ["A-100.pdf", "A-101.pdf", "A-102.docx", "A-103.pdf"]


def build_sample(root: Path) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    documents = root / "Documents"
    documents.mkdir(exist_ok=True)
    for name in DOCUMENT_FILES:
        (documents / name).write_bytes(b"sample document\n")

    wb = openpyxl.Workbook()

    # ── Sheet 1: Register ────────────────────────────────────────────────────
    ws = wb.active
    ws.title = "Register"
    ws.append(["Document register", None, None])
    ws.append(["Date", "Document ID", "Title"])
    ws.append(["2024-01-03", "a-100", "Site plan"])
    ws.append(["2024-01-04", " A-101 ", "Survey"])
    ws.append(["2024-01-05", None, "Placeholder"])
    ws.append(["2024-01-06", "A-104", "Permit"])

    # ── Sheet 2: Exhibits (structured table) ─────────────────────────────────
    ws_exhibits = wb.create_sheet("Exhibits")
    ws_exhibits.append(["Document ID (legacy)", "Exhibit"])
    ws_exhibits.append(["A-101", "Ex. 1"])
    ws_exhibits.append(["A-102", "Ex. 2"])
    ws_exhibits.add_table(Table(displayName="ExhibitTable", ref="A1:B3"))

    # ── Sheet 3: Notes (no identifier column) ────────────────────────────────
    ws_notes = wb.create_sheet("Notes")
    ws_notes.append(["Reviewed by the records team."])

    path = root / "register.xlsx"
    wb.save(path)
    return path


if __name__ == "__main__":
    target = Path(sys.argv[1]) if len(sys.argv) > 1 else Path(__file__).parent / "workspace"
    print(f"Created: {build_sample(target)}")
