"""openpyxl-backed spreadsheet store.

The workbook is loaded twice, the way excel-doctor's diagnose does it: the
formula workbook is the one that receives hyperlinks and gets saved (so
formulas survive), while the ``data_only`` workbook supplies the cached values
that Excel displays. Only displayed text is ever compared.
"""

from __future__ import annotations

import os
import sys
import tempfile
import zipfile
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Iterator

from openpyxl import load_workbook
from openpyxl.utils import get_column_letter, range_boundaries

from sheet_linker.errors import WorkbookError

WORKBOOK_SUFFIXES = {".xlsx", ".xlsm"}


@dataclass(frozen=True)
class Region:
    """One structured table, or the populated range of a worksheet without tables."""

    sheet: str
    table: str | None
    min_row: int
    min_col: int
    max_row: int
    max_col: int
    header_rows: int

    @property
    def label(self) -> str:
        if self.table:
            return f"{self.sheet}[{self.table}]"
        return self.sheet

    @property
    def header_first_row(self) -> int:
        # Worksheet headers are searched from row 1, not from the first populated row.
        return self.min_row if self.table else 1

    @property
    def ref(self) -> str:
        return f"{get_column_letter(self.min_col)}{self.min_row}:{get_column_letter(self.max_col)}{self.max_row}"


def is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.strftime("%Y-%m-%d")
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, time):
        return value.strftime("%H:%M:%S")
    return str(value)


def is_encrypted_ooxml(file_path: Path) -> bool:
    try:
        with zipfile.ZipFile(file_path) as archive:
            names = set(archive.namelist())
    except zipfile.BadZipFile:
        return False
    return {"EncryptedPackage", "EncryptionInfo"}.issubset(names)


class WorkbookStore:
    def __init__(self, path: Path, formula_workbook, values_workbook) -> None:
        self.path = path
        self._formulas = formula_workbook
        self._values = values_workbook

    @classmethod
    def open(cls, path: Path) -> "WorkbookStore":
        suffix = path.suffix.lower()
        if suffix not in WORKBOOK_SUFFIXES:
            raise WorkbookError(
                f"Unsupported workbook type '{suffix or '[missing extension]'}'. "
                f"Supported: {', '.join(sorted(WORKBOOK_SUFFIXES))}"
            )
        if not path.is_file():
            raise WorkbookError(f"Workbook not found: {path}")
        if is_encrypted_ooxml(path):
            raise WorkbookError("Password-protected / encrypted OOXML workbooks are not supported")
        keep_vba = suffix == ".xlsm"
        try:
            formulas = load_workbook(path, keep_vba=keep_vba)
            values = load_workbook(path, data_only=True)
        except Exception as exc:
            raise WorkbookError(f"Could not read workbook: {exc}") from exc
        return cls(path, formulas, values)

    def regions(self, worksheet_header_rows: int = 3, table_header_rows: int = 1) -> list[Region]:
        regions: list[Region] = []
        for sheet in self._formulas.worksheets:
            if sheet.tables:
                for table in sheet.tables.values():
                    min_col, min_row, max_col, max_row = range_boundaries(table.ref)
                    max_row -= table.totalsRowCount or 0
                    header_rows = table_header_rows if table.headerRowCount != 0 else 0
                    regions.append(
                        Region(sheet.title, table.displayName, min_row, min_col, max_row, max_col, header_rows)
                    )
                continue
            regions.append(
                Region(
                    sheet.title,
                    None,
                    sheet.min_row,
                    sheet.min_column,
                    sheet.max_row,
                    sheet.max_column,
                    worksheet_header_rows,
                )
            )
        return regions

    def _rows(self, region: Region, min_row: int, max_row: int, min_col: int, max_col: int) -> list[list[str]]:
        if min_row > max_row or min_col > max_col:
            return []
        sheet = self._values[region.sheet]
        return [
            [cell_text(value) for value in row]
            for row in sheet.iter_rows(
                min_row=min_row,
                max_row=max_row,
                min_col=min_col,
                max_col=max_col,
                values_only=True,
            )
        ]

    def is_region_empty(self, region: Region) -> bool:
        rows = self._rows(region, region.min_row, region.max_row, region.min_col, region.max_col)
        return all(is_blank(text) for row in rows for text in row)

    def header_window(self, region: Region) -> list[list[str]]:
        first_row = region.header_first_row
        last_row = min(region.max_row, first_row + region.header_rows - 1)
        return self._rows(region, first_row, last_row, region.min_col, region.max_col)

    def column_texts(self, region: Region, column: int, start_row: int) -> list[str]:
        """Displayed text of ``column`` from ``start_row`` to the region's last row.

        Always a flat list, whether the range is one cell, one row or many.
        """
        return [row[0] for row in self._rows(region, start_row, region.max_row, column, column)]

    def set_hyperlink(self, region: Region, row: int, column: int, target: str) -> None:
        cell = self._formulas[region.sheet].cell(row=row, column=column)
        cell.hyperlink = target

    def save(self, output_path: Path | None = None) -> Path:
        output_path = output_path or self.path
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{output_path.stem}.", suffix=output_path.suffix, dir=str(output_path.parent))
        os.close(fd)
        temp_path = Path(tmp_name)
        try:
            self._formulas.save(temp_path)
            os.replace(temp_path, output_path)
        finally:
            if temp_path.exists():
                temp_path.unlink()
        return output_path

    def close(self) -> None:
        self._formulas.close()
        self._values.close()


@contextmanager
def open_workbook_store(path: Path, *, save: bool = True) -> Iterator[WorkbookStore]:
    """Open ``path`` for the duration of a run.

    The workbook is saved on every exit path when ``save`` is true, including
    when the body raises, so hyperlinks attached before a failure are kept.
    A save that fails while unwinding is reported on stderr and the body's
    exception propagates. The workbook is always closed.
    """
    store = WorkbookStore.open(path)
    try:
        yield store
    except BaseException:
        if save:
            try:
                store.save()
            except Exception as save_exc:
                print(f"ERROR: Workbook not saved after failure: {save_exc}", file=sys.stderr)
        raise
    else:
        if save:
            store.save()
    finally:
        store.close()
