"""Reconciliation of spreadsheet identifier cells against the file index."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from sheet_linker.config import LinkerConfig
from sheet_linker.file_index import FileEntry, FileIndex
from sheet_linker.header_locator import HeaderLocation, locate_header
from sheet_linker.keys import is_valid_key, normalize_key
from sheet_linker.workbook_store import Region, WorkbookStore

Progress = Callable[[str], None]

SKIP_EMPTY = "empty"
SKIP_NO_HEADER = "no_header"


def silent(message: str) -> None:
    return None


def link_target(folder_name: str, entry: FileEntry) -> str:
    return f"{folder_name}/{entry.name}"


@dataclass
class SheetTally:
    hyperlinks: int = 0
    referenced: set[str] = field(default_factory=set)
    missing: set[str] = field(default_factory=set)

    @property
    def matched(self) -> set[str]:
        return self.referenced - self.missing

    def merge(self, other: "SheetTally") -> "SheetTally":
        return SheetTally(
            hyperlinks=self.hyperlinks + other.hyperlinks,
            referenced=self.referenced | other.referenced,
            missing=self.missing | other.missing,
        )


@dataclass(frozen=True)
class RegionOutcome:
    region: Region
    location: HeaderLocation | None
    hyperlinks: int = 0
    missing: int = 0
    skipped: str | None = None

    def as_dict(self) -> dict:
        return {
            "sheet": self.region.sheet,
            "table": self.region.table,
            "range": self.region.ref,
            "header_row": self.location.row if self.location else None,
            "header_column": self.location.column if self.location else None,
            "hyperlinks": self.hyperlinks,
            "missing": self.missing,
            "skipped": self.skipped,
        }


@dataclass
class RunResult:
    hyperlinks: int
    matched: set[str]
    missing: set[str]
    extraneous: list[FileEntry]
    regions: list[RegionOutcome]

    @property
    def needs_errata(self) -> bool:
        return bool(self.missing or self.extraneous)

    @property
    def skipped_regions(self) -> list[RegionOutcome]:
        return [outcome for outcome in self.regions if outcome.skipped]


def reconcile_region(
    store: WorkbookStore,
    region: Region,
    location: HeaderLocation,
    index: FileIndex,
    folder_name: str,
    *,
    progress: Progress = silent,
    progress_every: int = 0,
) -> SheetTally:
    tally = SheetTally()
    start_row = location.row + 1
    seen_rows = 0
    for offset, raw in enumerate(store.column_texts(region, location.column, start_row)):
        key = normalize_key(raw)
        if not is_valid_key(key):
            continue
        seen_rows += 1
        tally.referenced.add(key)
        entry = index.lookup(key)
        if entry is None:
            tally.missing.add(key)
        else:
            store.set_hyperlink(region, start_row + offset, location.column, link_target(folder_name, entry))
            tally.hyperlinks += 1
        if progress_every and seen_rows % progress_every == 0:
            progress(f"  {region.label}: {seen_rows} identifiers checked, {tally.hyperlinks} linked")
    return tally


def reconcile_workbook(
    store: WorkbookStore,
    index: FileIndex,
    folder_name: str,
    config: LinkerConfig | None = None,
    *,
    progress: Progress = silent,
) -> RunResult:
    config = config or LinkerConfig()
    total = SheetTally()
    outcomes: list[RegionOutcome] = []
    for region in store.regions(config.worksheet_header_rows, config.table_header_rows):
        if store.is_region_empty(region):
            progress(f"Skipping {region.label}: empty")
            outcomes.append(RegionOutcome(region, None, skipped=SKIP_EMPTY))
            continue
        location = locate_header(
            store.header_window(region),
            config.header_label,
            first_row=region.header_first_row,
            first_column=region.min_col,
        )
        if location is None:
            if region.header_rows:
                progress(f"Skipping {region.label}: no '{config.header_label}' column in the first {region.header_rows} row(s)")
            else:
                progress(f"Skipping {region.label}: table has no header row")
            outcomes.append(RegionOutcome(region, None, skipped=SKIP_NO_HEADER))
            continue
        progress(f"Processing {region.label} (header at row {location.row}, column {location.column})")
        tally = reconcile_region(
            store,
            region,
            location,
            index,
            folder_name,
            progress=progress,
            progress_every=config.progress_every,
        )
        progress(f"  {region.label}: {tally.hyperlinks} hyperlink(s) created")
        outcomes.append(RegionOutcome(region, location, tally.hyperlinks, len(tally.missing)))
        total = total.merge(tally)

    return RunResult(
        hyperlinks=total.hyperlinks,
        matched=total.matched,
        missing=set(total.missing),
        extraneous=index.extraneous(total.referenced),
        regions=outcomes,
    )
