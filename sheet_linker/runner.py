from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from sheet_linker import __version__ as TOOL_VERSION
from sheet_linker.config import LinkerConfig
from sheet_linker.contracts import build_contract, build_run_summary
from sheet_linker.discovery import resolve_inputs
from sheet_linker.engine import Progress, RunResult, reconcile_workbook, silent
from sheet_linker.errata import write_errata
from sheet_linker.file_index import FileIndex, list_folder
from sheet_linker.workbook_store import open_workbook_store


def timestamp_token() -> str:
    override = os.environ.get("SHEET_LINKER_OUTPUT_STAMP")
    if override:
        return override
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


@dataclass
class LinkRun:
    workbook: Path
    folder: Path
    result: RunResult
    errata_path: Path | None
    saved: bool


def run_linking(
    root: Path,
    *,
    workbook: Path | None = None,
    folder: Path | None = None,
    config: LinkerConfig | None = None,
    out_dir: Path | None = None,
    dry_run: bool = False,
    progress: Progress = silent,
) -> LinkRun:
    """Index the document folder, link the workbook and write the errata.

    Discovery and duplicate-key failures are raised before the workbook is
    opened, so a fatal precondition never touches it.
    """
    config = config or LinkerConfig()
    workbook, folder = resolve_inputs(root, workbook, folder, out_dir)
    progress(f"Workbook: {workbook}")
    progress(f"Document folder: {folder}")

    index = FileIndex.build(list_folder(folder))
    progress(f"Indexed {len(index)} document(s)")

    with open_workbook_store(workbook, save=not dry_run) as store:
        result = reconcile_workbook(store, index, folder.name, config, progress=progress)

    errata = write_errata(
        result.extraneous,
        result.missing,
        out_dir or workbook.parent,
        timestamp_token(),
        config.errata_prefix,
    )
    return LinkRun(workbook=workbook, folder=folder, result=result, errata_path=errata, saved=not dry_run)


def build_summary(run: LinkRun, config: LinkerConfig) -> dict[str, Any]:
    contract = build_contract("sheet_linker.run_summary")
    result = run.result
    skipped = result.skipped_regions
    warnings = [f"{outcome.region.label} skipped: {outcome.skipped}" for outcome in skipped]
    return {
        "contract": contract,
        "schema_version": contract["version"],
        "tool_version": TOOL_VERSION,
        "config": config.as_dict(),
        "dry_run": not run.saved,
        "hyperlinks": result.hyperlinks,
        "matched": sorted(result.matched),
        "missing": sorted(result.missing),
        "extraneous": [entry.name for entry in result.extraneous],
        "regions": [outcome.as_dict() for outcome in result.regions],
        "run_summary": build_run_summary(
            workbook_path=run.workbook,
            folder_path=run.folder,
            status="errata" if result.needs_errata else "ok",
            errata_path=run.errata_path,
            metrics={
                "hyperlinks": result.hyperlinks,
                "matched": len(result.matched),
                "missing": len(result.missing),
                "extraneous": len(result.extraneous),
                "regions_processed": len(result.regions) - len(skipped),
                "regions_skipped": len(skipped),
            },
            warnings=warnings,
        ),
    }
