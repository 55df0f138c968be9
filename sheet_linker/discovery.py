"""Locate the single target workbook and the single document folder of a run."""

from __future__ import annotations

from pathlib import Path

from sheet_linker.errors import DiscoveryError
from sheet_linker.file_index import LOCK_FILE_PREFIX
from sheet_linker.workbook_store import WORKBOOK_SUFFIXES


def _visible(path: Path) -> bool:
    return not path.name.startswith(".") and not path.name.startswith(LOCK_FILE_PREFIX)


def _names(paths: list[Path]) -> str:
    return ", ".join(path.name for path in paths)


def workbook_candidates(root: Path) -> list[Path]:
    return sorted(
        path
        for path in root.iterdir()
        if path.is_file() and _visible(path) and path.suffix.lower() in WORKBOOK_SUFFIXES
    )


def folder_candidates(root: Path, exclude: Path | None = None) -> list[Path]:
    excluded = exclude.resolve() if exclude else None
    return sorted(
        path
        for path in root.iterdir()
        if path.is_dir() and _visible(path) and path.resolve() != excluded
    )


def find_workbook(root: Path) -> Path:
    candidates = workbook_candidates(root)
    if not candidates:
        raise DiscoveryError(f"No workbook (.xlsx/.xlsm) found in {root}")
    if len(candidates) > 1:
        raise DiscoveryError(f"Expected exactly one workbook in {root}, found {len(candidates)}: {_names(candidates)}")
    return candidates[0]


def find_document_folder(root: Path, exclude: Path | None = None) -> Path:
    """The single visible sub-folder of ``root``, ignoring the errata output folder."""
    candidates = folder_candidates(root, exclude)
    if not candidates:
        raise DiscoveryError(f"No document folder found in {root}")
    if len(candidates) > 1:
        raise DiscoveryError(
            f"Expected exactly one document folder in {root}, found {len(candidates)}: {_names(candidates)}"
        )
    return candidates[0]


def resolve_inputs(
    root: Path,
    workbook: Path | None = None,
    folder: Path | None = None,
    out_dir: Path | None = None,
) -> tuple[Path, Path]:
    if not root.is_dir():
        raise DiscoveryError(f"Run directory not found: {root}")
    workbook = workbook or find_workbook(root)
    folder = folder or find_document_folder(root, out_dir)
    if not workbook.is_file():
        raise DiscoveryError(f"Workbook not found: {workbook}")
    if not folder.is_dir():
        raise DiscoveryError(f"Document folder not found: {folder}")
    return workbook, folder
