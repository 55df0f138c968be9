"""Plain-text discrepancy listing for a finished run."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from sheet_linker.file_index import FileEntry

EXTRANEOUS_HEADING = "Extraneous files (present in the folder, never referenced):"
MISSING_HEADING = "Missing documents (referenced in the workbook, no matching file):"


def render_errata(extraneous: Iterable[FileEntry], missing: Iterable[str]) -> str | None:
    extraneous_names = sorted(entry.name for entry in extraneous)
    missing_keys = sorted(missing)
    if not extraneous_names and not missing_keys:
        return None
    lines = [EXTRANEOUS_HEADING]
    lines.extend(f"  {name}" for name in extraneous_names)
    if not extraneous_names:
        lines.append("  (none)")
    lines.append("")
    lines.append(MISSING_HEADING)
    lines.extend(f"  {key}" for key in missing_keys)
    if not missing_keys:
        lines.append("  (none)")
    return "\n".join(lines) + "\n"


def errata_path(out_dir: Path, stamp: str, prefix: str = "errata") -> Path:
    return out_dir / f"{prefix}-{stamp}.txt"


def write_errata(
    extraneous: Iterable[FileEntry],
    missing: Iterable[str],
    out_dir: Path,
    stamp: str,
    prefix: str = "errata",
) -> Path | None:
    """Write the errata file, or nothing at all when the run is fully reconciled."""
    payload = render_errata(extraneous, missing)
    if payload is None:
        return None
    path = errata_path(out_dir, stamp, prefix)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(payload, encoding="utf-8")
    return path
