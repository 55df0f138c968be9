from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from sheet_linker import __version__ as TOOL_VERSION
from sheet_linker.config import CONFIG_FILENAME, STARTER_CONFIG, LinkerConfig, resolve_config
from sheet_linker.contracts import utc_now_iso
from sheet_linker.errors import (
    EXIT_COMMAND_ERROR,
    EXIT_ERRATA_WRITTEN,
    EXIT_SUCCESS,
    EXIT_WORKBOOK_UNREADABLE,
    LinkerError,
)
from sheet_linker.runner import LinkRun, build_summary, run_linking


class CliError(LinkerError):
    pass


class SheetLinkerArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise CliError(message, EXIT_COMMAND_ERROR)


def eprint(message: str) -> None:
    print(message, file=sys.stderr)


def emit_human(message: str, *, quiet: bool = False) -> None:
    if not quiet:
        eprint(message)


def json_dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)


def remove_generated_at(value: Any) -> Any:
    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            if key == "generated_at":
                result[key] = "1970-01-01T00:00:00Z"
            else:
                result[key] = remove_generated_at(item)
        return result
    if isinstance(value, list):
        return [remove_generated_at(item) for item in value]
    return value


def render_link_text(run: LinkRun) -> str:
    result = run.result
    lines = [
        "sheet-linker link",
        f"Workbook: {run.workbook}",
        f"Document folder: {run.folder}",
        f"Hyperlinks created: {result.hyperlinks}",
        f"Missing documents: {len(result.missing)}",
        f"Extraneous files: {len(result.extraneous)}",
    ]
    skipped = result.skipped_regions
    if skipped:
        lines.append(f"Skipped: {', '.join(outcome.region.label for outcome in skipped)}")
    if not run.saved:
        lines.append("Dry run: workbook not saved")
    if run.errata_path:
        lines.append(f"Errata written: {run.errata_path}")
    else:
        lines.append("No errata needed")
    return "\n".join(lines) + "\n"


def classify_exception(exc: Exception) -> int:
    if isinstance(exc, LinkerError):
        return exc.code
    if isinstance(exc, FileNotFoundError):
        return EXIT_COMMAND_ERROR
    if isinstance(exc, OSError):
        return EXIT_WORKBOOK_UNREADABLE
    return EXIT_COMMAND_ERROR


def build_parser() -> argparse.ArgumentParser:
    parser = SheetLinkerArgumentParser(
        prog="sheet-linker",
        description="Link spreadsheet document IDs to the files in a document folder and report discrepancies.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    link = subparsers.add_parser("link", help="Hyperlink identifiers in the workbook and write errata.")
    link.add_argument("root", nargs="?", default=".", help="Directory holding exactly one workbook and one document folder")
    link.add_argument("--workbook", help="Explicit workbook path instead of discovery")
    link.add_argument("--folder", help="Explicit document folder instead of discovery")
    link.add_argument("--config", help=f"Config path (default: <root>/{CONFIG_FILENAME} when present)")
    link.add_argument("--header-label", dest="header_label", help="Identifier column label")
    link.add_argument("--progress-every", dest="progress_every", type=int, help="Progress callout interval in identifier rows (0 disables)")
    link.add_argument("-o", "--out", dest="out_dir", help="Directory for the errata file (default: next to the workbook); never taken as the document folder")
    link.add_argument("--dry-run", action="store_true", help="Reconcile and report without saving the workbook")
    link.add_argument("--fail-on-errata", action="store_true", help="Return exit code 4 when an errata file is written")
    link.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    link.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")
    link.add_argument("-v", "--verbose", action="store_true", help="More human logs")

    config = subparsers.add_parser("config", help="Generate configuration.")
    config_subparsers = config.add_subparsers(dest="config_command", required=True)
    config_init = config_subparsers.add_parser("init", help="Write a starter config file.")
    config_init.add_argument("--path", default=CONFIG_FILENAME, help="Config output path")

    subparsers.add_parser("version", help="Print version")
    return parser


def load_run_config(args: argparse.Namespace, root: Path) -> LinkerConfig:
    explicit = Path(args.config) if args.config else None
    return resolve_config(root, explicit).with_overrides(
        header_label=args.header_label,
        progress_every=args.progress_every,
    )


def run_link(args: argparse.Namespace) -> int:
    root = Path(args.root)
    quiet = args.quiet or args.json

    def progress(message: str) -> None:
        if args.verbose and not quiet:
            eprint(message)

    try:
        config = load_run_config(args, root)
        emit_human(f"Started at {utc_now_iso()}", quiet=quiet)
        run = run_linking(
            root,
            workbook=Path(args.workbook) if args.workbook else None,
            folder=Path(args.folder) if args.folder else None,
            config=config,
            out_dir=Path(args.out_dir) if args.out_dir else None,
            dry_run=args.dry_run,
            progress=progress,
        )
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)

    if args.json:
        print(json_dumps(remove_generated_at(build_summary(run, config))))
    else:
        emit_human(render_link_text(run).rstrip(), quiet=args.quiet)

    if run.errata_path and args.fail_on_errata:
        return EXIT_ERRATA_WRITTEN
    return EXIT_SUCCESS


def run_config_init(args: argparse.Namespace) -> int:
    config_path = Path(args.path)
    if config_path.exists():
        eprint(f"Refusing to overwrite existing config: {config_path}")
        return EXIT_COMMAND_ERROR
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(STARTER_CONFIG, encoding="utf-8")
    emit_human(f"Config written: {config_path}")
    return EXIT_SUCCESS


def run_version() -> int:
    print(TOOL_VERSION)
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    try:
        parser = build_parser()
        args = parser.parse_args(argv)
        if args.command == "link":
            return run_link(args)
        if args.command == "config":
            if args.config_command == "init":
                return run_config_init(args)
        if args.command == "version":
            return run_version()
        raise CliError(f"Unknown command: {args.command}", EXIT_COMMAND_ERROR)
    except CliError as exc:
        eprint(str(exc))
        return exc.code


if __name__ == "__main__":
    raise SystemExit(main())
