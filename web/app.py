#!/usr/bin/env python3
from __future__ import annotations

from pathlib import Path

import pandas as pd
import streamlit as st

from sheet_linker.config import LinkerConfig, resolve_config
from sheet_linker.engine import RunResult
from sheet_linker.errors import LinkerError
from sheet_linker.runner import LinkRun, run_linking


def ensure_state() -> None:
    st.session_state.setdefault("root_input", str(Path.cwd()))
    st.session_state.setdefault("log", [])
    st.session_state.setdefault("run", None)
    st.session_state.setdefault("error", None)


def regions_frame(result: RunResult) -> pd.DataFrame:
    return pd.DataFrame(
        [outcome.as_dict() for outcome in result.regions],
        columns=["sheet", "table", "range", "header_row", "header_column", "hyperlinks", "missing", "skipped"],
    )


def errata_frames(result: RunResult) -> tuple[pd.DataFrame, pd.DataFrame]:
    extraneous = pd.DataFrame({"file": [entry.name for entry in result.extraneous]})
    missing = pd.DataFrame({"document_id": sorted(result.missing)})
    return extraneous, missing


def run_from_form(root: Path, header_label: str, dry_run: bool) -> tuple[LinkRun | None, str | None, list[str]]:
    log: list[str] = []
    try:
        config: LinkerConfig = resolve_config(root).with_overrides(header_label=header_label or None)
        run = run_linking(root, config=config, dry_run=dry_run, progress=log.append)
    except (LinkerError, OSError) as exc:
        return None, str(exc), log
    return run, None, log


def render_run(run: LinkRun, log: list[str]) -> None:
    result = run.result
    metrics = st.columns(3)
    metrics[0].metric("Hyperlinks", result.hyperlinks)
    metrics[1].metric("Missing documents", len(result.missing))
    metrics[2].metric("Extraneous files", len(result.extraneous))

    st.subheader("Regions")
    st.dataframe(regions_frame(result), width="stretch", hide_index=True)

    if run.errata_path:
        st.warning(f"Errata written: {run.errata_path}")
        extraneous, missing = errata_frames(result)
        left, right = st.columns(2)
        with left:
            st.caption("Extraneous files")
            st.dataframe(extraneous, width="stretch", hide_index=True)
        with right:
            st.caption("Missing documents")
            st.dataframe(missing, width="stretch", hide_index=True)
    else:
        st.success("No errata needed")
    if not run.saved:
        st.info("Dry run: the workbook was not saved.")

    with st.expander("Run log"):
        st.code("\n".join(log) or "(empty)")


def main() -> None:
    st.set_page_config(page_title="sheet-linker", page_icon="🔗", layout="wide", initial_sidebar_state="collapsed")
    ensure_state()
    st.title("sheet-linker")
    st.caption("Link document IDs in one workbook to the files in one document folder.")

    root_input = st.text_input("Run directory", key="root_input")
    header_label = st.text_input("Identifier column label", value=LinkerConfig().header_label)
    dry_run = st.checkbox("Dry run (do not save the workbook)", value=True)

    if st.button("Run", type="primary"):
        run, error, log = run_from_form(Path(root_input), header_label, dry_run)
        st.session_state["run"] = run
        st.session_state["error"] = error
        st.session_state["log"] = log

    if st.session_state["error"]:
        st.error(st.session_state["error"])
        return
    if st.session_state["run"] is None:
        st.info("The run directory must hold exactly one .xlsx/.xlsm workbook and one document folder.")
        return
    render_run(st.session_state["run"], st.session_state["log"])


if __name__ == "__main__":
    main()
