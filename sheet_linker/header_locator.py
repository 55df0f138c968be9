from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

DEFAULT_HEADER_LABEL = "Document ID"


@dataclass(frozen=True)
class HeaderLocation:
    row: int
    column: int


def label_matches(cell_text: str, label: str) -> bool:
    """True when ``label`` is the whole leading token of ``cell_text``.

    "Document ID" and "Document ID (legacy)" match, "XDocument ID" and
    "Document IDs" do not. Leading whitespace is ignored, case is not significant.
    """
    if not label:
        return False
    candidate = cell_text.lstrip().casefold()
    wanted = label.casefold()
    if not candidate.startswith(wanted):
        return False
    if len(candidate) == len(wanted):
        return True
    return not candidate[len(wanted)].isalnum()


def locate_header(
    rows: Sequence[Sequence[str]],
    label: str = DEFAULT_HEADER_LABEL,
    *,
    first_row: int = 1,
    first_column: int = 1,
) -> HeaderLocation | None:
    """Row-major scan of ``rows``; the first matching cell wins.

    ``first_row``/``first_column`` translate positions in ``rows`` back to
    sheet coordinates. ``None`` means the window carries no identifier column.
    """
    for row_offset, row in enumerate(rows):
        for col_offset, cell_text in enumerate(row):
            if label_matches(cell_text, label):
                return HeaderLocation(row=first_row + row_offset, column=first_column + col_offset)
    return None
