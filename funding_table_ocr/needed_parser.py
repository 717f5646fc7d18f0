from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from . import config
from .header_locator import locate_column
from .row_reconstructor import cluster_by_line, dedupe_rows, parse_rows_from_lines
from .types import ColumnBand, OCRWord, ParseResult, Row

log = logging.getLogger("funding_table_ocr")


def _base_line_ids(words: Sequence[OCRWord]) -> Dict[int, int]:
    """Map each word (by identity) to its line in the standard-tolerance clustering."""
    ids: Dict[int, int] = {}
    for i, line in enumerate(cluster_by_line(words, config.LINE_Y_TOLERANCE_PX)):
        for w in line:
            ids[id(w)] = i
    return ids


def _rows_under_header(words: Sequence[OCRWord], band: ColumnBand) -> List[Row]:
    below = [w for w in words if w.text.strip() and w.bbox.y0 >= band.min_y]
    base = _base_line_ids(below)
    rows: List[Row] = []
    # Rows that sit on a clustering boundary come out right in at least one pass.
    for y_tol, dx0, dx1 in config.HEADER_ROW_PASSES:
        # a looser pass must not glue two standard lines into one phantom row
        lines = [line for line in cluster_by_line(below, y_tol) if len({base[id(w)] for w in line}) == 1]
        rows.extend(parse_rows_from_lines(lines, band.x0 + dx0, band.x1 + dx1))
    return rows


def _rows_in_band(words: Sequence[OCRWord], band: ColumnBand) -> List[Row]:
    lines = cluster_by_line([w for w in words if w.text.strip()], config.LINE_Y_TOLERANCE_PX)
    return parse_rows_from_lines(lines, band.x0, band.x1)


def extract_needed_values(words: Sequence[OCRWord]) -> ParseResult:
    """
    Reconstruct (name, needed amount) rows from merged OCR words.

    Never raises: a missing header falls back to column inference, and a table with no
    money column yields an empty result with a zero total.
    """
    log.info("Parsing %d OCR word(s)", len(words))
    band = locate_column(words)
    if band is None:
        return ParseResult.empty()

    if band.method == "header":
        raw_rows = _rows_under_header(words, band)
    else:
        raw_rows = _rows_in_band(words, band)

    result = ParseResult.from_rows(dedupe_rows(raw_rows), column=band)
    log.info(
        "Parsed %d row(s) (%d with values) from %d candidate(s); total=%d",
        len(result.rows),
        len(result.needed_values),
        len(raw_rows),
        result.total,
    )
    return result
