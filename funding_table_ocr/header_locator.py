from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from . import config
from .money import parse_amount
from .types import ColumnBand, OCRWord

log = logging.getLogger("funding_table_ocr")

_KEEP_CHARS_RE = re.compile(r"[^a-z0-9£$.,\s]")


@dataclass(frozen=True)
class HeaderMatch:
    matched: bool
    score: float


NO_MATCH = HeaderMatch(matched=False, score=0.0)


def normalize_header_text(text: str) -> str:
    t = _KEEP_CHARS_RE.sub("", (text or "").strip().lower())
    return re.sub(r"\s+", "", t)


def match_needed_header(text: str) -> HeaderMatch:
    """
    Tolerant match for the "Needed" column header.

    Scores: exact needed/need 1.0, contains "need" 0.8, any 4-7 char token with an
    'n' and a 'd' (or '0', a misread o) 0.3.
    The last rule is deliberately loose and will accept short names such as "Daniel".
    """
    t = normalize_header_text(text)
    if not t:
        return NO_MATCH
    if t in config.HEADER_EXACT:
        return HeaderMatch(True, 1.0)
    if "need" in t:
        return HeaderMatch(True, 0.8)
    if 4 <= len(t) <= 7 and "n" in t and ("d" in t or "0" in t):
        return HeaderMatch(True, 0.3)
    return NO_MATCH


def find_header(words: Sequence[OCRWord]) -> Optional[OCRWord]:
    """Best header candidate: OCR confidence, then match score, then text length."""
    scored = [(w, match_needed_header(w.text)) for w in words]
    candidates = [(w, m.score) for w, m in scored if m.matched]
    log.debug(
        "Header candidates: %s",
        ", ".join(f"{w.text!r} (conf {w.confidence:.0f}, score {s:.1f})" for w, s in candidates) or "none",
    )
    if not candidates:
        return None
    # sorted() is stable, so a full tie keeps reading order
    best = sorted(candidates, key=lambda c: (-float(c[0].confidence), -c[1], -len(c[0].text)))
    return best[0][0]


def column_from_header(header: OCRWord) -> ColumnBand:
    left = min(header.bbox.x0, header.bbox.x1)
    right = max(header.bbox.x0, header.bbox.x1)
    width = max(float(config.HEADER_MIN_WIDTH_PX), float(right - left))
    pad = int(round(width * float(config.HEADER_PAD_FRAC)))
    return ColumnBand(
        x0=float(left - pad),
        x1=float(right + pad),
        min_y=float(header.bbox.y1 + int(config.HEADER_BOTTOM_GAP_PX)),
        method="header",
        header=header,
    )


def infer_column(words: Sequence[OCRWord]) -> Optional[ColumnBand]:
    """
    Header-less fallback: the amounts column is the densest vertical band of money-shaped words.
    """
    money = [w for w in words if parse_amount(w.text) is not None]
    if len(money) < int(config.COLUMN_MIN_MONEY_WORDS):
        log.info("Column inference: only %d money word(s); no column", len(money))
        return None

    size = float(config.COLUMN_BUCKET_PX)
    buckets: Dict[int, List[float]] = {}
    for w in money:
        cx = w.bbox.center_x
        key = int(round(cx / size) * size)
        buckets.setdefault(key, []).append(cx)

    # max() keeps the first bucket on ties
    best_key = max(buckets, key=lambda k: len(buckets[k]))
    xs = sorted(buckets[best_key])
    median_cx = xs[len(xs) // 2]
    half = float(config.COLUMN_HALF_WIDTH_PX)
    log.info("Column inference: money column at x~%d with %d value(s)", best_key, len(xs))
    return ColumnBand(
        x0=float(median_cx - half),
        x1=float(median_cx + half),
        min_y=float("-inf"),
        method="cluster",
    )


def locate_column(words: Sequence[OCRWord]) -> Optional[ColumnBand]:
    header = find_header(words)
    if header is not None:
        band = column_from_header(header)
        log.info(
            "Header %r (conf %.0f): column x=%.0f..%.0f, y>=%.0f",
            header.text,
            header.confidence,
            band.x0,
            band.x1,
            band.min_y,
        )
        return band
    log.info('No "Needed" header found; inferring the amount column from money words')
    return infer_column(words)
