from __future__ import annotations

import re
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from . import config
from .money import parse_amount
from .types import OCRWord, Row

# (value-band words, whole line) -> amount in minor units, or None
AmountStrategy = Callable[[Sequence[OCRWord], Sequence[OCRWord]], Optional[int]]


def _join(words: Sequence[OCRWord]) -> str:
    return " ".join(w.text for w in words)


def normalize_name(name: str) -> str:
    return re.sub(r"\s+", " ", (name or "").strip().lower())


def cluster_by_line(words: Sequence[OCRWord], y_tolerance: float = config.LINE_Y_TOLERANCE_PX) -> List[List[OCRWord]]:
    """
    Group words into lines: a word joins the current line when its top edge is within
    `y_tolerance` of the line's mean top edge. Each line is returned left-to-right.
    """
    lines: List[List[OCRWord]] = []
    for w in sorted(words, key=lambda w: w.bbox.y0):
        if lines:
            last = lines[-1]
            mean_y = sum(x.bbox.y0 for x in last) / float(len(last))
            if abs(w.bbox.y0 - mean_y) <= float(y_tolerance):
                last.append(w)
                continue
        lines.append([w])
    for line in lines:
        line.sort(key=lambda w: w.bbox.x0)
    return lines


# -------------------------
# Amount strategies (tried in order, first hit wins)
# -------------------------


def joined_value_words(values: Sequence[OCRWord], line: Sequence[OCRWord]) -> Optional[int]:
    if not values:
        return None
    return parse_amount(_join(values))


def single_word_right_to_left(values: Sequence[OCRWord], line: Sequence[OCRWord]) -> Optional[int]:
    # amounts are right-aligned, so the rightmost parseable word is the best guess
    for w in reversed(values):
        v = parse_amount(w.text)
        if v is not None:
            return v
    return None


def last_two_words(values: Sequence[OCRWord], line: Sequence[OCRWord]) -> Optional[int]:
    if len(values) < 2:
        return None
    return parse_amount(_join(values[-2:]))


def first_two_words(values: Sequence[OCRWord], line: Sequence[OCRWord]) -> Optional[int]:
    if len(values) < 2:
        return None
    return parse_amount(_join(values[:2]))


def whole_line(values: Sequence[OCRWord], line: Sequence[OCRWord]) -> Optional[int]:
    return parse_amount(_join(line))


AMOUNT_STRATEGIES: Tuple[AmountStrategy, ...] = (
    joined_value_words,
    single_word_right_to_left,
    last_two_words,
    first_two_words,
    whole_line,
)


def parse_line_amount(
    values: Sequence[OCRWord],
    line: Sequence[OCRWord],
    strategies: Sequence[AmountStrategy] = AMOUNT_STRATEGIES,
) -> Optional[int]:
    for strategy in strategies:
        v = strategy(values, line)
        if v is not None:
            return v
    return None


def _mean_confidence(words: Sequence[OCRWord]) -> float:
    if not words:
        return 0.0
    return round(sum(float(w.confidence) for w in words) / float(len(words)), 1)


def parse_row(line: Sequence[OCRWord], x0: float, x1: float) -> Optional[Row]:
    """
    Split one line into (name, amount). Returns None for lines without a name
    (page titles, the header row itself).
    """
    name_words = [w for w in line if w.bbox.center_x < x0 - int(config.NAME_GAP_PX) and w.text.strip()]
    name = re.sub(r"\s+", " ", " ".join(w.text.strip() for w in name_words)).strip()
    if not name:
        return None

    right_edge = x1 + int(config.VALUE_RIGHT_TOLERANCE_PX)
    values = [w for w in line if x0 <= w.bbox.center_x <= right_edge]
    amount = parse_line_amount(values, line)
    confidence = _mean_confidence(values if values else name_words)
    return Row(name=name, amount=amount, confidence=confidence)


def parse_rows_from_lines(lines: Sequence[Sequence[OCRWord]], x0: float, x1: float) -> List[Row]:
    rows: List[Row] = []
    for line in lines:
        row = parse_row(line, x0, x1)
        if row is not None:
            rows.append(row)
    return rows


# -------------------------
# Deduplication
# -------------------------


def _better(a: Row, b: Row) -> bool:
    """True when `a` should replace `b` as a group representative."""
    if a.confidence != b.confidence:
        return a.confidence > b.confidence
    if (a.amount is not None) != (b.amount is not None):
        return a.amount is not None
    return len(a.name) > len(b.name)


def _similar(a: Row, b: Row) -> bool:
    n1, n2 = normalize_name(a.name), normalize_name(b.name)
    if not n1 or not n2:
        return False
    names = n1 == n2 or (
        (n1 in n2 or n2 in n1) and abs(len(n1) - len(n2)) <= int(config.DEDUPE_NAME_LEN_DIFF)
    )
    amounts = a.amount == b.amount or a.amount is None or b.amount is None
    return names and amounts


def dedupe_rows(rows: Sequence[Row]) -> List[Row]:
    """
    Collapse rows produced by several clustering passes.

    Exact (name, amount) duplicates are folded first; the survivors are then grouped
    with a union-find over the similarity relation and each group contributes one
    representative, in order of first appearance. A group holds at most one distinct
    amount, so a row without an amount never joins two rows whose amounts differ.
    """
    by_key: Dict[Tuple[str, Optional[int]], Row] = {}
    for r in rows:
        key = (normalize_name(r.name), r.amount)
        cur = by_key.get(key)
        if cur is None or _better(r, cur):
            by_key[key] = r
    unique = list(by_key.values())

    parent = list(range(len(unique)))
    # the non-null amount each root's group has settled on
    group_amount: List[Optional[int]] = [r.amount for r in unique]

    def find(i: int) -> int:
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    for i in range(len(unique)):
        for j in range(i + 1, len(unique)):
            if not _similar(unique[i], unique[j]):
                continue
            ri, rj = find(i), find(j)
            if ri == rj:
                continue
            ai, aj = group_amount[ri], group_amount[rj]
            if ai is not None and aj is not None and ai != aj:
                continue
            root, child = min(ri, rj), max(ri, rj)
            parent[child] = root
            group_amount[root] = ai if ai is not None else aj

    groups: Dict[int, Row] = {}
    for i, r in enumerate(unique):
        root = find(i)
        cur = groups.get(root)
        if cur is None or _better(r, cur):
            groups[root] = r
    return [groups[root] for root in sorted(groups)]
