from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from . import config
from .types import OCRWord, RecognitionPass

log = logging.getLogger("funding_table_ocr")

BucketKey = Tuple[int, int, str]


def _bucket_key(w: OCRWord, grid: int) -> BucketKey:
    g = float(max(1, int(grid)))
    return (int(round(w.bbox.x0 / g)), int(round(w.bbox.y0 / g)), w.text.lower())


def _find_near(kept: Dict[BucketKey, OCRWord], w: OCRWord, near: float) -> Optional[BucketKey]:
    """A kept word with the same text whose top-left corner is within `near` px."""
    text = w.text.lower()
    for key, k in kept.items():
        if key[2] != text:
            continue
        if abs(k.bbox.y0 - w.bbox.y0) <= near and abs(k.bbox.x0 - w.bbox.x0) <= near:
            return key
    return None


def merge_words(word_lists: Iterable[Sequence[OCRWord]], *, grid: int = config.MERGE_GRID_PX, near: float = config.MERGE_NEAR_PX) -> List[OCRWord]:
    """
    Merge token streams from several segmentation passes into one deduplicated set.

    Tokens are bucketed by (grid-rounded position, lowercase text); a bucket keeps its
    highest-confidence token. A token that misses every bucket but sits within `near`
    px of a kept token with the same text (rounding put it one cell over) is treated as
    that token; anything else is unique to its pass and is added.
    """
    kept: Dict[BucketKey, OCRWord] = {}
    for words in word_lists:
        for w in words:
            key = _bucket_key(w, grid)
            cur = kept.get(key)
            if cur is None:
                near_key = _find_near(kept, w, float(near))
                if near_key is None:
                    kept[key] = w
                    continue
                key, cur = near_key, kept[near_key]
            if float(w.confidence) > float(cur.confidence):
                kept[key] = w
    return list(kept.values())


def longest_text(texts: Iterable[str]) -> str:
    best = ""
    for t in texts:
        if len(t or "") > len(best):
            best = str(t)
    return best


def merge_passes(passes: Sequence[RecognitionPass]) -> Tuple[List[OCRWord], str]:
    merged = merge_words([p.words for p in passes])
    log.debug(
        "Merged %d pass(es): %s -> %d word(s)",
        len(passes),
        ", ".join(f"psm{p.psm}={len(p.words)}" for p in passes),
        len(merged),
    )
    return merged, longest_text(p.text for p in passes)
