from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from . import config
from .types import ParseResult, Row

log = logging.getLogger("funding_table_ocr")


class Validator:
    """
    Confidence-based triage of parsed rows so the glue layer can ask for a re-upload or
    a manual check.
    """

    def __init__(
        self,
        *,
        auto_threshold: float = config.LOW_CONFIDENCE_THRESHOLD,
        manual_threshold: float = config.MANUAL_ENTRY_THRESHOLD,
        amount_max: int = config.ROW_AMOUNT_MAX,
    ) -> None:
        self.auto_threshold = float(auto_threshold)
        self.manual_threshold = float(manual_threshold)
        self.amount_max = int(amount_max)

    def validate_rows(self, parsed: ParseResult) -> Dict[str, Any]:
        rows_out: List[Dict[str, Any]] = []
        review_queue: List[Dict[str, Any]] = []
        auto = review = manual = 0

        for i, row in enumerate(parsed.rows):
            status = self._status(row.confidence)
            reason = self._reason(row, status)
            rows_out.append(
                {
                    "index": i,
                    "name": row.name,
                    "amount": row.amount,
                    "confidence": float(row.confidence),
                    "status": status,
                    "reason": reason,
                }
            )
            if status == "auto_accepted" and reason is None:
                auto += 1
                continue
            if status == "manual_entry":
                manual += 1
            else:
                review += 1
            review_queue.append(
                {"index": i, "name": row.name, "amount": row.amount, "confidence": float(row.confidence), "reason": reason}
            )

        if review_queue:
            log.info("%d of %d row(s) need review", len(review_queue), len(parsed.rows))
        return {
            "rows": rows_out,
            "validation": {
                "total_rows": int(len(parsed.rows)),
                "auto_accepted": int(auto),
                "review_needed": int(review),
                "manual_entry": int(manual),
            },
            "review_queue": review_queue,
        }

    def is_low_confidence(self, row: Row) -> bool:
        return float(row.confidence) < self.auto_threshold

    def _status(self, confidence: float) -> str:
        if float(confidence) >= self.auto_threshold:
            return "auto_accepted"
        if float(confidence) >= self.manual_threshold:
            return "review_queue"
        return "manual_entry"

    def _reason(self, row: Row, status: str) -> Optional[str]:
        if row.amount is None:
            return "missing_amount"
        if row.amount < 0 or row.amount > self.amount_max:
            return "outlier_value"
        if status != "auto_accepted":
            return "low_confidence"
        return None
