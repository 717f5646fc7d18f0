from __future__ import annotations

import argparse
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import config
from .needed_parser import extract_needed_values
from .ocr_processor import OCRProcessor, decode_image
from .report import render_rows, render_targets
from .targets import (
    FundingConfigError,
    MissingDeadlineError,
    apply_adjustment,
    compute_targets,
    resolve_end_date,
    resolve_timezone,
)
from .types import FundingUpdate
from .utils import Timer, ensure_dir, env_flag, env_str, save_image, save_json, setup_logging
from .validator import Validator

log = logging.getLogger("funding_table_ocr")


@dataclass(frozen=True)
class RecalcOptions:
    end_date: Optional[str] = None
    days_left_override: Optional[int] = None
    add_amount: Optional[float] = None
    remove_amount: Optional[float] = None
    reset_adjustment: bool = False


@dataclass(frozen=True)
class FundingState:
    """What the glue layer persisted from the previous invocation."""

    manual_adjustment: int = 0
    end_date: Optional[str] = None


def parse_command_options(text: str) -> RecalcOptions:
    """
    Parse the chat text-command form:

      !update end_date:2024-12-31 days_left:30 add:25.50 remove:10 reset

    Unknown or malformed parts are ignored.
    """
    end_date: Optional[str] = None
    days_left: Optional[int] = None
    add: Optional[float] = None
    remove: Optional[float] = None
    reset = False

    for part in (text or "").split()[1:]:
        key, _, value = part.partition(":")
        key = key.lower()
        if key == "end_date" and value:
            end_date = value
        elif key == "days_left":
            m = re.match(r"^[+-]?\d+", value)
            if m:
                days_left = int(m.group(0))
        elif key in ("add", "remove"):
            try:
                amount = float(value)
            except ValueError:
                continue
            if key == "add":
                add = amount
            else:
                remove = amount
        elif part.lower() in ("reset", "reset_adjustment"):
            reset = True

    return RecalcOptions(
        end_date=end_date,
        days_left_override=days_left,
        add_amount=add,
        remove_amount=remove,
        reset_adjustment=reset,
    )


def process_image(
    image_bytes: bytes,
    *,
    options: Optional[RecalcOptions] = None,
    state: Optional[FundingState] = None,
    processor: Optional[OCRProcessor] = None,
    default_end_date: Optional[str] = None,
    instant: Optional[datetime] = None,
    tz: Optional[str] = None,
) -> FundingUpdate:
    """
    Image bytes + recalculation options -> parsed rows and shift targets.

    Raises the OCR engine's own exception on recognition failure and a
    `FundingConfigError` subclass on usage problems (conflicting or non-finite
    add/remove, unknown timezone, no deadline). Those are checked before OCR where
    possible.
    """
    opts = options or RecalcOptions()
    st = state or FundingState()
    tz_name = resolve_timezone(tz or env_str(config.ENV_TIMEZONE, config.TIMEZONE))

    adjustment = apply_adjustment(
        st.manual_adjustment,
        add=opts.add_amount,
        remove=opts.remove_amount,
        reset=bool(opts.reset_adjustment),
    )
    end_date = resolve_end_date(
        opts.end_date,
        st.end_date,
        default_end_date if default_end_date is not None else env_str(config.ENV_END_DATE),
    )

    timings: Dict[str, float] = {}
    proc = processor or OCRProcessor()
    with Timer("ocr") as t:
        ocr = proc.recognize_bytes(image_bytes)
    timings["ocr_s"] = float(t.dt or 0.0)

    with Timer("parse") as t:
        parsed = extract_needed_values(ocr.words)
    timings["parse_s"] = float(t.dt or 0.0)

    try:
        targets = compute_targets(
            parsed.total,
            adjustment,
            end_date=end_date,
            days_left_override=opts.days_left_override,
            instant=instant,
            tz=tz_name,
        )
    except MissingDeadlineError as e:
        raise MissingDeadlineError(str(e), parse=parsed, manual_adjustment=adjustment) from e

    log.info("OCR %.3fs, parse %.3fs", timings["ocr_s"], timings["parse_s"])
    return FundingUpdate(
        ocr_text=ocr.text,
        parse=parsed,
        targets=targets,
        manual_adjustment=adjustment,
        end_date=end_date,
    )


def build_result(update: FundingUpdate, *, symbol: str = config.CURRENCY_SYMBOL) -> Dict[str, Any]:
    validated = Validator().validate_rows(update.parse)
    preview, flagged = render_rows(update.parse.rows, symbol)
    return {
        "status": "ok",
        "update": update,
        "validation": validated["validation"],
        "review_queue": validated["review_queue"],
        "report": {
            "rows": preview,
            "flagged_rows": int(flagged),
            "targets": render_targets(update.targets, symbol),
        },
    }


def _cli(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Read a funding table screenshot and compute daily / per-shift targets.")
    ap.add_argument("--image", required=True, help="Screenshot of the table (PNG/JPEG/WebP).")
    ap.add_argument("--end-date", default=None, help="Deadline YYYY-MM-DD (default: $FUNDING_END_DATE).")
    ap.add_argument("--days-left", type=int, default=None, help="Override the day count instead of using an end date.")
    ap.add_argument("--add", type=float, default=None, help="Money received since the screenshot (major units).")
    ap.add_argument("--remove", type=float, default=None, help="Money to take back off (major units).")
    ap.add_argument("--reset-adjustment", action="store_true", help="Zero the stored manual adjustment first.")
    ap.add_argument("--adjustment", type=int, default=0, help="Previously stored manual adjustment (minor units).")
    ap.add_argument("--timezone", default=None, help=f"Civil timezone for shifts (default: {config.TIMEZONE}).")
    ap.add_argument("--out", default="output", help="Output directory. Default: output/")
    ap.add_argument("--debug", action="store_true", help="Save the decoded image and the OCR transcript.")
    args = ap.parse_args(argv)

    setup_logging()
    out_root = ensure_dir(args.out)
    debug = bool(args.debug) or env_flag("FUNDING_OCR_DEBUG", config.DEBUG_SAVE_INTERMEDIATES)
    image_bytes = Path(args.image).read_bytes()

    options = RecalcOptions(
        end_date=args.end_date,
        days_left_override=args.days_left,
        add_amount=args.add,
        remove_amount=args.remove,
        reset_adjustment=bool(args.reset_adjustment),
    )
    state = FundingState(manual_adjustment=int(args.adjustment))

    processor = OCRProcessor()
    try:
        update = process_image(image_bytes, options=options, state=state, processor=processor, tz=args.timezone)
    except FundingConfigError as e:
        log.error("%s", e)
        payload: Dict[str, Any] = {"status": "failed", "error": str(e)}
        if isinstance(e, MissingDeadlineError) and e.parse is not None:
            payload["parse"] = e.parse
            payload["manual_adjustment"] = e.manual_adjustment
        save_json(out_root / "result.json", payload)
        return 2

    result = build_result(update)
    save_json(out_root / "result.json", result)
    if debug:
        debug_root = ensure_dir(out_root / "debug_output")
        save_image(debug_root / "decoded_gray.png", decode_image(image_bytes))
        save_json(debug_root / "ocr_text.json", {"text": update.ocr_text})

    log.info("Parsed rows:\n%s", result["report"]["rows"] or "(no rows found)")
    log.info("Targets:\n%s", result["report"]["targets"])
    return 0


if __name__ == "__main__":
    raise SystemExit(_cli())
