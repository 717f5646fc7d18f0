from __future__ import annotations

from typing import List, Sequence, Tuple

from . import config
from .money import format_amount
from .types import Row, TargetResult
from .validator import Validator


def _sort_key(r: Row) -> Tuple[int, int]:
    # rows with values first, largest first; rows without values keep their order
    if r.amount is None:
        return (1, 0)
    return (0, -int(r.amount))


def render_rows(
    rows: Sequence[Row],
    symbol: str = config.CURRENCY_SYMBOL,
    *,
    max_chars: int = config.REPORT_MAX_CHARS,
    low_confidence: float = config.LOW_CONFIDENCE_THRESHOLD,
) -> Tuple[str, int]:
    """
    Chat-friendly preview of parsed rows. Returns (text, number of low-confidence rows shown).
    """
    ordered = sorted(rows, key=_sort_key)
    lines: List[str] = []
    flagged = 0
    length = 0
    name_max = int(config.REPORT_NAME_MAX_CHARS)
    validator = Validator(auto_threshold=low_confidence)

    for r in ordered:
        low = validator.is_low_confidence(r)
        name = r.name if len(r.name) <= name_max else r.name[: name_max - 1] + "…"
        value = "**-**" if r.amount is None else format_amount(r.amount, symbol)
        conf = "" if r.amount is None else f" (conf {r.confidence:g}%)"
        line = f"{'⚠️ ' if low else ''}**{name}** - {value}{conf}"

        if lines and length + len(line) + 1 > int(max_chars):
            lines.append(f"\n…and **{len(ordered) - len(lines)}** more rows (truncated)")
            break
        if low:
            flagged += 1
        lines.append(line)
        length += len(line) + 1

    return "\n".join(lines), flagged


def render_targets(targets: TargetResult, symbol: str = config.CURRENCY_SYMBOL) -> str:
    info = targets.shift_info
    out = [f"Total remaining: **{format_amount(targets.total_remaining, symbol)}**"]
    if targets.manual_adjustment:
        out.append(f"Manual adjustment: **{format_amount(targets.manual_adjustment, symbol)}** (applied to total)")
    days = f"**{targets.days_left}**"
    if targets.end_date:
        days += f" (until **{targets.end_date}**)"
    out.append(f"Days left: {days}")
    out.append(f"Daily target: **{format_amount(targets.daily_target, symbol)}** / day")
    out.append(f"Time: **{info.civil_now.clock()}** | Current: **{info.current_shift.value}**")
    out.append("Today (remaining shifts only):")
    for i, s in enumerate(info.remaining_shifts):
        label = f"**{s.value} (current)**" if i == 0 else f"**{s.value}**"
        out.append(f"{label}: {format_amount(targets.per_shift, symbol)}")
    return "\n".join(out)
