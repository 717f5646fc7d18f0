from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Literal, Optional


@dataclass(frozen=True)
class BBox:
    """Axis-aligned bounding box in absolute pixel coordinates (x0,y0)-(x1,y1)."""

    x0: float
    y0: float
    x1: float
    y1: float

    @property
    def width(self) -> float:
        return float(self.x1 - self.x0)

    @property
    def height(self) -> float:
        return float(self.y1 - self.y0)

    @property
    def center_x(self) -> float:
        return float(self.x0 + self.x1) / 2.0

    @classmethod
    def from_xywh(cls, x: float, y: float, w: float, h: float) -> "BBox":
        return cls(x0=float(x), y0=float(y), x1=float(x + w), y1=float(y + h))


@dataclass(frozen=True)
class OCRWord:
    """One recognised word. Confidence is on Tesseract's 0-100 scale."""

    text: str
    confidence: float
    bbox: BBox


@dataclass(frozen=True)
class RecognitionPass:
    psm: int
    text: str
    words: list[OCRWord]


@dataclass(frozen=True)
class OCRResult:
    text: str  # longest pass transcription, for diagnostics
    words: list[OCRWord]
    passes: list[RecognitionPass] = field(default_factory=list)


@dataclass(frozen=True)
class Row:
    name: str
    amount: Optional[int]  # minor units; None = nothing parseable in the value band
    confidence: float


@dataclass(frozen=True)
class ColumnBand:
    x0: float
    x1: float
    min_y: float
    method: Literal["header", "cluster"]
    header: Optional[OCRWord] = None


@dataclass(frozen=True)
class ParseResult:
    rows: list[Row]
    total: int
    needed_values: list[int]
    column: Optional[ColumnBand] = None

    @classmethod
    def from_rows(cls, rows: list[Row], column: Optional[ColumnBand] = None) -> "ParseResult":
        values = [int(r.amount) for r in rows if r.amount is not None]
        return cls(rows=list(rows), total=int(sum(values)), needed_values=values, column=column)

    @classmethod
    def empty(cls) -> "ParseResult":
        return cls(rows=[], total=0, needed_values=[], column=None)


class ShiftName(str, Enum):
    MORNING = "Morning"
    DAY = "Day"
    NIGHT = "Night"


@dataclass(frozen=True)
class CivilNow:
    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int

    @property
    def calendar_date(self) -> date:
        return date(self.year, self.month, self.day)

    @property
    def iso_date(self) -> str:
        return self.calendar_date.isoformat()

    def clock(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}:{self.second:02d}"


@dataclass(frozen=True)
class ShiftInfo:
    civil_now: CivilNow
    shift_day_date: date  # shift-day starts at 03:00 civil time
    current_shift: ShiftName
    remaining_shifts: list[ShiftName]  # includes the current shift


@dataclass(frozen=True)
class TargetResult:
    total_remaining: int
    days_left: int
    daily_target: int
    per_shift: int
    shift_info: ShiftInfo
    manual_adjustment: int = 0
    end_date: Optional[str] = None


@dataclass(frozen=True)
class FundingUpdate:
    """Everything one invocation hands back to the glue layer."""

    ocr_text: str
    parse: ParseResult
    targets: TargetResult
    manual_adjustment: int
    end_date: Optional[str]
