"""
Central configuration for the funding table OCR pipeline.

All "magic numbers" live here so tuning for new screenshot layouts is easy.
"""

from __future__ import annotations

# -------------------------
# Civil time / shifts
# -------------------------
TIMEZONE: str = "Europe/London"
SHIFT_DAY_START_HOUR: int = 3  # 00:00-02:59 belongs to the previous shift-day
MORNING_START_HOUR: int = 3
DAY_START_HOUR: int = 11
NIGHT_START_HOUR: int = 19

# -------------------------
# Money
# -------------------------
CURRENCY_SYMBOL: str = "$"
CURRENCY_SYMBOLS: str = "$£€"
MAX_FRACTION_DIGITS: int = 3  # anything longer is not a money amount

# -------------------------
# OCR (Tesseract)
# -------------------------
OCR_LANGUAGE: str = "eng"
OCR_ENGINE_MODE: int = 1  # LSTM only
# 6 = uniform block, 11 = sparse text (gapped cells), 4 = single column
OCR_PSM_MODES: tuple[int, ...] = (6, 11, 4)
OCR_CHAR_WHITELIST: str = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz$£.,"
OCR_MIN_CONFIDENCE: float = 25.0  # below this only money-shaped / multi-char words survive

# -------------------------
# Multi-pass merge
# -------------------------
MERGE_GRID_PX: int = 10
MERGE_NEAR_PX: int = 10

# -------------------------
# Header / column location
# -------------------------
HEADER_EXACT = ("needed", "need")
HEADER_PAD_FRAC: float = 1.2  # column half-padding as a fraction of header width
HEADER_MIN_WIDTH_PX: int = 10
HEADER_BOTTOM_GAP_PX: int = 4
COLUMN_BUCKET_PX: int = 40
COLUMN_HALF_WIDTH_PX: int = 120
COLUMN_MIN_MONEY_WORDS: int = 2

# -------------------------
# Row reconstruction
# -------------------------
LINE_Y_TOLERANCE_PX: int = 15
# (y_tolerance, x0 shift, x1 shift) per clustering pass under a detected header
HEADER_ROW_PASSES: tuple[tuple[int, int, int], ...] = (
    (15, 0, 0),
    (20, 0, 0),
    (10, 0, 0),
    (15, -20, 20),  # wider column
    (12, 10, -10),  # tighter column
)
NAME_GAP_PX: int = 3
VALUE_RIGHT_TOLERANCE_PX: int = 50
DEDUPE_NAME_LEN_DIFF: int = 2

# -------------------------
# Validation / reporting
# -------------------------
LOW_CONFIDENCE_THRESHOLD: float = 60.0
MANUAL_ENTRY_THRESHOLD: float = 40.0
ROW_AMOUNT_MAX: int = 100_000_000  # minor units
REPORT_MAX_CHARS: int = 5500
REPORT_NAME_MAX_CHARS: int = 35

# -------------------------
# Environment
# -------------------------
ENV_END_DATE: str = "FUNDING_END_DATE"
ENV_TIMEZONE: str = "FUNDING_TIMEZONE"

# -------------------------
# Debugging
# -------------------------
DEBUG_SAVE_INTERMEDIATES: bool = False
