"""
Funding table OCR.

Reads a screenshot of a table of names and "Needed" amounts, totals the column, and
turns the total into daily and per-shift fundraising targets for a three-shift day
in a fixed civil timezone.
"""

from .main import FundingState, RecalcOptions, parse_command_options, process_image

__all__ = ["FundingState", "RecalcOptions", "parse_command_options", "process_image"]
