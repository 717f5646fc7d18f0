#!/usr/bin/env python3
"""
Convenience entrypoint for the funding table OCR pipeline (after `pip install -e .`):

  python main.py --image table.png --end-date 2026-10-31 --out output
  python main.py --image table.png --days-left 5 --add 25 --debug
"""

from __future__ import annotations

try:
    from funding_table_ocr.main import _cli
except ModuleNotFoundError as e:  # pragma: no cover
    if getattr(e, "name", "") == "cv2":
        raise SystemExit(
            "Missing dependency: OpenCV (cv2).\n"
            "Install project deps (in your venv):\n"
            "  python -m pip install -e .\n"
        ) from e
    raise

if __name__ == "__main__":
    raise SystemExit(_cli())
