from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from . import config
from .money import looks_like_money
from .types import BBox, OCRResult, OCRWord, RecognitionPass
from .word_merger import merge_passes

log = logging.getLogger("funding_table_ocr")


def decode_image(image_bytes: bytes) -> np.ndarray:
    """Decode an encoded image buffer (PNG/JPEG/WebP...) to single-channel uint8."""
    if not image_bytes:
        raise ValueError("Empty image buffer")
    buf = np.frombuffer(bytes(image_bytes), dtype=np.uint8)
    img = cv2.imdecode(buf, cv2.IMREAD_COLOR)
    if img is None:
        raise ValueError("Could not decode image bytes")
    return cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)


def keep_word(w: OCRWord, *, min_confidence: float = config.OCR_MIN_CONFIDENCE) -> bool:
    """
    Recall over precision for money: low-confidence words survive when they look like an
    amount or are longer than one character; lone low-confidence glyphs are dropped.
    """
    if not w.text:
        return False
    if float(w.confidence) >= float(min_confidence):
        return True
    return looks_like_money(w.text) or len(w.text) > 1


def _words_from_data(data: Dict[str, List[Any]]) -> Tuple[List[OCRWord], str]:
    words: List[OCRWord] = []
    lines: Dict[Tuple[int, int, int], List[str]] = {}
    texts = list(data.get("text") or [])
    for i, raw in enumerate(texts):
        text = str(raw or "").strip()
        if not text:
            continue
        try:
            conf = float(data["conf"][i])
        except (KeyError, IndexError, TypeError, ValueError):
            conf = -1.0
        if conf < 0:
            # structural rows (page/block/line) carry conf -1
            continue
        words.append(
            OCRWord(
                text=text,
                confidence=conf,
                bbox=BBox.from_xywh(
                    float(data["left"][i]),
                    float(data["top"][i]),
                    float(data["width"][i]),
                    float(data["height"][i]),
                ),
            )
        )
        key = (int(data["block_num"][i]), int(data["par_num"][i]), int(data["line_num"][i]))
        lines.setdefault(key, []).append(text)
    transcript = "\n".join(" ".join(parts) for _k, parts in sorted(lines.items()))
    return words, transcript


class TesseractEngine:
    """
    Long-lived Tesseract handle.

    `initialize()` probes the tesseract binary once. It is safe to call from several
    threads: the first caller does the work under the lock, later callers wait on the
    same lock and reuse the result.
    """

    def __init__(
        self,
        *,
        lang: str = config.OCR_LANGUAGE,
        oem: int = config.OCR_ENGINE_MODE,
        whitelist: str = config.OCR_CHAR_WHITELIST,
        tesseract_cmd: Optional[str] = None,
    ) -> None:
        self.lang = str(lang or "eng")
        self.oem = int(oem)
        self.whitelist = str(whitelist or "")
        self.tesseract_cmd = tesseract_cmd
        self._lock = threading.Lock()
        self._version: Optional[str] = None

    @staticmethod
    def _pytesseract():
        try:
            import pytesseract  # type: ignore
        except ModuleNotFoundError as e:  # pragma: no cover
            raise RuntimeError("pytesseract is not installed") from e
        return pytesseract

    @property
    def initialized(self) -> bool:
        return self._version is not None

    def initialize(self) -> str:
        if self._version is not None:
            return self._version
        with self._lock:
            if self._version is None:
                pt = self._pytesseract()
                if self.tesseract_cmd:
                    pt.pytesseract.tesseract_cmd = str(self.tesseract_cmd)
                self._version = str(pt.get_tesseract_version())
                log.info("Tesseract %s ready (lang=%s, oem=%d)", self._version, self.lang, self.oem)
        return self._version

    def config_for(self, psm: int) -> str:
        cfg = f"--oem {self.oem} --psm {int(psm)}"
        if self.whitelist:
            cfg += f" -c tessedit_char_whitelist={self.whitelist}"
        return cfg

    def recognize(self, image: np.ndarray, *, psm: int) -> RecognitionPass:
        self.initialize()
        pt = self._pytesseract()
        data = pt.image_to_data(
            image,
            lang=self.lang,
            config=self.config_for(psm),
            output_type=pt.Output.DICT,
        )
        words, text = _words_from_data(data)
        return RecognitionPass(psm=int(psm), text=text, words=words)


class OCRProcessor:
    """
    Multi-pass word-level OCR.

    Each segmentation mode misses different cells of a table, so every image is read
    once per PSM mode (concurrently) and the passes are merged. A failing pass fails the
    whole call; the engine's exception is not caught here.
    """

    def __init__(
        self,
        *,
        engine: Optional[Any] = None,
        psm_modes: Optional[Sequence[int]] = None,
        min_confidence: float = config.OCR_MIN_CONFIDENCE,
    ) -> None:
        self.engine = engine if engine is not None else TesseractEngine()
        self.psm_modes = tuple(int(p) for p in (psm_modes or config.OCR_PSM_MODES))
        self.min_confidence = float(min_confidence)

    def run_passes(self, image: np.ndarray) -> List[RecognitionPass]:
        if not self.psm_modes:
            raise ValueError("At least one PSM mode is required")
        with ThreadPoolExecutor(max_workers=len(self.psm_modes)) as pool:
            futures = [pool.submit(self.engine.recognize, image, psm=psm) for psm in self.psm_modes]
            raw = [f.result() for f in futures]

        out: List[RecognitionPass] = []
        for p in raw:
            kept = [w for w in p.words if keep_word(w, min_confidence=self.min_confidence)]
            log.debug("PSM %d: %d word(s), kept %d", p.psm, len(p.words), len(kept))
            out.append(RecognitionPass(psm=p.psm, text=p.text, words=kept))
        return out

    def recognize_image(self, image: np.ndarray) -> OCRResult:
        passes = self.run_passes(image)
        words, text = merge_passes(passes)
        return OCRResult(text=text, words=words, passes=passes)

    def recognize_bytes(self, image_bytes: bytes) -> OCRResult:
        return self.recognize_image(decode_image(image_bytes))
