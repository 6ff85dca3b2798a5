# SPDX-License-Identifier: Apache-2.0
"""Measurement backend using PDFium glyph metrics.

Widths come from ``FPDFFont_GetGlyphWidth`` on either a standard PDF font or a
TrueType file, so measured lines match what PDFium would draw.
"""

from __future__ import annotations

import ctypes
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pypdfium2 as pdfium  # type: ignore[import-untyped]

from letterfit.core.errors import MeasurementError
from letterfit.core.helpers import to_byte_array

from .wrapping import LineWrapper

logger = logging.getLogger(__name__)

# Glyph widths are cached at this size and scaled linearly.
_REFERENCE_SIZE = 1000.0


class PdfiumMeasurer:
    """Measure text height with PDFium font metrics.

    Holds an in-memory PDF document for the lifetime of the measurer; call
    :meth:`aclose` (or :meth:`close`) when done.
    """

    def __init__(
        self,
        font_path: Path | str | None = None,
        standard_font: str = "Helvetica",
        paragraph_gap: float = 0.0,
    ) -> None:
        """Initialize PdfiumMeasurer.

        Args:
            font_path: TrueType font file. If None, ``standard_font`` is used.
            standard_font: Standard PDF font name (e.g. "Times-Roman").
            paragraph_gap: Extra space between paragraphs, in lines.

        Raises:
            MeasurementError: If the font cannot be loaded.
        """
        self._pdf: pdfium.PdfDocument | None = pdfium.PdfDocument.new()
        self._font_buffer: ctypes.Array | None = None
        self._paragraph_gap = paragraph_gap
        self._widths: dict[str, float] = {}
        self._font: Any = self._load_font(font_path, standard_font)
        self._wrapper = LineWrapper(self.text_width)

    @property
    def name(self) -> str:
        return "pdfium"

    def _load_font(self, font_path: Path | str | None, standard_font: str) -> Any:
        assert self._pdf is not None
        if font_path is None:
            handle = pdfium.raw.FPDFText_LoadStandardFont(
                self._pdf.raw, standard_font.encode("utf-8")
            )
            source = standard_font
        else:
            path = Path(font_path)
            if not path.exists():
                self.close()
                raise MeasurementError(f"Font file not found: {path}")
            font_data = path.read_bytes()
            # Keep the buffer alive while PDFium uses the font
            self._font_buffer = to_byte_array(font_data)
            handle = pdfium.raw.FPDFText_LoadFont(
                self._pdf.raw,
                self._font_buffer,
                ctypes.c_uint(len(font_data)),
                ctypes.c_int(pdfium.raw.FPDF_FONT_TRUETYPE),
                ctypes.c_int(1),  # CID mode for full Unicode coverage
            )
            source = str(path)

        if not handle:
            self.close()
            raise MeasurementError(f"PDFium could not load font: {source}")
        logger.debug("Loaded PDFium font %s", source)
        return handle

    def _glyph_width(self, char: str) -> float:
        width = self._widths.get(char)
        if width is None:
            width_out = ctypes.c_float()
            ok = pdfium.raw.FPDFFont_GetGlyphWidth(
                self._font,
                ord(char),
                ctypes.c_float(_REFERENCE_SIZE),
                ctypes.byref(width_out),
            )
            width = width_out.value / _REFERENCE_SIZE if ok else 0.0
            self._widths[char] = width
        return width

    def text_width(self, text: str, font_size: float) -> float:
        """Width of ``text`` in points at ``font_size``."""
        if self._pdf is None:
            raise MeasurementError("PdfiumMeasurer is closed")
        return sum(self._glyph_width(char) for char in text) * font_size

    async def measure(
        self,
        content: Sequence[str],
        font_size: float,
        line_height_ratio: float,
        container_width: float,
    ) -> float:
        return self._wrapper.block_height(
            content,
            font_size,
            line_height_ratio,
            container_width,
            paragraph_gap=self._paragraph_gap,
        )

    def close(self) -> None:
        """Release the font and the PDF document."""
        if self._pdf is None:
            return
        font = getattr(self, "_font", None)
        if font:
            pdfium.raw.FPDFFont_Close(font)
        self._font = None
        self._font_buffer = None
        self._widths.clear()
        self._pdf.close()
        self._pdf = None

    async def aclose(self) -> None:
        self.close()

    def __enter__(self) -> PdfiumMeasurer:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
