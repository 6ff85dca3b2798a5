# SPDX-License-Identifier: Apache-2.0
"""Measurement backends.

CharWidthMeasurer has no dependencies and is always available. The
PDFium, FreeType and browser backends import their libraries lazily.

Usage:
    from letterfit.measurement import CharWidthMeasurer
    port = CharWidthMeasurer()
    height = await port.measure(["Hello"], 12.0, 1.3, 200.0)

    # PDFium glyph metrics (requires pypdfium2)
    PdfiumMeasurer = get_pdfium_measurer()
    port = PdfiumMeasurer(standard_font="Times-Roman")

    # Chromium layout (requires playwright and an installed browser)
    BrowserMeasurer = get_browser_measurer()
    port = await BrowserMeasurer.launch(font_path="fonts/LilyWang.otf")
"""

from letterfit.measurement.approx import CharWidthMeasurer
from letterfit.measurement.base import MeasurementError, MeasurementPort
from letterfit.measurement.wrapping import LineWrapper

__all__ = [
    "CharWidthMeasurer",
    "LineWrapper",
    "MeasurementError",
    "MeasurementPort",
    "get_browser_measurer",
    "get_freetype_measurer",
    "get_pdfium_measurer",
]


def get_pdfium_measurer() -> type:
    """Get PdfiumMeasurer class with lazy import.

    Raises:
        ImportError: If pypdfium2 is not installed.
    """
    from letterfit.measurement.pdfium import PdfiumMeasurer

    return PdfiumMeasurer


def get_freetype_measurer() -> type:
    """Get FreeTypeMeasurer class with lazy import.

    Raises:
        ImportError: If Pillow is not installed.
    """
    from letterfit.measurement.freetype import FreeTypeMeasurer

    return FreeTypeMeasurer


def get_browser_measurer() -> type:
    """Get BrowserMeasurer class.

    Playwright itself is imported when :meth:`BrowserMeasurer.launch` runs.
    """
    from letterfit.measurement.browser import BrowserMeasurer

    return BrowserMeasurer
