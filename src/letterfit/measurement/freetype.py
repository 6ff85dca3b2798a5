# SPDX-License-Identifier: Apache-2.0
"""Measurement backend using FreeType metrics through Pillow."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from PIL import ImageFont

from letterfit.core.errors import MeasurementError

from .wrapping import LineWrapper

logger = logging.getLogger(__name__)

# Advances are read at this size and scaled linearly to the requested size.
_REFERENCE_SIZE = 200
_CACHE_LIMIT = 8192


class FreeTypeMeasurer:
    """Measure text height with a TrueType/OpenType face loaded by Pillow.

    Suited to the decorative letter faces, which ship as font files rather
    than standard PDF fonts.
    """

    def __init__(
        self,
        font_path: Path | str | None = None,
        paragraph_gap: float = 0.0,
    ) -> None:
        """Initialize FreeTypeMeasurer.

        Args:
            font_path: Font file. If None, Pillow's bundled default face is
                used (handy for tests).
            paragraph_gap: Extra space between paragraphs, in lines.

        Raises:
            MeasurementError: If the font cannot be loaded.
        """
        self._font = self._load_font(font_path)
        logger.debug("Loaded FreeType font %s", font_path or "<default>")
        self._paragraph_gap = paragraph_gap
        self._widths: dict[str, float] = {}
        self._wrapper = LineWrapper(self.text_width)

    @property
    def name(self) -> str:
        return "freetype"

    @staticmethod
    def _load_font(font_path: Path | str | None) -> ImageFont.FreeTypeFont:
        if font_path is None:
            font = ImageFont.load_default(size=_REFERENCE_SIZE)
            if not isinstance(font, ImageFont.FreeTypeFont):
                raise MeasurementError("Pillow was built without FreeType support")
            return font
        path = Path(font_path)
        if not path.exists():
            raise MeasurementError(f"Font file not found: {path}")
        try:
            return ImageFont.truetype(str(path), size=_REFERENCE_SIZE)
        except OSError as exc:
            raise MeasurementError(f"Could not load font {path}: {exc}", cause=exc) from exc

    def text_width(self, text: str, font_size: float) -> float:
        """Width of ``text`` in points at ``font_size``.

        Whole-string advances include kerning, so words are measured as a
        unit and cached.
        """
        width = self._widths.get(text)
        if width is None:
            width = self._font.getlength(text) / _REFERENCE_SIZE
            if len(self._widths) >= _CACHE_LIMIT:
                self._widths.clear()
            self._widths[text] = width
        return width * font_size

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
