# SPDX-License-Identifier: Apache-2.0
"""Synthetic measurement backend based on average character widths."""

from __future__ import annotations

from collections.abc import Sequence

from .wrapping import LineWrapper, is_cjk_char


class CharWidthMeasurer:
    """Estimate rendered height from fixed per-character widths.

    No font files or rendering engine are needed, which makes this backend
    suitable for tests and dry runs. Widths are fractions of the font size.
    """

    def __init__(
        self,
        latin_width: float = 0.55,
        cjk_width: float = 0.9,
        paragraph_gap: float = 0.0,
    ) -> None:
        """Initialize CharWidthMeasurer.

        Args:
            latin_width: Width of a non-CJK character in ems.
            cjk_width: Width of a CJK character in ems.
            paragraph_gap: Extra space between paragraphs, in lines.
        """
        self._latin_width = latin_width
        self._cjk_width = cjk_width
        self._paragraph_gap = paragraph_gap
        self._wrapper = LineWrapper(self.text_width)

    @property
    def name(self) -> str:
        return "approx"

    def text_width(self, text: str, font_size: float) -> float:
        """Estimated width of ``text`` in points."""
        ems = sum(self._cjk_width if is_cjk_char(c) else self._latin_width for c in text)
        return ems * font_size

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
