# SPDX-License-Identifier: Apache-2.0
"""Greedy line wrapping shared by the metric-based measurement backends.

The wrapper only needs a width function; each backend supplies widths from
its own font metrics. Height is derived as line count times line spacing,
which matches how the HTML templates lay out ``<p>`` blocks.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

# (text, font_size) -> width in points
WidthFunction = Callable[[str, float], float]


def is_cjk_char(char: str) -> bool:
    """Check if a character is CJK (Chinese, Japanese, Korean)."""
    code = ord(char)
    return (
        0x4E00 <= code <= 0x9FFF  # CJK Unified Ideographs
        or 0x3040 <= code <= 0x309F  # Hiragana
        or 0x30A0 <= code <= 0x30FF  # Katakana
        or 0x3400 <= code <= 0x4DBF  # CJK Extension A
        or 0xAC00 <= code <= 0xD7AF  # Hangul Syllables
        or 0x3000 <= code <= 0x303F  # CJK Punctuation
        or 0xFF00 <= code <= 0xFFEF  # Fullwidth Forms
    )


def _tokens(line: str) -> list[str]:
    """Split a line into wrap units: words, with CJK characters standalone."""
    tokens: list[str] = []
    word = ""
    for char in line:
        if char.isspace():
            if word:
                tokens.append(word)
                word = ""
        elif is_cjk_char(char):
            if word:
                tokens.append(word)
                word = ""
            tokens.append(char)
        else:
            word += char
    if word:
        tokens.append(word)
    return tokens


class LineWrapper:
    """Wrap text to a width using a pluggable width function."""

    def __init__(self, width_fn: WidthFunction) -> None:
        self._width = width_fn

    def wrap_line(self, line: str, max_width: float, font_size: float) -> list[str]:
        """Wrap a single hard line (no ``\\n``) into display lines.

        Words are joined while they fit. A word wider than the line is broken
        at character boundaries, always keeping at least one character.
        An empty line yields one empty display line.
        """
        tokens = _tokens(line)
        if not tokens:
            return [""]

        lines: list[str] = []
        current = ""
        for token in tokens:
            joiner = " "
            if not current or is_cjk_char(token[0]) or is_cjk_char(current[-1]):
                joiner = ""
            candidate = f"{current}{joiner}{token}"
            if self._width(candidate, font_size) <= max_width:
                current = candidate
                continue

            if current:
                lines.append(current)
                current = ""

            if self._width(token, font_size) <= max_width:
                current = token
                continue

            pieces = self._break_word(token, max_width, font_size)
            lines.extend(pieces[:-1])
            current = pieces[-1]

        lines.append(current)
        return lines

    def wrap_paragraph(self, paragraph: str, max_width: float, font_size: float) -> list[str]:
        """Wrap a paragraph, keeping its embedded ``\\n`` breaks."""
        lines: list[str] = []
        for hard_line in paragraph.split("\n"):
            lines.extend(self.wrap_line(hard_line, max_width, font_size))
        return lines

    def count_lines(
        self, content: Sequence[str], max_width: float, font_size: float
    ) -> tuple[int, int]:
        """Count display lines and non-empty paragraphs.

        Whitespace-only paragraphs collapse to nothing, like an empty
        ``<p>`` block.

        Returns:
            Tuple of (line_count, paragraph_count).
        """
        line_count = 0
        paragraph_count = 0
        for paragraph in content:
            if not paragraph.strip():
                continue
            paragraph_count += 1
            line_count += len(self.wrap_paragraph(paragraph.strip("\n"), max_width, font_size))
        return line_count, paragraph_count

    def block_height(
        self,
        content: Sequence[str],
        font_size: float,
        line_height_ratio: float,
        max_width: float,
        paragraph_gap: float = 0.0,
    ) -> float:
        """Height of the wrapped block in points.

        Args:
            content: Paragraphs to lay out.
            font_size: Font size in points.
            line_height_ratio: Line spacing as a multiple of ``font_size``.
            max_width: Wrapping width in points.
            paragraph_gap: Extra space between paragraphs, in lines.
        """
        line_count, paragraph_count = self.count_lines(content, max_width, font_size)
        line_height = font_size * line_height_ratio
        gaps = max(0, paragraph_count - 1)
        return line_count * line_height + gaps * paragraph_gap * line_height

    def _break_word(self, word: str, max_width: float, font_size: float) -> list[str]:
        pieces: list[str] = []
        current = ""
        for char in word:
            candidate = current + char
            if current and self._width(candidate, font_size) > max_width:
                pieces.append(current)
                current = char
            else:
                current = candidate
        pieces.append(current)
        return pieces
