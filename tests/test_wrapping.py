# SPDX-License-Identifier: Apache-2.0
"""Tests for greedy line wrapping."""

from __future__ import annotations

import pytest

from letterfit.measurement.wrapping import LineWrapper, is_cjk_char


def unit_width(text: str, font_size: float) -> float:
    """Every character is exactly one em wide."""
    return len(text) * font_size


@pytest.fixture
def wrapper() -> LineWrapper:
    """LineWrapper with monospace widths."""
    return LineWrapper(unit_width)


class TestIsCjkChar:
    """Tests for is_cjk_char."""

    def test_cjk(self) -> None:
        """Test ideographs and kana."""
        assert is_cjk_char("雪")
        assert is_cjk_char("サ")
        assert is_cjk_char("。")

    def test_latin(self) -> None:
        """Test Latin letters."""
        assert not is_cjk_char("a")
        assert not is_cjk_char("é")


class TestLineWrapper:
    """Tests for LineWrapper."""

    def test_fits_on_one_line(self, wrapper: LineWrapper) -> None:
        """Test text that fits the width."""
        assert wrapper.wrap_line("Ho ho ho", 10.0, 1.0) == ["Ho ho ho"]

    def test_wraps_at_words(self, wrapper: LineWrapper) -> None:
        """Test greedy word wrapping."""
        assert wrapper.wrap_line("Merry Christmas to you", 12.0, 1.0) == [
            "Merry",
            "Christmas to",
            "you",
        ]

    def test_breaks_long_word(self, wrapper: LineWrapper) -> None:
        """Test that a word wider than the line is split."""
        assert wrapper.wrap_line("Supercalifragilistic", 8.0, 1.0) == [
            "Supercal",
            "ifragili",
            "stic",
        ]

    def test_narrower_than_one_character(self, wrapper: LineWrapper) -> None:
        """Test that each line keeps at least one character."""
        assert wrapper.wrap_line("abc", 0.5, 1.0) == ["a", "b", "c"]

    def test_cjk_without_spaces(self, wrapper: LineWrapper) -> None:
        """Test that CJK text wraps between characters."""
        assert wrapper.wrap_line("メリークリスマス", 3.0, 1.0) == ["メリー", "クリス", "マス"]

    def test_empty_line(self, wrapper: LineWrapper) -> None:
        """Test that an empty hard line still takes a line."""
        assert wrapper.wrap_paragraph("Love,\n\nSanta", 10.0, 1.0) == ["Love,", "", "Santa"]

    def test_count_lines_skips_blank_paragraphs(self, wrapper: LineWrapper) -> None:
        """Test line and paragraph counting."""
        lines, paragraphs = wrapper.count_lines(["Dear Mia,", "  ", "Love,\nSanta"], 20.0, 1.0)
        assert (lines, paragraphs) == (3, 2)

    def test_block_height(self, wrapper: LineWrapper) -> None:
        """Test height from line count, size and spacing."""
        height = wrapper.block_height(["one two", "three"], 10.0, 1.5, 50.0)
        # "one" / "two" / "three"
        assert height == pytest.approx(3 * 15.0)

    def test_block_height_paragraph_gap(self, wrapper: LineWrapper) -> None:
        """Test extra space between paragraphs."""
        height = wrapper.block_height(["a", "b", "c"], 10.0, 1.0, 100.0, paragraph_gap=0.5)
        assert height == pytest.approx(3 * 10.0 + 2 * 5.0)

    def test_height_monotonic_in_size(self, wrapper: LineWrapper) -> None:
        """Test that a larger font never yields a shorter block."""
        content = ["Dear Santa, this year I would like a red bicycle and a puppy."]
        heights = [wrapper.block_height(content, size, 1.3, 200.0) for size in range(8, 40)]
        assert heights == sorted(heights)
