# SPDX-License-Identifier: Apache-2.0
"""Helpers for turning merged template output into fit content."""

from __future__ import annotations

import html
import re
from collections.abc import Iterable, Sequence

_PARAGRAPH_RE = re.compile(r"<p\b[^>]*>(.*?)</p\s*>", re.IGNORECASE | re.DOTALL)
_BREAK_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_INLINE_SPACE_RE = re.compile(r"[ \t\r\f\v]+")
_WHITESPACE_RE = re.compile(r"\s+")


def is_blank(content: Iterable[str]) -> bool:
    """Return True if every paragraph is empty or whitespace only."""
    return all(not paragraph.strip() for paragraph in content)


def normalize_paragraphs(content: Sequence[str]) -> list[str]:
    """Normalize line endings and drop empty paragraphs.

    Embedded single-line breaks are kept; spaces around them are trimmed.
    """
    paragraphs: list[str] = []
    for paragraph in content:
        text = paragraph.replace("\r\n", "\n").replace("\r", "\n")
        lines = [_INLINE_SPACE_RE.sub(" ", line).strip() for line in text.split("\n")]
        text = "\n".join(lines).strip("\n")
        if text.strip():
            paragraphs.append(text)
    return paragraphs


def _markup_to_text(fragment: str) -> str:
    # Source whitespace is layout only; <br> is the sole hard break.
    fragment = _WHITESPACE_RE.sub(" ", fragment)
    fragment = _BREAK_RE.sub("\n", fragment)
    fragment = _TAG_RE.sub("", fragment)
    return html.unescape(fragment)


def paragraphs_from_markup(markup: str) -> list[str]:
    """Split merged HTML into paragraphs.

    ``<p>`` blocks become paragraphs and ``<br>`` becomes an embedded line
    break. Other tags are stripped and entities unescaped. Markup without any
    ``<p>`` block is treated as a single paragraph.
    """
    if not markup or not markup.strip():
        return []

    blocks = _PARAGRAPH_RE.findall(markup)
    if not blocks:
        blocks = [markup]

    paragraphs = []
    for block in blocks:
        paragraphs.append(_markup_to_text(block))
    return normalize_paragraphs(paragraphs)
