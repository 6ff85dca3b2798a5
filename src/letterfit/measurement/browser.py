# SPDX-License-Identifier: Apache-2.0
"""Measurement backend using headless Chromium through Playwright.

The block is laid out by the same engine that renders the final PDFs, so the
measured height accounts for real font shaping, kerning and CSS.
"""

from __future__ import annotations

import base64
import html
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from letterfit.core.errors import MeasurementError
from letterfit.core.helpers import px_to_pt

logger = logging.getLogger(__name__)

BLOCK_ID = "letterfit-block"

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="UTF-8">
<style>
* {{ margin: 0; padding: 0; box-sizing: border-box; }}
#{block_id} {{ font-family: {font_family}; white-space: normal; }}
#{block_id} p {{ margin: 0; }}
{stylesheet}
</style>
</head>
<body><div id="{block_id}"></div></body>
</html>
"""

_MEASURE_SCRIPT = """
(args) => {
  const block = document.getElementById(args.blockId);
  block.style.width = args.width + 'pt';
  block.style.fontSize = args.size + 'pt';
  block.style.lineHeight = String(args.lineHeight);
  block.innerHTML = args.html;
  return block.getBoundingClientRect().height;
}
"""

_FONT_FORMATS = {
    ".ttf": ("font/truetype", "truetype"),
    ".otf": ("font/opentype", "opentype"),
    ".woff": ("font/woff", "woff"),
    ".woff2": ("font/woff2", "woff2"),
}


def font_face_css(family: str, font_path: Path | str) -> str:
    """Build an ``@font-face`` rule embedding ``font_path`` as a data URL."""
    path = Path(font_path)
    mime, fmt = _FONT_FORMATS.get(path.suffix.lower(), ("font/truetype", "truetype"))
    data = base64.b64encode(path.read_bytes()).decode("ascii")
    return (
        f"@font-face {{ font-family: '{family}'; "
        f"src: url('data:{mime};base64,{data}') format('{fmt}'); }}"
    )


def content_to_html(content: Sequence[str]) -> str:
    """Render paragraphs as escaped ``<p>`` blocks with ``<br>`` breaks."""
    blocks = []
    for paragraph in content:
        if not paragraph.strip():
            continue
        lines = [html.escape(line) for line in paragraph.strip("\n").split("\n")]
        blocks.append("<p>" + "<br>".join(lines) + "</p>")
    return "".join(blocks)


class BrowserMeasurer:
    """Measure text height by laying it out in a Chromium page.

    One measurer owns one page; use a separate measurer per concurrent
    document. Create it with :meth:`launch` to have it manage the browser,
    or pass an existing Playwright page.
    """

    def __init__(
        self,
        page: Any,
        font_family: str = "serif",
        stylesheet: str = "",
    ) -> None:
        """Initialize BrowserMeasurer.

        Args:
            page: Playwright async ``Page``.
            font_family: CSS font-family for the measured block.
            stylesheet: Extra CSS (e.g. ``@font-face`` rules).
        """
        self._page = page
        self._font_family = font_family
        self._stylesheet = stylesheet
        self._ready = False
        self._owned: list[Any] = []

    @property
    def name(self) -> str:
        return "browser"

    @classmethod
    async def launch(
        cls,
        font_family: str = "serif",
        stylesheet: str = "",
        font_path: Path | str | None = None,
    ) -> BrowserMeasurer:
        """Start Chromium and return a measurer that owns it.

        Args:
            font_family: CSS font-family for the measured block.
            stylesheet: Extra CSS.
            font_path: Font file embedded as ``font_family``.
        """
        from playwright.async_api import async_playwright

        if font_path is not None:
            stylesheet = font_face_css(font_family, font_path) + "\n" + stylesheet
            font_family = f"'{font_family}'"

        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch()
            page = await browser.new_page()
        except Exception:
            await playwright.stop()
            raise

        logger.debug("Launched Chromium for text measurement")
        measurer = cls(page, font_family=font_family, stylesheet=stylesheet)
        measurer._owned = [browser, playwright]
        return measurer

    async def _ensure_ready(self) -> None:
        if self._ready:
            return
        document = _PAGE_TEMPLATE.format(
            block_id=BLOCK_ID,
            font_family=self._font_family,
            stylesheet=self._stylesheet,
        )
        await self._page.set_content(document, wait_until="networkidle")
        # Embedded fonts must finish loading before layout is meaningful
        await self._page.evaluate("() => document.fonts.ready.then(() => true)")
        self._ready = True

    async def measure(
        self,
        content: Sequence[str],
        font_size: float,
        line_height_ratio: float,
        container_width: float,
    ) -> float:
        try:
            await self._ensure_ready()
            height_px = await self._page.evaluate(
                _MEASURE_SCRIPT,
                {
                    "blockId": BLOCK_ID,
                    "html": content_to_html(content),
                    "size": font_size,
                    "lineHeight": line_height_ratio,
                    "width": container_width,
                },
            )
        except Exception as exc:
            raise MeasurementError(f"Browser measurement failed: {exc}", cause=exc) from exc
        return px_to_pt(float(height_px))

    async def aclose(self) -> None:
        """Close the page and anything started by :meth:`launch`."""
        try:
            await self._page.close()
        finally:
            for resource in self._owned:
                if hasattr(resource, "stop"):
                    await resource.stop()
                else:
                    await resource.close()
            self._owned = []
