#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0
"""Font fitting example script.

Shows basic use of letterfit: fit a letter body, its P.S. line and an
envelope name. Change the settings below to try other backends and fonts.

Usage:
    cd examples
    python fit_letter.py

Environment variables (loaded from .env):
    LETTERFIT_POLICY_FILE: Policy JSON layered over the built-in table
    LETTERFIT_FONT_FILE: Font file for the freetype/pdfium/browser backends
"""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import load_dotenv

if TYPE_CHECKING:
    from letterfit.pipeline.document_fitter import MeasurerFactory

# Add the project to the path (development use)
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

load_dotenv(PROJECT_ROOT / ".env")


# =============================================================================
# Settings
# =============================================================================

# Measurement backend: "approx" | "pdfium" | "freetype" | "browser"
# - approx: no fonts needed, character-width estimate
# - pdfium: standard PDF font or TrueType file
# - freetype: any TrueType/OpenType file through Pillow
# - browser: headless Chromium (pip install playwright && playwright install chromium)
BACKEND = "approx"

FONT_FILE = os.environ.get("LETTERFIT_FONT_FILE")

# Letter layout, in points (A4 body box below the header artwork)
BODY_REGION = {"width": 430.0, "height": 520.0}
POSTSCRIPT_REGION = {"width": 430.0, "height": 48.0}

BODY_HTML = """
<p>Dear Isla,</p>
<p>Ho ho ho! Mrs Claus and I have been reading your letter by the fire, and
the elves could not stop smiling when they heard how kind you have been to
your little brother this year.</p>
<p>Rudolph is practising his landing on your roof already, so remember to go
to sleep early on Christmas Eve.</p>
<p>Love,<br>Santa</p>
"""

POSTSCRIPT = "P.S. Dasher says thank you for the carrots you left last year!"

ENVELOPE_NAME = "Isla Rose Fitzgerald-McAllister"


def get_measurer_factory(backend: str) -> MeasurerFactory:
    """Get a per-document measurement backend factory."""
    if backend == "approx":
        from letterfit.measurement import CharWidthMeasurer

        return CharWidthMeasurer

    elif backend == "pdfium":
        from letterfit.measurement import get_pdfium_measurer

        PdfiumMeasurer = get_pdfium_measurer()
        return lambda: PdfiumMeasurer(font_path=FONT_FILE, standard_font="Times-Roman")

    elif backend == "freetype":
        from letterfit.measurement import get_freetype_measurer

        FreeTypeMeasurer = get_freetype_measurer()
        return lambda: FreeTypeMeasurer(font_path=FONT_FILE)

    elif backend == "browser":
        from letterfit.measurement import get_browser_measurer

        BrowserMeasurer = get_browser_measurer()
        return lambda: BrowserMeasurer.launch(font_family="LetterFont", font_path=FONT_FILE)

    else:
        print(f"Error: Unknown backend: {backend}")
        print("Available options: approx, pdfium, freetype, browser")
        sys.exit(1)


async def main() -> None:
    """Fit one letter and one envelope."""
    from letterfit.core.layout_policy import PolicyRegistry
    from letterfit.pipeline import DocumentFitter, DocumentJob

    policy_file = os.environ.get("LETTERFIT_POLICY_FILE")
    registry = PolicyRegistry.from_json(policy_file) if policy_file else PolicyRegistry()

    jobs = [
        DocumentJob.from_dict(
            {
                "id": "letter",
                "document_type": "letter",
                "font_family": "fancy",
                "body_html": BODY_HTML,
                "body_region": BODY_REGION,
                "postscript": POSTSCRIPT,
                "postscript_region": POSTSCRIPT_REGION,
            }
        ),
        DocumentJob.from_dict(
            {"id": "envelope", "document_type": "envelope", "name": ENVELOPE_NAME}
        ),
    ]

    print("=" * 60)
    print("Font Fitting Example")
    print("=" * 60)
    print(f"Backend:     {BACKEND}")
    print(f"Font file:   {FONT_FILE or '(none)'}")
    print(f"Policies:    {policy_file or '(built-in)'}")
    print("=" * 60)

    fitter = DocumentFitter(get_measurer_factory(BACKEND), registry=registry)
    batch = await fitter.fit_batch(jobs)

    for result in batch.results:
        print(f"\n[{result.document_id}]")
        if result.error is not None:
            print(f"  Failed at {result.error.stage}: {result.error}")
            continue
        if result.body is not None:
            print(
                f"  Body:  {result.body.resolved_size:.2f}pt "
                f"(fits={result.body.fits}, {result.body.attempts} measurements)"
            )
        if result.postscript is not None:
            print(
                f"  P.S.:  {result.postscript.size:.2f}pt "
                f"(x{result.postscript.ratio}, fits={result.postscript.fits})"
            )
        if result.name is not None:
            print(f"  Name:  {result.name.size:.2f}pt ({result.name.char_count} chars)")

    print("\nDone!")


if __name__ == "__main__":
    asyncio.run(main())
