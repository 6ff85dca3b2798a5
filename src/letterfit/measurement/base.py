# SPDX-License-Identifier: Apache-2.0
"""Protocol definition for text height measurement backends."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from letterfit.core.errors import MeasurementError

__all__ = ["MeasurementError", "MeasurementPort"]


@runtime_checkable
class MeasurementPort(Protocol):
    """Protocol for backends that report rendered text height.

    Implementations must be deterministic: the same content, size and width
    always yield the same height, and height never decreases as the font
    size grows. Each concurrent document should own its own instance.
    """

    async def measure(
        self,
        content: Sequence[str],
        font_size: float,
        line_height_ratio: float,
        container_width: float,
    ) -> float:
        """Measure the rendered height of a text block.

        Args:
            content: Paragraphs to lay out; ``\\n`` inside a paragraph is a
                hard line break.
            font_size: Font size in points.
            line_height_ratio: Line spacing as a multiple of ``font_size``.
            container_width: Wrapping width in points.

        Returns:
            Rendered height in points.

        Raises:
            MeasurementError: If the backend cannot produce a measurement.
        """
        ...
