# SPDX-License-Identifier: Apache-2.0
"""Discrete tier sizing for single-line identity fields (names)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .fit_solver import measure_height
from .models import ThresholdFitResult

if TYPE_CHECKING:
    from letterfit.measurement.base import MeasurementPort

    from .layout_policy import LayoutPolicy

logger = logging.getLogger(__name__)


class ThresholdSizer:
    """Pick a name size from a policy's tier table.

    Names get readable tiers rather than a pixel-optimal fill. The wrapped
    line count is measured only when a tier limits it.
    """

    def __init__(self, measure_timeout: float | None = None) -> None:
        self._measure_timeout = measure_timeout

    async def size(
        self,
        text: str,
        policy: LayoutPolicy,
        port: MeasurementPort | None = None,
        container_width: float | None = None,
    ) -> ThresholdFitResult:
        """Resolve the font size for ``text``.

        Args:
            text: Field text; embedded ``\\n`` breaks are kept.
            policy: Discrete policy with tiers and a fallback size.
            port: Measurement backend, needed only for line-limited tiers.
            container_width: Wrapping width in points, needed with ``port``.

        Returns:
            ThresholdFitResult with the chosen size and the counts used.

        Raises:
            MeasurementError: If the line-count measurement fails.
        """
        stripped = text.strip()
        char_count = len(stripped)
        if not stripped:
            return ThresholdFitResult(size=policy.fallback_size, char_count=0)

        line_count = None
        if policy.uses_line_count and port is not None and container_width:
            line_count = await self.count_lines(stripped, policy, port, container_width)

        size = policy.select_size(char_count, line_count)
        logger.debug(
            "Name sizing: %d chars, %s lines -> %.2fpt", char_count, line_count, size
        )
        return ThresholdFitResult(size=size, char_count=char_count, line_count=line_count)

    async def count_lines(
        self,
        text: str,
        policy: LayoutPolicy,
        port: MeasurementPort,
        container_width: float,
    ) -> int:
        """Count wrapped lines of ``text`` at the policy's start size."""
        height = await measure_height(
            port,
            [text],
            policy.start_size,
            policy.line_height_ratio,
            container_width,
            timeout=self._measure_timeout,
        )
        line_height = policy.start_size * policy.line_height_ratio
        return max(1, round(height / line_height))
