# SPDX-License-Identifier: Apache-2.0
"""Step-down sizing for the secondary (P.S.) block."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from .fit_solver import measure_height
from .models import SecondaryFitRequest, SecondaryFitResult

if TYPE_CHECKING:
    from letterfit.measurement.base import MeasurementPort

logger = logging.getLogger(__name__)


class SecondaryFitAdjuster:
    """Size a secondary block relative to the primary block's size.

    Tries ``base_size * ratio`` for each ratio in order and keeps the first
    size that fits. The last ratio is accepted even when it overflows, so
    the text never shrinks past the configured floor.
    """

    def __init__(self, measure_timeout: float | None = None) -> None:
        self._measure_timeout = measure_timeout

    async def adjust(
        self,
        request: SecondaryFitRequest,
        port: MeasurementPort,
        cancel_event: asyncio.Event | None = None,
    ) -> float:
        """Return the font size for the secondary block."""
        result = await self.evaluate(request, port, cancel_event)
        return result.size

    async def evaluate(
        self,
        request: SecondaryFitRequest,
        port: MeasurementPort,
        cancel_event: asyncio.Event | None = None,
    ) -> SecondaryFitResult:
        """Run the cascade and return the full result.

        Args:
            request: Validated secondary request.
            port: Measurement backend.
            cancel_event: When set, the current candidate is accepted
                without measuring.

        Returns:
            SecondaryFitResult; at most ``len(step_down_ratios)`` measurement
            calls are made.

        Raises:
            MeasurementError: If any measurement fails.
        """
        ratios = request.step_down_ratios
        if not request.content.strip():
            return SecondaryFitResult(
                size=request.base_size * ratios[0],
                ratio=ratios[0],
                fits=True,
            )

        attempts = 0
        for index, ratio in enumerate(ratios):
            size = request.base_size * ratio
            if cancel_event is not None and cancel_event.is_set():
                return SecondaryFitResult(
                    size=size, ratio=ratio, fits=False, attempts=attempts, cancelled=True
                )

            height = await measure_height(
                port,
                [request.content],
                size,
                request.line_height_ratio,
                request.container_width,
                timeout=self._measure_timeout,
            )
            attempts += 1
            fits = height <= request.container_height
            logger.debug(
                "Secondary step %d: %.2fpt (x%.2f) -> %.2f / %.2f",
                index + 1,
                size,
                ratio,
                height,
                request.container_height,
            )

            if fits or index == len(ratios) - 1:
                if not fits:
                    logger.warning(
                        "Secondary block overflows at its floor size %.2fpt", size
                    )
                return SecondaryFitResult(
                    size=size, ratio=ratio, fits=fits, attempts=attempts
                )

        # Unreachable: the loop always returns on the last ratio.
        raise AssertionError("step_down_ratios exhausted without a result")
