# SPDX-License-Identifier: Apache-2.0
"""Binary search for the largest font size that fits a container.

The solver is independent of any rendering engine: every height comes from a
MeasurementPort, and calls are made strictly one after another because each
step depends on the previous outcome.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Sequence
from typing import TYPE_CHECKING

from .content import is_blank
from .errors import MeasurementError
from .models import FitRequest, FitResult

if TYPE_CHECKING:
    from letterfit.measurement.base import MeasurementPort

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 25


async def measure_height(
    port: MeasurementPort,
    content: Sequence[str],
    font_size: float,
    line_height_ratio: float,
    container_width: float,
    timeout: float | None = None,
) -> float:
    """Call the port once and validate the returned height.

    Raises:
        MeasurementError: If the port fails, times out, or returns a
            negative or non-finite height.
    """
    try:
        call = port.measure(content, font_size, line_height_ratio, container_width)
        if timeout is not None:
            height = await asyncio.wait_for(call, timeout)
        else:
            height = await call
    except MeasurementError:
        raise
    except asyncio.TimeoutError as exc:
        raise MeasurementError(
            f"Measurement at {font_size:.2f}pt timed out after {timeout}s", cause=exc
        ) from exc
    except Exception as exc:
        raise MeasurementError(
            f"Measurement at {font_size:.2f}pt failed: {exc}", cause=exc
        ) from exc

    try:
        value = float(height)
    except (TypeError, ValueError) as exc:
        raise MeasurementError(
            f"Measurement returned a non-numeric height: {height!r}", cause=exc
        ) from exc
    if math.isnan(value) or math.isinf(value) or value < 0:
        raise MeasurementError(f"Measurement returned an invalid height: {value}")
    return value


class FitSolver:
    """Find the largest font size whose rendered height fits a container."""

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        measure_timeout: float | None = None,
    ) -> None:
        """Initialize FitSolver.

        Args:
            max_attempts: Upper bound on search iterations.
            measure_timeout: Seconds to wait for a single measurement, or
                None to wait indefinitely.
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self._max_attempts = max_attempts
        self._measure_timeout = measure_timeout

    async def solve(
        self,
        request: FitRequest,
        port: MeasurementPort,
        cancel_event: asyncio.Event | None = None,
    ) -> FitResult:
        """Binary-search the font size for ``request``.

        The search keeps ``low`` on a size known to fit (or the floor) and
        ``high`` on a size known to overflow (or the ceiling), so the returned
        size is within ``precision`` of the true best fit.

        Args:
            request: Validated fit request.
            port: Measurement backend.
            cancel_event: When set, the search stops before the next
                measurement and returns the best size found so far.

        Returns:
            FitResult with a size inside ``[min_size, max_size]``.

        Raises:
            MeasurementError: If any measurement fails.
        """
        if is_blank(request.content):
            logger.debug("Empty content, using floor size %.2fpt", request.min_size)
            return FitResult(
                resolved_size=request.min_size,
                fits=True,
                measured_height=0.0,
            )

        low = request.min_size
        high = request.max_size
        best_size: float | None = None
        best_height: float | None = None
        attempts = 0
        cancelled = False

        for _ in range(self._max_attempts):
            if high - low < request.precision:
                break
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                break

            mid = (low + high) / 2
            height = await self._measure(request, port, mid)
            attempts += 1

            if height <= request.container_height:
                best_size, best_height = mid, height
                low = mid
            else:
                high = mid

            logger.debug(
                "Attempt %d: %.3fpt -> %.2f / %.2f (range %.3f-%.3f)",
                attempts,
                mid,
                height,
                request.container_height,
                low,
                high,
            )

        if best_size is not None:
            return FitResult(
                resolved_size=best_size,
                fits=True,
                measured_height=best_height,
                attempts=attempts,
                cancelled=cancelled,
            )

        if cancelled:
            return FitResult(
                resolved_size=request.min_size,
                fits=False,
                attempts=attempts,
                cancelled=True,
            )

        # Nothing above the floor fit; report whether the floor itself does.
        height = await self._measure(request, port, request.min_size)
        attempts += 1
        fits = height <= request.container_height
        if not fits:
            logger.warning(
                "Content overflows even at %.2fpt (%.2f > %.2f)",
                request.min_size,
                height,
                request.container_height,
            )
        return FitResult(
            resolved_size=request.min_size,
            fits=fits,
            measured_height=height,
            attempts=attempts,
        )

    async def _measure(
        self, request: FitRequest, port: MeasurementPort, font_size: float
    ) -> float:
        return await measure_height(
            port,
            request.content,
            font_size,
            request.line_height_ratio,
            request.container_width,
            timeout=self._measure_timeout,
        )
