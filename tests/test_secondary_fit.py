# SPDX-License-Identifier: Apache-2.0
"""Tests for the P.S. step-down cascade."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import pytest

from letterfit.core.errors import InvalidRequestError, MeasurementError
from letterfit.core.models import SecondaryFitRequest
from letterfit.core.secondary_fit import SecondaryFitAdjuster


class RecordingPort:
    """Height = font_size * lines; records every call."""

    def __init__(self, lines: float = 2.0) -> None:
        self.lines = lines
        self.calls: list[tuple[tuple[str, ...], float, float]] = []

    async def measure(
        self,
        content: Sequence[str],
        font_size: float,
        line_height_ratio: float,
        container_width: float,
    ) -> float:
        self.calls.append((tuple(content), font_size, line_height_ratio))
        return font_size * self.lines


def make_request(container_height: float, /, **overrides: object) -> SecondaryFitRequest:
    values: dict[str, object] = {
        "content": "P.S. Rudolph says hello!",
        "container_width": 300.0,
        "container_height": container_height,
        "base_size": 20.0,
    }
    values.update(overrides)
    return SecondaryFitRequest(**values)  # type: ignore[arg-type]


class TestSecondaryFitAdjuster:
    """Tests for SecondaryFitAdjuster."""

    @pytest.mark.asyncio
    async def test_first_ratio_fits(self) -> None:
        """Test that the base size is kept when it fits."""
        port = RecordingPort()
        size = await SecondaryFitAdjuster().adjust(make_request(40.0), port)

        assert size == 20.0
        assert len(port.calls) == 1

    @pytest.mark.asyncio
    async def test_steps_down_until_fit(self) -> None:
        """Test that the first fitting ratio wins."""
        port = RecordingPort()
        # 20 -> 40, 18 -> 36, 16 -> 32
        result = await SecondaryFitAdjuster().evaluate(make_request(33.0), port)

        assert result.size == pytest.approx(16.0)
        assert result.ratio == 0.8
        assert result.fits is True
        assert result.attempts == 3
        assert [call[1] for call in port.calls] == pytest.approx([20.0, 18.0, 16.0])

    @pytest.mark.asyncio
    async def test_last_ratio_accepted_on_overflow(self) -> None:
        """Test that the last ratio is returned even when it overflows."""
        port = RecordingPort()
        result = await SecondaryFitAdjuster().evaluate(make_request(5.0), port)

        assert result.size == pytest.approx(14.0)
        assert result.ratio == 0.7
        assert result.fits is False
        assert len(port.calls) == 4

    @pytest.mark.asyncio
    async def test_custom_ratios(self) -> None:
        """Test a configured cascade."""
        port = RecordingPort()
        request = make_request(30.0, step_down_ratios=(1.0, 0.5))
        result = await SecondaryFitAdjuster().evaluate(request, port)

        assert result.size == 10.0
        assert result.ratio == 0.5
        assert len(port.calls) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("container_height", [0.0, 10.0, 29.0, 33.0, 37.0, 100.0])
    async def test_calls_bounded_by_ratio_count(self, container_height: float) -> None:
        """Test that at most one call per ratio is made."""
        port = RecordingPort()
        request = make_request(container_height)
        await SecondaryFitAdjuster().adjust(request, port)

        assert len(port.calls) <= len(request.step_down_ratios)

    @pytest.mark.asyncio
    async def test_measures_content_as_one_paragraph(self) -> None:
        """Test that content and line height are passed through."""
        port = RecordingPort()
        await SecondaryFitAdjuster().adjust(make_request(100.0), port)

        content, _, line_height = port.calls[0]
        assert content == ("P.S. Rudolph says hello!",)
        assert line_height == 1.05

    @pytest.mark.asyncio
    async def test_blank_content(self) -> None:
        """Test that blank content keeps the first ratio without measuring."""
        port = RecordingPort()
        result = await SecondaryFitAdjuster().evaluate(
            make_request(0.0, content="   "), port
        )

        assert result.size == 20.0
        assert result.fits is True
        assert port.calls == []

    @pytest.mark.asyncio
    async def test_cancel_returns_current_candidate(self) -> None:
        """Test that cancellation stops the cascade without measuring."""
        port = RecordingPort()
        event = asyncio.Event()
        event.set()

        result = await SecondaryFitAdjuster().evaluate(make_request(5.0), port, event)

        assert result.cancelled is True
        assert result.size == 20.0
        assert port.calls == []

    @pytest.mark.asyncio
    async def test_failure_propagates(self) -> None:
        """Test that a backend error surfaces as MeasurementError."""

        class BrokenPort:
            async def measure(self, *args: object) -> float:
                raise ConnectionError("browser disconnected")

        with pytest.raises(MeasurementError):
            await SecondaryFitAdjuster().adjust(make_request(40.0), BrokenPort())  # type: ignore[arg-type]


class TestSecondaryFitRequest:
    """Tests for SecondaryFitRequest validation."""

    def test_defaults(self) -> None:
        """Test default cascade and line height."""
        request = make_request(10.0)
        assert request.step_down_ratios == (1.0, 0.9, 0.8, 0.7)
        assert request.line_height_ratio == 1.05

    def test_ratios_stored_as_tuple(self) -> None:
        """Test that list ratios are normalized to a tuple."""
        request = make_request(10.0, step_down_ratios=[1.0, 0.75])
        assert request.step_down_ratios == (1.0, 0.75)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"step_down_ratios": ()},
            {"step_down_ratios": (1.0, 0.0)},
            {"base_size": 0.0},
            {"container_width": -5.0},
            {"container_height": -1.0},
            {"content": None},
        ],
    )
    def test_invalid(self, overrides: dict[str, object]) -> None:
        """Test that malformed requests raise InvalidRequestError."""
        with pytest.raises(InvalidRequestError):
            make_request(10.0, **overrides)
