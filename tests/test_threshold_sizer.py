# SPDX-License-Identifier: Apache-2.0
"""Tests for discrete name sizing."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from letterfit.core.layout_policy import LayoutPolicy, PolicyRegistry, SizeThreshold
from letterfit.core.threshold_sizer import ThresholdSizer
from letterfit.measurement import CharWidthMeasurer


@pytest.fixture
def envelope_policy() -> LayoutPolicy:
    """Built-in envelope name policy."""
    return PolicyRegistry().resolve("envelope", "block", "name")


class TestThresholdSizer:
    """Tests for ThresholdSizer."""

    @pytest.mark.asyncio
    async def test_character_tiers_without_port(self, envelope_policy: LayoutPolicy) -> None:
        """Test sizing by character count when no port is given."""
        sizer = ThresholdSizer()

        short = await sizer.size("x" * 40, envelope_policy)
        long = await sizer.size("x" * 95, envelope_policy)

        assert short.size == 30.0
        assert short.line_count is None
        assert long.size == 26.0
        assert long.char_count == 95

    @pytest.mark.asyncio
    async def test_surrounding_whitespace_not_counted(
        self, envelope_policy: LayoutPolicy
    ) -> None:
        """Test that leading and trailing whitespace is ignored."""
        result = await ThresholdSizer().size("  The Smith Family \n", envelope_policy)
        assert result.char_count == len("The Smith Family")

    @pytest.mark.asyncio
    async def test_empty_name_uses_fallback(self, envelope_policy: LayoutPolicy) -> None:
        """Test that an empty name takes the fallback size."""
        port = AsyncMock()
        port.measure = AsyncMock(return_value=36.0)

        result = await ThresholdSizer().size("   ", envelope_policy, port, 300.0)

        assert result.size == 26.0
        assert result.char_count == 0
        port.measure.assert_not_called()

    @pytest.mark.asyncio
    async def test_wrapped_name_demoted(self, envelope_policy: LayoutPolicy) -> None:
        """Test that a short name wrapping to two lines drops a tier."""
        port = AsyncMock()
        # Two lines at 30pt with 1.2 line height
        port.measure = AsyncMock(return_value=72.0)

        result = await ThresholdSizer().size("Mr and Mrs Claus", envelope_policy, port, 150.0)

        assert result.line_count == 2
        assert result.size == 28.0
        port.measure.assert_awaited_once_with(["Mr and Mrs Claus"], 30.0, 1.2, 150.0)

    @pytest.mark.asyncio
    async def test_line_count_with_real_measurer(self, envelope_policy: LayoutPolicy) -> None:
        """Test line counting with the approximate backend."""
        measurer = CharWidthMeasurer()
        name = "Olivia Grace Thompson"

        narrow = await ThresholdSizer().size(name, envelope_policy, measurer, 120.0)
        wide = await ThresholdSizer().size(name, envelope_policy, measurer, 2000.0)

        assert narrow.line_count is not None and narrow.line_count > 1
        assert wide.line_count == 1
        assert wide.size == 30.0

    @pytest.mark.asyncio
    async def test_no_measurement_without_line_limits(self) -> None:
        """Test that character-only tiers never call the port."""
        policy = LayoutPolicy(
            thresholds=(SizeThreshold(40.0, max_chars=10),), default_size=31.0
        )
        port = AsyncMock()
        port.measure = AsyncMock(return_value=10.0)

        result = await ThresholdSizer().size("Santa Claus", policy, port, 100.0)

        assert result.size == 31.0
        port.measure.assert_not_called()

    @pytest.mark.asyncio
    async def test_fixed_size_policy(self) -> None:
        """Test a policy with only a default size."""
        policy = PolicyRegistry().resolve("belly_band", "block", "name")
        result = await ThresholdSizer().size("Noah", policy)
        assert result.size == 16.0
