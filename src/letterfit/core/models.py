# SPDX-License-Identifier: Apache-2.0
"""Data models for text fitting requests and results.

All lengths are in points unless stated otherwise. Requests are validated on
construction so that malformed input fails before any measurement call.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from .errors import InvalidRequestError

DEFAULT_STEP_DOWN_RATIOS: tuple[float, ...] = (1.0, 0.9, 0.8, 0.7)
DEFAULT_SECONDARY_LINE_HEIGHT = 1.05


def _require_finite(name: str, value: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidRequestError(f"{name} must be a number, got {value!r}") from exc
    if math.isnan(number) or math.isinf(number):
        raise InvalidRequestError(f"{name} must be finite, got {value!r}")
    return number


def _check_region(width: float, height: float) -> tuple[float, float]:
    width = _require_finite("container_width", width)
    height = _require_finite("container_height", height)
    if width <= 0:
        raise InvalidRequestError(f"container_width must be positive, got {width}")
    if height < 0:
        raise InvalidRequestError(f"container_height must not be negative, got {height}")
    return width, height


@dataclass(frozen=True)
class Region:
    """Width and height of a box reserved for a text block.

    Attributes:
        width: Box width in points.
        height: Box height in points.
    """

    width: float
    height: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: dict[str, Any], scale: float = 1.0) -> Region:
        """Create from dictionary, multiplying both sides by ``scale``."""
        return cls(
            width=float(data["width"]) * scale,
            height=float(data["height"]) * scale,
        )


@dataclass(frozen=True)
class FitRequest:
    """Input for the primary block binary search.

    Attributes:
        content: Ordered paragraphs; a paragraph may contain ``\\n`` breaks.
        container_width: Available width in points.
        container_height: Available height in points.
        min_size: Smallest allowed font size (inclusive).
        max_size: Largest allowed font size (inclusive).
        line_height_ratio: Line spacing as a multiple of the font size.
        precision: The search stops once the bracket is narrower than this.
    """

    content: tuple[str, ...]
    container_width: float
    container_height: float
    min_size: float
    max_size: float
    line_height_ratio: float = 1.3
    precision: float = 0.1

    def __post_init__(self) -> None:
        if isinstance(self.content, str) or not isinstance(self.content, Sequence):
            raise InvalidRequestError("content must be a sequence of paragraphs")
        for paragraph in self.content:
            if not isinstance(paragraph, str):
                raise InvalidRequestError(
                    f"paragraphs must be strings, got {type(paragraph).__name__}"
                )
        object.__setattr__(self, "content", tuple(self.content))

        width, height = _check_region(self.container_width, self.container_height)
        object.__setattr__(self, "container_width", width)
        object.__setattr__(self, "container_height", height)

        min_size = _require_finite("min_size", self.min_size)
        max_size = _require_finite("max_size", self.max_size)
        if min_size <= 0:
            raise InvalidRequestError(f"min_size must be positive, got {min_size}")
        if min_size >= max_size:
            raise InvalidRequestError(
                f"min_size must be smaller than max_size ({min_size} >= {max_size})"
            )
        object.__setattr__(self, "min_size", min_size)
        object.__setattr__(self, "max_size", max_size)

        line_height = _require_finite("line_height_ratio", self.line_height_ratio)
        if line_height <= 0:
            raise InvalidRequestError(
                f"line_height_ratio must be positive, got {line_height}"
            )
        object.__setattr__(self, "line_height_ratio", line_height)

        precision = _require_finite("precision", self.precision)
        if precision <= 0:
            raise InvalidRequestError(f"precision must be positive, got {precision}")
        object.__setattr__(self, "precision", precision)


@dataclass(frozen=True)
class FitResult:
    """Outcome of the primary block search.

    Attributes:
        resolved_size: Chosen font size, always within the request bounds.
        fits: True if the content at ``resolved_size`` fits the container.
        measured_height: Rendered height at ``resolved_size`` when measured.
        attempts: Number of measurement calls made.
        cancelled: True if the search stopped early on cancellation.
    """

    resolved_size: float
    fits: bool
    measured_height: float | None = None
    attempts: int = 0
    cancelled: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "resolved_size": self.resolved_size,
            "fits": self.fits,
            "measured_height": self.measured_height,
            "attempts": self.attempts,
            "cancelled": self.cancelled,
        }


@dataclass(frozen=True)
class SecondaryFitRequest:
    """Input for the secondary (P.S.) block cascade.

    Attributes:
        content: Secondary text as a single logical unit.
        container_width: Width of the reserved sub-region in points.
        container_height: Height of the reserved sub-region in points.
        base_size: Resolved size of the primary block.
        step_down_ratios: Multipliers of ``base_size`` tried in order.
            The last one is accepted even if it overflows.
        line_height_ratio: Line spacing as a multiple of the font size.
    """

    content: str
    container_width: float
    container_height: float
    base_size: float
    step_down_ratios: tuple[float, ...] = DEFAULT_STEP_DOWN_RATIOS
    line_height_ratio: float = DEFAULT_SECONDARY_LINE_HEIGHT

    def __post_init__(self) -> None:
        if not isinstance(self.content, str):
            raise InvalidRequestError("secondary content must be a string")

        width, height = _check_region(self.container_width, self.container_height)
        object.__setattr__(self, "container_width", width)
        object.__setattr__(self, "container_height", height)

        base_size = _require_finite("base_size", self.base_size)
        if base_size <= 0:
            raise InvalidRequestError(f"base_size must be positive, got {base_size}")
        object.__setattr__(self, "base_size", base_size)

        ratios = tuple(
            _require_finite("step_down_ratios", ratio) for ratio in self.step_down_ratios
        )
        if not ratios:
            raise InvalidRequestError("step_down_ratios must not be empty")
        if any(ratio <= 0 for ratio in ratios):
            raise InvalidRequestError(f"step_down_ratios must be positive, got {ratios}")
        object.__setattr__(self, "step_down_ratios", ratios)

        line_height = _require_finite("line_height_ratio", self.line_height_ratio)
        if line_height <= 0:
            raise InvalidRequestError(
                f"line_height_ratio must be positive, got {line_height}"
            )
        object.__setattr__(self, "line_height_ratio", line_height)


@dataclass(frozen=True)
class SecondaryFitResult:
    """Outcome of the secondary block cascade.

    Attributes:
        size: Chosen font size.
        ratio: Step-down ratio that produced ``size``.
        fits: True if ``size`` was measured and fits.
        attempts: Number of measurement calls made.
        cancelled: True if the cascade stopped early on cancellation.
    """

    size: float
    ratio: float
    fits: bool
    attempts: int = 0
    cancelled: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "size": self.size,
            "ratio": self.ratio,
            "fits": self.fits,
            "attempts": self.attempts,
            "cancelled": self.cancelled,
        }


@dataclass(frozen=True)
class ThresholdFitResult:
    """Outcome of discrete tier sizing for a name field."""

    size: float
    char_count: int
    line_count: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "size": self.size,
            "char_count": self.char_count,
            "line_count": self.line_count,
        }
