# SPDX-License-Identifier: Apache-2.0
"""Layout policies: per-document tuning for the fitting solvers.

Policies are plain data keyed by document type, font family, field kind and
an optional template identifier. Adding a document type or font means adding
an entry, never touching the solvers.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any

from .errors import PolicyConfigError
from .helpers import mm_to_pt
from .models import (
    DEFAULT_SECONDARY_LINE_HEIGHT,
    DEFAULT_STEP_DOWN_RATIOS,
    FitRequest,
    SecondaryFitRequest,
)

logger = logging.getLogger(__name__)

WILDCARD = "*"


class DocumentType(str, Enum):
    """Known document types."""

    LETTER = "letter"
    ENVELOPE = "envelope"
    PRESENT_LABEL = "present_label"
    BELLY_BAND = "belly_band"


class FontFamily(str, Enum):
    """Known font families."""

    BLOCK = "block"
    FANCY = "fancy"


class FieldKind(str, Enum):
    """Kinds of text field a policy can apply to."""

    BODY = "body"
    NAME = "name"


@dataclass(frozen=True)
class SizeThreshold:
    """One tier of a discrete size table.

    A tier matches when every limit it sets holds. A line limit is skipped
    when the line count is unknown.

    Attributes:
        font_size: Size used when the tier matches.
        max_chars: Largest character count for this tier.
        max_lines: Largest wrapped line count for this tier.
    """

    font_size: float
    max_chars: int | None = None
    max_lines: int | None = None

    def matches(self, char_count: int, line_count: int | None = None) -> bool:
        if self.max_chars is not None and char_count > self.max_chars:
            return False
        if self.max_lines is not None and line_count is not None:
            return line_count <= self.max_lines
        return True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data: dict[str, Any] = {"font_size": self.font_size}
        if self.max_chars is not None:
            data["max_chars"] = self.max_chars
        if self.max_lines is not None:
            data["max_lines"] = self.max_lines
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SizeThreshold:
        """Create from dictionary."""
        max_chars = data.get("max_chars")
        max_lines = data.get("max_lines")
        return cls(
            font_size=float(data["font_size"]),
            max_chars=int(max_chars) if max_chars is not None else None,
            max_lines=int(max_lines) if max_lines is not None else None,
        )


@dataclass(frozen=True)
class LayoutPolicy:
    """Tuning parameters for one kind of text field.

    Attributes:
        min_size: Smallest font size the search may choose.
        max_size: Largest font size the search may choose.
        start_size: Nominal size; used to count wrapped lines for tiers.
        line_height_ratio: Line spacing for the primary block.
        precision: Search stops once the bracket is narrower than this.
        step_down_ratios: Cascade for the secondary block.
        secondary_line_height_ratio: Line spacing for the secondary block.
        thresholds: Discrete tiers, evaluated top-down.
        default_size: Size used when no tier matches.
    """

    min_size: float = 10.8
    max_size: float = 45.0
    start_size: float = 30.0
    line_height_ratio: float = 1.3
    precision: float = 0.1
    step_down_ratios: tuple[float, ...] = DEFAULT_STEP_DOWN_RATIOS
    secondary_line_height_ratio: float = DEFAULT_SECONDARY_LINE_HEIGHT
    thresholds: tuple[SizeThreshold, ...] = field(default_factory=tuple)
    default_size: float | None = None

    def __post_init__(self) -> None:
        if self.min_size <= 0 or self.min_size >= self.max_size:
            raise PolicyConfigError(
                f"Invalid size bounds: min={self.min_size}, max={self.max_size}"
            )
        if self.line_height_ratio <= 0 or self.secondary_line_height_ratio <= 0:
            raise PolicyConfigError("Line height ratios must be positive")
        if self.precision <= 0:
            raise PolicyConfigError(f"precision must be positive, got {self.precision}")
        if not self.step_down_ratios or any(r <= 0 for r in self.step_down_ratios):
            raise PolicyConfigError(
                f"step_down_ratios must be non-empty and positive: {self.step_down_ratios}"
            )
        if any(t.font_size <= 0 for t in self.thresholds):
            raise PolicyConfigError("Threshold font sizes must be positive")
        if self.default_size is not None and self.default_size <= 0:
            raise PolicyConfigError(f"default_size must be positive, got {self.default_size}")

    @property
    def is_discrete(self) -> bool:
        """True if this policy sizes by lookup table rather than search."""
        return bool(self.thresholds) or self.default_size is not None

    @property
    def uses_line_count(self) -> bool:
        """True if any tier limits the wrapped line count."""
        return any(t.max_lines is not None for t in self.thresholds)

    @property
    def fallback_size(self) -> float:
        """Size used when no tier matches."""
        return self.default_size if self.default_size is not None else self.start_size

    def select_size(self, char_count: int, line_count: int | None = None) -> float:
        """Pick a size from the discrete tiers (first match wins)."""
        for threshold in self.thresholds:
            if threshold.matches(char_count, line_count):
                return threshold.font_size
        return self.fallback_size

    def fit_request(
        self, content: Sequence[str], container_width: float, container_height: float
    ) -> FitRequest:
        """Build a FitRequest for a primary block governed by this policy."""
        return FitRequest(
            content=tuple(content),
            container_width=container_width,
            container_height=container_height,
            min_size=self.min_size,
            max_size=self.max_size,
            line_height_ratio=self.line_height_ratio,
            precision=self.precision,
        )

    def secondary_request(
        self,
        content: str,
        container_width: float,
        container_height: float,
        base_size: float,
    ) -> SecondaryFitRequest:
        """Build a SecondaryFitRequest seeded with the primary size."""
        return SecondaryFitRequest(
            content=content,
            container_width=container_width,
            container_height=container_height,
            base_size=base_size,
            step_down_ratios=self.step_down_ratios,
            line_height_ratio=self.secondary_line_height_ratio,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "min_size": self.min_size,
            "max_size": self.max_size,
            "start_size": self.start_size,
            "line_height_ratio": self.line_height_ratio,
            "precision": self.precision,
            "step_down_ratios": list(self.step_down_ratios),
            "secondary_line_height_ratio": self.secondary_line_height_ratio,
            "thresholds": [t.to_dict() for t in self.thresholds],
            "default_size": self.default_size,
        }

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], base: LayoutPolicy | None = None
    ) -> LayoutPolicy:
        """Create from dictionary, filling missing values from ``base``."""
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                continue
            if key == "thresholds":
                values[key] = tuple(SizeThreshold.from_dict(item) for item in value)
            elif key == "step_down_ratios":
                values[key] = tuple(float(ratio) for ratio in value)
            elif key == "default_size":
                values[key] = float(value) if value is not None else None
            else:
                values[key] = float(value)
        return replace(base, **values) if base is not None else cls(**values)


@dataclass(frozen=True)
class PolicyKey:
    """Lookup key for a LayoutPolicy; all parts are stored lower-case."""

    document_type: str
    font_family: str
    field_kind: str
    template: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "document_type", _norm(self.document_type))
        object.__setattr__(self, "font_family", _norm(self.font_family))
        object.__setattr__(self, "field_kind", _norm(self.field_kind))
        if self.template is not None:
            object.__setattr__(self, "template", _norm(self.template))


def _norm(value: str | Enum) -> str:
    if isinstance(value, Enum):
        value = value.value
    return str(value).strip().lower()


DEFAULT_POLICY = LayoutPolicy()

# Fallbacks per field kind when a document type has no entry at all.
# Body fields fall through to the registry default.
FIELD_DEFAULTS: dict[str, LayoutPolicy] = {
    FieldKind.NAME.value: LayoutPolicy(
        start_size=30.0,
        line_height_ratio=1.2,
        default_size=30.0,
    ),
}

_LETTER_BLOCK = LayoutPolicy(
    min_size=10.8,
    max_size=45.0,
    start_size=30.0,
    line_height_ratio=1.3,
    precision=0.1,
)

BUILTIN_POLICIES: dict[PolicyKey, LayoutPolicy] = {
    PolicyKey("letter", "block", "body"): _LETTER_BLOCK,
    PolicyKey("letter", "fancy", "body"): replace(
        _LETTER_BLOCK, start_size=28.0, line_height_ratio=1.15
    ),
    PolicyKey("envelope", WILDCARD, "name"): LayoutPolicy(
        start_size=30.0,
        line_height_ratio=1.2,
        thresholds=(
            SizeThreshold(30.0, max_chars=50, max_lines=1),
            SizeThreshold(29.0, max_chars=70, max_lines=1),
            SizeThreshold(28.0, max_chars=90, max_lines=2),
        ),
        default_size=26.0,
    ),
    PolicyKey("present_label", WILDCARD, "name"): LayoutPolicy(
        start_size=round(mm_to_pt(14), 2),
        line_height_ratio=1.1,
        thresholds=(
            SizeThreshold(round(mm_to_pt(14), 2), max_chars=10),
            SizeThreshold(round(mm_to_pt(11), 2), max_chars=15),
        ),
        default_size=round(mm_to_pt(9), 2),
    ),
    PolicyKey("belly_band", WILDCARD, "name"): LayoutPolicy(
        start_size=16.0,
        line_height_ratio=1.1,
        default_size=16.0,
    ),
}


class PolicyRegistry:
    """Read-only table of layout policies with fallback lookup."""

    def __init__(
        self,
        policies: Mapping[PolicyKey, LayoutPolicy] | None = None,
        default: LayoutPolicy | None = None,
        include_builtin: bool = True,
    ) -> None:
        """Initialize PolicyRegistry.

        Args:
            policies: Entries layered over the built-in table.
            default: Global default policy for unknown field kinds.
            include_builtin: Start from the built-in production table.
        """
        table: dict[PolicyKey, LayoutPolicy] = dict(BUILTIN_POLICIES) if include_builtin else {}
        if policies:
            table.update(policies)
        self._policies = table
        self._default = default or DEFAULT_POLICY

    def __len__(self) -> int:
        return len(self._policies)

    def __contains__(self, key: object) -> bool:
        return key in self._policies

    @property
    def default(self) -> LayoutPolicy:
        return self._default

    def resolve(
        self,
        document_type: str | Enum,
        font_family: str | Enum,
        field_kind: str | Enum,
        template: str | None = None,
    ) -> LayoutPolicy:
        """Return the most specific policy for the given key.

        Lookup order: exact key with template, key without template,
        wildcard font family, field-kind default, global default. A miss is
        never an error.
        """
        candidates = []
        if template:
            candidates.append(PolicyKey(document_type, font_family, field_kind, template))
        candidates.append(PolicyKey(document_type, font_family, field_kind))
        candidates.append(PolicyKey(document_type, WILDCARD, field_kind))

        for key in candidates:
            policy = self._policies.get(key)
            if policy is not None:
                return policy

        kind = _norm(field_kind)
        logger.debug(
            "No policy for %s/%s/%s (template=%s), using %s default",
            _norm(document_type),
            _norm(font_family),
            kind,
            template,
            kind if kind in FIELD_DEFAULTS else "global",
        )
        return FIELD_DEFAULTS.get(kind, self._default)

    @classmethod
    def from_mapping(
        cls, data: Mapping[str, Any], include_builtin: bool = True
    ) -> PolicyRegistry:
        """Build a registry from policy data.

        Expected shape::

            {
              "default": {...policy fields...},
              "policies": [
                {"document_type": "letter", "font_family": "fancy",
                 "field_kind": "body", "template": "magic-stardust",
                 "max_size": 47}
              ]
            }

        Entry parameters inherit from the policy the key would otherwise
        resolve to, so an entry only needs the values it changes.

        Raises:
            PolicyConfigError: If the data is malformed.
        """
        if not isinstance(data, Mapping):
            raise PolicyConfigError("Policy data must be a mapping")

        try:
            default = (
                LayoutPolicy.from_dict(data["default"], base=DEFAULT_POLICY)
                if data.get("default")
                else None
            )
            entries: dict[PolicyKey, LayoutPolicy] = {}
            for index, entry in enumerate(data.get("policies", [])):
                if not isinstance(entry, Mapping):
                    raise PolicyConfigError(f"Policy entry {index} must be a mapping")
                missing = [
                    name
                    for name in ("document_type", "field_kind")
                    if not entry.get(name)
                ]
                if missing:
                    raise PolicyConfigError(
                        f"Policy entry {index} is missing {', '.join(missing)}"
                    )
                key = PolicyKey(
                    entry["document_type"],
                    entry.get("font_family") or WILDCARD,
                    entry["field_kind"],
                    entry.get("template"),
                )
                layered = cls(entries, default=default, include_builtin=include_builtin)
                base = layered.resolve(
                    key.document_type, key.font_family, key.field_kind, key.template
                )
                entries[key] = LayoutPolicy.from_dict(entry, base=base)
        except PolicyConfigError:
            raise
        except (KeyError, TypeError, ValueError) as exc:
            raise PolicyConfigError(f"Invalid policy data: {exc}") from exc

        return cls(entries, default=default, include_builtin=include_builtin)

    @classmethod
    def from_json(cls, path: Path | str, include_builtin: bool = True) -> PolicyRegistry:
        """Load a registry from a JSON file.

        Raises:
            FileNotFoundError: If the file does not exist.
            PolicyConfigError: If the file is not valid policy JSON.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Policy file not found: {path}")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise PolicyConfigError(f"Invalid JSON in {path}: {exc}") from exc
        registry = cls.from_mapping(data, include_builtin=include_builtin)
        logger.info("Loaded %d layout policies from %s", len(registry), path)
        return registry
