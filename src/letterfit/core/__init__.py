# SPDX-License-Identifier: Apache-2.0
"""Text-fitting core: solvers, requests, and layout policies."""

from .errors import FitError, InvalidRequestError, MeasurementError, PolicyConfigError
from .fit_solver import FitSolver
from .layout_policy import (
    DocumentType,
    FieldKind,
    FontFamily,
    LayoutPolicy,
    PolicyKey,
    PolicyRegistry,
    SizeThreshold,
)
from .models import (
    FitRequest,
    FitResult,
    Region,
    SecondaryFitRequest,
    SecondaryFitResult,
    ThresholdFitResult,
)
from .secondary_fit import SecondaryFitAdjuster
from .threshold_sizer import ThresholdSizer

__all__ = [
    "DocumentType",
    "FieldKind",
    "FitError",
    "FitRequest",
    "FitResult",
    "FitSolver",
    "FontFamily",
    "InvalidRequestError",
    "LayoutPolicy",
    "MeasurementError",
    "PolicyConfigError",
    "PolicyKey",
    "PolicyRegistry",
    "Region",
    "SecondaryFitAdjuster",
    "SecondaryFitRequest",
    "SecondaryFitResult",
    "SizeThreshold",
    "ThresholdFitResult",
    "ThresholdSizer",
]
