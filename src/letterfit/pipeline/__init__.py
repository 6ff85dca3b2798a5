# SPDX-License-Identifier: Apache-2.0
"""Document fitting pipeline package."""

from .document_fitter import (
    BatchFitResult,
    DocumentFitResult,
    DocumentFitter,
    DocumentJob,
    FitterConfig,
)
from .errors import DocumentFitError, PipelineError
from .progress import ProgressCallback

__all__ = [
    "BatchFitResult",
    "DocumentFitError",
    "DocumentFitResult",
    "DocumentFitter",
    "DocumentJob",
    "FitterConfig",
    "PipelineError",
    "ProgressCallback",
]
