# SPDX-License-Identifier: Apache-2.0
"""Pipeline error definitions."""

from __future__ import annotations


class PipelineError(Exception):
    """Base exception for pipeline errors."""

    def __init__(
        self,
        message: str,
        stage: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.stage = stage
        self.cause = cause


class DocumentFitError(PipelineError):
    """Fitting failed for one document; the rest of the batch continues."""

    def __init__(
        self,
        message: str,
        stage: str,
        document_id: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, stage=stage, cause=cause)
        self.document_id = document_id
