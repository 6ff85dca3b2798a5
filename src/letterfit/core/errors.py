# SPDX-License-Identifier: Apache-2.0
"""Error definitions for the text-fitting core."""

from __future__ import annotations


class FitError(Exception):
    """Base exception for text-fitting errors."""


class InvalidRequestError(FitError, ValueError):
    """Malformed fit request (bad bounds, precision, or dimensions).

    Raised before any measurement is attempted.
    """


class PolicyConfigError(FitError, ValueError):
    """Malformed layout policy data."""


class MeasurementError(FitError):
    """The measurement backend failed, timed out, or returned an invalid height.

    This error is NOT retried by the solvers. Callers may re-establish the
    measurement session and try again.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause
