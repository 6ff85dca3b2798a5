# SPDX-License-Identifier: Apache-2.0
"""Fit the text blocks of personalized documents.

A document may carry a body (primary block), a P.S. line (secondary block)
and a name field. Each document gets its own measurement session, so a batch
can be fitted concurrently without shared state.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Union

from letterfit.core.content import normalize_paragraphs, paragraphs_from_markup
from letterfit.core.errors import FitError
from letterfit.core.fit_solver import DEFAULT_MAX_ATTEMPTS, FitSolver
from letterfit.core.layout_policy import FieldKind, PolicyRegistry
from letterfit.core.models import (
    FitResult,
    Region,
    SecondaryFitResult,
    ThresholdFitResult,
)
from letterfit.core.secondary_fit import SecondaryFitAdjuster
from letterfit.core.threshold_sizer import ThresholdSizer
from letterfit.measurement.base import MeasurementPort
from letterfit.pipeline.errors import DocumentFitError
from letterfit.pipeline.progress import ProgressCallback

logger = logging.getLogger(__name__)

MeasurerFactory = Callable[[], Union[MeasurementPort, Awaitable[MeasurementPort]]]


def _optional_text(value: Any) -> str | None:
    return None if value is None else str(value)


@dataclass
class FitterConfig:
    """Document fitter configuration."""

    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    # Seconds allowed per measurement call (None = no limit)
    measure_timeout: float | None = None

    # Seconds allowed per document; afterwards the solvers stop at their
    # best result so far
    document_timeout: float | None = None

    max_concurrency: int = 4


@dataclass
class DocumentJob:
    """Text blocks of one document and the regions reserved for them."""

    document_id: str
    document_type: str
    font_family: str = "block"
    template: str | None = None
    body: list[str] = field(default_factory=list)
    body_region: Region | None = None
    postscript: str | None = None
    postscript_region: Region | None = None
    name: str | None = None
    name_region: Region | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], scale: float = 1.0) -> DocumentJob:
        """Create from dictionary.

        ``body_html`` (merged template markup) is accepted in place of
        ``body``. Region sizes are multiplied by ``scale``.
        """
        if "body_html" in data and data["body_html"] is not None:
            body = paragraphs_from_markup(str(data["body_html"]))
        else:
            raw_body = data.get("body") or []
            if isinstance(raw_body, str):
                raw_body = [raw_body]
            body = normalize_paragraphs([str(p) for p in raw_body])

        def region(key: str) -> Region | None:
            value = data.get(key)
            return Region.from_dict(value, scale=scale) if value else None

        return cls(
            document_id=str(data.get("id") or data.get("document_id") or ""),
            document_type=str(data["document_type"]),
            font_family=str(data.get("font_family") or "block"),
            template=_optional_text(data.get("template")),
            body=body,
            body_region=region("body_region"),
            postscript=_optional_text(data.get("postscript")),
            postscript_region=region("postscript_region"),
            name=_optional_text(data.get("name")),
            name_region=region("name_region"),
        )


@dataclass
class DocumentFitResult:
    """Resolved sizes for one document."""

    document_id: str
    body: FitResult | None = None
    postscript: SecondaryFitResult | None = None
    name: ThresholdFitResult | None = None
    error: DocumentFitError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def postscript_size(self) -> float | None:
        return self.postscript.size if self.postscript is not None else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data: dict[str, Any] = {"id": self.document_id, "ok": self.ok}
        if self.body is not None:
            data["body"] = self.body.to_dict()
        if self.postscript is not None:
            data["postscript"] = self.postscript.to_dict()
        if self.name is not None:
            data["name"] = self.name.to_dict()
        if self.error is not None:
            data["error"] = {"stage": self.error.stage, "message": str(self.error)}
        return data


@dataclass
class BatchFitResult:
    """Results for a batch, in job order."""

    results: list[DocumentFitResult]
    stats: dict[str, Any] | None = None

    @property
    def failed(self) -> list[DocumentFitResult]:
        return [result for result in self.results if not result.ok]


class DocumentFitter:
    """Resolve policies and run the solvers for whole documents."""

    def __init__(
        self,
        measurer_factory: MeasurerFactory,
        registry: PolicyRegistry | None = None,
        config: FitterConfig | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        """Initialize DocumentFitter.

        Args:
            measurer_factory: Returns (or awaits to) a fresh MeasurementPort;
                called once per document.
            registry: Layout policies. Defaults to the built-in table.
            config: Fitter configuration.
            progress_callback: Notified as batch documents complete.
        """
        self._measurer_factory = measurer_factory
        self._registry = registry or PolicyRegistry()
        self._config = config or FitterConfig()
        self._progress_callback = progress_callback
        self._solver = FitSolver(
            max_attempts=self._config.max_attempts,
            measure_timeout=self._config.measure_timeout,
        )
        self._adjuster = SecondaryFitAdjuster(measure_timeout=self._config.measure_timeout)
        self._sizer = ThresholdSizer(measure_timeout=self._config.measure_timeout)

    async def fit(self, job: DocumentJob) -> DocumentFitResult:
        """Fit every text block of one document.

        Raises:
            DocumentFitError: If a request is invalid, the measurement
                session cannot be opened, or a measurement fails.
        """
        port = await self._open_port(job)
        cancel_event = asyncio.Event()
        timer: asyncio.TimerHandle | None = None
        if self._config.document_timeout is not None:
            loop = asyncio.get_running_loop()
            timer = loop.call_later(self._config.document_timeout, cancel_event.set)

        try:
            body = await self._stage_body(job, port, cancel_event)
            postscript = await self._stage_postscript(job, port, body, cancel_event)
            name = await self._stage_name(job, port)
        finally:
            if timer is not None:
                timer.cancel()
            await self._close_port(job, port)

        if cancel_event.is_set():
            logger.warning(
                "Document %s hit its time limit; sizes are best effort", job.document_id
            )
        return DocumentFitResult(
            document_id=job.document_id,
            body=body,
            postscript=postscript,
            name=name,
        )

    async def fit_batch(self, jobs: Sequence[DocumentJob]) -> BatchFitResult:
        """Fit documents concurrently.

        A failing document is reported in its result and never aborts the
        rest of the batch.
        """
        total = len(jobs)
        semaphore = asyncio.Semaphore(max(1, self._config.max_concurrency))
        completed = 0

        async def run(job: DocumentJob) -> DocumentFitResult:
            nonlocal completed
            async with semaphore:
                try:
                    result = await self.fit(job)
                except DocumentFitError as exc:
                    logger.warning(
                        "Document %s failed at %s: %s", job.document_id, exc.stage, exc
                    )
                    result = DocumentFitResult(document_id=job.document_id, error=exc)
                except Exception as exc:
                    logger.warning(
                        "Document %s failed unexpectedly: %s",
                        job.document_id,
                        exc,
                        exc_info=True,
                    )
                    error = DocumentFitError(
                        f"Unexpected error: {exc}",
                        stage="unexpected",
                        document_id=job.document_id,
                        cause=exc,
                    )
                    result = DocumentFitResult(document_id=job.document_id, error=error)
            completed += 1
            self._notify("fit", completed, total, job.document_id)
            return result

        results = list(await asyncio.gather(*(run(job) for job in jobs)))
        failed = sum(1 for result in results if not result.ok)
        overflowing = sum(
            1
            for result in results
            if (result.body is not None and not result.body.fits)
            or (result.postscript is not None and not result.postscript.fits)
        )
        stats = {
            "documents": total,
            "succeeded": total - failed,
            "failed": failed,
            "overflowing": overflowing,
        }
        logger.info(
            "Fitted %d documents (%d failed, %d overflowing)", total, failed, overflowing
        )
        return BatchFitResult(results=results, stats=stats)

    async def _open_port(self, job: DocumentJob) -> MeasurementPort:
        try:
            port = self._measurer_factory()
            if inspect.isawaitable(port):
                port = await port
        except Exception as exc:
            raise DocumentFitError(
                f"Could not open measurement session: {exc}",
                stage="session",
                document_id=job.document_id,
                cause=exc,
            ) from exc
        return port

    async def _close_port(self, job: DocumentJob, port: MeasurementPort) -> None:
        close = getattr(port, "aclose", None)
        if close is None:
            return
        # A failed close never discards resolved sizes
        try:
            await close()
        except Exception as exc:
            logger.warning(
                "Document %s: could not close measurement session: %s",
                job.document_id,
                exc,
            )

    async def _stage_body(
        self,
        job: DocumentJob,
        port: MeasurementPort,
        cancel_event: asyncio.Event,
    ) -> FitResult | None:
        if not job.body:
            return None
        region = self._require_region(job, job.body_region, "body")
        policy = self._registry.resolve(
            job.document_type, job.font_family, FieldKind.BODY, job.template
        )
        try:
            request = policy.fit_request(job.body, region.width, region.height)
            result = await self._solver.solve(request, port, cancel_event)
        except FitError as exc:
            raise DocumentFitError(
                f"Body fit failed: {exc}",
                stage="body",
                document_id=job.document_id,
                cause=exc,
            ) from exc

        logger.debug(
            "Document %s body: %.2fpt (fits=%s, %d measurements)",
            job.document_id,
            result.resolved_size,
            result.fits,
            result.attempts,
        )
        return result

    async def _stage_postscript(
        self,
        job: DocumentJob,
        port: MeasurementPort,
        body: FitResult | None,
        cancel_event: asyncio.Event,
    ) -> SecondaryFitResult | None:
        if not job.postscript or not job.postscript.strip():
            return None
        region = self._require_region(job, job.postscript_region, "postscript")
        policy = self._registry.resolve(
            job.document_type, job.font_family, FieldKind.BODY, job.template
        )
        base_size = body.resolved_size if body is not None else policy.start_size
        try:
            request = policy.secondary_request(
                job.postscript, region.width, region.height, base_size
            )
            return await self._adjuster.evaluate(request, port, cancel_event)
        except FitError as exc:
            raise DocumentFitError(
                f"P.S. fit failed: {exc}",
                stage="postscript",
                document_id=job.document_id,
                cause=exc,
            ) from exc

    async def _stage_name(
        self, job: DocumentJob, port: MeasurementPort
    ) -> ThresholdFitResult | None:
        if job.name is None:
            return None
        policy = self._registry.resolve(
            job.document_type, job.font_family, FieldKind.NAME, job.template
        )
        width = job.name_region.width if job.name_region is not None else None
        try:
            return await self._sizer.size(job.name, policy, port, width)
        except FitError as exc:
            raise DocumentFitError(
                f"Name sizing failed: {exc}",
                stage="name",
                document_id=job.document_id,
                cause=exc,
            ) from exc

    def _require_region(self, job: DocumentJob, region: Region | None, stage: str) -> Region:
        if region is None:
            raise DocumentFitError(
                f"{stage}_region is required when the document has {stage} text",
                stage=stage,
                document_id=job.document_id,
            )
        return region

    def _notify(self, stage: str, current: int, total: int, message: str = "") -> None:
        if self._progress_callback is None:
            return
        self._progress_callback(stage, current, total, message)
