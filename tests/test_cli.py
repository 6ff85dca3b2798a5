# SPDX-License-Identifier: Apache-2.0
"""Tests for the fit-text command line tool."""

from __future__ import annotations

import inspect
import json
import sys
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from letterfit.cli import (
    POLICY_FILE_ENV,
    create_measurer_factory,
    load_jobs,
    load_registry,
    parse_args,
    run,
)
from letterfit.measurement import CharWidthMeasurer
from letterfit.measurement.browser import BrowserMeasurer

JOBS = [
    {
        "id": "letter-1",
        "document_type": "letter",
        "font_family": "block",
        "body_html": "<p>Dear Max,</p><p>Merry Christmas!</p><p>Love,<br>Santa</p>",
        "body_region": {"width": 400, "height": 300},
        "postscript": "P.S. Leave a carrot for Rudolph.",
        "postscript_region": {"width": 400, "height": 40},
    },
    {
        "id": "envelope-1",
        "document_type": "envelope",
        "name": "Max Power",
    },
]


@pytest.fixture
def jobs_file(tmp_path: Path) -> Path:
    """Job file with a letter and an envelope."""
    path = tmp_path / "jobs.json"
    path.write_text(json.dumps(JOBS), encoding="utf-8")
    return path


class TestParseArgs:
    """Tests for parse_args function."""

    def test_defaults(self) -> None:
        """Test default argument values."""
        with patch.object(sys, "argv", ["fit-text", "jobs.json"]):
            args = parse_args()

        assert args.input == Path("jobs.json")
        assert args.backend == "approx"
        assert args.units == "pt"
        assert args.policies is None
        assert args.timeout is None
        assert args.concurrency == 4
        assert args.verbose is False

    def test_options(self) -> None:
        """Test explicit options."""
        args = parse_args(
            [
                "jobs.json",
                "--backend",
                "pdfium",
                "--standard-font",
                "Times-Roman",
                "--units",
                "mm",
                "--timeout",
                "2.5",
                "-o",
                "out.json",
                "-v",
            ]
        )

        assert args.backend == "pdfium"
        assert args.standard_font == "Times-Roman"
        assert args.units == "mm"
        assert args.timeout == 2.5
        assert args.output == Path("out.json")
        assert args.verbose is True

    def test_invalid_backend(self) -> None:
        """Test that unknown backends are rejected."""
        with pytest.raises(SystemExit):
            parse_args(["jobs.json", "--backend", "chrome"])


class TestCreateMeasurerFactory:
    """Tests for create_measurer_factory function."""

    def test_approx(self) -> None:
        """Test that the default backend needs no setup."""
        factory = create_measurer_factory(parse_args(["jobs.json"]))
        assert isinstance(factory(), CharWidthMeasurer)

    @pytest.mark.asyncio
    async def test_browser(self) -> None:
        """Test that the browser backend launches one session per call."""
        args = parse_args(["jobs.json", "--backend", "browser", "--font-family", "Georgia"])
        assert args.backend == "browser"

        session = object()
        with patch.object(
            BrowserMeasurer, "launch", new=AsyncMock(return_value=session)
        ) as launch:
            factory = create_measurer_factory(args)
            result = factory()
            assert inspect.isawaitable(result)
            assert await result is session

        launch.assert_awaited_once_with(font_family="Georgia", font_path=None)

    def test_missing_font_file(self, tmp_path: Path) -> None:
        """Test that a missing font file exits."""
        args = parse_args(
            ["jobs.json", "--backend", "browser", "--font-file", str(tmp_path / "none.otf")]
        )
        with pytest.raises(SystemExit):
            create_measurer_factory(args)


class TestLoadJobs:
    """Tests for job file loading."""

    def test_list_of_jobs(self, jobs_file: Path) -> None:
        """Test loading a list of jobs."""
        jobs = load_jobs(jobs_file, "pt")

        assert [job.document_id for job in jobs] == ["letter-1", "envelope-1"]
        assert jobs[0].body == ["Dear Max,", "Merry Christmas!", "Love,\nSanta"]

    def test_single_job_in_mm(self, tmp_path: Path) -> None:
        """Test a single job object with millimeter regions."""
        path = tmp_path / "job.json"
        path.write_text(
            json.dumps(
                {
                    "document_type": "letter",
                    "body": ["Hi"],
                    "body_region": {"width": 25.4, "height": 25.4},
                }
            ),
            encoding="utf-8",
        )

        jobs = load_jobs(path, "mm")

        assert jobs[0].document_id == "1"
        assert jobs[0].body_region is not None
        assert jobs[0].body_region.width == pytest.approx(72.0)

    def test_missing_document_type(self, tmp_path: Path) -> None:
        """Test that jobs must name a document type."""
        path = tmp_path / "job.json"
        path.write_text(json.dumps([{"body": ["Hi"]}]), encoding="utf-8")

        with pytest.raises(ValueError, match="document_type"):
            load_jobs(path, "pt")


class TestLoadRegistry:
    """Tests for policy file selection."""

    def test_builtin(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that built-in policies are used by default."""
        monkeypatch.delenv(POLICY_FILE_ENV, raising=False)
        registry = load_registry(parse_args(["jobs.json"]))
        assert registry.resolve("letter", "fancy", "body").start_size == 28.0

    def test_environment_variable(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that the environment variable selects a policy file."""
        path = tmp_path / "policies.json"
        path.write_text(json.dumps({"default": {"max_size": 60}}), encoding="utf-8")
        monkeypatch.setenv(POLICY_FILE_ENV, str(path))

        registry = load_registry(parse_args(["jobs.json"]))

        assert registry.default.max_size == 60.0


class TestRun:
    """Tests for the run coroutine."""

    @pytest.mark.asyncio
    async def test_writes_report(
        self, jobs_file: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test a successful run writing a JSON report."""
        monkeypatch.delenv(POLICY_FILE_ENV, raising=False)
        output = tmp_path / "out" / "report.json"

        exit_code = await run(parse_args([str(jobs_file), "-o", str(output)]))

        assert exit_code == 0
        report = json.loads(output.read_text(encoding="utf-8"))
        assert report["backend"] == "approx"
        assert report["stats"]["documents"] == 2
        letter, envelope = report["documents"]
        assert letter["ok"] is True
        assert 10.8 <= letter["body"]["resolved_size"] <= 45.0
        assert "postscript" in letter
        assert envelope["name"]["size"] == 30.0

    @pytest.mark.asyncio
    async def test_prints_report(
        self, jobs_file: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test printing the report to stdout."""
        exit_code = await run(parse_args([str(jobs_file)]))

        assert exit_code == 0
        report = json.loads(capsys.readouterr().out)
        assert len(report["documents"]) == 2

    @pytest.mark.asyncio
    async def test_failed_document_sets_exit_code(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test that a failing document returns exit code 1."""
        path = tmp_path / "jobs.json"
        path.write_text(
            json.dumps([{"id": "x", "document_type": "letter", "body": ["Hi"]}]),
            encoding="utf-8",
        )

        exit_code = await run(parse_args([str(path)]))

        assert exit_code == 1
        assert "document x failed (body)" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_missing_input(self, tmp_path: Path) -> None:
        """Test a missing job file."""
        assert await run(parse_args([str(tmp_path / "none.json")])) == 1

    @pytest.mark.asyncio
    async def test_invalid_policy_file(self, jobs_file: Path, tmp_path: Path) -> None:
        """Test a malformed policy file."""
        policies = tmp_path / "policies.json"
        policies.write_text("[1, 2]", encoding="utf-8")

        exit_code = await run(parse_args([str(jobs_file), "--policies", str(policies)]))

        assert exit_code == 1
