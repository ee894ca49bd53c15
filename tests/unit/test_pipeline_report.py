"""Tests for run state and the final report."""

from __future__ import annotations

from io import StringIO
from pathlib import Path

from rich.console import Console

from monoship.cli.output.report import print_run_report, summary_line
from monoship.pipeline import Outcome, PipelineRun, RunStatus, Stage
from monoship.workspace.package import Package


def pkg(name: str) -> Package:
    return Package(name=name, version="1.0.0", path=Path("/ws") / name)


def make_run(dry_run: bool = False) -> PipelineRun:
    return PipelineRun.create(
        [pkg("a"), pkg("b"), pkg("c")],
        [pkg("a"), pkg("b"), pkg("c"), pkg("z")],
        dry_run=dry_run,
    )


def test_create_marks_unplanned() -> None:
    run = make_run()
    assert run.outcomes == {
        "a": Outcome.PENDING,
        "b": Outcome.PENDING,
        "c": Outcome.PENDING,
        "z": Outcome.NOT_SELECTED,
    }
    assert run.status == RunStatus.NOT_STARTED


def test_record_and_finish() -> None:
    run = make_run()
    run.record("a", Stage.PREFLIGHT, Outcome.SUCCESS)
    run.record("a", Stage.PUBLISH, Outcome.SUCCESS, "already published")
    run.finish("a")
    run.record("b", Stage.VERIFY, Outcome.FAILED, "check failed")
    run.finish("b")
    run.skip("c", "blocked by b")

    assert run.reports["a"].outcome == Outcome.SUCCESS
    assert run.reports["a"].message == "already published"
    assert run.reports["b"].outcome == Outcome.FAILED
    assert run.reports["b"].stage == Stage.VERIFY
    assert run.failed == ["b"]
    assert len(run.attempts) == 3


def test_success_requires_completed_run() -> None:
    run = make_run()
    for name in ("a", "b", "c"):
        run.finish(name)
    assert not run.success
    run.status = RunStatus.COMPLETED
    assert run.success


def test_summary_line() -> None:
    run = make_run()
    run.finish("a")
    run.reports["a"].published = True
    run.skip("b", "blocked by x")
    assert summary_line(run) == "1 published, 1 skipped, 0 failed, 1 not attempted"


def test_interrupted_package() -> None:
    run = make_run()
    run.record("a", Stage.PUBLISH, Outcome.SUCCESS)
    run.reports["a"].published = True
    run.interrupt("a")
    run.status = RunStatus.ABORTED

    assert run.outcome("a") == Outcome.INTERRUPTED
    assert run.reports["a"].message == "interrupted after upload"
    assert summary_line(run) == "1 published, 0 skipped, 0 failed, 1 interrupted, 2 not attempted"


def test_summary_line_dry_run() -> None:
    run = make_run(dry_run=True)
    for name in ("a", "b", "c"):
        run.finish(name)
    assert summary_line(run) == "3 would publish, 0 skipped, 0 failed"


def test_print_report() -> None:
    run = make_run()
    run.record("a", Stage.VERIFY, Outcome.FAILED, "check failed")
    run.status = RunStatus.ABORTED
    out = StringIO()
    print_run_report(run, Console(file=out, width=120))

    text = out.getvalue()
    assert "Release report" in text
    assert "check failed" in text
    assert "Release aborted" in text
    assert "not-selected" not in text
