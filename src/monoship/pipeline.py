"""State of one release run: stages, outcomes and the per-package report."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum

from monoship.workspace.package import Package


class Stage(Enum):
    """Pipeline stages, in execution order."""

    PREFLIGHT = "pre-flight"
    VERIFY = "verify"
    PUBLISH = "publish"
    POST = "post-actions"


class Outcome(Enum):
    PENDING = "pending"
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"
    INTERRUPTED = "interrupted"
    NOT_SELECTED = "not-selected"


class RunStatus(Enum):
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class StageAttempt:
    """One stage run against one package."""

    package: str
    stage: Stage
    outcome: Outcome
    message: str = ""


@dataclass
class PackageReport:
    """Where a package got to in the pipeline.

    Attributes:
        name: Package name.
        version: Package version.
        outcome: Final outcome for the package.
        stage: Last stage attempted, None if none was.
        message: Failure reason, skip reason or registry note.
        published: True once the registry holds this version (including
            when it already did).
    """

    name: str
    version: str
    outcome: Outcome = Outcome.PENDING
    stage: Stage | None = None
    message: str = ""
    published: bool = False


@dataclass
class PipelineRun:
    """A single orchestrator execution.

    The attempt log and the report map are only ever appended to or updated
    by the orchestrator that owns the run.
    """

    dry_run: bool = False
    status: RunStatus = RunStatus.NOT_STARTED
    attempts: list[StageAttempt] = field(default_factory=list)
    reports: dict[str, PackageReport] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        plan: list[Package],
        workspace_packages: list[Package] | None = None,
        *,
        dry_run: bool = False,
    ) -> PipelineRun:
        """Start a run: planned packages pending, other members not selected."""
        run = cls(dry_run=dry_run)
        for pkg in plan:
            run.reports[pkg.name] = PackageReport(pkg.name, pkg.version)
        for pkg in workspace_packages or ():
            if pkg.name not in run.reports:
                run.reports[pkg.name] = PackageReport(
                    pkg.name, pkg.version, outcome=Outcome.NOT_SELECTED
                )
        return run

    def record(self, package: str, stage: Stage, outcome: Outcome, message: str = "") -> None:
        """Log a stage attempt and move the package's report along."""
        self.attempts.append(StageAttempt(package, stage, outcome, message))
        report = self.reports[package]
        report.stage = stage
        if outcome == Outcome.FAILED:
            report.outcome = Outcome.FAILED
            report.message = message
        elif message and stage == Stage.PUBLISH:
            report.message = message

    def finish(self, package: str) -> None:
        """Mark a package that went through every stage without failing."""
        report = self.reports[package]
        if report.outcome == Outcome.PENDING:
            report.outcome = Outcome.SUCCESS

    def skip(self, package: str, reason: str) -> None:
        report = self.reports[package]
        report.outcome = Outcome.SKIPPED
        report.message = reason

    def interrupt(self, package: str) -> None:
        """Mark the package that was in flight when the run was interrupted."""
        report = self.reports[package]
        report.outcome = Outcome.INTERRUPTED
        if report.published:
            report.message = "interrupted after upload"
        else:
            report.message = "interrupted before upload"

    def outcome(self, package: str) -> Outcome:
        return self.reports[package].outcome

    @property
    def outcomes(self) -> dict[str, Outcome]:
        return {name: r.outcome for name, r in self.reports.items()}

    def counts(self) -> Counter[Outcome]:
        return Counter(r.outcome for r in self.reports.values())

    @property
    def published(self) -> list[str]:
        return [name for name, r in self.reports.items() if r.published]

    @property
    def failed(self) -> list[str]:
        return [name for name, r in self.reports.items() if r.outcome == Outcome.FAILED]

    @property
    def success(self) -> bool:
        """Overall verdict: completed with no failed package."""
        return self.status == RunStatus.COMPLETED and not self.failed
