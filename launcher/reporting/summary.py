"""Execution summary collected from listener events.

SummaryGeneratingListener implements both listener kinds and builds an
ExecutionSummary: counts per outcome, failure details and timing.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any

import yaml

from launcher.engine.descriptor import TestDescriptor
from launcher.engine.listener import TestExecutionListener
from launcher.listeners import TestPlanExecutionListener

if TYPE_CHECKING:
    from launcher.plan import TestPlan


@dataclass
class TestOutcome:
    """Outcome of a single test."""

    __test__ = False

    unique_id: str
    status: str  # succeeded, failed, aborted, skipped
    duration: float = 0.0
    message: str = ""


@dataclass
class ExecutionSummary:
    """Aggregated results of one test plan execution."""

    tests_found: int = 0
    tests_started: int = 0
    tests_succeeded: int = 0
    tests_failed: int = 0
    tests_aborted: int = 0
    tests_skipped: int = 0
    engines: list[str] = field(default_factory=list)
    outcomes: list[TestOutcome] = field(default_factory=list)
    start_time: float = 0.0
    finish_time: float = 0.0

    @property
    def duration(self) -> float:
        return max(self.finish_time - self.start_time, 0.0)

    @property
    def has_failures(self) -> bool:
        return self.tests_failed > 0 or self.tests_aborted > 0

    @property
    def failures(self) -> list[TestOutcome]:
        return [o for o in self.outcomes if o.status in ("failed", "aborted")]

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": {
                "found": self.tests_found,
                "started": self.tests_started,
                "succeeded": self.tests_succeeded,
                "failed": self.tests_failed,
                "aborted": self.tests_aborted,
                "skipped": self.tests_skipped,
                "duration_s": round(self.duration, 3),
            },
            "engines": list(self.engines),
            "tests": [
                {
                    "id": o.unique_id,
                    "status": o.status,
                    "duration_s": round(o.duration, 3),
                    **({"message": o.message} if o.message else {}),
                }
                for o in self.outcomes
            ],
        }

    def write_yaml(self, path: Path) -> None:
        """Write the summary as YAML, creating parent directories."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def print_to(self, stream: IO[str]) -> None:
        for outcome in self.failures:
            print(f"  [{outcome.status.upper()}] {outcome.unique_id}", file=stream)
            if outcome.message:
                for line in outcome.message.splitlines():
                    print(f"      {line}", file=stream)
        print(
            f"Tests: {self.tests_found} found, {self.tests_succeeded} succeeded, "
            f"{self.tests_failed} failed, {self.tests_aborted} aborted, "
            f"{self.tests_skipped} skipped ({self.duration:.2f}s)",
            file=stream,
        )


class SummaryGeneratingListener(TestPlanExecutionListener, TestExecutionListener):
    """Builds an ExecutionSummary from plan-level and unit-level events."""

    def __init__(self) -> None:
        self.summary = ExecutionSummary()
        self._started_at: dict[str, float] = {}

    def test_plan_execution_started(self, test_plan: TestPlan) -> None:
        self.summary = ExecutionSummary(
            tests_found=test_plan.count_tests(),
            start_time=time.monotonic(),
        )
        self._started_at = {}

    def test_plan_execution_started_on_engine(self, test_plan, engine) -> None:
        self.summary.engines.append(engine.id)

    def test_plan_execution_finished(self, test_plan: TestPlan) -> None:
        self.summary.finish_time = time.monotonic()

    def test_started(self, descriptor: TestDescriptor) -> None:
        self.summary.tests_started += 1
        self._started_at[descriptor.unique_id] = time.monotonic()

    def test_skipped(self, descriptor: TestDescriptor, reason: str) -> None:
        self.summary.tests_skipped += 1
        self._record(descriptor, "skipped", reason)

    def test_succeeded(self, descriptor: TestDescriptor) -> None:
        self.summary.tests_succeeded += 1
        self._record(descriptor, "succeeded")

    def test_failed(self, descriptor: TestDescriptor, error: BaseException | str) -> None:
        self.summary.tests_failed += 1
        self._record(descriptor, "failed", str(error))

    def test_aborted(self, descriptor: TestDescriptor, error: BaseException | str) -> None:
        self.summary.tests_aborted += 1
        self._record(descriptor, "aborted", str(error))

    def _record(self, descriptor: TestDescriptor, status: str, message: str = "") -> None:
        started = self._started_at.pop(descriptor.unique_id, None)
        duration = time.monotonic() - started if started is not None else 0.0
        self.summary.outcomes.append(
            TestOutcome(
                unique_id=descriptor.unique_id,
                status=status,
                duration=duration,
                message=message,
            )
        )
