"""Result reporting: execution summaries built from listener events."""

from launcher.reporting.summary import ExecutionSummary, SummaryGeneratingListener, TestOutcome

__all__ = [
    "ExecutionSummary",
    "SummaryGeneratingListener",
    "TestOutcome",
]
