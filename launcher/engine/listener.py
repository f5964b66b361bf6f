"""Unit-level execution listener interface.

Engines report per-test progress through a TestExecutionListener. The
launcher hands each engine a composite listener that fans every event out
to the registered listeners in order.
"""

from __future__ import annotations

from launcher.engine.descriptor import TestDescriptor


class TestExecutionListener:
    """Receives per-test events from an engine. All methods are no-ops."""

    __test__ = False

    def test_started(self, descriptor: TestDescriptor) -> None:
        pass

    def test_skipped(self, descriptor: TestDescriptor, reason: str) -> None:
        pass

    def test_succeeded(self, descriptor: TestDescriptor) -> None:
        pass

    def test_failed(self, descriptor: TestDescriptor, error: BaseException | str) -> None:
        pass

    def test_aborted(self, descriptor: TestDescriptor, error: BaseException | str) -> None:
        pass
