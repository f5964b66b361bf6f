"""Plan-level listeners and the listener registry.

The registry keeps plan-level and unit-level listeners in registration
order and exposes one composite of each kind. A composite calls every
held listener in order, synchronously; an exception from one listener
stops the fan-out for that event and propagates to the caller.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from launcher.engine.descriptor import TestDescriptor
from launcher.engine.listener import TestExecutionListener

if TYPE_CHECKING:
    from launcher.engine.base import TestEngine
    from launcher.plan import TestPlan


class TestPlanExecutionListener:
    """Receives plan-level lifecycle events. All methods are no-ops."""

    __test__ = False

    def test_plan_execution_started(self, test_plan: TestPlan) -> None:
        pass

    def test_plan_execution_started_on_engine(
        self, test_plan: TestPlan, engine: TestEngine
    ) -> None:
        pass

    def test_plan_execution_finished_on_engine(
        self, test_plan: TestPlan, engine: TestEngine
    ) -> None:
        pass

    def test_plan_execution_finished(self, test_plan: TestPlan) -> None:
        pass


class CompositeTestPlanExecutionListener(TestPlanExecutionListener):
    """Fans plan-level events out to a shared listener list."""

    def __init__(self, listeners: Sequence[TestPlanExecutionListener]) -> None:
        self._listeners = listeners

    def test_plan_execution_started(self, test_plan: TestPlan) -> None:
        for listener in tuple(self._listeners):
            listener.test_plan_execution_started(test_plan)

    def test_plan_execution_started_on_engine(
        self, test_plan: TestPlan, engine: TestEngine
    ) -> None:
        for listener in tuple(self._listeners):
            listener.test_plan_execution_started_on_engine(test_plan, engine)

    def test_plan_execution_finished_on_engine(
        self, test_plan: TestPlan, engine: TestEngine
    ) -> None:
        for listener in tuple(self._listeners):
            listener.test_plan_execution_finished_on_engine(test_plan, engine)

    def test_plan_execution_finished(self, test_plan: TestPlan) -> None:
        for listener in tuple(self._listeners):
            listener.test_plan_execution_finished(test_plan)


class CompositeTestExecutionListener(TestExecutionListener):
    """Fans unit-level events out to a shared listener list."""

    def __init__(self, listeners: Sequence[TestExecutionListener]) -> None:
        self._listeners = listeners

    def test_started(self, descriptor: TestDescriptor) -> None:
        for listener in tuple(self._listeners):
            listener.test_started(descriptor)

    def test_skipped(self, descriptor: TestDescriptor, reason: str) -> None:
        for listener in tuple(self._listeners):
            listener.test_skipped(descriptor, reason)

    def test_succeeded(self, descriptor: TestDescriptor) -> None:
        for listener in tuple(self._listeners):
            listener.test_succeeded(descriptor)

    def test_failed(self, descriptor: TestDescriptor, error: BaseException | str) -> None:
        for listener in tuple(self._listeners):
            listener.test_failed(descriptor, error)

    def test_aborted(self, descriptor: TestDescriptor, error: BaseException | str) -> None:
        for listener in tuple(self._listeners):
            listener.test_aborted(descriptor, error)


class TestListenerRegistry:
    """Ordered, append-only store of plan-level and unit-level listeners."""

    __test__ = False

    def __init__(self) -> None:
        self._plan_listeners: list[TestPlanExecutionListener] = []
        self._test_listeners: list[TestExecutionListener] = []
        self._composite_plan_listener = CompositeTestPlanExecutionListener(
            self._plan_listeners
        )
        self._composite_test_listener = CompositeTestExecutionListener(
            self._test_listeners
        )

    def register_test_plan_execution_listeners(
        self, *listeners: TestPlanExecutionListener
    ) -> None:
        self._plan_listeners.extend(listeners)

    def register_test_execution_listeners(
        self, *listeners: TestExecutionListener
    ) -> None:
        self._test_listeners.extend(listeners)

    def register_listeners(self, *listeners: object) -> None:
        """Register each listener under every kind it implements.

        Raises:
            TypeError: If a listener implements neither kind.
        """
        for listener in listeners:
            if not isinstance(
                listener, (TestPlanExecutionListener, TestExecutionListener)
            ):
                raise TypeError(f"Not a test listener: {listener!r}")
        for listener in listeners:
            if isinstance(listener, TestPlanExecutionListener):
                self._plan_listeners.append(listener)
            if isinstance(listener, TestExecutionListener):
                self._test_listeners.append(listener)

    @property
    def test_plan_execution_listeners(self) -> list[TestPlanExecutionListener]:
        return list(self._plan_listeners)

    @property
    def test_execution_listeners(self) -> list[TestExecutionListener]:
        return list(self._test_listeners)

    def get_composite_test_plan_execution_listener(self) -> TestPlanExecutionListener:
        return self._composite_plan_listener

    def get_composite_test_execution_listener(self) -> TestExecutionListener:
        return self._composite_test_listener
