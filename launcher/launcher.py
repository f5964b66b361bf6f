"""The launcher: discover, filter, prune and execute across engines.

Engines are enumerated from the launcher's TestEngineRegistry in
registration order. Discovery is silent; execution brackets each engine
with plan-level events and runs engines one after another. No exception
is caught here: any failure aborts the discover or execute call.
"""

from __future__ import annotations

from collections.abc import Callable

from launcher.engine.base import EngineExecutionContext, TestEngine
from launcher.engine.descriptor import EngineDescriptor, TestDescriptor
from launcher.engine.listener import TestExecutionListener
from launcher.engine.specification import TestPlanSpecification
from launcher.listeners import TestListenerRegistry, TestPlanExecutionListener
from launcher.plan import TestPlan
from launcher.registry import TestEngineRegistry


class Launcher:
    """Entry point for discovering and executing tests across engines."""

    def __init__(self, engine_registry: TestEngineRegistry | None = None) -> None:
        self.engine_registry = engine_registry if engine_registry is not None else TestEngineRegistry()
        self.listener_registry = TestListenerRegistry()

    def register_engine(self, engine: TestEngine) -> None:
        self.engine_registry.register(engine)

    def register_test_plan_execution_listeners(
        self, *listeners: TestPlanExecutionListener
    ) -> None:
        self.listener_registry.register_test_plan_execution_listeners(*listeners)

    def register_test_execution_listeners(
        self, *listeners: TestExecutionListener
    ) -> None:
        self.listener_registry.register_test_execution_listeners(*listeners)

    def register_listeners(self, *listeners: object) -> None:
        self.listener_registry.register_listeners(*listeners)

    def discover(self, specification: TestPlanSpecification) -> TestPlan:
        """Build a test plan from every registered engine.

        Each engine populates a fresh EngineDescriptor, which is then
        filtered against the specification and pruned of empty containers.
        Engines whose trees end up empty still get an entry in the plan.
        """
        test_plan = TestPlan()
        for engine in self.engine_registry:
            engine_descriptor = EngineDescriptor(engine)
            engine.discover_tests(specification, engine_descriptor)
            apply_filters(specification, engine_descriptor)
            prune(engine_descriptor)
            test_plan.add_engine_descriptor(engine_descriptor)
        return test_plan

    def execute(self, target: TestPlanSpecification | TestPlan) -> None:
        """Execute a test plan, discovering it first when given a specification.

        Raises:
            TypeError: If target is neither a specification nor a plan.
            EngineDescriptorMissingError: If the plan lacks a tree for a
                registered engine.
        """
        if isinstance(target, TestPlanSpecification):
            test_plan = self.discover(target)
        elif isinstance(target, TestPlan):
            test_plan = target
        else:
            raise TypeError(
                f"Expected TestPlanSpecification or TestPlan, got {type(target).__name__}"
            )
        self._execute_plan(test_plan)

    def _execute_plan(self, test_plan: TestPlan) -> None:
        plan_listener = self.listener_registry.get_composite_test_plan_execution_listener()
        test_listener = self.listener_registry.get_composite_test_execution_listener()

        plan_listener.test_plan_execution_started(test_plan)
        for engine in self.engine_registry:
            plan_listener.test_plan_execution_started_on_engine(test_plan, engine)
            engine_descriptor = test_plan.require_engine_descriptor_for(engine)
            engine.execute(EngineExecutionContext(engine_descriptor, test_listener))
            plan_listener.test_plan_execution_finished_on_engine(test_plan, engine)
        plan_listener.test_plan_execution_finished(test_plan)


def apply_filters(
    specification: TestPlanSpecification, engine_descriptor: EngineDescriptor
) -> None:
    """Remove every test leaf the specification rejects.

    Containers are never evaluated against the specification.
    """

    def filtering_visitor(descriptor: TestDescriptor, remove: Callable[[], None]) -> None:
        if not descriptor.is_test:
            return
        if not specification.accept_descriptor(descriptor):
            remove()

    engine_descriptor.accept(filtering_visitor)


def prune(engine_descriptor: EngineDescriptor) -> None:
    """Remove every non-root descriptor with no test in its subtree."""

    def pruning_visitor(descriptor: TestDescriptor, remove: Callable[[], None]) -> None:
        if descriptor.is_root:
            return
        if descriptor.has_tests():
            return
        remove()

    engine_descriptor.accept(pruning_visitor)
