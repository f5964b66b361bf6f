"""Unit tests for the launcher discover/filter/prune/execute pipeline."""

from __future__ import annotations

from typing import Any

import pytest

from launcher.engine.base import EngineExecutionContext, TestEngine
from launcher.engine.descriptor import EngineDescriptor, TestDescriptor
from launcher.engine.listener import TestExecutionListener
from launcher.engine.specification import TestPlanSpecification
from launcher.launcher import Launcher, apply_filters, prune
from launcher.listeners import TestPlanExecutionListener
from launcher.plan import EngineDescriptorMissingError, TestPlan
from launcher.registry import TestEngineRegistry


class FakeEngine(TestEngine):
    """Engine built from a nested dict: containers are dicts, tests are None.

    Records every execute call and reports each retained test as succeeded.
    """

    def __init__(self, engine_id: str, tree: dict[str, Any], log: list | None = None) -> None:
        self.id = engine_id
        self.tree = tree
        self.log = log if log is not None else []
        self.executed_roots: list[EngineDescriptor] = []

    def discover_tests(self, specification, engine_descriptor):
        self._build(engine_descriptor, self.tree)

    def _build(self, parent: TestDescriptor, tree: dict[str, Any]) -> None:
        for name, sub in tree.items():
            child = parent.add_child(
                TestDescriptor(parent.child_id(name), is_test=sub is None)
            )
            if sub:
                self._build(child, sub)

    def execute(self, context: EngineExecutionContext) -> None:
        self.executed_roots.append(context.engine_descriptor)
        self.log.append(("engine_execute", self.id))
        for descriptor in context.engine_descriptor.all_descendants():
            if descriptor.is_test:
                context.listener.test_started(descriptor)
                context.listener.test_succeeded(descriptor)


class FailingDiscoveryEngine(FakeEngine):
    def discover_tests(self, specification, engine_descriptor):
        raise RuntimeError("discovery failed")


class RecordingListener(TestPlanExecutionListener, TestExecutionListener):
    """Appends every event it receives to a shared log."""

    def __init__(self, log: list, name: str = "rec") -> None:
        self.log = log
        self.name = name

    def test_plan_execution_started(self, test_plan):
        self.log.append(("plan_started",))

    def test_plan_execution_started_on_engine(self, test_plan, engine):
        self.log.append(("engine_started", engine.id))

    def test_plan_execution_finished_on_engine(self, test_plan, engine):
        self.log.append(("engine_finished", engine.id))

    def test_plan_execution_finished(self, test_plan):
        self.log.append(("plan_finished",))

    def test_started(self, descriptor):
        self.log.append(("test_started", descriptor.unique_id))

    def test_succeeded(self, descriptor):
        self.log.append(("test_succeeded", descriptor.unique_id))


class ThrowingTestListener(TestExecutionListener):
    def test_started(self, descriptor):
        raise RuntimeError(f"listener failed on {descriptor.unique_id}")


def _launcher(*engines: TestEngine) -> Launcher:
    return Launcher(TestEngineRegistry(engines))


def _shape(descriptor: TestDescriptor) -> list:
    """Nested (unique_id, children) structure for comparing trees."""
    return [(c.unique_id, c.is_test, _shape(c)) for c in descriptor.children]


def _leaf_ids(descriptor: TestDescriptor) -> list[str]:
    return [d.unique_id for d in descriptor.all_descendants() if d.is_test]


class TestDiscover:
    """Tests for Launcher.discover."""

    def test_accept_all_keeps_every_leaf_in_order(self):
        """Accepting everything retains the discovered leaf set and order."""
        engine = FakeEngine("e", {"s": {"t1": None, "t2": None}, "t3": None})
        plan = _launcher(engine).discover(TestPlanSpecification.accept_all())

        root = plan.get_engine_descriptor_for(engine)
        assert _leaf_ids(root) == ["e/s/t1", "e/s/t2", "e/t3"]

    def test_reject_all_leaves_empty_root(self):
        """Rejecting both leaves prunes the container, leaving a bare root."""
        engine = FakeEngine("e", {"container": {"t1": None, "t2": None}})
        spec = TestPlanSpecification([lambda d: False])
        plan = _launcher(engine).discover(spec)

        root = plan.get_engine_descriptor_for(engine)
        assert root is not None
        assert root.children == ()
        assert "e" in plan

    def test_accept_one_leaf_keeps_its_container(self):
        """root -> container -> one accepted leaf survives."""
        engine = FakeEngine("e", {"container": {"t1": None, "t2": None}})
        spec = TestPlanSpecification.for_unique_ids("e/container/t2")
        plan = _launcher(engine).discover(spec)

        root = plan.get_engine_descriptor_for(engine)
        assert len(root.children) == 1
        container = root.children[0]
        assert container.unique_id == "e/container"
        assert [c.unique_id for c in container.children] == ["e/container/t2"]

    def test_empty_containers_pruned_at_every_level(self):
        engine = FakeEngine("e", {
            "a": {"b": {"c": {}}},
            "d": {"e": {"t": None}, "f": {}},
        })
        plan = _launcher(engine).discover(TestPlanSpecification.accept_all())

        root = plan.get_engine_descriptor_for(engine)
        assert _shape(root) == [
            ("e/d", False, [("e/d/e", False, [("e/d/e/t", True, [])])]),
        ]

    def test_specification_not_evaluated_on_containers(self):
        """Only test leaves are offered to the specification."""
        seen: list[TestDescriptor] = []

        def record(descriptor):
            seen.append(descriptor)
            return True

        engine = FakeEngine("e", {"s": {"t1": None}})
        _launcher(engine).discover(TestPlanSpecification([record]))
        assert [d.unique_id for d in seen] == ["e/s/t1"]

    def test_discover_twice_is_structurally_identical(self):
        engine = FakeEngine("e", {"s": {"t1": None, "t2": None}, "x": {}})
        launcher = _launcher(engine)
        spec = TestPlanSpecification.by_name_patterns("*t2")
        first = launcher.discover(spec).get_engine_descriptor_for(engine)
        second = launcher.discover(spec).get_engine_descriptor_for(engine)
        assert _shape(first) == _shape(second)
        assert first is not second

    def test_one_entry_per_engine_in_registration_order(self):
        e1 = FakeEngine("one", {"t": None})
        e2 = FakeEngine("two", {})
        plan = _launcher(e1, e2).discover(TestPlanSpecification.accept_all())
        assert [d.unique_id for d in plan.engine_descriptors] == ["one", "two"]

    def test_discovery_emits_no_events(self):
        log: list = []
        launcher = _launcher(FakeEngine("e", {"t": None}))
        launcher.register_listeners(RecordingListener(log))
        launcher.discover(TestPlanSpecification.accept_all())
        assert log == []

    def test_predicate_failure_propagates(self):
        """A failing specification aborts discovery."""

        def broken(descriptor):
            raise ValueError("bad predicate")

        launcher = _launcher(FakeEngine("e", {"t": None}))
        with pytest.raises(ValueError, match="bad predicate"):
            launcher.discover(TestPlanSpecification([broken]))

    def test_engine_discovery_failure_stops_later_engines(self):
        later = FakeEngine("later", {"t": None})
        later.discover_tests = lambda spec, root: pytest.fail("should not run")
        launcher = _launcher(FailingDiscoveryEngine("bad", {}), later)
        with pytest.raises(RuntimeError, match="discovery failed"):
            launcher.discover(TestPlanSpecification.accept_all())


class TestFilterAndPrune:
    """Tests for the filter and prune passes on their own."""

    def _root(self, tree: dict[str, Any]) -> EngineDescriptor:
        engine = FakeEngine("e", tree)
        root = EngineDescriptor(engine)
        engine.discover_tests(None, root)
        return root

    def test_filter_soundness(self):
        """Remaining leaves all pass; removed leaves all failed."""
        root = self._root({"s": {"keep1": None, "drop1": None}, "keep2": None, "drop2": None})
        before = _leaf_ids(root)
        spec = TestPlanSpecification.by_name_patterns("*keep*")
        apply_filters(spec, root)
        after = _leaf_ids(root)

        assert after == ["e/s/keep1", "e/keep2"]
        for removed in set(before) - set(after):
            assert "drop" in removed

    def test_filter_leaves_containers(self):
        root = self._root({"s": {"t": None}})
        apply_filters(TestPlanSpecification([lambda d: False]), root)
        assert [c.unique_id for c in root.children] == ["e/s"]

    def test_prune_is_idempotent(self):
        root = self._root({"a": {}, "b": {"c": {}, "t": None}})
        prune(root)
        once = _shape(root)
        prune(root)
        assert _shape(root) == once
        assert once == [("e/b", False, [("e/b/t", True, [])])]

    def test_prune_soundness(self):
        """Every surviving container has a test below it."""
        root = self._root({"a": {"b": {}}, "c": {"d": {"t": None}}, "e": {}})
        prune(root)
        for descriptor in root.all_descendants():
            if not descriptor.is_test:
                assert descriptor.has_tests()

    def test_prune_keeps_empty_root(self):
        root = self._root({"a": {}})
        prune(root)
        assert root.children == ()


class TestExecute:
    """Tests for Launcher.execute."""

    def test_plan_and_engine_events_bracket_execution(self):
        """Each engine is bracketed once, inside one plan start/finish."""
        log: list = []
        e1 = FakeEngine("one", {"t": None}, log)
        e2 = FakeEngine("two", {"u": None}, log)
        launcher = _launcher(e1, e2)
        launcher.register_test_plan_execution_listeners(RecordingListener(log))

        launcher.execute(launcher.discover(TestPlanSpecification.accept_all()))

        assert log == [
            ("plan_started",),
            ("engine_started", "one"),
            ("engine_execute", "one"),
            ("engine_finished", "one"),
            ("engine_started", "two"),
            ("engine_execute", "two"),
            ("engine_finished", "two"),
            ("plan_finished",),
        ]

    def test_execute_specification_discovers_first(self):
        log: list = []
        launcher = _launcher(FakeEngine("e", {"t1": None, "t2": None}))
        launcher.register_test_execution_listeners(RecordingListener(log))

        launcher.execute(TestPlanSpecification.for_unique_ids("e/t2"))

        assert log == [("test_started", "e/t2"), ("test_succeeded", "e/t2")]

    def test_each_engine_gets_its_own_tree(self):
        e1 = FakeEngine("one", {"t": None})
        e2 = FakeEngine("two", {"u": None})
        launcher = _launcher(e1, e2)
        plan = launcher.discover(TestPlanSpecification.accept_all())

        launcher.execute(plan)

        assert e1.executed_roots == [plan.get_engine_descriptor_for(e1)]
        assert e2.executed_roots == [plan.get_engine_descriptor_for(e2)]
        assert e1.executed_roots[0].engine is e1

    def test_plan_can_be_executed_twice(self):
        engine = FakeEngine("e", {"t": None})
        launcher = _launcher(engine)
        plan = launcher.discover(TestPlanSpecification.accept_all())
        launcher.execute(plan)
        launcher.execute(plan)
        assert len(engine.executed_roots) == 2

    def test_engine_with_empty_tree_still_executed(self):
        engine = FakeEngine("e", {"empty": {}})
        launcher = _launcher(engine)
        launcher.execute(TestPlanSpecification.accept_all())
        assert engine.executed_roots[0].children == ()

    def test_listener_failure_aborts_before_next_engine(self):
        """A throwing unit listener stops execution before engine two."""
        log: list = []
        e1 = FakeEngine("one", {"t": None}, log)
        e2 = FakeEngine("two", {"u": None}, log)
        launcher = _launcher(e1, e2)
        launcher.register_listeners(RecordingListener(log))
        launcher.register_test_execution_listeners(ThrowingTestListener())

        with pytest.raises(RuntimeError, match="listener failed on one/t"):
            launcher.execute(TestPlanSpecification.accept_all())

        assert e2.executed_roots == []
        assert ("engine_started", "two") not in log
        assert ("plan_finished",) not in log

    def test_missing_engine_descriptor_is_fatal(self):
        """A plan built for a different engine set cannot be executed."""
        e1 = FakeEngine("one", {"t": None})
        plan = _launcher(e1).discover(TestPlanSpecification.accept_all())
        e2 = FakeEngine("two", {"u": None})
        launcher = _launcher(e1, e2)

        with pytest.raises(EngineDescriptorMissingError, match="two"):
            launcher.execute(plan)
        assert e2.executed_roots == []

    def test_engine_execution_failure_propagates(self):
        class Exploding(FakeEngine):
            def execute(self, context):
                raise OSError("engine crashed")

        later = FakeEngine("later", {"t": None})
        launcher = _launcher(Exploding("boom", {"t": None}), later)
        with pytest.raises(OSError, match="engine crashed"):
            launcher.execute(TestPlanSpecification.accept_all())
        assert later.executed_roots == []

    def test_execute_rejects_other_types(self):
        with pytest.raises(TypeError, match="TestPlanSpecification or TestPlan"):
            _launcher().execute("all")

    def test_execute_empty_registry(self):
        log: list = []
        launcher = _launcher()
        launcher.register_listeners(RecordingListener(log))
        launcher.execute(TestPlan())
        assert log == [("plan_started",), ("plan_finished",)]

    def test_register_engine_on_launcher(self):
        launcher = Launcher()
        launcher.register_engine(FakeEngine("e", {"t": None}))
        plan = launcher.discover(TestPlanSpecification.accept_all())
        assert plan.count_tests() == 1
