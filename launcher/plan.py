"""The test plan: one filtered and pruned descriptor tree per engine."""

from __future__ import annotations

from collections.abc import Iterator

from launcher.engine.base import TestEngine
from launcher.engine.descriptor import EngineDescriptor, TestDescriptor


class EngineDescriptorMissingError(RuntimeError):
    """A plan has no tree for an engine that is being executed.

    Raised when a plan built against one engine set is executed against a
    different one.
    """

    def __init__(self, engine_id: str, known: list[str]) -> None:
        super().__init__(
            f"Test plan has no descriptor for engine {engine_id!r} "
            f"(plan engines: {', '.join(known) or 'none'})"
        )
        self.engine_id = engine_id


class TestPlan:
    """Aggregate result of a discover call, keyed by engine id."""

    __test__ = False

    def __init__(self) -> None:
        self._descriptors: dict[str, EngineDescriptor] = {}

    def add_engine_descriptor(self, engine_descriptor: EngineDescriptor) -> None:
        """Add the tree for one engine.

        Raises:
            ValueError: If the plan already holds a tree for that engine.
        """
        engine_id = engine_descriptor.unique_id
        if engine_id in self._descriptors:
            raise ValueError(f"Duplicate engine descriptor: {engine_id}")
        self._descriptors[engine_id] = engine_descriptor

    def get_engine_descriptor_for(self, engine: TestEngine) -> EngineDescriptor | None:
        return self._descriptors.get(engine.id)

    def require_engine_descriptor_for(self, engine: TestEngine) -> EngineDescriptor:
        descriptor = self.get_engine_descriptor_for(engine)
        if descriptor is None:
            raise EngineDescriptorMissingError(engine.id, list(self._descriptors))
        return descriptor

    @property
    def engine_descriptors(self) -> list[EngineDescriptor]:
        return list(self._descriptors.values())

    def all_tests(self) -> list[TestDescriptor]:
        """All test leaves across engines, in plan order."""
        return [
            d
            for root in self._descriptors.values()
            for d in root.all_descendants()
            if d.is_test
        ]

    def count_tests(self) -> int:
        return sum(root.count_tests() for root in self._descriptors.values())

    def __iter__(self) -> Iterator[EngineDescriptor]:
        return iter(self._descriptors.values())

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, engine_id: object) -> bool:
        return engine_id in self._descriptors

    def __repr__(self) -> str:
        return f"TestPlan(engines={list(self._descriptors)}, tests={self.count_tests()})"
