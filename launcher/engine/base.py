"""The test engine plugin contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from launcher.engine.descriptor import EngineDescriptor
from launcher.engine.listener import TestExecutionListener
from launcher.engine.specification import TestPlanSpecification


@dataclass(frozen=True)
class EngineExecutionContext:
    """What an engine receives when asked to execute its retained tree."""

    engine_descriptor: EngineDescriptor
    listener: TestExecutionListener


class TestEngine(ABC):
    """A pluggable backend that discovers and executes its own tests.

    Subclasses set ``id`` to a value unique within an engine registry.
    """

    __test__ = False

    id: str = ""

    @abstractmethod
    def discover_tests(
        self,
        specification: TestPlanSpecification,
        engine_descriptor: EngineDescriptor,
    ) -> None:
        """Populate engine_descriptor with discovered containers and tests.

        The specification may be used as a hint but must not be applied;
        the launcher filters the tree afterwards.
        """

    @abstractmethod
    def execute(self, context: EngineExecutionContext) -> None:
        """Run every test left in context.engine_descriptor.

        Each test must be reported through context.listener.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"
