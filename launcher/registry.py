"""Ordered registry of test engines."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from launcher.engine.base import TestEngine


class TestEngineRegistry:
    """Holds engines in registration order.

    Iteration order is the engine enumeration order used by the launcher
    for both discovery and execution.
    """

    __test__ = False

    def __init__(self, engines: Iterable[TestEngine] = ()) -> None:
        self._engines: dict[str, TestEngine] = {}
        for engine in engines:
            self.register(engine)

    def register(self, engine: TestEngine) -> None:
        """Append an engine.

        Raises:
            ValueError: If the engine has no id or the id is already taken.
        """
        if not engine.id:
            raise ValueError(f"Engine {engine!r} has no id")
        if engine.id in self._engines:
            raise ValueError(f"Duplicate engine id: {engine.id}")
        self._engines[engine.id] = engine

    def get(self, engine_id: str) -> TestEngine | None:
        return self._engines.get(engine_id)

    def ids(self) -> list[str]:
        return list(self._engines)

    def __iter__(self) -> Iterator[TestEngine]:
        return iter(list(self._engines.values()))

    def __len__(self) -> int:
        return len(self._engines)
