"""Descriptor tree data structures for discovered tests.

Provides TestDescriptor (a container or test leaf in one engine's
hierarchy) and EngineDescriptor (the synthetic root created per engine).
Trees are built during discovery and only ever shrink afterwards, through
the visitor traversal in TestDescriptor.accept.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from launcher.engine.base import TestEngine


class TestDescriptor:
    """A node in an engine's discovered hierarchy.

    Containers group other descriptors; tests (is_test=True) are the
    executable leaves. Child order is insertion order.
    """

    __test__ = False

    def __init__(
        self,
        unique_id: str,
        display_name: str | None = None,
        is_test: bool = False,
        tags: set[str] | frozenset[str] | None = None,
        source: Any = None,
    ) -> None:
        self.unique_id = unique_id
        self.display_name = display_name or unique_id.rsplit("/", 1)[-1]
        self.is_test = is_test
        self.tags: frozenset[str] = frozenset(tags or ())
        self.source = source
        self.parent: TestDescriptor | None = None
        self._children: list[TestDescriptor] = []

    @property
    def is_root(self) -> bool:
        return False

    @property
    def children(self) -> tuple[TestDescriptor, ...]:
        return tuple(self._children)

    def child_id(self, segment: str) -> str:
        """Build the unique id for a child of this descriptor."""
        return f"{self.unique_id}/{segment}"

    def add_child(self, child: TestDescriptor) -> TestDescriptor:
        """Append a child and set its parent.

        Returns:
            The added child, so producers can keep building below it.

        Raises:
            ValueError: If the child already belongs to a tree, or a sibling
                already uses its unique id.
        """
        if child.parent is not None or child.is_root:
            raise ValueError(
                f"Descriptor {child.unique_id!r} already has a parent"
            )
        if any(c.unique_id == child.unique_id for c in self._children):
            raise ValueError(f"Duplicate unique id: {child.unique_id!r}")
        child.parent = self
        self._children.append(child)
        return child

    def remove_child(self, child: TestDescriptor) -> None:
        """Detach a direct child.

        Raises:
            ValueError: If child is not a direct child of this descriptor.
        """
        for index, existing in enumerate(self._children):
            if existing is child:
                del self._children[index]
                child.parent = None
                return
        raise ValueError(
            f"{child.unique_id!r} is not a child of {self.unique_id!r}"
        )

    def all_descendants(self) -> Iterator[TestDescriptor]:
        """Yield every descendant in pre-order (self excluded)."""
        for child in self._children:
            yield child
            yield from child.all_descendants()

    def find_by_unique_id(self, unique_id: str) -> TestDescriptor | None:
        if self.unique_id == unique_id:
            return self
        for descendant in self.all_descendants():
            if descendant.unique_id == unique_id:
                return descendant
        return None

    def has_tests(self) -> bool:
        """True if this descriptor or any descendant is a test."""
        if self.is_test:
            return True
        return any(child.has_tests() for child in self._children)

    def count_tests(self) -> int:
        count = 1 if self.is_test else 0
        return count + sum(child.count_tests() for child in self._children)

    def accept(self, visitor: Visitor) -> None:
        """Visit this subtree post-order, letting the visitor remove nodes.

        Children are fully visited before their parent, so a visitor sees
        already-settled subtrees. Each node's child list is rebuilt from the
        survivors once its children have been visited. Removing a container
        drops its whole subtree.
        """
        self._accept(visitor)

    def _accept(self, visitor: Visitor) -> bool:
        """Visit the subtree and report whether this node was removed."""
        survivors: list[TestDescriptor] = []
        for child in list(self._children):
            if child._accept(visitor):
                child.parent = None
            else:
                survivors.append(child)
        self._children = survivors

        removed = False

        def remove() -> None:
            nonlocal removed
            if self.is_root:
                raise RuntimeError(
                    f"Root descriptor {self.unique_id!r} cannot be removed"
                )
            removed = True

        visitor(self, remove)
        return removed

    def __repr__(self) -> str:
        kind = "test" if self.is_test else "container"
        return f"{type(self).__name__}({self.unique_id!r}, {kind})"


class EngineDescriptor(TestDescriptor):
    """The root descriptor owned by one test engine."""

    def __init__(self, engine: TestEngine) -> None:
        super().__init__(engine.id, display_name=engine.id)
        self.engine = engine

    @property
    def is_root(self) -> bool:
        return True


# visitor(descriptor, remove) -- remove() detaches descriptor from its parent
Visitor = Callable[[TestDescriptor, Callable[[], None]], None]
