"""Test plan specifications: which discovered tests the caller wants.

A TestPlanSpecification is an immutable conjunction of descriptor
filters. The launcher evaluates it against test leaves only.
"""

from __future__ import annotations

import fnmatch
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from launcher.engine.descriptor import TestDescriptor

if TYPE_CHECKING:
    from launcher.config import LauncherConfig

DescriptorFilter = Callable[[TestDescriptor], bool]


class TestPlanSpecification:
    """Caller intent for a discover run.

    A descriptor is accepted when every filter accepts it; a specification
    without filters accepts everything.
    """

    __test__ = False

    def __init__(self, filters: Iterable[DescriptorFilter] = ()) -> None:
        self._filters: tuple[DescriptorFilter, ...] = tuple(filters)

    @property
    def filters(self) -> tuple[DescriptorFilter, ...]:
        return self._filters

    def accept_descriptor(self, descriptor: TestDescriptor) -> bool:
        return all(f(descriptor) for f in self._filters)

    def with_filter(self, descriptor_filter: DescriptorFilter) -> TestPlanSpecification:
        """Return a new specification that additionally applies a filter."""
        return TestPlanSpecification(self._filters + (descriptor_filter,))

    @classmethod
    def accept_all(cls) -> TestPlanSpecification:
        return cls()

    @classmethod
    def for_unique_ids(cls, *unique_ids: str) -> TestPlanSpecification:
        return cls([unique_id_filter(*unique_ids)])

    @classmethod
    def by_name_patterns(cls, *patterns: str) -> TestPlanSpecification:
        return cls([name_pattern_filter(*patterns)])

    @classmethod
    def by_tags(cls, *tags: str) -> TestPlanSpecification:
        return cls([tag_filter(*tags)])

    @classmethod
    def excluding_tags(cls, *tags: str) -> TestPlanSpecification:
        return cls([excluded_tag_filter(*tags)])

    @classmethod
    def from_config(cls, config: LauncherConfig) -> TestPlanSpecification:
        """Build a specification from the include/tag settings of a config."""
        filters: list[DescriptorFilter] = []
        if config.include:
            filters.append(name_pattern_filter(*config.include))
        if config.tags:
            filters.append(tag_filter(*config.tags))
        if config.exclude_tags:
            filters.append(excluded_tag_filter(*config.exclude_tags))
        return cls(filters)

    def __repr__(self) -> str:
        return f"TestPlanSpecification(filters={len(self._filters)})"


def unique_id_filter(*unique_ids: str) -> DescriptorFilter:
    """Accept descriptors whose unique id is listed."""
    wanted = frozenset(unique_ids)
    return lambda descriptor: descriptor.unique_id in wanted


def name_pattern_filter(*patterns: str) -> DescriptorFilter:
    """Accept descriptors whose unique id matches any fnmatch pattern."""
    return lambda descriptor: any(
        fnmatch.fnmatchcase(descriptor.unique_id, p) for p in patterns
    )


def tag_filter(*tags: str) -> DescriptorFilter:
    """Accept descriptors carrying at least one of the tags."""
    wanted = frozenset(tags)
    return lambda descriptor: bool(descriptor.tags & wanted)


def excluded_tag_filter(*tags: str) -> DescriptorFilter:
    """Reject descriptors carrying any of the tags."""
    unwanted = frozenset(tags)
    return lambda descriptor: not (descriptor.tags & unwanted)
