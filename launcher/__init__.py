"""Test launcher: discovers tests across engines, filters, prunes and runs them."""

from launcher.engine import (
    EngineDescriptor,
    EngineExecutionContext,
    TestDescriptor,
    TestEngine,
    TestExecutionListener,
    TestPlanSpecification,
)
from launcher.launcher import Launcher
from launcher.listeners import TestListenerRegistry, TestPlanExecutionListener
from launcher.plan import EngineDescriptorMissingError, TestPlan
from launcher.registry import TestEngineRegistry

__all__ = [
    "EngineDescriptor",
    "EngineDescriptorMissingError",
    "EngineExecutionContext",
    "Launcher",
    "TestDescriptor",
    "TestEngine",
    "TestEngineRegistry",
    "TestExecutionListener",
    "TestListenerRegistry",
    "TestPlan",
    "TestPlanExecutionListener",
    "TestPlanSpecification",
]
