"""Engine-facing API: descriptors, specifications and the engine contract."""

from launcher.engine.base import EngineExecutionContext, TestEngine
from launcher.engine.descriptor import EngineDescriptor, TestDescriptor
from launcher.engine.listener import TestExecutionListener
from launcher.engine.specification import TestPlanSpecification

__all__ = [
    "EngineDescriptor",
    "EngineExecutionContext",
    "TestDescriptor",
    "TestEngine",
    "TestExecutionListener",
    "TestPlanSpecification",
]
