"""Bundled test engines."""

from launcher.engines.executable import ExecutableEngine, ExecutableTest, load_manifest

__all__ = [
    "ExecutableEngine",
    "ExecutableTest",
    "load_manifest",
]
