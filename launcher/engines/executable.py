"""Engine that runs executables declared in a test manifest.

The manifest groups tests into (optionally nested) test sets:

    engine_id: smoke
    test_sets:
      api:
        tests:
          login: {executable: ./login_test.sh, tags: [fast]}
        test_sets:
          admin:
            disabled_if_env: {named: CI_PLATFORM, matches: "windows.*"}
            tests:
              audit: {executable: ./audit_test.sh, args: [--strict]}

Test sets become container descriptors and tests become test leaves.
Tags and disabled_if_env conditions declared on a test set apply to every
test below it. Each test passes when its executable exits 0.
"""

from __future__ import annotations

import json
import os
import re
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from launcher.config import as_str_list
from launcher.engine.base import EngineExecutionContext, TestEngine
from launcher.engine.descriptor import EngineDescriptor, TestDescriptor
from launcher.engine.listener import TestExecutionListener
from launcher.engine.specification import TestPlanSpecification


@dataclass(frozen=True)
class DisabledIfEnv:
    """Disables a test when an environment variable fully matches a regex.

    An unset variable never disables the test.
    """

    named: str
    matches: str

    @classmethod
    def from_manifest(cls, data: Any, where: str) -> DisabledIfEnv:
        """Validate a manifest condition.

        Raises:
            ValueError: If named or matches is missing, blank, or matches
                is not a valid regular expression.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"{where}: disabled_if_env must be a mapping")
        named = str(data.get("named") or "").strip()
        matches = str(data.get("matches") or "").strip()
        if not named:
            raise ValueError(f"{where}: disabled_if_env 'named' must not be blank")
        if not matches:
            raise ValueError(f"{where}: disabled_if_env 'matches' must not be blank")
        try:
            re.compile(matches)
        except re.error as e:
            raise ValueError(f"{where}: invalid disabled_if_env regex {matches!r}: {e}") from e
        return cls(named=named, matches=matches)

    def disabled_reason(self, environ: Mapping[str, str]) -> str | None:
        """Return why the test is disabled, or None when it may run."""
        value = environ.get(self.named)
        if value is None or not re.fullmatch(self.matches, value):
            return None
        return (
            f"Environment variable [{self.named}] with value [{value}] "
            f"matches regular expression [{self.matches}]"
        )


@dataclass
class ExecutableTest:
    """How to run a single manifest test."""

    executable: str
    args: list[str] = field(default_factory=list)
    disabled: bool = False
    conditions: list[DisabledIfEnv] = field(default_factory=list)


@dataclass
class ExecutionResult:
    """Outcome of running one executable."""

    passed: bool
    stdout: str = ""
    stderr: str = ""
    exit_code: int | None = None

    @property
    def failure_message(self) -> str:
        return self.stderr.strip() or self.stdout.strip() or f"exit code {self.exit_code}"


def load_manifest(path: Path) -> dict[str, Any]:
    """Load a manifest from a JSON or YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file does not contain a mapping.
    """
    text = path.read_text()
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Manifest {path} must contain a mapping")
    return data


class ExecutableEngine(TestEngine):
    """Discovers tests from a manifest and runs each as a subprocess.

    Relative executable paths containing a directory part are resolved
    against base_dir when one is given; bare command names are looked up
    on PATH.
    """

    def __init__(
        self,
        manifest: dict[str, Any],
        engine_id: str | None = None,
        timeout: float = 300.0,
        base_dir: Path | None = None,
    ) -> None:
        self.manifest = manifest
        self.id = engine_id or manifest.get("engine_id") or "executable"
        self.timeout = timeout
        self.base_dir = base_dir

    @classmethod
    def from_file(cls, path: Path, timeout: float = 300.0) -> ExecutableEngine:
        """Create an engine from a manifest file.

        The engine id defaults to the file stem and relative executables
        resolve against the manifest's directory.
        """
        manifest = load_manifest(path)
        return cls(
            manifest,
            engine_id=manifest.get("engine_id") or path.stem,
            timeout=timeout,
            base_dir=path.resolve().parent,
        )

    def discover_tests(
        self,
        specification: TestPlanSpecification,
        engine_descriptor: EngineDescriptor,
    ) -> None:
        self._add_test_sets(engine_descriptor, self.manifest.get("test_sets") or {}, [])

    def _add_test_sets(
        self,
        parent: TestDescriptor,
        test_sets: dict[str, Any],
        inherited: list[DisabledIfEnv],
    ) -> None:
        for set_name, set_data in test_sets.items():
            set_data = set_data or {}
            set_id = parent.child_id(_segment(set_name, parent))
            conditions = inherited + _conditions(set_data, set_id)
            container = parent.add_child(
                TestDescriptor(
                    set_id,
                    display_name=str(set_name),
                    tags=set(as_str_list(set_data.get("tags"))) | parent.tags,
                )
            )
            for test_name, test_data in (set_data.get("tests") or {}).items():
                test_data = test_data or {}
                test_id = container.child_id(_segment(test_name, container))
                if "executable" not in test_data:
                    raise ValueError(f"Test {test_id!r} has no executable")
                container.add_child(
                    TestDescriptor(
                        test_id,
                        display_name=str(test_name),
                        is_test=True,
                        tags=set(as_str_list(test_data.get("tags"))) | container.tags,
                        source=ExecutableTest(
                            executable=self._resolve(str(test_data["executable"])),
                            args=as_str_list(test_data.get("args")),
                            disabled=bool(test_data.get("disabled", False)),
                            conditions=conditions + _conditions(test_data, test_id),
                        ),
                    )
                )
            self._add_test_sets(container, set_data.get("test_sets") or {}, conditions)

    def _resolve(self, executable: str) -> str:
        path = Path(executable)
        if self.base_dir is None or path.is_absolute() or "/" not in executable:
            return executable
        return str(self.base_dir / path)

    def execute(self, context: EngineExecutionContext) -> None:
        listener = context.listener
        for descriptor in context.engine_descriptor.all_descendants():
            if descriptor.is_test:
                self._execute_test(descriptor, listener)

    def _execute_test(
        self, descriptor: TestDescriptor, listener: TestExecutionListener
    ) -> None:
        test = descriptor.source
        if test.disabled:
            listener.test_skipped(descriptor, "disabled in manifest")
            return
        for condition in test.conditions:
            reason = condition.disabled_reason(os.environ)
            if reason is not None:
                listener.test_skipped(descriptor, reason)
                return

        listener.test_started(descriptor)
        try:
            result = self._run_test(test)
        except FileNotFoundError:
            listener.test_aborted(descriptor, f"Executable not found: {test.executable}")
            return
        except OSError as e:
            listener.test_aborted(descriptor, f"OS error running test: {e}")
            return

        if result.passed:
            listener.test_succeeded(descriptor)
        else:
            listener.test_failed(descriptor, result.failure_message)

    def _run_test(self, test: ExecutableTest) -> ExecutionResult:
        """Run a single test executable.

        Returns:
            ExecutionResult with the process outcome.

        Raises:
            OSError: If the executable cannot be started.
        """
        try:
            proc = subprocess.run(
                [test.executable, *test.args],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            return ExecutionResult(
                passed=False,
                stderr=f"Test timed out after {self.timeout} seconds",
                exit_code=-1,
            )
        return ExecutionResult(
            passed=proc.returncode == 0,
            stdout=proc.stdout,
            stderr=proc.stderr,
            exit_code=proc.returncode,
        )


def _segment(name: Any, parent: TestDescriptor) -> str:
    segment = str(name)
    if not segment or "/" in segment:
        raise ValueError(f"Invalid name {segment!r} under {parent.unique_id!r}")
    return segment


def _conditions(data: Mapping[str, Any], where: str) -> list[DisabledIfEnv]:
    raw = data.get("disabled_if_env")
    if raw is None:
        return []
    if not isinstance(raw, list):
        raw = [raw]
    return [DisabledIfEnv.from_manifest(item, where) for item in raw]
