"""Entry point for the test launcher.

Registers one executable engine per manifest, builds a test plan from the
command-line and config-file selection, and either lists the plan or
executes it and prints a summary.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import IO

import yaml

from launcher.config import LauncherConfig
from launcher.engine.descriptor import TestDescriptor
from launcher.engine.specification import TestPlanSpecification
from launcher.engines.executable import ExecutableEngine
from launcher.launcher import Launcher
from launcher.plan import TestPlan
from launcher.registry import TestEngineRegistry
from launcher.reporting.summary import SummaryGeneratingListener


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Test launcher - discovers, filters and runs tests across engines"
    )
    parser.add_argument(
        "--manifest",
        required=True,
        type=Path,
        action="append",
        help="Path to a JSON or YAML test manifest (repeatable, one engine each)",
    )
    parser.add_argument(
        "--config-file",
        type=Path,
        default=None,
        help="Path to the YAML launcher config file",
    )
    parser.add_argument(
        "--include",
        action="append",
        default=None,
        help="Only run tests whose unique id matches this glob (repeatable)",
    )
    parser.add_argument(
        "--tag",
        action="append",
        default=None,
        help="Only run tests carrying this tag (repeatable)",
    )
    parser.add_argument(
        "--exclude-tag",
        action="append",
        default=None,
        help="Skip tests carrying this tag (repeatable)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-test timeout in seconds (overrides the config file)",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        default=False,
        help="Print the filtered test plan and exit without running tests",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Path to write the YAML execution summary",
    )
    return parser.parse_args(argv)


def build_specification(
    args: argparse.Namespace, config: LauncherConfig
) -> TestPlanSpecification:
    """Combine config-file selection with command-line selection.

    Command-line options replace the corresponding config values.
    """
    config.set_config(include=args.include, tags=args.tag, exclude_tags=args.exclude_tag)
    return TestPlanSpecification.from_config(config)


def print_plan(test_plan: TestPlan, stream: IO[str] | None = None) -> None:
    """Print each engine tree, indented by depth, to stream or stdout."""
    stream = stream or sys.stdout

    def walk(descriptor: TestDescriptor, depth: int) -> None:
        marker = "-" if descriptor.is_test else "+"
        print(f"{'  ' * depth}{marker} {descriptor.display_name}", file=stream)
        for child in descriptor.children:
            walk(child, depth + 1)

    for engine_descriptor in test_plan:
        walk(engine_descriptor, 0)
    print(f"{test_plan.count_tests()} tests in {len(test_plan)} engines", file=stream)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    config = LauncherConfig(args.config_file)
    config.set_config(timeout=args.timeout)

    registry = TestEngineRegistry()
    for manifest_path in args.manifest:
        try:
            registry.register(ExecutableEngine.from_file(manifest_path, timeout=config.timeout))
        except FileNotFoundError:
            print(f"Error: Manifest file not found: {manifest_path}", file=sys.stderr)
            return 1
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            print(f"Error: Invalid manifest {manifest_path}: {e}", file=sys.stderr)
            return 1
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    launcher = Launcher(registry)
    specification = build_specification(args, config)

    try:
        test_plan = launcher.discover(specification)
    except ValueError as e:
        print(f"Error during discovery: {e}", file=sys.stderr)
        return 1

    if args.list:
        print_plan(test_plan)
        return 0

    summary_listener = SummaryGeneratingListener()
    launcher.register_listeners(summary_listener)
    launcher.execute(test_plan)

    summary = summary_listener.summary
    summary.print_to(sys.stdout)
    if args.output:
        summary.write_yaml(args.output)
        print(f"Summary written to: {args.output}")
    return 1 if summary.has_failures else 0


if __name__ == "__main__":
    sys.exit(main())
