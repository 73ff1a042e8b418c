#!/usr/bin/env python3
"""Forgeloop - adaptive multi-pass program generation.

Usage:
    python main.py build --prompt "a counter with + and - buttons"
    python main.py build --prompt "..." --kind console --max-repairs 3 --verbose
    python main.py build --prompt "..." --output ./out
    python main.py plan --prompt "a notepad with open and save"
"""

import argparse
import logging
import os
import sys

from agents.multipass import MultiPassGenerator, build_selector
from config.defaults import load_config
from config.stacks import ARTIFACT_KINDS, get_kind
from core.errors import ConfigurationError, ForgeError
from core.events import EventBus, EventLogger
from core.memory import JsonApplicationMemory
from core.orchestrator import create_coordinator
from core.state import Stage
from manager.classifier import classify
from utils.folder_naming import get_output_dir
from utils.llm import AnthropicModelClient

logger = logging.getLogger("forgeloop")


def write_source(output_dir, artifact_kind, source):
    """Write the final program into output_dir and return its path."""
    entry = get_kind(artifact_kind)["entry_file"]
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, entry)
    resolved = os.path.realpath(path)
    if not resolved.startswith(os.path.realpath(output_dir) + os.sep):
        raise ValueError(f"Path escapes output directory: {entry}")
    with open(resolved, "w") as fp:
        fp.write(source)
    return resolved


def cmd_build(args, config):
    """Run one operation to a terminal stage."""
    bus = EventBus()
    EventLogger(bus)
    coordinator = create_coordinator(config, bus=bus)

    operation = coordinator.run_operation(args.prompt, args.kind)

    print(f"\nKind:     {operation.artifact_kind}")
    print(f"Stages:   {' -> '.join(stage.value for stage in operation.history)}")
    print(f"Repairs:  {operation.repair_attempts}")
    if operation.components:
        print(f"Components: {', '.join(c.name for c in operation.components)}")
    if operation.verdict:
        print(f"Verdict:  {operation.verdict.text}")

    if coordinator.state.current != Stage.COMPLETED:
        if operation.diagnostics:
            print(f"\nLast problem:\n  {operation.diagnostics}")
        return 1

    output_dir = args.output or get_output_dir(operation.artifact_kind, args.prompt)
    path = write_source(output_dir, operation.artifact_kind, operation.source)
    print(f"Output:   {path}")
    return 0


def cmd_plan(args, config):
    """Run the plan pass only and show the components."""
    kind = args.kind or classify(args.prompt)[0]
    client = AnthropicModelClient(model=config["model"], max_tokens=config["max_tokens"])
    generator = MultiPassGenerator(
        client,
        build_selector(config),
        JsonApplicationMemory(config["memory_path"] or None),
        config,
    )
    plan = generator.plan(args.prompt, kind)

    print(f"Kind: {kind}")
    print(f"\nComponents ({len(plan.components)}):")
    for name in plan.components:
        deps = ", ".join(plan.dependencies.get(name, [])) or "-"
        print(f"  {name:20s} {plan.details.get(name, '')}  [depends on: {deps}]")
    print(f"\nImplementation order: {' -> '.join(plan.implementation_order) or '-'}")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="forgeloop",
        description="Generate, build, inspect and repair Python programs",
    )
    subparsers = parser.add_subparsers(dest="command")

    build_parser = subparsers.add_parser("build", help="Run a full generation operation")
    build_parser.add_argument("--prompt", required=True, help="Natural language description")
    build_parser.add_argument("--kind", choices=sorted(ARTIFACT_KINDS),
                              help="Override the artifact kind classifier")
    build_parser.add_argument("--max-repairs", type=int,
                              help="Maximum repair attempts (default: 5)")
    build_parser.add_argument("--output", help="Directory for the generated program")
    build_parser.add_argument("--verbose", action="store_true", help="Debug logging")

    plan_parser = subparsers.add_parser("plan", help="Run the plan pass only")
    plan_parser.add_argument("--prompt", required=True, help="Natural language description")
    plan_parser.add_argument("--kind", choices=sorted(ARTIFACT_KINDS),
                             help="Override the artifact kind classifier")
    plan_parser.add_argument("--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config({"max_repair_attempts": getattr(args, "max_repairs", None)})
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    try:
        if args.command == "build":
            return cmd_build(args, config)
        return cmd_plan(args, config)
    except ForgeError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
