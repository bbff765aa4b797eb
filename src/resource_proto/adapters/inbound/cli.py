"""Command line driver for the resource prototype.

Builds a predefined test resource graph containing five distinct
subsystems, loads a matcher, walks the matcher's filtered view and
reports how long the walk took. The filtered view can be exported in a
selected graph format.

Installed as "resource-proto" by setuptools.
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

import resource_proto
from resource_proto.application.coordinator import ResourceMatchingCoordinator
from resource_proto.domain.errors import (
    CycleDetectedError,
    ExportError,
    UnknownMatcherError,
    UnknownSubsystemError,
    ValidationError,
)
from resource_proto.domain.value_objects.scale import ScaleTier
from resource_proto.infrastructure.config import get_config
from resource_proto.infrastructure.container import Container
from resource_proto.infrastructure.logging import get_logger
from resource_proto.ports.outbound.exporter import GraphFormat

BANNER_RULE = "*" * 57


def format_banner(elapsed: float, started_at: float, finished_at: float) -> list[str]:
    """Lines of the walk timing banner."""
    return [
        BANNER_RULE,
        f"* Elapse time {elapsed:.6f}",
        f"*   Start Time: {started_at:.6f}",
        f"*   End Time: {finished_at:.6f}",
        BANNER_RULE,
    ]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="resource-proto",
        description="Build a predefined test resource graph containing five "
                    "distinct subsystems, walk it with a matcher that uses a "
                    "chosen set of subsystems, and optionally export the "
                    "matcher's filtered graph.")
    parser.add_argument("--version", "-V", action="version",
                        version=f"%(prog)s {resource_proto.__version__}")

    parser.add_argument("--graph-scale", "-s", metavar="SCALE",
                        help=f"size of the test graph: {', '.join(t.value for t in ScaleTier)} "
                             "(default: from configuration)")
    parser.add_argument("--matcher", "-m", metavar="NAME",
                        help="matcher policy to walk with (default: from configuration)")
    parser.add_argument("--graph-format", "-g", metavar="FORMAT",
                        help=f"format of the exported filtered graph: "
                             f"{', '.join(f.value for f in GraphFormat)}")
    parser.add_argument("--output", "-o", metavar="BASENAME",
                        help="export the filtered graph to BASENAME.EXT")
    parser.add_argument("--deadline", type=float, metavar="SECONDS",
                        help="abort the walk after SECONDS")
    parser.add_argument("--list-subsystems", action="store_true",
                        help="list the subsystems of the graph and exit")
    parser.add_argument("--display-matchers", action="store_true",
                        help="list the available matchers and exit")
    return parser


def error(message: str) -> None:
    sys.stderr.write(f"[ERROR] {message}\n")


def main(args: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(args)

    config = get_config()
    container = Container.create(config)

    if args.display_matchers:
        for policy in ResourceMatchingCoordinator.list_matchers():
            steps = ", ".join(f"{s}:{r}" for s, r in policy.steps)
            print(f"{policy.name:<18} {policy.description} [{steps}]")
        return 0

    scale_name = args.graph_scale or config.graph.scale
    try:
        scale = ScaleTier.parse(scale_name)
    except ValueError:
        error(f"unknown scale for --graph-scale: {scale_name}")
        return 2

    format_name = args.graph_format or config.export.format
    try:
        graph_format = GraphFormat.parse(format_name)
    except ValueError:
        error(f"unknown output format for --graph-format: {format_name}")
        return 2

    deadline = args.deadline if args.deadline is not None else config.matcher.deadline_seconds
    if deadline is not None and deadline <= 0:
        error(f"--deadline must be positive, got {deadline}")
        return 2

    try:
        coordinator = container.coordinator(scale.value, deadline_seconds=deadline)
    except ValidationError as err:
        error("error in generating resources")
        for problem in err.problems:
            error(problem)
        return 1

    if args.list_subsystems:
        for name in coordinator.list_subsystems():
            relations = ", ".join(coordinator.graph.registry.relations(name))
            print(f"{name:<12} {relations}")
        return 0

    matcher_name = args.matcher or config.matcher.name
    print("[INFO] Load the matcher ...")
    try:
        result = coordinator.run_matcher(matcher_name)
    except (UnknownMatcherError, UnknownSubsystemError) as err:
        error(str(err))
        return 1
    except CycleDetectedError as err:
        error(str(err))
        if err.partial is not None:
            error(f"walk stopped after {err.partial.visited_count} vertices")
        return 1

    for line in format_banner(result.elapsed_seconds, result.started_at, result.finished_at):
        print(line)
    if result.aborted:
        print(f"[INFO] Walk aborted after {result.visited_count} vertices")

    basename = args.output if args.output is not None else config.export.basename
    if basename:
        try:
            text = coordinator.export_view(matcher_name, graph_format)
        except ExportError as err:
            error(str(err))
            return 1
        filename = f"{basename}.{graph_format.extension}"
        print("[INFO] Write the target graph of the matcher...")
        with open(filename, "w") as f:
            f.write(text)
        get_logger("cli").info("filtered_graph_written", path=filename, matcher=matcher_name)

    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
