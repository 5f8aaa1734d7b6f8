"""Command-line trigger and read surface.

    protocol-analytics refresh [--dataset KEY ...]
    protocol-analytics merge KEY --metric NAME [--metric NAME ...]
    protocol-analytics read KEY
    protocol-analytics info KEY

Every command prints one JSON document on stdout; logs go to stderr.
Exit status is 1 when a refresh or merge reports a failure.
"""

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from typing import Any

from protocol_analytics.config.state import ConfigState, get_config
from protocol_analytics.dependency_container import AnalyticsDependencyContainer
from protocol_analytics.infrastructure.observability import setup_logging
from protocol_analytics.shared.models.enums import DatasetKey

DATASET_CHOICES = [key.value for key in DatasetKey]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="protocol-analytics",
        description="Aggregate protocol metrics and publish cached snapshots",
    )
    parser.add_argument("--config-dir", default=None, help="Configuration directory")
    subparsers = parser.add_subparsers(dest="command", required=True)

    refresh = subparsers.add_parser("refresh", help="Run aggregation cycles")
    refresh.add_argument(
        "--dataset",
        action="append",
        choices=DATASET_CHOICES,
        help="Dataset to refresh (repeatable, default: all)",
    )

    merge = subparsers.add_parser("merge", help="Refresh selected fields of a dataset")
    merge.add_argument("dataset", choices=DATASET_CHOICES)
    merge.add_argument("--metric", action="append", required=True)

    read = subparsers.add_parser("read", help="Serve a dataset snapshot")
    read.add_argument("dataset", choices=DATASET_CHOICES)

    info = subparsers.add_parser("info", help="Show snapshot presence and age")
    info.add_argument("dataset", choices=DATASET_CHOICES)

    return parser


async def run_command(
    args: argparse.Namespace, container: AnalyticsDependencyContainer
) -> tuple[dict[str, Any], bool]:
    """Execute one parsed command. Returns (output document, success)."""
    if args.command == "refresh":
        report = await container.refresh(args.dataset)
        return report, report["success"]

    if args.command == "merge":
        report = await container.merge(args.dataset, args.metric)
        return report, report["success"]

    if args.command == "read":
        controller = container.create_freshness_controller()
        served = await controller.serve(args.dataset)
        return {
            "dataset": args.dataset,
            "state": served.state.value,
            "origin": served.origin,
            "snapshot": served.snapshot.to_cache_value(),
        }, True

    if args.command == "info":
        info = await container.create_gateway().cache_info(args.dataset)
        return info.to_dict(), True

    raise ValueError(f"unsupported command: {args.command}")


async def _run(args: argparse.Namespace, config: ConfigState) -> tuple[dict[str, Any], bool]:
    async with AnalyticsDependencyContainer(config) as container:
        return await run_command(args, container)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = get_config(args.config_dir)
    setup_logging(
        level=config.logging.level,
        json_logs=config.logging.json_logs,
        stream=sys.stderr,
    )

    output, success = asyncio.run(_run(args, config))
    print(json.dumps(output, indent=2, default=str))
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
