"""
Image builder controller - main entry point.

Usage: python -m controller.src.main {pr,prod} [--packages FILE] [--selection FILE] [--dry-run]
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from controller.src.config import get_settings
from controller.src.engine import DockerEngine
from controller.src.services.executor import execute_pipeline
from planner.src.config import get_settings as get_planner_settings
from planner.src.models import RunMode
from planner.src.services import (
    BuildDirectoryAllocator,
    ConfigurationError,
    GitHubClient,
    Publisher,
    QuayClient,
    TaskGraphAssembler,
    create_builders,
    load_build_selection,
    load_package_registry,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Build, test and publish package images")
    parser.add_argument("mode", choices=[m.value for m in RunMode], help="pr validates, prod also publishes")
    parser.add_argument("--packages", help="tab-separated package registry")
    parser.add_argument("--selection", help="newline-separated packages to build")
    parser.add_argument("--dry-run", action="store_true", help="print the planned pipeline and exit")
    return parser

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    planner_settings = get_planner_settings()

    # Configure logging
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    mode = RunMode(args.mode)
    logger.info(f"Starting {mode.value} run for namespace {planner_settings.namespace}")

    quay = QuayClient(
        planner_settings.registry_url,
        planner_settings.registry_token,
        timeout=planner_settings.http_timeout,
    )
    github = GitHubClient(
        planner_settings.github_api_url,
        planner_settings.github_token,
        timeout=planner_settings.http_timeout,
    )

    try:
        try:
            registry = load_package_registry(args.packages or settings.package_file)
            selection = load_build_selection(args.selection or settings.selection_file, registry)

            assembler = TaskGraphAssembler(
                builders=create_builders(planner_settings),
                publisher=Publisher(planner_settings, quay, github),
                allocator=BuildDirectoryAllocator(planner_settings.build_root),
            )
            graph = assembler.assemble(registry, selection)
        except (ConfigurationError, OSError) as e:
            logger.error(f"Invalid configuration: {e}")
            return EXIT_CONFIG

        if args.dry_run:
            print(json.dumps(graph.describe(mode), indent=2))
            return EXIT_OK

        if not selection:
            logger.info("Nothing selected to build")
            return EXIT_OK

        engine = DockerEngine(base_url=settings.docker_base_url, timeout=settings.docker_timeout)
        summary = asyncio.run(
            execute_pipeline(graph, mode, engine, max_parallel=settings.max_parallel_packages)
        )
    finally:
        quay.close()
        github.close()

    return EXIT_OK if summary.succeeded else EXIT_FAILED

if __name__ == "__main__":
    sys.exit(main())
