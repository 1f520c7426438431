"""
Pipeline executor - runs task pipelines against a container engine.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List

from planner.src.models import (
    ContainerEngine,
    RunMode,
    StepKind,
    Task,
    TaskGraph,
    TaskKind,
    TaskStep,
    parse_task_ref,
)
from controller.src.models import PackageResult, RunSummary, TaskResult, TaskStatus

logger = logging.getLogger(__name__)

class StepFailedError(Exception):
    """Raised when a container step exits non-zero."""

    def __init__(self, step: str, exit_code: int):
        self.step = step
        self.exit_code = exit_code
        super().__init__(f"Step '{step}' exited with status {exit_code}")

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def execute_step(step: TaskStep, engine: ContainerEngine):
    if step.kind == StepKind.RUN:
        exit_code, output = engine.run(step)
        if exit_code != 0:
            raise StepFailedError(step.name, exit_code)
        if step.on_output:
            step.on_output(output)
    elif step.kind == StepKind.WRAP:
        engine.wrap(step)
    elif step.kind == StepKind.TAG:
        engine.tag(step.image, step.target_image)
    elif step.kind == StepKind.HOST:
        step.call(engine)
    else:
        raise ValueError(f"Unknown step kind: {step.kind}")

def execute_task(task: Task, engine: ContainerEngine):
    """Run every step of a task in order, stopping at the first failure."""
    for i, step in enumerate(task.steps):
        logger.info(f"[{task.ref}] step {i}: {step.name}")
        execute_step(step, engine)

def group_by_package(refs: List[str]) -> Dict[str, List[str]]:
    """Split a pipeline into per-package task chains, keeping their order."""
    groups: Dict[str, List[str]] = {}
    for ref in refs:
        _, package = parse_task_ref(ref)
        groups.setdefault(package, []).append(ref)
    return groups

async def execute_package(
    package: str,
    refs: List[str],
    graph: TaskGraph,
    engine: ContainerEngine,
) -> PackageResult:
    """
    Execute one package's tasks in order.
    After a failure only the clean task still runs.
    """
    result = PackageResult(package=package)
    failed = False

    for ref in refs:
        kind, _ = parse_task_ref(ref)
        if failed and kind != TaskKind.CLEAN:
            logger.warning(f"Skipping {ref} after earlier failure")
            result.tasks.append(TaskResult(ref=ref, status=TaskStatus.SKIPPED))
            continue

        started_at = utcnow()
        logger.info(f"Starting {ref}")
        try:
            await asyncio.to_thread(execute_task, graph.tasks[ref], engine)
        except Exception as e:
            logger.exception(f"{ref} failed")
            failed = True
            result.tasks.append(
                TaskResult(
                    ref=ref,
                    status=TaskStatus.FAILED,
                    error=str(e),
                    started_at=started_at,
                    finished_at=utcnow(),
                )
            )
            continue

        logger.info(f"{ref} succeeded")
        result.tasks.append(
            TaskResult(
                ref=ref,
                status=TaskStatus.SUCCEEDED,
                started_at=started_at,
                finished_at=utcnow(),
            )
        )

    return result

async def execute_pipeline(
    graph: TaskGraph,
    mode: RunMode,
    engine: ContainerEngine,
    max_parallel: int = 4,
) -> RunSummary:
    """
    Execute the selected pipeline.
    Packages run concurrently; tasks of one package run strictly in order.
    """
    groups = group_by_package(graph.pipeline(mode))
    semaphore = asyncio.Semaphore(max_parallel)

    logger.info(f"Starting {mode.value} run with {len(groups)} packages")

    async def run(package: str, refs: List[str]) -> PackageResult:
        async with semaphore:
            return await execute_package(package, refs, graph, engine)

    results = await asyncio.gather(*(run(package, refs) for package, refs in groups.items()))
    summary = RunSummary(mode=mode.value, packages=list(results))

    if summary.succeeded:
        logger.info(f"Run finished, all {len(results)} packages succeeded")
    else:
        logger.error(f"Run finished with failed packages: {', '.join(summary.failed_packages)}")
    return summary
