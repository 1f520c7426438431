from planner.src.models.package import (
    Packager,
    PackageSpec,
    PackageInfo,
    BuildDirectory,
)
from planner.src.models.task import (
    StepKind,
    TaskKind,
    RunMode,
    ContainerConfig,
    Mount,
    TaskStep,
    Task,
    TaskGraph,
    ContainerEngine,
    run_step,
    wrap_step,
    tag_step,
    host_step,
    task_ref,
    parse_task_ref,
)

__all__ = [
    "Packager",
    "PackageSpec",
    "PackageInfo",
    "BuildDirectory",
    "StepKind",
    "TaskKind",
    "RunMode",
    "ContainerConfig",
    "Mount",
    "TaskStep",
    "Task",
    "TaskGraph",
    "ContainerEngine",
    "run_step",
    "wrap_step",
    "tag_step",
    "host_step",
    "task_ref",
    "parse_task_ref",
]
