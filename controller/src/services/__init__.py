from controller.src.services.executor import (
    execute_pipeline,
    execute_package,
    execute_task,
    execute_step,
    group_by_package,
    StepFailedError,
)

__all__ = [
    "execute_pipeline",
    "execute_package",
    "execute_task",
    "execute_step",
    "group_by_package",
    "StepFailedError",
]
