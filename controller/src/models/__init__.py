from controller.src.models.run import (
    TaskStatus,
    TaskResult,
    PackageResult,
    RunSummary,
)

__all__ = [
    "TaskStatus",
    "TaskResult",
    "PackageResult",
    "RunSummary",
]
