"""
Execution result models.
"""

from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from enum import Enum

class TaskStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"

class TaskResult(BaseModel):
    ref: str
    status: TaskStatus
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

class PackageResult(BaseModel):
    package: str
    tasks: List[TaskResult] = []

    @property
    def succeeded(self) -> bool:
        return all(t.status == TaskStatus.SUCCEEDED for t in self.tasks)

    def status_of(self, ref: str) -> Optional[TaskStatus]:
        for task in self.tasks:
            if task.ref == ref:
                return task.status
        return None

class RunSummary(BaseModel):
    mode: str
    packages: List[PackageResult] = []

    @property
    def succeeded(self) -> bool:
        return all(p.succeeded for p in self.packages)

    @property
    def failed_packages(self) -> List[str]:
        return [p.package for p in self.packages if not p.succeeded]
