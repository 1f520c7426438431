"""
Task definitions handed to the container task runner.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Callable, Dict, List, Optional, Protocol, Tuple
from pathlib import Path
from enum import Enum

class StepKind(str, Enum):
    RUN = "run"
    WRAP = "wrap"
    TAG = "tag"
    HOST = "host"

class TaskKind(str, Enum):
    BUILD = "build"
    TEST = "test"
    PUSH = "push"
    CLEAN = "clean"

class RunMode(str, Enum):
    PR = "pr"
    PROD = "prod"

class ContainerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    entrypoint: Optional[List[str]] = None
    env: Dict[str, str] = Field(default_factory=dict)
    user: Optional[str] = None

class Mount(BaseModel):
    model_config = ConfigDict(frozen=True)

    host_path: Path
    container_path: str

class TaskStep(BaseModel):
    """
    One unit of container execution.

    `kind` selects the action:
      run  - execute `command` in `image`, optionally handing stdout to `on_output`
      wrap - build `target_image` from `source` copied to `target_dir` atop `image`
      tag  - alias `image` as `target_image`
      host - call `call(engine)` in-process
    """
    model_config = ConfigDict(frozen=True)

    name: str
    kind: StepKind
    image: Optional[str] = None
    config: ContainerConfig = Field(default_factory=ContainerConfig)
    mounts: List[Mount] = Field(default_factory=list)
    command: List[str] = Field(default_factory=list)
    source: Optional[Path] = None
    target_dir: str = "/"
    target_image: Optional[str] = None
    on_output: Optional[Callable[[str], None]] = None
    call: Optional[Callable[..., None]] = None

    def describe(self) -> Dict:
        return self.model_dump(mode="json", exclude={"on_output", "call"})

def run_step(
    name: str,
    image: str,
    command: List[str],
    mounts: Optional[List[Mount]] = None,
    config: Optional[ContainerConfig] = None,
    on_output: Optional[Callable[[str], None]] = None,
) -> TaskStep:
    return TaskStep(
        name=name,
        kind=StepKind.RUN,
        image=image,
        command=command,
        mounts=mounts or [],
        config=config or ContainerConfig(),
        on_output=on_output,
    )

def wrap_step(name: str, base_image: str, source: Path, target_dir: str, target_image: str) -> TaskStep:
    return TaskStep(
        name=name,
        kind=StepKind.WRAP,
        image=base_image,
        source=source,
        target_dir=target_dir,
        target_image=target_image,
    )

def tag_step(name: str, source_image: str, target_image: str) -> TaskStep:
    return TaskStep(name=name, kind=StepKind.TAG, image=source_image, target_image=target_image)

def host_step(name: str, call: Callable[["ContainerEngine"], None]) -> TaskStep:
    return TaskStep(name=name, kind=StepKind.HOST, call=call)

class Task(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: TaskKind
    package: str
    steps: List[TaskStep]

    @property
    def ref(self) -> str:
        return task_ref(self.kind, self.package)

    def describe(self) -> Dict:
        return {
            "ref": self.ref,
            "steps": [step.describe() for step in self.steps],
        }

def task_ref(kind: TaskKind, package: str) -> str:
    return f"{kind.value}:{package}"

def parse_task_ref(ref: str) -> Tuple[TaskKind, str]:
    kind, _, package = ref.partition(":")
    return TaskKind(kind), package

class TaskGraph(BaseModel):
    """Every task of a run plus the two alternative pipelines over them."""

    tasks: Dict[str, Task] = Field(default_factory=dict)
    pr: List[str] = Field(default_factory=list)
    prod: List[str] = Field(default_factory=list)

    def add(self, task: Task):
        self.tasks[task.ref] = task

    def pipeline(self, mode: RunMode) -> List[str]:
        return self.pr if mode == RunMode.PR else self.prod

    def describe(self, mode: RunMode) -> Dict:
        refs = self.pipeline(mode)
        return {
            "mode": mode.value,
            "pipeline": refs,
            "tasks": [self.tasks[ref].describe() for ref in refs],
        }

class ContainerEngine(Protocol):
    """Boundary to the container runtime executing task steps."""

    def run(self, step: TaskStep) -> Tuple[int, str]: ...

    def wrap(self, step: TaskStep) -> None: ...

    def tag(self, source: str, target: str) -> None: ...

    def push(self, image_ref: str) -> str: ...

    def image_size(self, image_ref: str) -> int: ...
