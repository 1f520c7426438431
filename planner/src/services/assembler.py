"""
Assemble per-package build/test/push/clean tasks into run pipelines.
"""

import logging
from pathlib import Path
from typing import Dict, List, Union

from planner.src.models import BuildDirectory, Packager, PackageSpec, TaskGraph
from planner.src.services.builders import PackageBuilder
from planner.src.services.publisher import Publisher
from planner.src.services.registry import ConfigurationError

logger = logging.getLogger(__name__)

class BuildDirectoryAllocator:
    """Hands out `build-1`, `build-2`, ... under a root, never the same one twice."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).absolute()
        self.counter = 0

    def allocate(self) -> BuildDirectory:
        self.counter += 1
        return BuildDirectory(path=self.root / f"build-{self.counter}")

class TaskGraphAssembler:
    def __init__(
        self,
        builders: Dict[Packager, PackageBuilder],
        publisher: Publisher,
        allocator: BuildDirectoryAllocator,
    ):
        self.builders = builders
        self.publisher = publisher
        self.allocator = allocator
        self.build_dirs: Dict[str, BuildDirectory] = {}

    def assemble(self, registry: Dict[str, PackageSpec], selection: List[str]) -> TaskGraph:
        # Resolve everything first so configuration errors surface before any task exists
        specs = []
        seen = set()
        for name in selection:
            if name in seen:
                logger.warning(f"'{name}' selected more than once, building it once")
                continue
            seen.add(name)
            if name not in registry:
                raise ConfigurationError(f"Selected package '{name}' is not in the package registry")
            spec = registry[name]
            if spec.packager not in self.builders:
                raise ConfigurationError(f"No builder for packager '{spec.packager.value}' ({name})")
            specs.append(spec)

        graph = TaskGraph()
        for spec in specs:
            build_dir = self.allocator.allocate()
            self.build_dirs[spec.name] = build_dir

            tasks = self.builders[spec.packager].build(spec, build_dir)
            push = self.publisher.publish(spec, build_dir)

            for task in (tasks.build, tasks.test, push, tasks.clean):
                graph.add(task)

            graph.pr += [tasks.build.ref, tasks.test.ref, tasks.clean.ref]
            graph.prod += [tasks.build.ref, tasks.test.ref, push.ref, tasks.clean.ref]
            logger.info(f"Planned {spec.packager.value} package {spec.name}:{spec.revision_tag} in {build_dir.path}")

        return graph
