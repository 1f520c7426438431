from planner.src.services.registry import (
    parse_package_registry,
    parse_build_selection,
    load_package_registry,
    load_build_selection,
    ConfigurationError,
)
from planner.src.services.extraction import (
    parse_alpine_info,
    parse_linuxbrew_info,
    parse_conda_meta,
    find_conda_dist,
    conda_install_spec,
    ExtractionError,
)
from planner.src.services.builders import (
    PackageBuilder,
    AlpineBuilder,
    LinuxbrewBuilder,
    CondaBuilder,
    BuilderTasks,
    create_builders,
)
from planner.src.services.quay import QuayClient, RegistryAuthorizationError
from planner.src.services.github import GitHubClient, StaleContentError
from planner.src.services.publisher import Publisher, PushJob
from planner.src.services.assembler import TaskGraphAssembler, BuildDirectoryAllocator

__all__ = [
    "parse_package_registry",
    "parse_build_selection",
    "load_package_registry",
    "load_build_selection",
    "ConfigurationError",
    "parse_alpine_info",
    "parse_linuxbrew_info",
    "parse_conda_meta",
    "find_conda_dist",
    "conda_install_spec",
    "ExtractionError",
    "PackageBuilder",
    "AlpineBuilder",
    "LinuxbrewBuilder",
    "CondaBuilder",
    "BuilderTasks",
    "create_builders",
    "QuayClient",
    "RegistryAuthorizationError",
    "GitHubClient",
    "StaleContentError",
    "Publisher",
    "PushJob",
    "TaskGraphAssembler",
    "BuildDirectoryAllocator",
]
