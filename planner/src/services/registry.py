"""
Package registry and build selection parsing.
"""

import logging
from pathlib import Path
from typing import Dict, List, Union

from planner.src.models import Packager, PackageSpec

logger = logging.getLogger(__name__)

REGISTRY_COLUMNS = ("packager", "name", "revision_tag", "test_command")

class ConfigurationError(Exception):
    """Raised when the package registry or selection is invalid."""
    pass

def parse_package_registry(content: str) -> Dict[str, PackageSpec]:
    """
    Parse tab-separated package records into specs keyed by name.
    Later records for the same name replace earlier ones.
    """
    registry: Dict[str, PackageSpec] = {}

    for lineno, line in enumerate(content.splitlines(), start=1):
        if not line.strip() or line.startswith("#"):
            continue

        fields = line.split("\t")
        if len(fields) != len(REGISTRY_COLUMNS):
            raise ConfigurationError(
                f"Line {lineno}: expected {len(REGISTRY_COLUMNS)} tab-separated columns, got {len(fields)}"
            )

        packager, name, revision_tag, test_command = fields
        try:
            kind = Packager(packager)
        except ValueError:
            raise ConfigurationError(f"Line {lineno}: unknown packager '{packager}'")

        if not name:
            raise ConfigurationError(f"Line {lineno}: missing package name")
        if not revision_tag:
            raise ConfigurationError(f"Line {lineno}: missing revision tag for '{name}'")

        if name in registry:
            logger.warning(f"Line {lineno}: duplicate entry for '{name}' overrides the earlier record")

        registry[name] = PackageSpec(
            packager=kind,
            name=name,
            revision_tag=revision_tag,
            test_command=test_command,
        )

    return registry

def parse_build_selection(content: str, registry: Dict[str, PackageSpec]) -> List[str]:
    """Parse newline-separated package names, checking each against the registry."""
    selection = []
    for line in content.splitlines():
        name = line.strip()
        if not name:
            continue
        if name not in registry:
            raise ConfigurationError(f"Selected package '{name}' is not in the package registry")
        selection.append(name)
    return selection

def load_package_registry(path: Union[str, Path]) -> Dict[str, PackageSpec]:
    with open(path, "r") as f:
        return parse_package_registry(f.read())

def load_build_selection(path: Union[str, Path], registry: Dict[str, PackageSpec]) -> List[str]:
    with open(path, "r") as f:
        return parse_build_selection(f.read(), registry)
