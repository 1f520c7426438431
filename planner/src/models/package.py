"""
Package registry and build directory models.
"""

from pydantic import BaseModel, ConfigDict
from enum import Enum
from pathlib import Path

INFO_FIELDS = ("homepage", "description", "version")

class Packager(str, Enum):
    ALPINE = "alpine"
    LINUXBREW = "linuxbrew"
    CONDA = "conda"

class PackageSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    packager: Packager
    name: str
    revision_tag: str
    test_command: str

class PackageInfo(BaseModel):
    """Metadata queried from the package manager right after install."""
    model_config = ConfigDict(frozen=True)

    homepage: str
    description: str
    version: str

class BuildDirectory(BaseModel):
    """
    Workspace owned by exactly one package for one run.

    `dist/` holds the installed payload, `info/` one file per captured field.
    """
    model_config = ConfigDict(frozen=True)

    path: Path

    @property
    def dist(self) -> Path:
        return self.path / "dist"

    @property
    def info(self) -> Path:
        return self.path / "info"

    def info_file(self, field: str) -> Path:
        return self.info / field

    def write_info(self, field: str, value: str) -> Path:
        self.info.mkdir(parents=True, exist_ok=True)
        target = self.info_file(field)
        target.write_text(value)
        return target

    def read_info(self, field: str) -> str:
        return self.info_file(field).read_text()

    def write_package_info(self, info: PackageInfo):
        for field in INFO_FIELDS:
            self.write_info(field, getattr(info, field))

    def read_package_info(self) -> PackageInfo:
        return PackageInfo(**{field: self.read_info(field) for field in INFO_FIELDS})
