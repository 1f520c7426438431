"""
Package builders: install, extract, strip and wrap a package as an image.
"""

import logging
from typing import Callable, Dict, List, Optional, Type

from pydantic import BaseModel

from planner.src.config import Settings
from planner.src.models import (
    BuildDirectory,
    ContainerConfig,
    Mount,
    Packager,
    PackageInfo,
    PackageSpec,
    Task,
    TaskKind,
    TaskStep,
    run_step,
    wrap_step,
)
from planner.src.services.extraction import (
    conda_install_spec,
    find_conda_dist,
    parse_alpine_info,
    parse_conda_meta,
    parse_linuxbrew_info,
    read_conda_meta,
)

logger = logging.getLogger(__name__)

CLEAN_MOUNT = "/build"
SHELL_ENTRYPOINT = ["/bin/sh", "-c"]

class BuilderTasks(BaseModel):
    build: Task
    test: Task
    clean: Task

def image_name(namespace: str, spec: PackageSpec, tag: Optional[str] = None) -> str:
    return f"{namespace}/{spec.name}:{tag or spec.revision_tag}"

class PackageBuilder:
    """
    Common build/test/clean shape shared by all packagers.

    Subclasses say where the payload lives inside the builder container
    (`prefix`), how to install and query a package, and which directories
    under the prefix are package manager state.
    """

    packager: Packager
    prefix: str
    strip_paths: List[str] = []

    def __init__(self, settings: Settings):
        self.settings = settings

    # Packager specific pieces

    @property
    def builder_image(self) -> str:
        raise NotImplementedError

    @property
    def wrap_base(self) -> str:
        return self.settings.glibc_wrap_base

    @property
    def wrap_target(self) -> str:
        return self.prefix

    def builder_config(self) -> ContainerConfig:
        return ContainerConfig()

    def install_steps(self, spec: PackageSpec, build_dir: BuildDirectory) -> List[TaskStep]:
        raise NotImplementedError

    def query_command(self, spec: PackageSpec) -> List[str]:
        raise NotImplementedError

    def parse_info(self, spec: PackageSpec, output: str, build_dir: BuildDirectory) -> PackageInfo:
        raise NotImplementedError

    def test_config(self) -> ContainerConfig:
        return ContainerConfig(entrypoint=SHELL_ENTRYPOINT)

    # Shared task shape

    def payload_mounts(self, build_dir: BuildDirectory) -> List[Mount]:
        return [Mount(host_path=build_dir.dist, container_path=self.prefix)]

    def build(self, spec: PackageSpec, build_dir: BuildDirectory) -> BuilderTasks:
        return BuilderTasks(
            build=self.build_task(spec, build_dir),
            test=self.test_task(spec),
            clean=self.clean_task(spec, build_dir),
        )

    def build_task(self, spec: PackageSpec, build_dir: BuildDirectory) -> Task:
        steps = list(self.install_steps(spec, build_dir))
        steps.append(
            run_step(
                "extract",
                self.builder_image,
                self.query_command(spec),
                mounts=self.payload_mounts(build_dir),
                config=self.builder_config(),
                on_output=self.extraction_handler(spec, build_dir),
            )
        )
        if self.strip_paths:
            steps.append(
                run_step(
                    "strip",
                    self.builder_image,
                    ["rm", "-rf"] + [f"{self.prefix}/{path}" for path in self.strip_paths],
                    mounts=self.payload_mounts(build_dir),
                )
            )
        steps.append(
            wrap_step(
                "wrap",
                self.wrap_base,
                build_dir.dist,
                self.wrap_target,
                image_name(self.settings.namespace, spec),
            )
        )
        return Task(kind=TaskKind.BUILD, package=spec.name, steps=steps)

    def extraction_handler(self, spec: PackageSpec, build_dir: BuildDirectory) -> Callable[[str], None]:
        def handle(output: str):
            info = self.parse_info(spec, output, build_dir)
            build_dir.write_package_info(info)
            logger.info(f"Extracted {spec.name} {info.version} ({info.homepage})")
        return handle

    def test_task(self, spec: PackageSpec) -> Task:
        step = run_step(
            "test",
            image_name(self.settings.namespace, spec),
            [spec.test_command],
            config=self.test_config(),
        )
        return Task(kind=TaskKind.TEST, package=spec.name, steps=[step])

    def clean_task(self, spec: PackageSpec, build_dir: BuildDirectory) -> Task:
        step = run_step(
            "clean",
            self.settings.clean_image,
            ["rm", "-rf", f"{CLEAN_MOUNT}/dist", f"{CLEAN_MOUNT}/info"],
            mounts=[Mount(host_path=build_dir.path, container_path=CLEAN_MOUNT)],
        )
        return Task(kind=TaskKind.CLEAN, package=spec.name, steps=[step])

class AlpineBuilder(PackageBuilder):
    packager = Packager.ALPINE
    prefix = "/dist"
    strip_paths = ["var/cache/apk", "lib/apk", "etc/apk"]

    @property
    def builder_image(self) -> str:
        return self.settings.alpine_image

    @property
    def wrap_base(self) -> str:
        return self.settings.alpine_wrap_base

    @property
    def wrap_target(self) -> str:
        # apk installs a whole root filesystem under the prefix
        return "/"

    def install_steps(self, spec, build_dir):
        return [
            run_step(
                "install",
                self.builder_image,
                [
                    "apk", "--root", self.prefix, "--initdb", "--update-cache",
                    "--allow-untrusted", "--repositories-file", "/etc/apk/repositories",
                    "add", spec.name,
                ],
                mounts=self.payload_mounts(build_dir),
            )
        ]

    def query_command(self, spec):
        return ["apk", "--root", self.prefix, "info", "-vwd", spec.name]

    def parse_info(self, spec, output, build_dir):
        return parse_alpine_info(spec.name, output)

class LinuxbrewBuilder(PackageBuilder):
    packager = Packager.LINUXBREW
    prefix = "/home/linuxbrew/.linuxbrew"
    strip_paths = ["Homebrew", "Library", "var/homebrew", ".git"]
    seed_mount = "/seed"
    build_user = "linuxbrew"

    @property
    def builder_image(self) -> str:
        return self.settings.linuxbrew_image

    def builder_config(self) -> ContainerConfig:
        return ContainerConfig(
            user=self.build_user,
            env={"HOMEBREW_NO_AUTO_UPDATE": "1", "HOMEBREW_NO_ANALYTICS": "1"},
        )

    def install_steps(self, spec, build_dir):
        # brew lives inside its own prefix, so the bound payload directory is
        # seeded with the image's installation before installing into it.
        # The daemon creates a missing bind source as root, hence the chown.
        seed = run_step(
            "seed",
            self.builder_image,
            [
                f"cp -a {self.prefix}/. {self.seed_mount}/"
                f" && chown -R {self.build_user}:{self.build_user} {self.seed_mount}"
            ],
            mounts=[Mount(host_path=build_dir.dist, container_path=self.seed_mount)],
            config=ContainerConfig(entrypoint=SHELL_ENTRYPOINT, user="root"),
        )
        install = run_step(
            "install",
            self.builder_image,
            ["brew", "install", spec.name],
            mounts=self.payload_mounts(build_dir),
            config=self.builder_config(),
        )
        return [seed, install]

    def query_command(self, spec):
        return ["brew", "info", "--json=v1", spec.name]

    def parse_info(self, spec, output, build_dir):
        return parse_linuxbrew_info(spec.name, output)

    def test_config(self) -> ContainerConfig:
        return ContainerConfig(
            entrypoint=SHELL_ENTRYPOINT,
            env={"PATH": f"{self.prefix}/bin:/usr/local/bin:/usr/bin:/bin"},
        )

class CondaBuilder(PackageBuilder):
    packager = Packager.CONDA
    prefix = "/usr/local"
    pkgs_dir = "pkgs"
    strip_paths = ["pkgs", "conda-meta"]

    @property
    def builder_image(self) -> str:
        return self.settings.conda_image

    def builder_config(self) -> ContainerConfig:
        # keep the package cache in the payload so recipe metadata is
        # readable from the host until the strip step
        return ContainerConfig(env={"CONDA_PKGS_DIRS": f"{self.prefix}/{self.pkgs_dir}"})

    def channel_args(self) -> List[str]:
        args = []
        for channel in self.settings.conda_channels.split(","):
            if channel.strip():
                args += ["-c", channel.strip()]
        return args

    def install_steps(self, spec, build_dir):
        command = ["conda", "create", "--yes", "--quiet", "--prefix", self.prefix]
        command += self.channel_args()
        command.append(conda_install_spec(spec.name, spec.revision_tag))
        return [
            run_step(
                "install",
                self.builder_image,
                command,
                mounts=self.payload_mounts(build_dir),
                config=self.builder_config(),
            )
        ]

    def query_command(self, spec):
        return ["conda", "list", "--export", "--prefix", self.prefix]

    def parse_info(self, spec, output, build_dir):
        dist = find_conda_dist(spec.name, output)
        meta = read_conda_meta(build_dir.dist / self.pkgs_dir, dist)
        return parse_conda_meta(meta, spec.revision_tag)

BUILDER_TYPES: Dict[Packager, Type[PackageBuilder]] = {
    Packager.ALPINE: AlpineBuilder,
    Packager.LINUXBREW: LinuxbrewBuilder,
    Packager.CONDA: CondaBuilder,
}

def create_builders(settings: Settings) -> Dict[Packager, PackageBuilder]:
    """One builder instance per packager kind, owned by the caller."""
    return {kind: builder_type(settings) for kind, builder_type in BUILDER_TYPES.items()}
