"""
Publish a built image: registry push, description and documentation record.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml
from pydantic import BaseModel

from planner.src.config import Settings
from planner.src.models import (
    BuildDirectory,
    ContainerEngine,
    PackageInfo,
    PackageSpec,
    Task,
    TaskKind,
    host_step,
    tag_step,
)
from planner.src.services.builders import image_name
from planner.src.services.github import GitHubClient, encode_content
from planner.src.services.quay import QuayClient

logger = logging.getLogger(__name__)

class PublishState(BaseModel):
    """Results handed from one push stage to the next."""
    checksum: Optional[str] = None
    size: Optional[int] = None
    description_payload: Optional[str] = None
    previous_sha: Optional[str] = None
    commit_payload: Optional[Dict[str, Any]] = None
    commit_result: Optional[Dict[str, Any]] = None

def load_revision_history(revisions_dir: Path, name: str) -> List[str]:
    """Previously published revisions, one per line in `<name>.txt`."""
    path = Path(revisions_dir) / f"{name}.txt"
    if not path.exists():
        return []
    return [line.strip() for line in path.read_text().splitlines() if line.strip()]

def compose_description(name: str, info: PackageInfo, revision: str, history: List[str]) -> str:
    """Markdown shown on the registry repository page."""
    revisions = [r for r in history if r != revision] + [revision]
    lines = [
        f"# {name}",
        "",
        f"> {info.description}",
        "",
        f"Homepage: [{info.homepage}]({info.homepage})",
        "",
        f"Latest revision: `{revision}`",
        "",
        "## Revisions",
        "",
    ]
    lines += [f"- `{r}`" for r in revisions]
    return "\n".join(lines) + "\n"

def description_payload(markdown: str) -> str:
    return json.dumps({"description": markdown})

def compose_record(
    image: str,
    date: str,
    build: str,
    packager: str,
    info: PackageInfo,
    checksum: str,
    size: int,
) -> str:
    """Front matter document stored per package in the documentation repository."""
    record = {
        "image": image,
        "date": date,
        "build": build,
        "packager": packager,
        "homepage": info.homepage,
        "description": info.description,
        "version": info.version,
        "checksum": checksum,
        "size": size,
    }
    return "---\n" + yaml.safe_dump(record, default_flow_style=False, sort_keys=False) + "---\n"

class PushJob:
    """
    The ordered publish stages for one package.

    Each stage reads what earlier stages left in `state`; captured values are
    also written under `info/` so an operator can inspect a failed push.
    """

    def __init__(
        self,
        spec: PackageSpec,
        build_dir: BuildDirectory,
        settings: Settings,
        quay: QuayClient,
        github: GitHubClient,
        clock: Callable[[], datetime],
    ):
        self.spec = spec
        self.build_dir = build_dir
        self.settings = settings
        self.quay = quay
        self.github = github
        self.clock = clock
        self.state = PublishState()

    @property
    def image(self) -> str:
        return image_name(self.settings.namespace, self.spec)

    @property
    def latest_image(self) -> str:
        return image_name(self.settings.namespace, self.spec, "latest")

    @property
    def docs_filename(self) -> str:
        return f"{self.spec.name}.md"

    def _require(self, field: str):
        value = getattr(self.state, field)
        if value is None:
            raise RuntimeError(f"Publish stage for {self.spec.name} needs '{field}' from an earlier stage")
        return value

    def ensure_repository(self):
        info = self.build_dir.read_package_info()
        self.quay.create_repository(
            self.settings.namespace,
            self.spec.name,
            visibility=self.settings.registry_visibility,
            description=info.description,
        )

    def push_and_measure(self, engine: ContainerEngine):
        checksum = engine.push(self.image)
        engine.push(self.latest_image)
        size = engine.image_size(self.image)

        self.state.checksum = checksum
        self.state.size = size
        self.build_dir.write_info("checksum", checksum)
        self.build_dir.write_info("size", str(size))
        logger.info(f"Pushed {self.image} ({checksum}, {size} bytes)")

    def compose_description(self):
        info = self.build_dir.read_package_info()
        history = load_revision_history(Path(self.settings.revisions_dir), self.spec.name)
        markdown = compose_description(self.spec.name, info, self.spec.revision_tag, history)

        self.state.description_payload = description_payload(markdown)
        self.build_dir.write_info("quay_description", self.state.description_payload)

    def publish_description(self):
        self.quay.update_description(
            self.settings.namespace,
            self.spec.name,
            self._require("description_payload"),
        )

    def fetch_previous_sha(self):
        sha = self.github.file_sha(
            self.settings.docs_repository,
            self.settings.docs_path,
            self.docs_filename,
            branch=self.settings.docs_branch,
        )
        if sha is None:
            logger.info(f"No documentation record for {self.spec.name} yet")
        self.state.previous_sha = sha
        self.build_dir.write_info("previous_file_sha", sha or "")

    def compose_commit(self):
        info = self.build_dir.read_package_info()
        build = self.settings.build_id or "local"
        record = compose_record(
            image=self.image,
            date=self.clock().isoformat(),
            build=build,
            packager=self.spec.packager.value,
            info=info,
            checksum=self._require("checksum"),
            size=self._require("size"),
        )

        payload = {
            "message": f"{self.image} (build {build})",
            "content": encode_content(record),
            "branch": self.settings.docs_branch,
        }
        if self.state.previous_sha:
            payload["sha"] = self.state.previous_sha

        self.state.commit_payload = payload
        self.build_dir.write_info("github_commit", json.dumps(payload))

    def commit(self):
        self.state.commit_result = self.github.update_file(
            self.settings.docs_repository,
            f"{self.settings.docs_path}/{self.docs_filename}",
            self._require("commit_payload"),
        )
        logger.info(f"Committed documentation record for {self.image}")

    def task(self) -> Task:
        steps = [
            tag_step("tag-latest", self.image, self.latest_image),
            host_step("ensure-repository", lambda engine: self.ensure_repository()),
            host_step("push", self.push_and_measure),
            host_step("compose-description", lambda engine: self.compose_description()),
            host_step("publish-description", lambda engine: self.publish_description()),
            host_step("fetch-previous-sha", lambda engine: self.fetch_previous_sha()),
            host_step("compose-commit", lambda engine: self.compose_commit()),
            host_step("commit", lambda engine: self.commit()),
        ]
        return Task(kind=TaskKind.PUSH, package=self.spec.name, steps=steps)

class Publisher:
    def __init__(
        self,
        settings: Settings,
        quay: QuayClient,
        github: GitHubClient,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings
        self.quay = quay
        self.github = github
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def job(self, spec: PackageSpec, build_dir: BuildDirectory) -> PushJob:
        return PushJob(spec, build_dir, self.settings, self.quay, self.github, self.clock)

    def publish(self, spec: PackageSpec, build_dir: BuildDirectory) -> Task:
        return self.job(spec, build_dir).task()
