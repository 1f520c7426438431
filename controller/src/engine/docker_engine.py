"""
Docker implementation of the container engine used to execute task steps.
"""

import io
import logging
import tarfile
import tempfile
from typing import IO, Any, Dict, Optional, Tuple

import docker

from planner.src.models import TaskStep

logger = logging.getLogger(__name__)

PAYLOAD_DIR = "payload"

class PushError(Exception):
    """Raised when the registry rejects a push or reports no digest."""
    pass

def split_image_ref(image_ref: str) -> Tuple[str, str]:
    """Split `repo[:tag]` into repository and tag, defaulting to latest."""
    repository, sep, tag = image_ref.rpartition(":")
    if not sep or "/" in tag:
        # no tag, the colon belonged to a registry port
        return image_ref, "latest"
    return repository, tag

def build_container_kwargs(step: TaskStep) -> Dict[str, Any]:
    """Translate a run step into `containers.run` arguments."""
    kwargs: Dict[str, Any] = {
        "image": step.image,
        "command": list(step.command),
        "detach": True,
        "volumes": {
            str(mount.host_path): {"bind": mount.container_path, "mode": "rw"}
            for mount in step.mounts
        },
        "labels": {"app": "imagebuilder", "step": step.name},
    }
    if step.config.entrypoint is not None:
        kwargs["entrypoint"] = list(step.config.entrypoint)
    if step.config.env:
        kwargs["environment"] = dict(step.config.env)
    if step.config.user:
        kwargs["user"] = step.config.user
    return kwargs

def build_dockerfile(base_image: str, target_dir: str) -> str:
    return f"FROM {base_image}\nCOPY {PAYLOAD_DIR}/ {target_dir}\n"

def build_wrap_context(step: TaskStep) -> IO[bytes]:
    """
    Build context tar: a Dockerfile plus the payload directory.
    Spooled to a temporary file since payloads can be large; the caller closes it.
    """
    dockerfile = build_dockerfile(step.image, step.target_dir).encode()

    context = tempfile.TemporaryFile()
    try:
        with tarfile.open(fileobj=context, mode="w") as tar:
            info = tarfile.TarInfo("Dockerfile")
            info.size = len(dockerfile)
            tar.addfile(info, io.BytesIO(dockerfile))
            tar.add(str(step.source), arcname=PAYLOAD_DIR)
        context.seek(0)
    except Exception:
        context.close()
        raise
    return context

class DockerEngine:
    def __init__(
        self,
        client: Optional[docker.DockerClient] = None,
        base_url: Optional[str] = None,
        timeout: int = 600,
    ):
        if client is None:
            if base_url:
                client = docker.DockerClient(base_url=base_url, timeout=timeout)
            else:
                client = docker.from_env(timeout=timeout)
        self.client = client

    def run(self, step: TaskStep) -> Tuple[int, str]:
        kwargs = build_container_kwargs(step)
        logger.info(f"Running {step.name} in {step.image}: {' '.join(step.command)}")

        container = self.client.containers.run(**kwargs)
        try:
            result = container.wait()
            output = container.logs(stdout=True, stderr=False).decode("utf-8", errors="replace")
            errors = container.logs(stdout=False, stderr=True).decode("utf-8", errors="replace")
        finally:
            container.remove(force=True)

        exit_code = result.get("StatusCode", 1)
        if exit_code != 0 and errors:
            logger.error(f"{step.name} exited with {exit_code}:\n{errors}")
        return exit_code, output

    def wrap(self, step: TaskStep) -> None:
        logger.info(f"Wrapping {step.source} as {step.target_image} on {step.image}")
        context = build_wrap_context(step)
        try:
            self.client.images.build(
                fileobj=context,
                custom_context=True,
                tag=step.target_image,
                rm=True,
            )
        finally:
            context.close()

    def tag(self, source: str, target: str) -> None:
        repository, tag = split_image_ref(target)
        if not self.client.images.get(source).tag(repository, tag=tag):
            raise docker.errors.APIError(f"Could not tag {source} as {target}")
        logger.info(f"Tagged {source} as {target}")

    def push(self, image_ref: str) -> str:
        """Push one tag and return the digest the registry reports for it."""
        repository, tag = split_image_ref(image_ref)
        digest = None

        for line in self.client.images.push(repository, tag=tag, stream=True, decode=True):
            if "error" in line:
                raise PushError(f"Pushing {image_ref} failed: {line['error']}")
            aux = line.get("aux") or {}
            if aux.get("Tag") == tag:
                digest = aux.get("Digest")

        if not digest:
            raise PushError(f"Registry reported no digest for {image_ref}")
        return digest

    def image_size(self, image_ref: str) -> int:
        attrs = self.client.images.get(image_ref).attrs
        # VirtualSize was dropped from newer API versions
        return int(attrs.get("VirtualSize") or attrs["Size"])
