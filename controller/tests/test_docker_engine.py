"""Tests for the Docker engine."""

import tarfile
from unittest.mock import MagicMock

import pytest
from planner.src.models import ContainerConfig, Mount, run_step, wrap_step
from controller.src.engine.docker_engine import (
    DockerEngine,
    PushError,
    build_container_kwargs,
    build_wrap_context,
    split_image_ref,
)

def test_split_image_ref():
    assert split_image_ref("biocontainers/samtools:1.3--0") == ("biocontainers/samtools", "1.3--0")
    assert split_image_ref("biocontainers/samtools") == ("biocontainers/samtools", "latest")
    assert split_image_ref("localhost:5000/samtools") == ("localhost:5000/samtools", "latest")

def test_container_kwargs(tmp_path):
    step = run_step(
        "install",
        "continuumio/miniconda",
        ["conda", "create"],
        mounts=[Mount(host_path=tmp_path, container_path="/usr/local")],
        config=ContainerConfig(entrypoint=["/bin/sh", "-c"], env={"A": "1"}, user="builder"),
    )

    kwargs = build_container_kwargs(step)

    assert kwargs["image"] == "continuumio/miniconda"
    assert kwargs["command"] == ["conda", "create"]
    assert kwargs["volumes"] == {str(tmp_path): {"bind": "/usr/local", "mode": "rw"}}
    assert kwargs["entrypoint"] == ["/bin/sh", "-c"]
    assert kwargs["environment"] == {"A": "1"}
    assert kwargs["user"] == "builder"
    assert kwargs["detach"] is True

def test_container_kwargs_without_config():
    kwargs = build_container_kwargs(run_step("clean", "busybox", ["rm", "-rf", "/build/dist"]))
    assert "entrypoint" not in kwargs
    assert "environment" not in kwargs
    assert "user" not in kwargs

def test_wrap_context(tmp_path):
    (tmp_path / "bin").mkdir()
    (tmp_path / "bin" / "samtools").write_text("#!/bin/sh\n")
    step = wrap_step("wrap", "busybox:glibc", tmp_path, "/usr/local", "biocontainers/samtools:1.3--0")

    context = build_wrap_context(step)
    with tarfile.open(fileobj=context) as tar:
        names = tar.getnames()
        dockerfile = tar.extractfile("Dockerfile").read().decode()
    context.close()

    assert "payload/bin/samtools" in names
    assert dockerfile == "FROM busybox:glibc\nCOPY payload/ /usr/local\n"

def test_run_collects_stdout_and_removes_container():
    client = MagicMock()
    container = client.containers.run.return_value
    container.wait.return_value = {"StatusCode": 0}
    container.logs.side_effect = [b"samtools=1.3=0\n", b""]

    exit_code, output = DockerEngine(client=client).run(run_step("extract", "conda", ["conda", "list"]))

    assert (exit_code, output) == (0, "samtools=1.3=0\n")
    container.remove.assert_called_once_with(force=True)

def test_run_reports_exit_code():
    client = MagicMock()
    container = client.containers.run.return_value
    container.wait.return_value = {"StatusCode": 2}
    container.logs.side_effect = [b"", b"apk: not found"]

    exit_code, _ = DockerEngine(client=client).run(run_step("install", "alpine", ["apk"]))
    assert exit_code == 2

def test_wrap_builds_tagged_image(tmp_path):
    client = MagicMock()
    step = wrap_step("wrap", "busybox", tmp_path, "/", "biocontainers/musl:1.1.11-r2")

    DockerEngine(client=client).wrap(step)

    kwargs = client.images.build.call_args.kwargs
    assert kwargs["tag"] == "biocontainers/musl:1.1.11-r2"
    assert kwargs["custom_context"] is True
    assert kwargs["fileobj"].closed

def test_wrap_closes_context_when_build_fails(tmp_path):
    client = MagicMock()
    client.images.build.side_effect = RuntimeError("daemon went away")
    step = wrap_step("wrap", "busybox", tmp_path, "/", "biocontainers/musl:1.1.11-r2")

    with pytest.raises(RuntimeError):
        DockerEngine(client=client).wrap(step)

    assert client.images.build.call_args.kwargs["fileobj"].closed

def test_tag():
    client = MagicMock()
    client.images.get.return_value.tag.return_value = True

    DockerEngine(client=client).tag("biocontainers/musl:1.1.11-r2", "biocontainers/musl:latest")

    client.images.get.assert_called_once_with("biocontainers/musl:1.1.11-r2")
    client.images.get.return_value.tag.assert_called_once_with("biocontainers/musl", tag="latest")

def test_push_returns_digest_of_exact_tag():
    client = MagicMock()
    client.images.push.return_value = iter([
        {"status": "Pushing"},
        {"aux": {"Tag": "1.3--01", "Digest": "sha256:other"}},
        {"aux": {"Tag": "1.3--0", "Digest": "sha256:abc", "Size": 1024}},
    ])

    digest = DockerEngine(client=client).push("biocontainers/samtools:1.3--0")

    assert digest == "sha256:abc"
    client.images.push.assert_called_once_with("biocontainers/samtools", tag="1.3--0", stream=True, decode=True)

def test_push_error():
    client = MagicMock()
    client.images.push.return_value = iter([{"error": "unauthorized: access to the requested resource is not authorized"}])

    with pytest.raises(PushError, match="unauthorized"):
        DockerEngine(client=client).push("biocontainers/samtools:1.3--0")

def test_push_without_digest():
    client = MagicMock()
    client.images.push.return_value = iter([{"status": "Pushed"}])

    with pytest.raises(PushError, match="no digest"):
        DockerEngine(client=client).push("biocontainers/samtools:1.3--0")

def test_image_size():
    client = MagicMock()
    client.images.get.return_value.attrs = {"VirtualSize": 2048, "Size": 1024}
    assert DockerEngine(client=client).image_size("biocontainers/samtools:1.3--0") == 2048

    client.images.get.return_value.attrs = {"Size": 1024}
    assert DockerEngine(client=client).image_size("biocontainers/samtools:1.3--0") == 1024
