from controller.src.engine.docker_engine import (
    DockerEngine,
    PushError,
    build_container_kwargs,
    build_wrap_context,
    split_image_ref,
)

__all__ = [
    "DockerEngine",
    "PushError",
    "build_container_kwargs",
    "build_wrap_context",
    "split_image_ref",
]
