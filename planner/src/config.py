from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    # Registry
    namespace: str = "biocontainers"
    registry_url: str = "https://quay.io"
    registry_token: str = ""
    registry_visibility: str = "public"

    # Documentation repository
    github_api_url: str = "https://api.github.com"
    github_token: str = ""
    docs_repository: str = "biocontainers/biocontainers.github.io"
    docs_branch: str = "master"
    docs_path: str = "_images"

    # Local state
    build_root: str = "./builds"
    revisions_dir: str = "./data/revisions"
    build_id: Optional[str] = None

    # Images used to run the package managers
    alpine_image: str = "alpine:3.4"
    linuxbrew_image: str = "linuxbrew/linuxbrew"
    conda_image: str = "continuumio/miniconda"
    conda_channels: str = "conda-forge,bioconda"

    # Base images the payload gets wrapped onto
    alpine_wrap_base: str = "busybox"
    glibc_wrap_base: str = "busybox:glibc"
    clean_image: str = "busybox"

    http_timeout: float = 30.0

    class Config:
        env_file = ".env"

@lru_cache()
def get_settings() -> Settings:
    return Settings()
