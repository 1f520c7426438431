from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    # Docker settings
    docker_base_url: Optional[str] = None  # None uses DOCKER_HOST / the local socket
    docker_timeout: int = 600

    # Run settings
    max_parallel_packages: int = 4
    package_file: str = "packages.tsv"
    selection_file: str = "build_list.txt"
    log_level: str = "INFO"

    class Config:
        env_file = ".env"

@lru_cache()
def get_settings() -> Settings:
    return Settings()
