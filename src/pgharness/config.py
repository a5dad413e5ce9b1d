"""Container settings for the harness, overridable through environment variables."""
from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_IMAGE = "postgres:16-alpine"
DEFAULT_DB_NAME = "testdb"
DEFAULT_DB_USER = "testuser"
DEFAULT_DB_PASSWORD = "testpass"
POSTGRES_PORT = 5432

ASYNC_DRIVERNAME = "postgresql+asyncpg"


@dataclass(frozen=True)
class ContainerSettings:
    """Fixed configuration the database container is built with."""

    image: str = DEFAULT_IMAGE
    dbname: str = DEFAULT_DB_NAME
    username: str = DEFAULT_DB_USER
    password: str = DEFAULT_DB_PASSWORD
    port: int = POSTGRES_PORT

    @classmethod
    def from_env(cls) -> ContainerSettings:
        """Build settings from ``PGHARNESS_*`` variables, falling back to the defaults."""
        return cls(
            image=os.getenv("PGHARNESS_IMAGE", DEFAULT_IMAGE),
            dbname=os.getenv("PGHARNESS_DB_NAME", DEFAULT_DB_NAME),
            username=os.getenv("PGHARNESS_DB_USER", DEFAULT_DB_USER),
            password=os.getenv("PGHARNESS_DB_PASSWORD", DEFAULT_DB_PASSWORD),
        )


def use_testcontainers() -> bool:
    """Whether Docker-backed tests are enabled for this run."""
    return os.getenv("PGHARNESS_USE_TESTCONTAINERS", "false").lower() == "true"
