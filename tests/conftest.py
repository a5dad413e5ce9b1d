"""Shared fixtures for pgharness tests that run without Docker."""
from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from pgharness.config import ContainerSettings

PUBLISHED_HOST = "localhost"
PUBLISHED_PORT = "55432"


@pytest.fixture
def settings() -> ContainerSettings:
    """Default container settings (postgres:16-alpine, testdb/testuser/testpass)."""
    return ContainerSettings()


@pytest.fixture
def fake_container() -> MagicMock:
    """Stand-in for a started PostgresContainer publishing a fixed endpoint."""
    container = MagicMock(name="PostgresContainer")
    container.get_container_host_ip.return_value = PUBLISHED_HOST
    container.get_exposed_port.return_value = PUBLISHED_PORT
    return container


@pytest.fixture
def container_factory(fake_container: MagicMock) -> MagicMock:
    """Factory that always builds the same fake container."""
    return MagicMock(name="container_factory", return_value=fake_container)
