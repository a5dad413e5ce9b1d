"""Root conftest: real infrastructure fixtures using Testcontainers.

Provides one session-scoped PostgreSQL container fixture, started once before
the first test that needs it and torn down once after the session, plus a
per-test connection that is always closed.
"""
from __future__ import annotations

from collections.abc import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncConnection

from pgharness.config import ContainerSettings, use_testcontainers
from pgharness.fixture import PostgresContainerFixture
from pgharness.seeding import seed_all


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers to suppress PytestUnknownMarkWarning."""
    config.addinivalue_line("markers", "unit: Pure in-process tests, no Docker required")
    config.addinivalue_line("markers", "property: Hypothesis property-based tests")
    config.addinivalue_line("markers", "integration: Requires a real PostgreSQL container")


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: list[pytest.Item],
) -> None:
    """Skip container-backed tests unless Testcontainers is enabled."""
    if use_testcontainers():
        return
    skip_no_containers = pytest.mark.skip(
        reason="Testcontainers disabled, set PGHARNESS_USE_TESTCONTAINERS=true"
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_no_containers)


# ---------------------------------------------------------------------------
# Container fixture (session-scoped: start once, share across all tests)
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def postgres_fixture() -> Generator[PostgresContainerFixture, None, None]:
    """Start the PostgreSQL container once for the entire test session.

    A ProvisioningError here errors every test that depends on the container;
    pytest caches the failure, so provisioning is never attempted twice.
    """
    fixture = PostgresContainerFixture(ContainerSettings.from_env())
    try:
        fixture.initialize()
        yield fixture
    finally:
        fixture.teardown()


# ---------------------------------------------------------------------------
# Per-test connection + seed data
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db_connection(
    postgres_fixture: PostgresContainerFixture,
) -> AsyncGenerator[AsyncConnection, None]:
    """Open connection owned by a single test, closed however the test exits."""
    async with postgres_fixture.connection() as conn:
        yield conn


@pytest_asyncio.fixture
async def seeded_users(postgres_fixture: PostgresContainerFixture) -> dict[str, int]:
    """Upsert the canonical test_users rows (idempotent, safe per test)."""
    return await seed_all(postgres_fixture.engine)
