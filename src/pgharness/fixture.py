"""Session-wide PostgreSQL container fixture.

One PostgresContainerFixture owns exactly one database container for a whole
group of tests. The owning pytest fixture calls initialize() once before the
group and teardown() once after it; tests only ever ask for connections.

    fixture = PostgresContainerFixture(ContainerSettings.from_env())
    fixture.initialize()
    try:
        async with fixture.connection() as conn:
            await conn.execute(text("SELECT 1"))
    finally:
        fixture.teardown()
"""
from __future__ import annotations

import enum
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.engine import URL
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool
from testcontainers.postgres import PostgresContainer

from pgharness.config import ASYNC_DRIVERNAME, ContainerSettings
from pgharness.errors import (
    DatabaseConnectionError,
    FixtureStateError,
    ProvisioningError,
)

logger = logging.getLogger(__name__)


class LifecycleState(enum.Enum):
    """Container fixture states. STARTING never follows STOPPED."""

    UNSTARTED = "unstarted"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class PostgresContainerFixture:
    """Start-once, share, dispose-once owner of a PostgreSQL container.

    Args:
        settings: Image, database name and credentials for the container.
        container_factory: Callable building the (unstarted) container. Defaults
            to testcontainers' PostgresContainer.
    """

    def __init__(
        self,
        settings: ContainerSettings | None = None,
        container_factory: Callable[..., Any] = PostgresContainer,
    ) -> None:
        self._settings = settings or ContainerSettings()
        self._container_factory = container_factory
        self._container: Any = None
        self._engine: AsyncEngine | None = None
        self._url: URL | None = None
        self._state = LifecycleState.UNSTARTED

    @property
    def settings(self) -> ContainerSettings:
        return self._settings

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is LifecycleState.RUNNING

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Build and start the container, then prepare the connection engine.

        Calling this again while RUNNING is a no-op. Any other repeat call is a
        lifecycle error: the fixture is single-use.

        Raises:
            ProvisioningError: The container engine could not start the image.
            FixtureStateError: The fixture was already stopped or is mid-transition.
        """
        if self._state is LifecycleState.RUNNING:
            logger.warning("Container fixture already running, ignoring repeated initialize()")
            return
        if self._state is not LifecycleState.UNSTARTED:
            raise FixtureStateError(
                f"Cannot initialize a container fixture in state {self._state.value!r}"
            )

        self._state = LifecycleState.STARTING
        settings = self._settings
        logger.info("Starting PostgreSQL container from image %s", settings.image)
        try:
            self._container = self._container_factory(
                image=settings.image,
                port=settings.port,
                username=settings.username,
                password=settings.password,
                dbname=settings.dbname,
            )
            self._container.start()
            self._url = URL.create(
                ASYNC_DRIVERNAME,
                username=settings.username,
                password=settings.password,
                host=self._container.get_container_host_ip(),
                port=int(self._container.get_exposed_port(settings.port)),
                database=settings.dbname,
            )
            self._engine = create_async_engine(self._url, poolclass=NullPool)
        except Exception as exc:
            logger.error("Failed to provision PostgreSQL container %s: %s", settings.image, exc)
            self._release()
            self._state = LifecycleState.STOPPED
            raise ProvisioningError(
                f"Could not start PostgreSQL container from image {settings.image!r}"
            ) from exc

        self._state = LifecycleState.RUNNING
        logger.info(
            "PostgreSQL container running at %s:%s/%s",
            self._url.host,
            self._url.port,
            self._url.database,
        )

    def teardown(self) -> None:
        """Stop and remove the container. Safe in any state; never raises.

        Cleanup runs at most once. Failures are logged, not propagated, since
        the outcome of the test group is already decided by then.
        """
        if self._state in (LifecycleState.STOPPING, LifecycleState.STOPPED):
            logger.debug("Container fixture already %s, nothing to tear down", self._state.value)
            return
        if self._state is LifecycleState.UNSTARTED:
            self._state = LifecycleState.STOPPED
            return

        self._state = LifecycleState.STOPPING
        self._release()
        self._state = LifecycleState.STOPPED
        logger.info("PostgreSQL container stopped")

    def _release(self) -> None:
        """Best-effort disposal of the engine and the container."""
        engine, self._engine = self._engine, None
        container, self._container = self._container, None
        self._url = None

        if engine is not None:
            try:
                # NullPool holds no connections, so the sync dispose is enough
                engine.sync_engine.dispose()
            except Exception as exc:
                logger.warning("Failed to dispose database engine: %s", exc)

        if container is not None:
            try:
                container.stop()
            except Exception as exc:
                logger.warning("Failed to stop PostgreSQL container: %s", exc)

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    @property
    def connection_url(self) -> URL:
        """Connection descriptor derived from the container's published endpoint.

        Raises:
            FixtureStateError: initialize() has not completed.
        """
        if self._state is not LifecycleState.RUNNING or self._url is None:
            raise FixtureStateError(
                f"Connection URL is unavailable while the fixture is {self._state.value!r}"
            )
        return self._url

    def connection_string(self) -> str:
        """The connection URL rendered with credentials, ready to hand to a driver."""
        return self.connection_url.render_as_string(hide_password=False)

    @property
    def engine(self) -> AsyncEngine:
        """Async engine bound to the container (no pooling)."""
        if self._state is not LifecycleState.RUNNING or self._engine is None:
            raise FixtureStateError(
                f"Engine is unavailable while the fixture is {self._state.value!r}"
            )
        return self._engine

    async def open_connection(self) -> AsyncConnection:
        """Open a new connection to the container. The caller must close it.

        No retries happen here; a failed handshake surfaces immediately.

        Raises:
            DatabaseConnectionError: The server is unreachable or rejected the handshake.
            FixtureStateError: initialize() has not completed.
        """
        engine = self.engine
        try:
            return await engine.connect()
        except (DBAPIError, OSError) as exc:
            raise DatabaseConnectionError(
                f"Could not connect to {self.connection_url.render_as_string(hide_password=True)}"
            ) from exc

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[AsyncConnection]:
        """Scoped connection: closed on every exit path, including failures."""
        conn = await self.open_connection()
        try:
            yield conn
        finally:
            await conn.close()
