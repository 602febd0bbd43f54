"""Litestar plugin for sketchroom integration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog
from litestar.di import Provide
from litestar.plugins import InitPluginProtocol

from sketchroom.core.settings import RoomSettings
from sketchroom.realtime.manager import ConnectionManager
from sketchroom.realtime.router import EventRouter
from sketchroom.sessions.registry import SessionRegistry

if TYPE_CHECKING:
    from litestar.config.app import AppConfig

    from sketchroom.sessions.scheduler import Scheduler

logger = structlog.get_logger(__name__)


@dataclass
class SketchroomConfig:
    """Configuration for the Sketchroom plugin.

    Attributes:
        settings: Room behaviour settings (grace period, clear policy,
            payload validation, name limits).
        ws_path: Path of the WebSocket endpoint. Defaults to "/ws".
        enable_websocket: Whether to mount the WebSocket endpoint.
        enable_health: Whether to mount the health and room introspection
            endpoints.
        scheduler: Timer source for room deletion. If None, the running
            event loop is used.
        connection_manager: Optional pre-configured ConnectionManager. If
            None, a new one will be created.

    Example:
        >>> config = SketchroomConfig(
        ...     settings=RoomSettings(grace_period_seconds=60, echo_clear_to_sender=True),
        ...     ws_path="/socket",
        ... )
    """

    settings: RoomSettings = field(default_factory=RoomSettings)
    ws_path: str = "/ws"
    enable_websocket: bool = True
    enable_health: bool = True
    scheduler: Scheduler | None = None
    connection_manager: ConnectionManager | None = None


class SketchroomPlugin(InitPluginProtocol):
    """Litestar plugin wiring the room core into an application.

    Creates the session registry, connection manager and event router,
    registers them for dependency injection under ``registry``,
    ``connection_manager`` and ``event_router``, mounts the WebSocket and
    health routes, and closes every connection on shutdown.

    Example:
        >>> from litestar import Litestar
        >>> from sketchroom import SketchroomConfig, SketchroomPlugin
        >>>
        >>> app = Litestar(plugins=[SketchroomPlugin(SketchroomConfig())])
    """

    def __init__(self, config: SketchroomConfig | None = None) -> None:
        """Initialize the plugin with optional configuration.

        Args:
            config: Plugin configuration. If None, SketchroomConfig with
                default values will be used.
        """
        self._config = config or SketchroomConfig()
        self._registry: SessionRegistry | None = None
        self._connection_manager: ConnectionManager | None = None
        self._event_router: EventRouter | None = None

    def on_app_init(self, app_config: AppConfig) -> AppConfig:
        """Initialize the plugin during application startup.

        Args:
            app_config: The Litestar application configuration object.

        Returns:
            The modified application configuration.
        """
        settings = self._config.settings
        self._registry = SessionRegistry(
            grace_period=settings.grace_period_seconds,
            scheduler=self._config.scheduler,
        )
        self._connection_manager = self._config.connection_manager or ConnectionManager()
        self._event_router = EventRouter(self._registry, self._connection_manager, settings)

        def provide_registry() -> SessionRegistry:
            """Dependency provider for SessionRegistry."""
            return self.registry

        def provide_connection_manager() -> ConnectionManager:
            """Dependency provider for ConnectionManager."""
            return self.connection_manager

        def provide_event_router() -> EventRouter:
            """Dependency provider for EventRouter."""
            return self.event_router

        app_config.dependencies["registry"] = Provide(provide_registry, sync_to_thread=False)
        app_config.dependencies["connection_manager"] = Provide(provide_connection_manager, sync_to_thread=False)
        app_config.dependencies["event_router"] = Provide(provide_event_router, sync_to_thread=False)

        if self._config.enable_websocket:
            from sketchroom.realtime.handler import create_websocket_handler

            app_config.route_handlers.append(
                create_websocket_handler(
                    path=self._config.ws_path,
                    connection_manager=self._connection_manager,
                    event_router=self._event_router,
                )
            )

        if self._config.enable_health:
            from sketchroom.web.health import HealthController

            app_config.route_handlers.append(HealthController)

        app_config.on_shutdown.append(self._on_shutdown)

        return app_config

    async def _on_shutdown(self) -> None:
        if self._registry is not None:
            self._registry.shutdown()
        if self._connection_manager is not None:
            await self._connection_manager.close_all()
        logger.info("Sketchroom shut down; in-memory rooms discarded")

    @property
    def registry(self) -> SessionRegistry:
        """Get the initialized session registry.

        Raises:
            RuntimeError: If the plugin has not been initialized yet.
        """
        if self._registry is None:
            msg = "Plugin not initialized. Call on_app_init first."
            raise RuntimeError(msg)
        return self._registry

    @property
    def connection_manager(self) -> ConnectionManager:
        """Get the initialized connection manager.

        Raises:
            RuntimeError: If the plugin has not been initialized yet.
        """
        if self._connection_manager is None:
            msg = "Plugin not initialized. Call on_app_init first."
            raise RuntimeError(msg)
        return self._connection_manager

    @property
    def event_router(self) -> EventRouter:
        """Get the initialized event router.

        Raises:
            RuntimeError: If the plugin has not been initialized yet.
        """
        if self._event_router is None:
            msg = "Plugin not initialized. Call on_app_init first."
            raise RuntimeError(msg)
        return self._event_router
