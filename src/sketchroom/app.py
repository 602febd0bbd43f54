"""Main Litestar application for sketchroom.

This module provides the application factory and a configured app instance
for running sketchroom as a standalone broker::

    uvicorn sketchroom.app:app --port 5000
"""

from __future__ import annotations

import os

from litestar import Litestar
from litestar.config.cors import CORSConfig

from sketchroom.core.error_handling import get_exception_handlers
from sketchroom.core.logging import CorrelationIdMiddleware, RequestLoggingMiddleware, configure_logging
from sketchroom.core.settings import RoomSettings, env_flag
from sketchroom.plugin import SketchroomConfig, SketchroomPlugin


def create_app(
    *,
    settings: RoomSettings | None = None,
    debug: bool = False,
    json_logs: bool = False,
    cors_origins: list[str] | None = None,
) -> Litestar:
    """Create and configure the Litestar application.

    Args:
        settings: Room behaviour settings. If None, loads from environment.
        debug: Whether to enable debug mode.
        json_logs: Whether to output logs as JSON (for production).
        cors_origins: Origins allowed to call the HTTP endpoints.

    Returns:
        Configured Litestar application instance.
    """
    configure_logging(debug=debug, json_logs=json_logs)

    plugin = SketchroomPlugin(
        SketchroomConfig(
            settings=settings or RoomSettings.from_env(),
            ws_path="/ws",
        )
    )

    return Litestar(
        plugins=[plugin],
        debug=debug,
        middleware=[CorrelationIdMiddleware, RequestLoggingMiddleware],
        exception_handlers=get_exception_handlers(),
        cors_config=CORSConfig(allow_origins=cors_origins or ["http://localhost:3000"]),
    )


app = create_app(
    debug=env_flag("SKETCHROOM_DEBUG", default=False),
    json_logs=env_flag("SKETCHROOM_JSON_LOGS", default=False),
)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host="127.0.0.1",
        port=int(os.environ.get("PORT", "5000")),
        log_level="info",
    )
