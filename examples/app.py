"""Minimal example embedding sketchroom in an existing Litestar application.

The application will:
    - Mount the collaboration WebSocket at /collab
    - Expose /health and /rooms/{room_id}
    - Echo clear-canvas back to the sender and validate payloads

Running the Application:
    python examples/app.py

Example session (using websocat):
    websocat ws://127.0.0.1:8000/collab
    {"event": "join-room", "data": {"roomId": "demo", "username": "alice", "color": "#f00"}}
    {"event": "draw", "data": {"x": 10, "y": 20}}
    {"event": "ping"}
"""

from __future__ import annotations

from litestar import Litestar

from sketchroom import RoomSettings, SketchroomConfig, SketchroomPlugin
from sketchroom.core.logging import configure_logging

configure_logging(debug=True)

app = Litestar(
    plugins=[
        SketchroomPlugin(
            SketchroomConfig(
                settings=RoomSettings(
                    # Keep empty rooms for one minute
                    grace_period_seconds=60,
                    echo_clear_to_sender=True,
                    strict_payloads=True,
                ),
                ws_path="/collab",
            )
        )
    ],
    debug=True,
)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host="127.0.0.1",
        port=8000,
        log_level="info",
    )
