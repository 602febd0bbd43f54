"""HTTP layer for sketchroom."""

from sketchroom.web.health import HealthController

__all__ = ["HealthController"]
