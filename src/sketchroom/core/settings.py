"""Room behaviour settings for sketchroom."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_PALETTE = ("#FF6B6B", "#4ECDC4", "#45B7D1", "#FFA07A", "#98D8C8", "#F7DC6F", "#BB8FCE")


def env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes")


@dataclass
class RoomSettings:
    """Tunable behaviour of rooms and the event router.

    Attributes:
        grace_period_seconds: How long an empty room is kept before deletion.
        echo_clear_to_sender: Also deliver ``clear-canvas`` back to the client
            that issued it.
        strict_payloads: Reject events whose payload does not have the
            expected shape instead of passing them through.
        max_name_length: Display names are truncated to this many characters.
        palette: Colors handed out to participants that join without one.
    """

    grace_period_seconds: float = 300.0
    echo_clear_to_sender: bool = False
    strict_payloads: bool = False
    max_name_length: int = 50
    palette: tuple[str, ...] = field(default=DEFAULT_PALETTE)

    @classmethod
    def from_env(cls) -> RoomSettings:
        """Create settings from environment variables.

        Environment variables:
            SKETCHROOM_GRACE_PERIOD_SECONDS: Empty room lifetime (default: 300).
            SKETCHROOM_ECHO_CLEAR: Set to "true" to echo clears to the sender.
            SKETCHROOM_STRICT_PAYLOADS: Set to "true" to validate payloads.
            SKETCHROOM_MAX_NAME_LENGTH: Display name limit (default: 50).

        Returns:
            RoomSettings configured from environment.
        """
        return cls(
            grace_period_seconds=float(os.environ.get("SKETCHROOM_GRACE_PERIOD_SECONDS", "300")),
            echo_clear_to_sender=env_flag("SKETCHROOM_ECHO_CLEAR", default=False),
            strict_payloads=env_flag("SKETCHROOM_STRICT_PAYLOADS", default=False),
            max_name_length=int(os.environ.get("SKETCHROOM_MAX_NAME_LENGTH", "50")),
        )
