"""Event system: bus and event types for the safety-gate lifecycle."""

from flowbridge.events.bus import EventBus
from flowbridge.events.types import (
    EmbedChunked,
    GateCompleted,
    GateFailed,
    GateStarted,
    GateStateEntered,
    IssuesFound,
    RepairPassCompleted,
)

__all__ = [
    "EventBus",
    "EmbedChunked",
    "GateCompleted",
    "GateFailed",
    "GateStarted",
    "GateStateEntered",
    "IssuesFound",
    "RepairPassCompleted",
]
