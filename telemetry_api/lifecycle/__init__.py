from .activity import ActivityListener, ActivitySource, ActivityState, InProcessActivitySource
from .trigger import LifecycleTrigger

__all__ = [
    "ActivityListener",
    "ActivitySource",
    "ActivityState",
    "InProcessActivitySource",
    "LifecycleTrigger",
]
