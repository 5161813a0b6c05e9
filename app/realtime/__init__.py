# In-process change feed used for live delivery
from .change_feed import (
    ChangeEvent,
    ChangeFeed,
    DedupingCallback,
    EventType,
    Subscription,
    get_change_feed,
)

__all__ = [
    "ChangeEvent",
    "ChangeFeed",
    "DedupingCallback",
    "EventType",
    "Subscription",
    "get_change_feed",
]
