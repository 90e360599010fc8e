"""Domain layer - Modelos y contratos."""

from .reading import ParseResult, Reading, RejectReason
from .status import ConnectionStatus, SeverityBand
from .feed_config import FeedConfig, FeedConfigError

__all__ = [
    "ParseResult",
    "Reading",
    "RejectReason",
    "ConnectionStatus",
    "SeverityBand",
    "FeedConfig",
    "FeedConfigError",
]
