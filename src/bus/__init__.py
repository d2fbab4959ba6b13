"""Message-bus boundary — outbound result events.

The inbound consumer lives in ``src.bus.consumer`` and is imported
directly, since it depends on the dispatch package.
"""

from src.bus.publisher import (
    InMemoryResultPublisher,
    LoggingResultPublisher,
    ResultPublisher,
    WebhookResultPublisher,
    create_publisher,
)

__all__ = [
    "InMemoryResultPublisher",
    "LoggingResultPublisher",
    "ResultPublisher",
    "WebhookResultPublisher",
    "create_publisher",
]
