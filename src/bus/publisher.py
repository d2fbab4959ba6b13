"""Result publishers — one outbound event per channel completion."""

from __future__ import annotations

import abc
from collections import defaultdict

import aiohttp
import structlog

from src.core.config import BusConfig
from src.core.types import ResultEvent

logger = structlog.get_logger(__name__)


class ResultPublisher(abc.ABC):
    """Emits channel outcome events to the "published" or "failed" topic."""

    def __init__(self, config: BusConfig | None = None) -> None:
        self._config = config or BusConfig()

    def topic_for(self, success: bool) -> str:
        return self._config.published_topic if success else self._config.failed_topic

    @abc.abstractmethod
    async def publish(self, event: ResultEvent) -> None:
        """Send *event*. ``event.topic`` is already set."""

    async def close(self) -> None:
        """Release resources (HTTP sessions, etc.)."""


class InMemoryResultPublisher(ResultPublisher):
    """Collects events per topic, for tests and embedded use."""

    def __init__(self, config: BusConfig | None = None) -> None:
        super().__init__(config)
        self.events: list[ResultEvent] = []
        self.by_topic: dict[str, list[ResultEvent]] = defaultdict(list)

    async def publish(self, event: ResultEvent) -> None:
        self.events.append(event)
        self.by_topic[event.topic].append(event)


class LoggingResultPublisher(ResultPublisher):
    """Writes events to the structured log only."""

    async def publish(self, event: ResultEvent) -> None:
        logger.info(
            "result_event",
            topic=event.topic,
            alert_id=event.alert_id,
            channel=event.channel,
            success=event.success,
            severity=event.severity,
            alert_type=event.alert_type,
        )


class WebhookResultPublisher(ResultPublisher):
    """POSTs ``{topic, key, event}`` to a bus bridge endpoint."""

    def __init__(self, config: BusConfig) -> None:
        super().__init__(config)
        self._url = config.result_webhook_url
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def publish(self, event: ResultEvent) -> None:
        payload = {
            "topic": event.topic,
            "key": event.alert_id,
            "event": event.model_dump(mode="json"),
        }
        session = self._get_session()
        async with session.post(self._url, json=payload) as resp:
            if resp.status >= 300:
                body = await resp.text()
                raise aiohttp.ClientResponseError(
                    resp.request_info,
                    resp.history,
                    status=resp.status,
                    message=body[:200],
                )
        logger.debug("result_event_posted", topic=event.topic, alert_id=event.alert_id)

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None


def create_publisher(config: BusConfig) -> ResultPublisher:
    """Webhook publisher when a bridge URL is configured, else log-only."""
    if config.result_webhook_url:
        return WebhookResultPublisher(config)
    return LoggingResultPublisher(config)
