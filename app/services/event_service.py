"""Best-effort domain event publication to SNS."""
import asyncio
import logging
from typing import Any, Dict, Optional, Set, Union

import boto3
from botocore.config import Config
from starlette.concurrency import run_in_threadpool
from tenacity import Retrying, stop_after_attempt, wait_exponential

from app.config import Settings
from app.middleware.metrics import events_published_total
from app.schemas.event import EventEnvelope, EventName, PublishOutcome

logger = logging.getLogger(__name__)


def _resolve_cid(payload: Optional[Dict[str, Any]], cid: Optional[str]) -> Optional[str]:
    if cid:
        return cid
    if payload and payload.get("cid"):
        return str(payload["cid"])
    return None


def create_sns_client(settings: Settings):
    """Build the boto3 SNS client used by SnsEventPublisher."""
    return boto3.client(
        "sns",
        endpoint_url=settings.SNS_ENDPOINT_URL,
        region_name=settings.AWS_REGION,
        config=Config(connect_timeout=5, read_timeout=10),
    )


class EventPublisher:
    """Publishes one event and reports whether it reached the bus."""

    async def publish(
        self,
        event: Union[EventName, str],
        payload: Dict[str, Any],
        cid: Optional[str] = None,
    ) -> PublishOutcome:
        raise NotImplementedError


class LoggingEventPublisher(EventPublisher):
    """Silent mode: no topic configured, events are only logged."""

    async def publish(self, event, payload, cid=None) -> PublishOutcome:
        event = EventName(event)
        correlation_id = _resolve_cid(payload, cid)
        logger.info("[EVENT:%s] cid=%s %s", event.value, correlation_id or "-", payload)
        return PublishOutcome(published=False, cid=correlation_id)


class SnsEventPublisher(EventPublisher):
    """Publish events to an SNS topic."""

    def __init__(self, client, topic_arn: str, *, attempts: int = 3):
        self.sns_client = client
        self.topic_arn = topic_arn
        self.attempts = max(1, attempts)

    def build_message(self, event: EventName, payload: Dict[str, Any], cid: Optional[str]) -> Dict[str, Any]:
        """Build PublishCommand arguments for an event."""
        envelope = EventEnvelope(event=event, cid=cid, payload=payload)
        attributes = {"event": {"DataType": "String", "StringValue": event.value}}
        if cid:
            attributes["cid"] = {"DataType": "String", "StringValue": str(cid)}
        return {
            "TopicArn": self.topic_arn,
            "Message": envelope.model_dump_json(),
            "MessageAttributes": attributes,
        }

    def _send(self, message: Dict[str, Any]) -> Dict[str, Any]:
        for attempt in Retrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=0.2, max=2),
            reraise=True,
        ):
            with attempt:
                return self.sns_client.publish(**message)

    async def publish(self, event, payload, cid=None) -> PublishOutcome:
        event = EventName(event)
        correlation_id = _resolve_cid(payload, cid)
        message = self.build_message(event, payload, correlation_id)
        await run_in_threadpool(self._send, message)
        return PublishOutcome(published=True, cid=correlation_id)

    def close(self) -> None:
        close = getattr(self.sns_client, "close", None)
        if close is not None:
            close()


class EventNotifier:
    """Wraps a publisher so that publication can never fail the caller."""

    def __init__(self, publisher: EventPublisher):
        self.publisher = publisher
        self._pending: Set[asyncio.Task] = set()

    async def publish_safe(
        self,
        event: Union[EventName, str],
        payload: Dict[str, Any],
        cid: Optional[str] = None,
    ) -> PublishOutcome:
        """Publish and convert any failure into an unpublished outcome."""
        name = event.value if isinstance(event, EventName) else str(event)
        correlation_id = _resolve_cid(payload, cid)
        try:
            outcome = await self.publisher.publish(event, payload, correlation_id)
        except Exception as exc:
            logger.error(
                "[EVENT:%s] publish failed (cid=%s): %s",
                name,
                correlation_id or "-",
                exc,
                exc_info=True,
            )
            events_published_total.labels(event=name, outcome="failed").inc()
            return PublishOutcome(published=False, cid=correlation_id, error=str(exc))

        events_published_total.labels(
            event=name,
            outcome="published" if outcome.published else "skipped",
        ).inc()
        return outcome

    def fire(
        self,
        event: Union[EventName, str],
        payload: Dict[str, Any],
        cid: Optional[str] = None,
    ) -> asyncio.Task:
        """Schedule publish_safe in the background and return immediately."""
        task = asyncio.get_running_loop().create_task(self.publish_safe(event, payload, cid))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for every scheduled publication to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def close(self) -> None:
        close = getattr(self.publisher, "close", None)
        if close is not None:
            close()


def build_event_notifier(settings: Settings, sns_client=None) -> EventNotifier:
    """SNS publisher when a topic is configured, logging-only otherwise."""
    if not settings.SNS_TOPIC_ARN:
        logger.info("SNS_TOPIC_ARN not set; events will only be logged")
        return EventNotifier(LoggingEventPublisher())

    client = sns_client or create_sns_client(settings)
    return EventNotifier(
        SnsEventPublisher(client, settings.SNS_TOPIC_ARN, attempts=settings.EVENT_PUBLISH_ATTEMPTS)
    )
