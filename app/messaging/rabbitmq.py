"""
RabbitMQ access.

Messages are JSON documents published with publisher confirms and the
mandatory flag, so a nack or an unroutable message surfaces as
``MessagePublishError`` instead of being dropped silently. Every business
queue dead-letters into the shared ``dlx.topic`` exchange.
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import pika
from pika.adapters.blocking_connection import BlockingChannel
from pika.exceptions import NackError, UnroutableError

from app.core.config import Settings, get_settings
from app.core.exceptions import MessagePublishError
from app.schemas.common import json_default
from app.utils.logger import get_logger

logger = get_logger(__name__)

JSON_CONTENT_TYPE = "application/json"


def create_connection(settings: Optional[Settings] = None) -> pika.BlockingConnection:
    settings = settings or get_settings()
    parameters = pika.URLParameters(settings.rabbitmq_url)
    parameters.heartbeat = settings.rabbitmq_heartbeat
    connection = pika.BlockingConnection(parameters)
    logger.info("RabbitMQ connection opened: host=%s, vhost=%s", parameters.host, parameters.virtual_host)
    return connection


def declare_dead_letter_topology(channel: BlockingChannel, settings: Optional[Settings] = None) -> None:
    """Durable topic exchange + durable queue bound with the catch-all dead-letter key."""
    settings = settings or get_settings()
    exchange = settings.rabbitmq_dead_letter_exchange
    queue = settings.rabbitmq_dead_letter_queue
    routing_key = settings.rabbitmq_dead_letter_routing_key

    channel.exchange_declare(exchange=exchange, exchange_type="topic", durable=True, auto_delete=False)
    channel.queue_declare(queue=queue, durable=True)
    channel.queue_bind(queue=queue, exchange=exchange, routing_key=routing_key)
    logger.info(
        "Dead-letter topology declared: exchange=%s, queue=%s, routing_key=%s",
        exchange,
        queue,
        routing_key,
    )


def declare_queue_with_dead_letter(
    channel: BlockingChannel,
    exchange: str,
    queue: str,
    routing_key: str,
    settings: Optional[Settings] = None,
) -> None:
    """
    Declare a durable topic exchange and a durable queue bound to it.

    Rejected or expired messages of ``queue`` are re-published to the
    dead-letter exchange under ``dlx.<routing_key>``.
    """
    settings = settings or get_settings()
    channel.exchange_declare(exchange=exchange, exchange_type="topic", durable=True, auto_delete=False)
    channel.queue_declare(
        queue=queue,
        durable=True,
        arguments={
            "x-dead-letter-exchange": settings.rabbitmq_dead_letter_exchange,
            "x-dead-letter-routing-key": f"dlx.{routing_key}",
        },
    )
    channel.queue_bind(queue=queue, exchange=exchange, routing_key=routing_key)
    logger.info("Queue declared: exchange=%s, queue=%s, routing_key=%s", exchange, queue, routing_key)


class JsonPublisher:
    def __init__(self, channel: BlockingChannel):
        self.channel = channel
        self.channel.confirm_delivery()

    def publish(
        self,
        exchange: str,
        routing_key: str,
        message: Any,
        headers: Optional[dict[str, Any]] = None,
        message_id: Optional[str] = None,
    ) -> None:
        body = json.dumps(message, default=json_default, ensure_ascii=False).encode("utf-8")
        properties = pika.BasicProperties(
            content_type=JSON_CONTENT_TYPE,
            content_encoding="utf-8",
            delivery_mode=pika.DeliveryMode.Persistent,
            headers=headers,
            message_id=message_id,
        )
        try:
            self.channel.basic_publish(
                exchange=exchange,
                routing_key=routing_key,
                body=body,
                properties=properties,
                mandatory=True,
            )
        except UnroutableError as exc:
            logger.error(
                "Message returned as unroutable: exchange=%s, routing_key=%s, message_id=%s",
                exchange,
                routing_key,
                message_id,
            )
            raise MessagePublishError(exchange, routing_key, "unroutable") from exc
        except NackError as exc:
            logger.error(
                "Message nacked by broker: exchange=%s, routing_key=%s, message_id=%s",
                exchange,
                routing_key,
                message_id,
            )
            raise MessagePublishError(exchange, routing_key, "nacked by broker") from exc

        logger.debug("Message confirmed: exchange=%s, routing_key=%s, message_id=%s", exchange, routing_key, message_id)


@contextmanager
def open_publisher(settings: Optional[Settings] = None) -> Iterator[JsonPublisher]:
    """Connection-scoped publisher; the dead-letter topology is declared on open."""
    connection = create_connection(settings)
    try:
        channel = connection.channel()
        declare_dead_letter_topology(channel, settings)
        yield JsonPublisher(channel)
    finally:
        connection.close()
