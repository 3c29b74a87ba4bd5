"""Publish/subscribe adapters used to notify clients of finished audio."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping

import pika
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool
from pika.exceptions import AMQPError

from app.config.settings import NotificationConfig, settings
from app.services.aws import create_boto3_client

logger = logging.getLogger(__name__)


class NotificationError(RuntimeError):
    """Raised when a notification could not be handed to the broker."""


class NotificationPublisher(ABC):
    """Fire-and-forget publisher contract: one message, no acknowledgement."""

    @abstractmethod
    async def publish(self, topic: str, payload: Mapping[str, Any]) -> None:
        ...


class IotPublisher(NotificationPublisher):
    """AWS IoT Core data-plane publisher (browser clients subscribe over MQTT)."""

    def __init__(self, endpoint: str | None = None, client: Any | None = None) -> None:
        self._endpoint = endpoint
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            endpoint_url = None
            if self._endpoint:
                endpoint_url = (
                    self._endpoint
                    if self._endpoint.startswith("https://")
                    else f"https://{self._endpoint}"
                )
            self._client = create_boto3_client("iot-data", endpoint_url=endpoint_url)
        return self._client

    async def publish(self, topic: str, payload: Mapping[str, Any]) -> None:
        body = json.dumps(payload, separators=(",", ":")).encode("utf-8")
        try:
            await run_in_threadpool(
                self.client.publish,
                topic=topic,
                qos=0,
                payload=body,
                contentType="application/json",
            )
        except (BotoCoreError, ClientError) as exc:
            raise NotificationError(f"Failed to publish to IoT topic {topic}: {exc}") from exc
        logger.info("Published notification on IoT topic %s", topic)


class RabbitMQPublisher(NotificationPublisher):
    """RabbitMQ publisher using a topic exchange keyed by notification topic."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        exchange: str,
    ) -> None:
        self.exchange = exchange
        self.credentials = pika.PlainCredentials(username, password)
        self.connection_params = pika.ConnectionParameters(
            host=host,
            port=port,
            credentials=self.credentials,
        )

    def _get_connection(self) -> pika.BlockingConnection:
        """Get a connection to RabbitMQ"""
        return pika.BlockingConnection(self.connection_params)

    def _publish_sync(self, topic: str, body: bytes) -> None:
        connection = self._get_connection()
        try:
            channel = connection.channel()
            channel.exchange_declare(
                exchange=self.exchange,
                exchange_type="topic",
                durable=True,
            )
            channel.basic_publish(
                exchange=self.exchange,
                routing_key=topic,
                body=body,
                properties=pika.BasicProperties(
                    content_type="application/json",
                    delivery_mode=1,  # transient, at-most-once
                ),
            )
        finally:
            connection.close()

    async def publish(self, topic: str, payload: Mapping[str, Any]) -> None:
        body = json.dumps(payload, separators=(",", ":")).encode("utf-8")
        try:
            await run_in_threadpool(self._publish_sync, topic, body)
        except AMQPError as exc:
            raise NotificationError(
                f"Failed to publish to exchange {self.exchange} ({topic}): {exc!r}"
            ) from exc
        logger.info("Published notification on exchange %s key %s", self.exchange, topic)


def build_publisher(config: NotificationConfig) -> NotificationPublisher:
    """Instantiate the publisher selected by ``NOTIFY_BACKEND``."""

    if config.backend == "rabbitmq":
        return RabbitMQPublisher(
            host=config.rabbitmq_host,
            port=config.rabbitmq_port,
            username=config.rabbitmq_username,
            password=config.rabbitmq_password.get_secret_value(),
            exchange=config.rabbitmq_exchange,
        )
    return IotPublisher(endpoint=config.iot_endpoint)


def get_publisher() -> NotificationPublisher:
    """Return the default publisher instance."""

    return _DEFAULT_PUBLISHER


_DEFAULT_PUBLISHER = build_publisher(settings.notification)


__all__ = [
    "IotPublisher",
    "NotificationError",
    "NotificationPublisher",
    "RabbitMQPublisher",
    "build_publisher",
    "get_publisher",
]
