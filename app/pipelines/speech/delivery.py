"""Delivery stage (Stage 05): presign the audio and notify the client.

Delivery is at-most-once. The notification is published once with no
acknowledgement; if presigning or publishing fails the failure is reported
and the run still counts as successful because the artifact is stored.

Exactly one path publishes for a run: the completion run itself (``inline``)
or the storage-event consumer once the audio object lands
(``storage_event``), selected by ``NOTIFY_DELIVERY_MODE``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Final

from app.config.settings import settings
from app.services import (
    NotificationError,
    NotificationPublisher,
    ObjectStorage,
    StorageError,
    get_publisher,
    get_storage,
)
from app.telemetry import record_notification, record_stage_failure

from . import naming
from .errors import DeliveryPublishFailed
from .synthesis import SYNTHESIS_KIND
from .types import ArtifactKey, DeliveryNotification

logger = logging.getLogger("app.services.speech_pipeline")

STORAGE_EVENT_MODE: Final[str] = "storage_event"


def _report(exc: DeliveryPublishFailed) -> None:
    logger.error("Delivery failed %s: %s", dict(exc.context), exc)
    record_stage_failure(exc.stage, exc.code)
    record_notification(published=False)


async def deliver(
    audio_key: ArtifactKey,
    topic: str | None = None,
    *,
    storage: ObjectStorage | None = None,
    publisher: NotificationPublisher | None = None,
    ttl_seconds: int | None = None,
) -> DeliveryNotification:
    """Publish a time-limited link to ``audio_key`` on ``topic``.

    Never raises for presign or publish failures; the returned notification
    has ``published=False`` instead.
    """

    storage = storage or get_storage()
    publisher = publisher or get_publisher()
    topic = topic or settings.notification.topic or ""
    ttl = ttl_seconds or settings.storage.presign_ttl_seconds

    if not topic:
        _report(DeliveryPublishFailed("Notification topic is not configured.", key=audio_key))
        return DeliveryNotification(access_reference=None, expiry=None, topic=topic, published=False)

    issued_at = datetime.now(timezone.utc)
    try:
        url = await storage.presign(audio_key, ttl)
    except StorageError as exc:
        _report(DeliveryPublishFailed(str(exc), key=audio_key, topic=topic))
        return DeliveryNotification(access_reference=None, expiry=None, topic=topic, published=False)

    expiry = issued_at + timedelta(seconds=ttl)
    notification = DeliveryNotification(
        access_reference=url,
        expiry=expiry,
        topic=topic,
        published=True,
    )
    try:
        await publisher.publish(topic, notification.payload())
    except NotificationError as exc:
        _report(DeliveryPublishFailed(str(exc), key=audio_key, topic=topic))
        return DeliveryNotification(access_reference=url, expiry=expiry, topic=topic, published=False)

    record_notification(published=True)
    logger.info("Delivered key=%s on topic=%s (expires %s)", audio_key, topic, expiry.isoformat())
    return notification


def storage_event_delivery(delivery_mode: str | None = None) -> bool:
    """True when the storage-event consumer, not the completion run, publishes."""

    return (delivery_mode or settings.notification.delivery_mode) == STORAGE_EVENT_MODE


def deferred_notification(topic: str | None = None) -> DeliveryNotification:
    """Placeholder for a run whose link is published by the storage-event consumer."""

    return DeliveryNotification(
        access_reference=None,
        expiry=None,
        topic=topic or settings.notification.topic or "",
        published=False,
        deferred=True,
    )


async def on_audio_stored(
    key: ArtifactKey,
    topic: str | None = None,
    *,
    storage: ObjectStorage | None = None,
    publisher: NotificationPublisher | None = None,
    delivery_mode: str | None = None,
) -> DeliveryNotification | None:
    """Deliver an object announced by a storage event if it is synthesized audio.

    Returns ``None`` without publishing unless delivery runs in storage-event
    mode; in inline mode the completion run has already published the link.
    """

    if not storage_event_delivery(delivery_mode):
        logger.debug("Inline delivery; ignoring storage event for %s", key)
        return None
    if naming.kind_of(key) != SYNTHESIS_KIND:
        logger.debug("Ignoring stored object %s", key)
        return None
    return await deliver(key, topic, storage=storage, publisher=publisher)


__all__ = [
    "STORAGE_EVENT_MODE",
    "deferred_notification",
    "deliver",
    "on_audio_stored",
    "storage_event_delivery",
]
