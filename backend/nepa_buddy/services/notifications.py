"""Push notification dispatch for zone status changes.

The core only guarantees at-least-once emission. The dispatcher drops
repeats of the same (zone, new_status), renders copy and hands the message
to a deliverer. Delivery to devices is an external concern; the optional
webhook deliverer relays messages to whatever push service is configured.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

import httpx

from nepa_buddy.config import settings
from nepa_buddy.exceptions import DeliveryFailure
from nepa_buddy.schemas.status import StatusChangeEvent
from nepa_buddy.services import status_copy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PushMessage:
    zone_id: str
    zone_name: str
    status: str
    confidence: str
    title: str
    body: str
    timestamp: datetime


def log_delivery(message: PushMessage) -> None:
    logger.info("[PUSH] %s: %s | %s", message.zone_name, message.title, message.body)


class WebhookDeliverer:
    """POST each message as JSON to a relay endpoint."""

    def __init__(self, url: str, timeout: float = 10.0, client: httpx.Client | None = None):
        self.url = url
        self._client = client or httpx.Client(timeout=timeout)

    def __call__(self, message: PushMessage) -> None:
        payload = {
            "zone_id": message.zone_id,
            "zone_name": message.zone_name,
            "status": message.status,
            "confidence": message.confidence,
            "title": message.title,
            "body": message.body,
            "timestamp": message.timestamp.isoformat(),
        }
        try:
            resp = self._client.post(self.url, json=payload)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise DeliveryFailure(f"Webhook delivery to {self.url} failed: {e}") from e


class NotificationDispatcher:
    def __init__(
        self,
        deliver: Callable[[PushMessage], None] = log_delivery,
        zone_names: Callable[[str], str | None] | None = None,
    ):
        self.deliver = deliver
        self.zone_names = zone_names
        self._last_sent: dict[str, str] = {}
        self._lock = threading.Lock()

    def __call__(self, event: StatusChangeEvent) -> None:
        with self._lock:
            if self._last_sent.get(event.zone_id) == event.new_status:
                logger.debug("Skipping repeated %s notification for zone %s",
                             event.new_status, event.zone_id)
                return
            self._last_sent[event.zone_id] = event.new_status

        zone_name = (self.zone_names(event.zone_id) if self.zone_names else None) or "your area"
        title, body = status_copy.render(event.new_status, zone_name, event.confidence)
        message = PushMessage(
            zone_id=event.zone_id,
            zone_name=zone_name,
            status=event.new_status,
            confidence=event.confidence,
            title=title,
            body=body,
            timestamp=event.timestamp,
        )
        try:
            self.deliver(message)
        except DeliveryFailure as e:
            logger.warning("Notification for zone %s not delivered: %s", event.zone_id, e)


def build_deliverer() -> Callable[[PushMessage], None]:
    if settings.notification_webhook_url:
        return WebhookDeliverer(settings.notification_webhook_url, timeout=settings.notification_timeout)
    return log_delivery
