"""Tests for the status event bus, notification dispatch and webhook delivery."""

import asyncio
from datetime import datetime
from unittest.mock import MagicMock

import httpx
import pytest

from nepa_buddy.exceptions import DeliveryFailure
from nepa_buddy.schemas.status import StatusChangeEvent
from nepa_buddy.services.event_bus import StatusEventBus
from nepa_buddy.services.notifications import NotificationDispatcher, PushMessage, WebhookDeliverer


def _event(zone_id="z1", old="unknown", new="on", **kwargs) -> StatusChangeEvent:
    defaults = {
        "zone_id": zone_id,
        "old_status": old,
        "new_status": new,
        "buddy_count": 12,
        "confidence": "high",
        "timestamp": datetime(2024, 6, 3, 8, 0),
    }
    defaults.update(kwargs)
    return StatusChangeEvent(**defaults)


# --- Event bus ---

def test_bus_delivers_to_all_subscribers():
    bus = StatusEventBus()
    a, b = [], []
    bus.subscribe(a.append)
    bus.subscribe(b.append)
    bus.publish(_event())
    assert len(a) == 1 and len(b) == 1


def test_bus_failing_subscriber_does_not_block_others():
    bus = StatusEventBus()
    received = []

    def broken(event):
        raise RuntimeError("boom")

    bus.subscribe(broken)
    bus.subscribe(received.append)
    bus.publish(_event())
    assert len(received) == 1


def test_bus_unsubscribe():
    bus = StatusEventBus()
    received = []
    unsubscribe = bus.subscribe(received.append)
    assert bus.subscriber_count == 1
    unsubscribe()
    unsubscribe()
    assert bus.subscriber_count == 0
    bus.publish(_event())
    assert received == []


@pytest.mark.asyncio
async def test_bus_queue_subscription():
    bus = StatusEventBus()
    queue, unsubscribe = bus.queue_subscription(asyncio.get_running_loop())
    bus.publish(_event(new="off"))
    event = await asyncio.wait_for(queue.get(), timeout=1)
    assert event.new_status == "off"
    unsubscribe()
    assert bus.subscriber_count == 0


# --- Dispatcher ---

def test_dispatcher_renders_copy():
    sent: list[PushMessage] = []
    dispatcher = NotificationDispatcher(deliver=sent.append, zone_names=lambda zone_id: "Yaba")
    dispatcher(_event(new="on"))

    assert len(sent) == 1
    assert sent[0].zone_name == "Yaba"
    assert sent[0].title == "EHEN!!! UP NEPA!!! 🎉⚡️"
    assert "Yaba" in sent[0].body
    assert "High confidence" in sent[0].body


def test_dispatcher_dedupes_repeated_status():
    sent = []
    dispatcher = NotificationDispatcher(deliver=sent.append)
    dispatcher(_event(new="off"))
    dispatcher(_event(old="recovering", new="off"))
    dispatcher(_event(zone_id="z2", new="off"))
    dispatcher(_event(old="off", new="on"))
    assert [(m.zone_id, m.status) for m in sent] == [("z1", "off"), ("z2", "off"), ("z1", "on")]


def test_dispatcher_unknown_zone_name():
    sent = []
    NotificationDispatcher(deliver=sent.append, zone_names=lambda zone_id: None)(_event())
    assert sent[0].zone_name == "your area"


def test_dispatcher_survives_delivery_failure():
    deliver = MagicMock(side_effect=DeliveryFailure("relay down"))
    dispatcher = NotificationDispatcher(deliver=deliver)
    dispatcher(_event())
    deliver.assert_called_once()


def test_dispatcher_wired_to_tracker(tracker, yaba):
    sent = []
    tracker.event_bus.subscribe(NotificationDispatcher(sent.append, tracker.zone_display_name))
    tracker.record_report(yaba.id, "phone-1", False)
    assert len(sent) == 1
    assert sent[0].zone_name == "Yaba"
    assert sent[0].status == "off"


# --- Webhook ---

def _message() -> PushMessage:
    return PushMessage(
        zone_id="z1", zone_name="Yaba", status="on", confidence="high",
        title="t", body="b", timestamp=datetime(2024, 6, 3, 8, 0),
    )


def test_webhook_posts_json():
    client = MagicMock()
    deliver = WebhookDeliverer("http://relay.test/push", client=client)
    deliver(_message())

    client.post.assert_called_once()
    args, kwargs = client.post.call_args
    assert args[0] == "http://relay.test/push"
    assert kwargs["json"]["zone_name"] == "Yaba"
    assert kwargs["json"]["timestamp"] == "2024-06-03T08:00:00"


def test_webhook_failure_raises_delivery_failure():
    client = MagicMock()
    client.post.side_effect = httpx.ConnectError("connection refused")
    deliver = WebhookDeliverer("http://relay.test/push", client=client)
    with pytest.raises(DeliveryFailure):
        deliver(_message())
