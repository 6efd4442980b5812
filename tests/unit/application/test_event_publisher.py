"""
Unit tests for EventPublisher.
"""

from datetime import datetime, timezone

from upload_broker.application.event_publisher import EventPublisher, create_default_publisher
from upload_broker.domain.events import DomainEvent, SlotDeniedEvent, SlotGrantedEvent


def granted():
    return SlotGrantedEvent(
        aggregate_id="example.com",
        occurred_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        requester="alice@example.com/phone",
        filename="a.txt",
        size=3,
        get_url="https://bucket/a.txt",
    )


class TestEventPublisher:
    """Test subscription and dispatch."""

    def test_handler_receives_subscribed_type(self):
        publisher = EventPublisher()
        received = []
        publisher.subscribe(SlotGrantedEvent, received.append)

        event = granted()
        publisher.publish(event)

        assert received == [event]

    def test_base_type_subscription_receives_subclasses(self):
        publisher = EventPublisher()
        received = []
        publisher.subscribe(DomainEvent, received.append)

        publisher.publish(granted())

        assert len(received) == 1

    def test_unrelated_type_is_not_delivered(self):
        publisher = EventPublisher()
        received = []
        publisher.subscribe(SlotDeniedEvent, received.append)

        publisher.publish(granted())

        assert received == []

    def test_failing_handler_does_not_block_others(self, caplog):
        publisher = EventPublisher()
        received = []

        def broken(event):
            raise RuntimeError("handler broke")

        publisher.subscribe(SlotGrantedEvent, broken)
        publisher.subscribe(SlotGrantedEvent, received.append)

        publisher.publish(granted())

        assert len(received) == 1
        assert "handler broke" in caplog.text

    def test_unsubscribe(self):
        publisher = EventPublisher()
        received = []
        publisher.subscribe(SlotGrantedEvent, received.append)
        publisher.unsubscribe(SlotGrantedEvent, received.append)

        publisher.publish(granted())

        assert received == []

    def test_event_to_dict(self):
        data = granted().to_dict()

        assert data["event_type"] == "SlotGrantedEvent"
        assert data["aggregate_id"] == "example.com"
        assert data["occurred_at"] == "2024-01-01T00:00:00+00:00"
        assert data["get_url"] == "https://bucket/a.txt"

    def test_default_publisher_logs_events(self, caplog):
        publisher = create_default_publisher()

        with caplog.at_level("INFO", logger="upload_broker.events"):
            publisher.publish(granted())

        assert "Slot granted" in caplog.text
