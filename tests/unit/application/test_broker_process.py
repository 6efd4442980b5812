"""
Unit tests for the BrokerProcess actor.

Most tests drive the mailbox on the test thread with ``run_pending`` so
event ordering is deterministic.
"""

import logging
import time
from dataclasses import replace

import pytest

from tests.fixtures.builders import (
    disco_info_payload,
    make_iq,
    make_params,
    slot_request_payload,
)
from tests.fixtures.fakes import RecordingRouter
from upload_broker.application.broker_process import BrokerProcess, ProcessState
from upload_broker.domain.errors import RouteRegistrationError
from upload_broker.domain.events import RoutesReconciledEvent, ServiceParametersReloadedEvent
from upload_broker.domain.protocol import NS_DISCO_INFO, NS_HTTP_UPLOAD_0, UploadSlot
from upload_broker.infrastructure.message_router import MessageRouter


@pytest.fixture
def process(slot_broker, router, publisher, params, published):
    # subscribed before start so the initial route registration is observed
    process = BrokerProcess("example.com", params, slot_broker, router, publisher=publisher)
    process.start(run_thread=False)
    return process


class TestLifecycle:
    """Test start and stop."""

    def test_start_registers_addresses(self, process, router, published):
        assert process.state is ProcessState.ACTIVE
        assert process.is_alive
        assert router.registered == ["upload.example.com"]
        assert isinstance(published[0], RoutesReconciledEvent)
        assert published[0].registered == ("upload.example.com",)

    def test_start_failure_is_fatal(self, slot_broker, publisher, params):
        router = RecordingRouter(fail_on=("upload.example.com",))
        process = BrokerProcess("example.com", params, slot_broker, router, publisher=publisher)

        with pytest.raises(RouteRegistrationError):
            process.start(run_thread=False)

        assert process.state is ProcessState.STARTING

    def test_stop_unregisters_everything(self, process, router):
        process.stop()

        assert router.unregistered == ["upload.example.com"]
        assert process.state is ProcessState.STOPPED
        assert process.params is None

    def test_events_after_stop_are_dropped(self, process, router):
        process.stop()

        assert process.handle_event(object()) is False

    def test_threaded_mailbox(self, slot_broker, router, publisher, params):
        process = BrokerProcess("example.com", params, slot_broker, router, publisher=publisher)
        process.start(run_thread=True)

        process.deliver(make_iq())
        deadline = time.monotonic() + 5
        while not router.routed and time.monotonic() < deadline:
            time.sleep(0.01)
        process.stop(timeout=5)

        assert router.routed[0].type == "result"
        assert process.state is ProcessState.STOPPED
        assert not process._thread.is_alive()


class TestExchanges:
    """Test exchange handling through the mailbox."""

    def test_reply_is_routed(self, process, router):
        process.deliver(make_iq())

        assert process.run_pending() == 1
        (reply,) = router.routed
        assert reply.type == "result"
        assert isinstance(reply.sub_els[0], UploadSlot)

    def test_malformed_exchange_does_not_stop_the_process(self, process, router):
        process.deliver(make_iq([slot_request_payload(filename="")], iq_id="bad"))
        process.deliver(make_iq(iq_id="good"))

        process.run_pending()

        assert [(r.id, r.type) for r in router.routed] == [("bad", "error"), ("good", "result")]
        assert router.routed[0].sub_els[0].condition == "bad-request"
        assert process.is_alive

    def test_unexpected_event_is_logged_and_ignored(self, process, router, params, caplog):
        with caplog.at_level(logging.WARNING):
            process.send("surprise")
            process.deliver(make_iq())
            process.run_pending()

        assert "Unexpected event" in caplog.text
        assert process.params == params
        assert router.routed[0].type == "result"

    def test_handler_crash_is_contained(self, process, router, slot_broker, caplog):
        original = slot_broker.handle_exchange
        slot_broker.handle_exchange = lambda iq, params: 1 / 0

        process.deliver(make_iq())
        process.run_pending()
        slot_broker.handle_exchange = original
        process.deliver(make_iq())
        process.run_pending()

        assert "division by zero" in caplog.text
        assert [r.type for r in router.routed] == ["error", "result"]
        assert router.routed[0].sub_els[0].condition == "internal-server-error"
        assert process.is_alive

    @pytest.mark.parametrize("iq_type", ["result", "error"])
    def test_replies_are_not_answered(self, process, router, iq_type):
        process.deliver(make_iq([], iq_type=iq_type))

        assert process.run_pending() == 1
        assert router.routed == []

    @pytest.mark.parametrize("payload", [
        {"element": "query", "xmlns": NS_DISCO_INFO, "identities": 5},
        {"element": "request", "xmlns": NS_HTTP_UPLOAD_0, "filename": "a", "size": "\u00b2"},
    ])
    def test_every_malformed_request_gets_a_reply(self, process, router, payload):
        process.deliver(make_iq([payload]))
        process.run_pending()

        (reply,) = router.routed
        assert reply.sub_els[0].condition == "bad-request"


class TestReload:
    """Test snapshot replacement."""

    def test_reload_swaps_snapshot_and_routes(self, process, router, params, published):
        new_params = replace(params, endpoint_addresses=("files.example.com",), max_size=5)

        process.reload(new_params)
        process.run_pending()

        assert process.params == new_params
        assert router.registered == ["upload.example.com", "files.example.com"]
        assert router.unregistered == ["upload.example.com"]
        assert isinstance(published[-1], ServiceParametersReloadedEvent)

    def test_reload_with_same_addresses_touches_no_route(self, process, router, params):
        process.reload(replace(params, max_size=5))
        process.run_pending()

        assert router.registered == ["upload.example.com"]
        assert router.unregistered == []

    def test_exchanges_see_one_snapshot_each(self, process, router, params):
        """Exchanges queued before a reload use the old limit, later ones the new."""
        request = [slot_request_payload(size=1500)]
        process.deliver(make_iq(request, iq_id="before"))
        process.reload(replace(params, max_size=2000))
        process.deliver(make_iq(request, iq_id="after"))

        process.run_pending()

        assert [(r.id, r.type) for r in router.routed] == [
            ("before", "error"),
            ("after", "result"),
        ]

    def test_failed_reload_keeps_previous_snapshot(self, process, params, caplog):
        process.router.fail_on.add("files.example.com")

        process.reload(replace(params, endpoint_addresses=("files.example.com",)))
        process.run_pending()

        assert process.params == params
        assert process.router.unregistered == []
        assert "rejected" in caplog.text

    def test_reload_for_another_host_is_ignored(self, process, params):
        process.reload(make_params(logical_host="other.example"))
        process.run_pending()

        assert process.params == params


class TestRoutingThroughMessageRouter:
    """Reload moving the service from one address to another."""

    def test_old_address_becomes_undeliverable(self, slot_broker, publisher, params):
        router = MessageRouter()
        process = BrokerProcess("example.com", params, slot_broker, router, publisher=publisher)
        process.start(run_thread=False)

        process.reload(replace(params, endpoint_addresses=("files.example.com",)))
        process.run_pending()

        old = router.submit(make_iq([disco_info_payload()], iq_id="1", to="upload.example.com"))
        new = router.submit(make_iq(iq_id="2", to="files.example.com"))
        process.run_pending()

        assert old.result(timeout=1).sub_els[0].condition == "service-unavailable"
        assert new.result(timeout=1).type == "result"
        assert router.routes() == {"files.example.com": "example.com"}

    def test_self_addressed_reply_does_not_loop(self, slot_broker, publisher, params):
        router = MessageRouter()
        process = BrokerProcess("example.com", params, slot_broker, router, publisher=publisher)
        process.start(run_thread=False)

        router.route(make_iq([], iq_type="result", sender="upload.example.com",
                             to="upload.example.com"))

        assert process.run_pending() == 1
        assert process.run_pending() == 0
        assert process.is_alive
