"""
Broker Process

Long-lived actor owning the current service parameters of one logical
host. Exchanges and reloads are queued in a mailbox and handled one at a
time on the actor's own thread, so the snapshot is only ever read and
replaced from that thread and needs no locking.
"""

import logging
import queue
import threading
from concurrent.futures import Executor
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from upload_broker.application.event_publisher import EventPublisher, create_default_publisher
from upload_broker.application.route_registrar import RouteRegistrar
from upload_broker.application.slot_broker import SlotBroker
from upload_broker.domain.errors import RouteRegistrationError
from upload_broker.domain.events import RoutesReconciledEvent, ServiceParametersReloadedEvent
from upload_broker.domain.protocol import Iq, err_internal_server_error, make_error
from upload_broker.domain.routing import IRouter
from upload_broker.domain.upload_slots import ServiceParameters

logger = logging.getLogger(__name__)


class ProcessState(Enum):
    STARTING = "starting"
    ACTIVE = "active"
    STOPPED = "stopped"


@dataclass(frozen=True)
class ExchangeEvent:
    """Inbound exchange delivered by the router."""
    iq: Iq


@dataclass(frozen=True)
class ReloadEvent:
    """Replacement parameter snapshot."""
    params: ServiceParameters


class StopEvent:
    """Request to unregister all routes and terminate."""


class BrokerProcess:
    """
    Actor serving one logical host.

    Lifecycle: STARTING -> ACTIVE (after ``start``) -> STOPPED (after the
    stop event is handled). Unknown mailbox events are logged and ignored.
    """

    def __init__(
        self,
        logical_host: str,
        params: ServiceParameters,
        slot_broker: SlotBroker,
        router: IRouter,
        publisher: Optional[EventPublisher] = None,
        router_timeout: Optional[float] = None,
        executor: Optional[Executor] = None,
    ):
        """
        Initialize BrokerProcess.

        Args:
            logical_host: Host this process serves
            params: Initial parameter snapshot
            slot_broker: Exchange handler
            router: Router used for route registration and replies
            publisher: Receives domain events
            router_timeout: Seconds to wait on each router call
            executor: Pool running bounded router calls
        """
        self.logical_host = logical_host
        self.slot_broker = slot_broker
        self.router = router
        self.publisher = publisher or create_default_publisher()
        self.state = ProcessState.STARTING
        self._params: Optional[ServiceParameters] = params
        self._mailbox: "queue.Queue[Any]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._registrar = RouteRegistrar(
            router, logical_host, self.deliver, timeout=router_timeout, executor=executor
        )

    @property
    def params(self) -> Optional[ServiceParameters]:
        """Current snapshot, None once stopped."""
        return self._params

    @property
    def is_alive(self) -> bool:
        return self.state is ProcessState.ACTIVE

    # -------------------------------------------------------------------------
    # Public API (safe to call from any thread)
    # -------------------------------------------------------------------------

    def start(self, run_thread: bool = True) -> None:
        """
        Register the initial endpoint addresses and become ACTIVE.

        Args:
            run_thread: Start the mailbox thread; tests drive the mailbox
                with ``run_pending`` instead

        Raises:
            RouteRegistrationError: If the addresses cannot be registered
        """
        registered, _ = self._registrar.reconcile((), self._params.endpoint_addresses)
        self._publish_routes(registered, ())
        self.state = ProcessState.ACTIVE
        logger.info(
            f"Upload broker for {self.logical_host} active on "
            f"{', '.join(self._params.endpoint_addresses)}"
        )

        if run_thread:
            self._thread = threading.Thread(
                target=self._run,
                name=f"upload-broker-{self.logical_host}",
                daemon=True,
            )
            self._thread.start()

    def deliver(self, iq: Iq) -> None:
        """Router handler: queue an inbound exchange."""
        self._mailbox.put(ExchangeEvent(iq))

    def reload(self, params: ServiceParameters) -> None:
        """Queue a parameter snapshot replacement."""
        self._mailbox.put(ReloadEvent(params))

    def send(self, event: Any) -> None:
        """Queue an arbitrary event."""
        self._mailbox.put(event)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Queue a stop and wait for the mailbox thread to finish."""
        self._mailbox.put(StopEvent())
        if self._thread is not None:
            self._thread.join(timeout)
        else:
            self.run_pending()

    def run_pending(self) -> int:
        """
        Handle every queued event on the calling thread.

        Returns:
            Number of events handled
        """
        handled = 0
        while True:
            try:
                event = self._mailbox.get_nowait()
            except queue.Empty:
                return handled
            handled += 1
            if not self._dispatch(event):
                return handled

    # -------------------------------------------------------------------------
    # Mailbox
    # -------------------------------------------------------------------------

    def _run(self) -> None:
        while True:
            event = self._mailbox.get()
            if not self._dispatch(event):
                break

    def _dispatch(self, event: Any) -> bool:
        try:
            return self.handle_event(event)
        except Exception as e:
            # a single event must never take the process down
            logger.error(
                f"Upload broker for {self.logical_host} failed handling "
                f"{type(event).__name__}: {e}",
                exc_info=True,
            )
            return True

    def handle_event(self, event: Any) -> bool:
        """
        Handle one mailbox event to completion.

        Returns:
            False once the process has stopped, True otherwise
        """
        if self.state is ProcessState.STOPPED:
            logger.warning(f"Upload broker for {self.logical_host} is stopped, dropping {event!r}")
            return False

        if isinstance(event, ExchangeEvent):
            self._handle_exchange(event.iq)
        elif isinstance(event, ReloadEvent):
            self._handle_reload(event.params)
        elif isinstance(event, StopEvent):
            self._terminate()
            return False
        else:
            logger.warning(f"Unexpected event for upload broker {self.logical_host}: {event!r}")
        return True

    def _handle_exchange(self, iq: Iq) -> None:
        params = self._params
        try:
            reply = self.slot_broker.handle_exchange(iq, params)
        except Exception as e:
            logger.error(
                f"Upload broker for {self.logical_host} failed handling exchange "
                f"{iq.id} from {iq.from_jid}: {e}",
                exc_info=True,
            )
            reply = make_error(iq, err_internal_server_error())
        if reply is not None:
            self.router.route(reply)

    def _handle_reload(self, new_params: ServiceParameters) -> None:
        if new_params.logical_host != self.logical_host:
            logger.warning(
                f"Ignoring reload for {new_params.logical_host} sent to "
                f"upload broker {self.logical_host}"
            )
            return

        old_params = self._params
        try:
            registered, unregistered = self._registrar.reconcile(
                old_params.endpoint_addresses, new_params.endpoint_addresses
            )
        except RouteRegistrationError as e:
            logger.error(
                f"Reload of upload broker {self.logical_host} rejected, "
                f"keeping previous configuration: {e}"
            )
            return

        self._params = new_params
        self._publish_routes(registered, unregistered)
        self.publisher.publish(ServiceParametersReloadedEvent(
            aggregate_id=self.logical_host,
            occurred_at=datetime.now(timezone.utc),
            endpoint_addresses=new_params.endpoint_addresses,
            max_size=new_params.max_size,
        ))

    def _terminate(self) -> None:
        addresses = self._params.endpoint_addresses if self._params else ()
        try:
            _, unregistered = self._registrar.reconcile(addresses, ())
            self._publish_routes((), unregistered)
        except RouteRegistrationError as e:
            logger.error(f"Failed to unregister routes of {self.logical_host}: {e}")
        self._params = None
        self.state = ProcessState.STOPPED
        logger.info(f"Upload broker for {self.logical_host} stopped")

    def _publish_routes(self, registered, unregistered) -> None:
        if not registered and not unregistered:
            return
        self.publisher.publish(RoutesReconciledEvent(
            aggregate_id=self.logical_host,
            occurred_at=datetime.now(timezone.utc),
            registered=tuple(registered),
            unregistered=tuple(unregistered),
        ))
