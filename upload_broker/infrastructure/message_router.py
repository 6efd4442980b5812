"""
Message Router

Stands in for the external transport router: delivers exchanges to the
handler registered for the recipient's domain and completes pending
exchanges when their reply comes back.
"""

import logging
from concurrent.futures import Future
from threading import Lock
from typing import Dict, Optional, Tuple

from upload_broker.domain.protocol import Iq, err_service_unavailable, make_error
from upload_broker.domain.routing import ExchangeHandler, IRouter, IRouteTable
from upload_broker.infrastructure.route_tables import InMemoryRouteTable

logger = logging.getLogger(__name__)


class MessageRouter(IRouter):
    """
    Router with local delivery.

    Handlers are kept in memory; registrations are mirrored into the route
    table. Exchanges submitted through ``submit`` are tracked by
    (id, sender) until the matching reply is routed back.
    """

    def __init__(self, route_table: Optional[IRouteTable] = None):
        self.route_table = route_table or InMemoryRouteTable()
        self._handlers: Dict[str, Tuple[str, ExchangeHandler]] = {}
        self._pending: Dict[Tuple[str, str], Future] = {}
        self._lock = Lock()

    def register_route(self, address: str, host: str, handler: ExchangeHandler) -> None:
        address = address.lower()
        self.route_table.register(address, host)
        with self._lock:
            self._handlers[address] = (host, handler)
        logger.debug(f"Route {address} -> {host} registered")

    def unregister_route(self, address: str) -> None:
        address = address.lower()
        with self._lock:
            self._handlers.pop(address, None)
        self.route_table.unregister(address)
        logger.debug(f"Route {address} unregistered")

    def is_routed(self, address: str) -> bool:
        with self._lock:
            return address.lower() in self._handlers

    def routes(self) -> Dict[str, str]:
        """All registrations known to the route table."""
        return self.route_table.all_routes()

    def submit(self, iq: Iq) -> Future:
        """
        Route ``iq`` and return a future completed with its reply.

        Raises:
            ValueError: If an exchange with the same id and sender is pending
        """
        future: Future = Future()
        key = (iq.id, str(iq.from_jid))
        with self._lock:
            if key in self._pending:
                raise ValueError(f"Exchange {iq.id} from {iq.from_jid} is already pending")
            self._pending[key] = future
        self.route(iq)
        return future

    def forget(self, iq: Iq) -> None:
        """Drop the pending entry of a submitted exchange (e.g. after a timeout)."""
        with self._lock:
            self._pending.pop((iq.id, str(iq.from_jid)), None)

    def route(self, iq: Iq) -> None:
        with self._lock:
            entry = self._handlers.get(iq.to_jid.lserver)
        if entry is not None:
            _, handler = entry
            handler(iq)
            return

        with self._lock:
            future = self._pending.pop((iq.id, str(iq.to_jid)), None)
        if future is not None and iq.type in ("result", "error"):
            future.set_result(iq)
            return
        if future is not None:
            # a request addressed back to a waiting client; keep waiting
            with self._lock:
                self._pending[(iq.id, str(iq.to_jid))] = future

        if iq.type in ("get", "set"):
            logger.info(f"No route to {iq.to_jid}, bouncing exchange {iq.id}")
            self.route(make_error(iq, err_service_unavailable()))
        else:
            logger.warning(f"Dropping {iq.type} exchange {iq.id} to {iq.to_jid}: no route")
