"""
Route Registrar

Keeps the router's registrations in line with the endpoint addresses a
broker currently answers on.
"""

import logging
from concurrent.futures import Executor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Iterable, Optional, Tuple

from upload_broker.application.bounded_calls import call_with_timeout
from upload_broker.domain.errors import RouteRegistrationError
from upload_broker.domain.routing import ExchangeHandler, IRouter

logger = logging.getLogger(__name__)


def plan_reconciliation(old_addresses: Iterable[str],
                        new_addresses: Iterable[str]) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    """
    Compute which addresses to register and which to unregister.

    Addresses present in both sets appear in neither result, so an
    unchanged address is never cycled through unregister/register.

    Returns:
        Tuple of (to_register, to_unregister), each in input order
    """
    old = list(dict.fromkeys(old_addresses))
    new = list(dict.fromkeys(new_addresses))
    old_set, new_set = set(old), set(new)
    to_register = tuple(a for a in new if a not in old_set)
    to_unregister = tuple(a for a in old if a not in new_set)
    return to_register, to_unregister


class RouteRegistrar:
    """
    Reconciles endpoint addresses of one logical host against the router.

    New addresses are registered before stale ones are removed, so a host
    whose address set changes is never left without a reachable address.
    """

    def __init__(
        self,
        router: IRouter,
        logical_host: str,
        handler: ExchangeHandler,
        timeout: Optional[float] = None,
        executor: Optional[Executor] = None,
    ):
        """
        Initialize RouteRegistrar.

        Args:
            router: Router that owns the route table
            logical_host: Host the addresses belong to
            handler: Callable receiving exchanges for the addresses
            timeout: Seconds to wait on each router call (None waits forever)
            executor: Pool running bounded router calls
        """
        self.router = router
        self.logical_host = logical_host
        self.handler = handler
        self.timeout = timeout
        self.executor = executor

    def _call(self, action: str, address: str, function, *args) -> None:
        try:
            call_with_timeout(self.executor, self.timeout, function, *args)
        except FuturesTimeoutError as e:
            raise RouteRegistrationError(
                f"Timed out trying to {action} route {address}", e
            ) from e
        except Exception as e:
            raise RouteRegistrationError(
                f"Failed to {action} route {address}: {e}", e
            ) from e

    def reconcile(self, old_addresses: Iterable[str],
                  new_addresses: Iterable[str]) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
        """
        Register added addresses, then unregister removed ones.

        Returns:
            Tuple of (registered, unregistered) addresses

        Raises:
            RouteRegistrationError: If registering an address fails or times
                out; addresses registered earlier in the call are rolled back.
                Failed unregistrations are logged and left out of the result.
        """
        to_register, to_unregister = plan_reconciliation(old_addresses, new_addresses)

        registered = []
        for address in to_register:
            try:
                self._call("register", address, self.router.register_route,
                           address, self.logical_host, self.handler)
            except RouteRegistrationError:
                self._rollback(registered)
                raise
            registered.append(address)
            logger.debug(f"Registered route {address} for {self.logical_host}")

        unregistered = []
        for address in to_unregister:
            try:
                self._call("unregister", address, self.router.unregister_route, address)
            except RouteRegistrationError as e:
                # the stale route still points at this host's handler
                logger.error(str(e))
                continue
            unregistered.append(address)
            logger.debug(f"Unregistered route {address} for {self.logical_host}")

        return tuple(registered), tuple(unregistered)

    def _rollback(self, registered) -> None:
        for address in reversed(registered):
            try:
                self._call("unregister", address, self.router.unregister_route, address)
            except RouteRegistrationError as e:
                logger.error(f"Rollback failed: {e}")
