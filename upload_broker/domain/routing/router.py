"""
Routing Interfaces

The message router delivers exchanges to whichever handler registered the
recipient address, and carries replies back to the transport. Route
registrations themselves are persisted in a route table so that every node
sharing the table sees which logical host owns an address.
"""

from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional

from ..protocol.stanzas import Iq

ExchangeHandler = Callable[[Iq], None]


class IRouteTable(ABC):
    """Persistence contract for address -> logical host registrations."""

    @abstractmethod
    def register(self, address: str, host: str) -> None:
        pass  # pragma: no cover

    @abstractmethod
    def unregister(self, address: str) -> None:
        pass  # pragma: no cover

    @abstractmethod
    def lookup(self, address: str) -> Optional[str]:
        """Return the owning host of ``address``, or None if unregistered."""
        pass  # pragma: no cover

    @abstractmethod
    def all_routes(self) -> Dict[str, str]:
        pass  # pragma: no cover


class IRouter(ABC):
    """Contract of the external message router as seen by the broker."""

    @abstractmethod
    def register_route(self, address: str, host: str, handler: ExchangeHandler) -> None:
        """
        Register ``address`` for ``host``, delivering exchanges to ``handler``.

        Registering an already registered address replaces its handler.
        """
        pass  # pragma: no cover

    @abstractmethod
    def unregister_route(self, address: str) -> None:
        """Remove ``address``; unknown addresses are ignored."""
        pass  # pragma: no cover

    @abstractmethod
    def route(self, iq: Iq) -> None:
        """Deliver ``iq`` to its recipient."""
        pass  # pragma: no cover
