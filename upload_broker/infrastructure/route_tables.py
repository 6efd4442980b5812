"""
Route Tables

Persistence of address -> logical host registrations. The in-memory
table serves a single node; the Redis table is shared by every node
pointing at the same Redis database.
"""

from threading import Lock
from typing import Dict, Optional

from upload_broker.domain.routing import IRouteTable
from upload_broker.infrastructure.redis_repository import RedisRepository

ROUTES_KEY = "routes"


class InMemoryRouteTable(IRouteTable):
    """Process-local route table."""

    def __init__(self):
        self._routes: Dict[str, str] = {}
        self._lock = Lock()

    def register(self, address: str, host: str) -> None:
        with self._lock:
            self._routes[address] = host

    def unregister(self, address: str) -> None:
        with self._lock:
            self._routes.pop(address, None)

    def lookup(self, address: str) -> Optional[str]:
        with self._lock:
            return self._routes.get(address)

    def all_routes(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._routes)


class RedisRouteTable(IRouteTable):
    """
    Route table stored in a single Redis hash (address -> host).

    Redis errors propagate so that the route registrar can report a
    failed registration.
    """

    def __init__(self, repository: RedisRepository, key: str = ROUTES_KEY):
        self.repository = repository
        self.key = key

    def register(self, address: str, host: str) -> None:
        self.repository.set_field(self.key, address, host)

    def unregister(self, address: str) -> None:
        self.repository.delete_field(self.key, address)

    def lookup(self, address: str) -> Optional[str]:
        return self.repository.get_field(self.key, address)

    def all_routes(self) -> Dict[str, str]:
        return self.repository.get_all_fields(self.key)
