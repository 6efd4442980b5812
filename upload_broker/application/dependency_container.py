"""
Dependency Injection Container

Holds the broker's collaborators (router, signer, policy oracle,
translator, hooks, publisher, supervisor) and resolves them by type.
Factories are lazy: a collaborator is built the first time something
resolves it, and the same instance is returned from then on.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class DependencyNotFoundError(Exception):
    """Raised when attempting to resolve an unregistered dependency."""
    pass


class CircularDependencyError(Exception):
    """Raised when factories resolve each other in a loop."""

    def __init__(self, chain: List[Type]):
        self.chain = chain
        names = " -> ".join(t.__name__ for t in chain)
        super().__init__(f"Circular dependency: {names}")


class DependencyContainer:
    """
    Type-keyed registry of shared collaborators.

    Every registration resolves to a single instance per container.
    Thread-safe; factories run under a re-entrant lock so they may resolve
    their own dependencies.
    """

    def __init__(self):
        self._instances: Dict[Type, Any] = {}
        self._factories: Dict[Type, Callable[[], Any]] = {}
        self._building: List[Type] = []
        self._lock = threading.RLock()

    def register_singleton(self, interface: Type[T], implementation: T) -> None:
        """
        Register an already built instance.

        Example:
            container.register_singleton(IUrlSigner, SigV4UrlSigner())
        """
        with self._lock:
            self._factories.pop(interface, None)
            self._instances[interface] = implementation
        logger.debug(f"Registered singleton: {interface.__name__}")

    def register_factory(self, interface: Type[T], factory: Callable[[], T]) -> None:
        """Register a factory called once, on first resolution."""
        with self._lock:
            self._instances.pop(interface, None)
            self._factories[interface] = factory
        logger.debug(f"Registered factory: {interface.__name__}")

    def resolve(self, interface: Type[T]) -> T:
        """
        Resolve a registered collaborator, building it if needed.

        Raises:
            DependencyNotFoundError: If the interface is not registered
            CircularDependencyError: If building it requires itself
        """
        with self._lock:
            if interface in self._instances:
                return self._instances[interface]

            factory = self._factories.get(interface)
            if factory is None:
                raise DependencyNotFoundError(
                    f"No registration found for type: {interface.__name__}"
                )
            if interface in self._building:
                raise CircularDependencyError(self._building + [interface])

            self._building.append(interface)
            try:
                instance = factory()
            finally:
                self._building.pop()

            self._instances[interface] = instance
            del self._factories[interface]
            logger.debug(f"Built {interface.__name__}")
            return instance

    def is_registered(self, interface: Type) -> bool:
        with self._lock:
            return interface in self._instances or interface in self._factories
