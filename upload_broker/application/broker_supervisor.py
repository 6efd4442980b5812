"""
Broker Supervisor

Module-level lifecycle: one broker process per logical host that enables
the upload service, started, reloaded and stopped by host name.
"""

import logging
from concurrent.futures import Executor
from threading import Lock
from typing import Dict, Optional, Tuple

from upload_broker.application.broker_process import BrokerProcess
from upload_broker.application.event_publisher import EventPublisher
from upload_broker.application.service_parameters import build_service_parameters
from upload_broker.application.slot_broker import SlotBroker
from upload_broker.config.broker_config import UploadModuleOptions
from upload_broker.domain.errors import HostAlreadyStartedError, HostNotFoundError
from upload_broker.domain.routing import IRouter

logger = logging.getLogger(__name__)


class BrokerSupervisor:
    """
    Starts, reloads and stops broker processes.

    Processes share the router and the (stateless) slot broker; each owns
    its own parameter snapshot and mailbox.
    """

    def __init__(
        self,
        router: IRouter,
        slot_broker: SlotBroker,
        publisher: Optional[EventPublisher] = None,
        router_timeout: Optional[float] = None,
        executor: Optional[Executor] = None,
        run_threads: bool = True,
    ):
        self.router = router
        self.slot_broker = slot_broker
        self.publisher = publisher
        self.router_timeout = router_timeout
        self.executor = executor
        self.run_threads = run_threads
        self._processes: Dict[str, BrokerProcess] = {}
        self._lock = Lock()

    def start(self, logical_host: str, options: UploadModuleOptions) -> BrokerProcess:
        """
        Start the broker for ``logical_host``.

        Raises:
            HostAlreadyStartedError: If the host already has a broker
            RouteRegistrationError: If the endpoint addresses cannot be registered
        """
        with self._lock:
            if logical_host in self._processes:
                raise HostAlreadyStartedError(logical_host)

            params = build_service_parameters(logical_host, options)
            process = BrokerProcess(
                logical_host,
                params,
                self.slot_broker,
                self.router,
                publisher=self.publisher,
                router_timeout=self.router_timeout,
                executor=self.executor,
            )
            process.start(run_thread=self.run_threads)
            self._processes[logical_host] = process
            return process

    def reload(self, logical_host: str, options: UploadModuleOptions) -> None:
        """
        Queue new options for a running broker.

        The snapshot is built here so that invalid options fail in the
        caller, never inside the broker process.

        Raises:
            HostNotFoundError: If the host has no broker
        """
        process = self.get(logical_host)
        process.reload(build_service_parameters(logical_host, options))
        logger.info(f"Reload queued for upload broker {logical_host}")

    def stop(self, logical_host: str, timeout: Optional[float] = None) -> None:
        """
        Stop the broker for ``logical_host``.

        Raises:
            HostNotFoundError: If the host has no broker
        """
        with self._lock:
            process = self._processes.pop(logical_host, None)
        if process is None:
            raise HostNotFoundError(logical_host)
        process.stop(timeout)

    def stop_all(self, timeout: Optional[float] = None) -> None:
        for logical_host in list(self._processes):
            self.stop(logical_host, timeout)

    def get(self, logical_host: str) -> BrokerProcess:
        with self._lock:
            process = self._processes.get(logical_host)
        if process is None:
            raise HostNotFoundError(logical_host)
        return process

    def hosts(self) -> Dict[str, Tuple[str, ...]]:
        """Running hosts mapped to the addresses of their current snapshot."""
        with self._lock:
            processes = dict(self._processes)
        return {
            host: process.params.endpoint_addresses if process.params else ()
            for host, process in processes.items()
        }
