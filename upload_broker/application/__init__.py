"""
Application Layer

Slot broker, route registrar, broker processes and their supervisor.
"""

from .broker_process import BrokerProcess, ProcessState
from .broker_supervisor import BrokerSupervisor
from .dependency_container import DependencyContainer, DependencyNotFoundError
from .event_publisher import EventPublisher
from .hooks import DISCO_INFO_HOOK, HookRegistry
from .route_registrar import RouteRegistrar, plan_reconciliation
from .service_parameters import build_service_parameters, expand_hosts
from .slot_broker import SlotBroker

__all__ = [
    "BrokerProcess",
    "BrokerSupervisor",
    "DISCO_INFO_HOOK",
    "DependencyContainer",
    "DependencyNotFoundError",
    "EventPublisher",
    "HookRegistry",
    "ProcessState",
    "RouteRegistrar",
    "SlotBroker",
    "build_service_parameters",
    "expand_hosts",
    "plan_reconciliation",
]
