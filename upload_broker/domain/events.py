"""
Domain Events

Immutable records of significant things that happened in a broker.
Events decouple side effects (logging, metrics) from the exchange handling
logic.
"""

from abc import ABC
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class DomainEvent(ABC):
    """
    Base class for all domain events.

    Attributes:
        aggregate_id: Logical host of the broker that generated the event
        occurred_at: Timestamp when the event occurred
    """
    aggregate_id: str
    occurred_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert event to dictionary for serialization.

        Returns:
            Dictionary representation of the event
        """
        return {
            "event_type": self.__class__.__name__,
            "aggregate_id": self.aggregate_id,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True)
class SlotGrantedEvent(DomainEvent):
    """
    Event emitted when a slot is issued.

    Attributes:
        requester: Requester JID
        filename: Declared file name
        size: Declared size in bytes
        get_url: Download URL of the slot (the PUT URL is never recorded)
    """
    requester: str
    filename: str
    size: int
    get_url: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update({
            "requester": self.requester,
            "filename": self.filename,
            "size": self.size,
            "get_url": self.get_url,
        })
        return base_dict


@dataclass(frozen=True)
class SlotDeniedEvent(DomainEvent):
    """Event emitted when the access policy denies a slot request."""
    requester: str
    filename: str
    size: int

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "requester": self.requester,
            "filename": self.filename,
            "size": self.size,
        })
        return base_dict


@dataclass(frozen=True)
class OversizeRequestRejectedEvent(DomainEvent):
    """Event emitted when a declared size exceeds the upload ceiling."""
    requester: str
    filename: str
    size: int
    max_size: int

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "requester": self.requester,
            "filename": self.filename,
            "size": self.size,
            "max_size": self.max_size,
        })
        return base_dict


@dataclass(frozen=True)
class PolicyUnavailableEvent(DomainEvent):
    """Event emitted when the access policy oracle fails or times out."""
    requester: str
    rule: str
    error_message: str

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "requester": self.requester,
            "rule": self.rule,
            "error_message": self.error_message,
        })
        return base_dict


@dataclass(frozen=True)
class MalformedExchangeEvent(DomainEvent):
    """Event emitted when an inbound exchange cannot be decoded."""
    sender: str
    error_message: str

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "sender": self.sender,
            "error_message": self.error_message,
        })
        return base_dict


@dataclass(frozen=True)
class RoutesReconciledEvent(DomainEvent):
    """
    Event emitted after endpoint addresses were reconciled with the router.

    Attributes:
        registered: Addresses newly registered
        unregistered: Addresses removed
    """
    registered: Tuple[str, ...]
    unregistered: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "registered": list(self.registered),
            "unregistered": list(self.unregistered),
        })
        return base_dict


@dataclass(frozen=True)
class ServiceParametersReloadedEvent(DomainEvent):
    """Event emitted when a broker swaps in a new parameter snapshot."""
    endpoint_addresses: Tuple[str, ...]
    max_size: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "endpoint_addresses": list(self.endpoint_addresses),
            "max_size": self.max_size,
        })
        return base_dict
