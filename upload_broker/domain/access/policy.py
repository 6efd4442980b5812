"""
Access Policy Interface

The broker asks an external oracle whether a requester may obtain slots.
The oracle only ever answers allow or deny; which rule matched is never
surfaced to the requester.
"""

from abc import ABC, abstractmethod
from enum import Enum

from ..protocol.jid import Jid


class AccessDecision(Enum):
    ALLOW = "allow"
    DENY = "deny"


class IAccessPolicy(ABC):
    """Contract for access rule evaluation."""

    @abstractmethod
    def match_rule(self, host: str, rule: str, requester: Jid) -> AccessDecision:
        """
        Evaluate ``rule`` for ``requester`` on the logical ``host``.

        Unknown rules must evaluate to DENY.
        """
        pass  # pragma: no cover
