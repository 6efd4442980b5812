"""Access Policy Domain"""

from .policy import AccessDecision, IAccessPolicy

__all__ = ["AccessDecision", "IAccessPolicy"]
