"""
Rule-Based Access Policy

Evaluates named access rules configured for the deployment. Built-in
rules are ``all``, ``none`` and ``local``; any other rule name must be
configured as a list of domains and bare JIDs.
"""

import logging
from typing import Iterable, Mapping, Optional

from upload_broker.domain.access import AccessDecision, IAccessPolicy
from upload_broker.domain.protocol import Jid

logger = logging.getLogger(__name__)

RULE_ALL = "all"
RULE_NONE = "none"
RULE_LOCAL = "local"


class RuleBasedAccessPolicy(IAccessPolicy):
    """
    Access policy backed by static rule definitions.

    Args:
        rules: Rule name -> domains or bare JIDs allowed by the rule
        local_hosts: Domains considered local; when empty, the logical host
            of the evaluating broker is the only local domain
    """

    def __init__(self, rules: Optional[Mapping[str, Iterable[str]]] = None,
                 local_hosts: Iterable[str] = ()):
        self.rules = {
            name: frozenset(spec.lower() for spec in specs)
            for name, specs in (rules or {}).items()
        }
        self.local_hosts = frozenset(h.lower() for h in local_hosts)

    def match_rule(self, host: str, rule: str, requester: Jid) -> AccessDecision:
        if rule == RULE_ALL:
            return AccessDecision.ALLOW
        if rule == RULE_NONE:
            return AccessDecision.DENY
        if rule == RULE_LOCAL:
            local = self.local_hosts or frozenset([host.lower()])
            return self._decision(requester.lserver in local)

        specs = self.rules.get(rule)
        if specs is None:
            logger.warning(f"Unknown access rule '{rule}' on {host}, denying")
            return AccessDecision.DENY
        return self._decision(
            requester.lserver in specs or requester.lowered_bare() in specs
        )

    @staticmethod
    def _decision(allowed: bool) -> AccessDecision:
        return AccessDecision.ALLOW if allowed else AccessDecision.DENY
