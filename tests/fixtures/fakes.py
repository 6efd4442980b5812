"""
Fake collaborators for unit tests.

Each fake records how it was called so tests can assert on interactions
without patching.
"""

import threading
from typing import Dict, List, Optional, Tuple

from upload_broker.domain.access import AccessDecision, IAccessPolicy
from upload_broker.domain.errors import SigningError
from upload_broker.domain.protocol.translator import ITranslator
from upload_broker.domain.routing import IRouter
from upload_broker.domain.upload_slots import IUrlSigner


class FixedSigner(IUrlSigner):
    """Appends a marker instead of a real signature."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: List[Tuple] = []

    def sign(self, credentials, method, url, headers, timestamp, ttl_seconds):
        self.calls.append((credentials, method, url, dict(headers), timestamp, ttl_seconds))
        if self.fail:
            raise SigningError("signer exploded")
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}X-Amz-Signature=fake"


class StaticPolicy(IAccessPolicy):
    """Answers every rule with the same decision, or raises."""

    def __init__(self, decision: AccessDecision = AccessDecision.ALLOW,
                 error: Optional[Exception] = None, block: Optional[threading.Event] = None):
        self.decision = decision
        self.error = error
        self.block = block
        self.calls: List[Tuple] = []

    def match_rule(self, host, rule, requester):
        self.calls.append((host, rule, requester))
        if self.block is not None:
            self.block.wait(5)
        if self.error is not None:
            raise self.error
        return self.decision


class IdentityTranslator(ITranslator):
    def translate(self, lang, text):
        return text


class PrefixTranslator(ITranslator):
    """Marks translated text with the language."""

    def translate(self, lang, text):
        return f"[{lang}] {text}"


class RecordingRouter(IRouter):
    """Router double that records registrations and routed replies."""

    def __init__(self, fail_on: Tuple[str, ...] = ()):
        self.fail_on = set(fail_on)
        self.handlers: Dict[str, object] = {}
        self.registered: List[str] = []
        self.unregistered: List[str] = []
        self.routed: List = []

    def register_route(self, address, host, handler):
        if address in self.fail_on:
            raise RuntimeError(f"cannot register {address}")
        self.registered.append(address)
        self.handlers[address] = handler

    def unregister_route(self, address):
        self.unregistered.append(address)
        self.handlers.pop(address, None)

    def route(self, iq):
        self.routed.append(iq)
