"""
JID Value Object

Addresses of requesters and endpoints (``user@server/resource``).
"""

from dataclasses import dataclass

from ..errors import InvalidJidError


@dataclass(frozen=True)
class Jid:
    """
    Immutable protocol address.

    Attributes:
        user: Local part (empty for bare domain addresses)
        server: Domain part
        resource: Resource part (empty when absent)
    """

    user: str
    server: str
    resource: str = ""

    @classmethod
    def parse(cls, value: str) -> "Jid":
        """
        Parse a JID string.

        Raises:
            InvalidJidError: If the string is not a well-formed JID
        """
        if not isinstance(value, str) or not value.strip():
            raise InvalidJidError(f"Malformed JID: {value!r}")

        bare, sep, resource = value.strip().partition("/")
        if sep and not resource:
            raise InvalidJidError(f"Empty resource in JID: {value!r}")

        user, at, server = bare.partition("@")
        if not at:
            user, server = "", bare
        elif not user:
            raise InvalidJidError(f"Empty user in JID: {value!r}")

        if not server or "@" in server:
            raise InvalidJidError(f"Malformed server in JID: {value!r}")

        return cls(user=user, server=server, resource=resource)

    @property
    def luser(self) -> str:
        return self.user.lower()

    @property
    def lserver(self) -> str:
        return self.server.lower()

    def bare(self) -> "Jid":
        """Return this address without its resource."""
        return Jid(user=self.user, server=self.server)

    def lowered_bare(self) -> str:
        """Canonical bare form used for identity comparisons and hashing."""
        if self.user:
            return f"{self.luser}@{self.lserver}"
        return self.lserver

    def __str__(self) -> str:
        encoded = f"{self.user}@{self.server}" if self.user else self.server
        if self.resource:
            encoded = f"{encoded}/{self.resource}"
        return encoded
