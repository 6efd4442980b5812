"""Infrastructure layer: routing, signing, access policy, Redis and logging."""

from .gettext_translator import GettextTranslator
from .message_router import MessageRouter
from .redis_repository import RedisConnectionManager, RedisRepository
from .route_tables import InMemoryRouteTable, RedisRouteTable
from .rule_access_policy import RuleBasedAccessPolicy
from .sigv4_url_signer import SigV4UrlSigner

__all__ = [
    "GettextTranslator",
    "InMemoryRouteTable",
    "MessageRouter",
    "RedisConnectionManager",
    "RedisRepository",
    "RedisRouteTable",
    "RuleBasedAccessPolicy",
    "SigV4UrlSigner",
]
