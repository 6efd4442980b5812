"""
Broker Configuration

Module options for the upload service (validated, with defaults) and the
environment-based settings of the whole broker application.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urlsplit

from upload_broker.domain.errors import ConfigurationError

DEFAULT_MAX_SIZE = 1073741824
DEFAULT_PUT_TTL = 600
DEFAULT_SERVICE_NAME = "S3 Upload"
DEFAULT_HOSTS = ("upload.@HOST@",)
DEFAULT_ACCESS = "local"

UNBOUNDED_SENTINELS = ("infinity", "unlimited")

_TRUE_STRINGS = ("true", "1", "yes", "on")
_FALSE_STRINGS = ("false", "0", "no", "off")


def _as_str(name: str, value: Any, required: bool = True) -> Optional[str]:
    if value is None:
        if required:
            raise ConfigurationError(f"Option '{name}' is required", option=name)
        return None
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"Option '{name}' must be a non-empty string", option=name)
    return value.strip()


def _as_url(name: str, value: Any, required: bool = True) -> Optional[str]:
    url = _as_str(name, value, required)
    if url is None:
        return None
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ConfigurationError(
            f"Option '{name}' must be an http or https URL, got {url!r}", option=name
        )
    return url


def _as_pos_int(name: str, value: Any, allow_unbounded: bool = False) -> Optional[int]:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if allow_unbounded and lowered in UNBOUNDED_SENTINELS:
            return None
        if lowered.isascii() and lowered.isdigit():
            value = int(lowered)
    if allow_unbounded and value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        expected = "a positive integer or 'infinity'" if allow_unbounded else "a positive integer"
        raise ConfigurationError(f"Option '{name}' must be {expected}, got {value!r}",
                                 option=name)
    return value


def _as_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ConfigurationError(f"Option '{name}' must be a boolean, got {value!r}", option=name)


def _as_hosts(name: str, value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        value = [part for part in value.split(",")]
    if not isinstance(value, (list, tuple)) or not value:
        raise ConfigurationError(f"Option '{name}' must be a non-empty list", option=name)
    hosts = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise ConfigurationError(f"Option '{name}' contains an empty host", option=name)
        hosts.append(item.strip())
    return tuple(hosts)


@dataclass(frozen=True)
class UploadModuleOptions:
    """
    Validated options of the upload service for one logical host.

    ``max_size`` is None when uploads are unbounded.
    """

    access_key_id: str
    access_key_secret: str = field(repr=False)
    region: str
    bucket_url: str
    download_url: Optional[str] = None
    max_size: Optional[int] = DEFAULT_MAX_SIZE
    set_public: bool = True
    put_ttl: int = DEFAULT_PUT_TTL
    service_name: str = DEFAULT_SERVICE_NAME
    hosts: Tuple[str, ...] = DEFAULT_HOSTS
    access: str = DEFAULT_ACCESS

    OPTION_NAMES = (
        "access_key_id",
        "access_key_secret",
        "region",
        "bucket_url",
        "download_url",
        "max_size",
        "set_public",
        "put_ttl",
        "service_name",
        "hosts",
        "access",
    )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "UploadModuleOptions":
        """
        Validate ``data`` and apply defaults for missing options.

        Raises:
            ConfigurationError: On unknown options or invalid values
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError("Module options must be a mapping")

        unknown = sorted(set(data) - set(cls.OPTION_NAMES))
        if unknown:
            raise ConfigurationError(f"Unknown option '{unknown[0]}'", option=unknown[0])

        return cls(
            access_key_id=_as_str("access_key_id", data.get("access_key_id")),
            access_key_secret=_as_str("access_key_secret", data.get("access_key_secret")),
            region=_as_str("region", data.get("region")),
            bucket_url=_as_url("bucket_url", data.get("bucket_url")),
            download_url=_as_url("download_url", data.get("download_url"), required=False),
            max_size=_as_pos_int("max_size", data.get("max_size", DEFAULT_MAX_SIZE),
                                 allow_unbounded=True),
            set_public=_as_bool("set_public", data.get("set_public", True)),
            put_ttl=_as_pos_int("put_ttl", data.get("put_ttl", DEFAULT_PUT_TTL)),
            service_name=_as_str("service_name", data.get("service_name", DEFAULT_SERVICE_NAME)),
            hosts=_as_hosts("hosts", data.get("hosts", DEFAULT_HOSTS)),
            access=_as_str("access", data.get("access", DEFAULT_ACCESS)),
        )


# Environment variable for each module option
_OPTION_ENV = {
    "access_key_id": "S3_ACCESS_KEY_ID",
    "access_key_secret": "S3_ACCESS_KEY_SECRET",
    "region": "S3_REGION",
    "bucket_url": "S3_BUCKET_URL",
    "download_url": "S3_DOWNLOAD_URL",
    "max_size": "S3_MAX_SIZE",
    "set_public": "S3_SET_PUBLIC",
    "put_ttl": "S3_PUT_TTL",
    "service_name": "S3_SERVICE_NAME",
    "hosts": "S3_HOSTS",
    "access": "S3_ACCESS",
}


@dataclass
class BrokerSettings:
    """
    Application settings from environment variables.

    Attributes:
        served_hosts: Logical hosts that get an upload broker at startup
        module_options: Options shared by those hosts (None when no host is served)
        access_rules: Named access rules (rule -> domains or bare JIDs)
        route_table: Route table backend, ``memory`` or ``redis``
        policy_timeout: Seconds to wait on the access policy oracle
        router_timeout: Seconds to wait on route (un)registration
        exchange_timeout: Seconds the HTTP ingress waits for a reply
        translations_dir: gettext locale directory, None for no translations
    """

    served_hosts: Tuple[str, ...] = ()
    module_options: Optional[UploadModuleOptions] = None
    access_rules: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    route_table: str = "memory"
    policy_timeout: float = 5.0
    router_timeout: float = 5.0
    exchange_timeout: float = 10.0
    translations_dir: Optional[str] = None

    @classmethod
    def from_env(cls) -> "BrokerSettings":
        """
        Load settings from environment variables.

        Raises:
            ConfigurationError: If any value is invalid
        """
        served_hosts = tuple(
            h.strip() for h in os.getenv("SERVED_HOSTS", "").split(",") if h.strip()
        )

        module_options = None
        if served_hosts:
            raw = {
                option: os.environ[env_name]
                for option, env_name in _OPTION_ENV.items()
                if os.getenv(env_name)
            }
            module_options = UploadModuleOptions.from_mapping(raw)

        route_table = os.getenv("ROUTE_TABLE", "memory").strip().lower()
        if route_table not in ("memory", "redis"):
            raise ConfigurationError(
                f"ROUTE_TABLE must be 'memory' or 'redis', got {route_table!r}",
                option="ROUTE_TABLE",
            )

        return cls(
            served_hosts=served_hosts,
            module_options=module_options,
            access_rules=cls._parse_access_rules(os.getenv("ACCESS_RULES", "")),
            route_table=route_table,
            policy_timeout=cls._parse_timeout("POLICY_TIMEOUT", "5"),
            router_timeout=cls._parse_timeout("ROUTER_TIMEOUT", "5"),
            exchange_timeout=cls._parse_timeout("EXCHANGE_TIMEOUT", "10"),
            translations_dir=os.getenv("TRANSLATIONS_DIR") or None,
        )

    @staticmethod
    def _parse_timeout(env_name: str, default: str) -> float:
        value = os.getenv(env_name, default)
        try:
            timeout = float(value)
        except ValueError as e:
            raise ConfigurationError(f"{env_name} must be a number, got {value!r}",
                                     option=env_name, original_error=e) from e
        if timeout <= 0:
            raise ConfigurationError(f"{env_name} must be positive", option=env_name)
        return timeout

    @staticmethod
    def _parse_access_rules(value: str) -> Dict[str, Tuple[str, ...]]:
        """
        Parse access rules from ``rule:spec|spec,rule:spec`` format.

        Example: "uploaders:example.com|bob@example.net,staff:staff.example.com"

        Returns:
            Dictionary mapping rule names to domains or bare JIDs
        """
        if not value:
            return {}

        rules: Dict[str, Tuple[str, ...]] = {}
        for pair in value.split(','):
            if ':' not in pair:
                raise ConfigurationError(f"Malformed access rule {pair!r}", option="ACCESS_RULES")
            name, specs = pair.split(':', 1)
            rules[name.strip()] = tuple(s.strip() for s in specs.split('|') if s.strip())
        return rules
