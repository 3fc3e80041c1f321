"""Run configuration, fixed once a scanner is constructed."""
import dataclasses
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import FrozenSet, List, Mapping, Tuple
from urllib.parse import urlparse

from core.errors import ConfigError

# Defaults
DEFAULT_TIMEOUT = 10.0
DEFAULT_CONNECT_TIMEOUT = 5.0
DEFAULT_USER_AGENT = "EndpointScanner/1.0"
DEFAULT_WORKERS = 5
DEFAULT_MAX_REDIRECTS = 3
DEFAULT_SCAN_DEPTH = 2
DEFAULT_CRAWL_CONCURRENCY = 10


@dataclass(frozen=True)
class ScanConfig:
    """Immutable scanner settings.

    Every field except ``base_url`` is optional. Values are validated in
    ``__post_init__`` and a ``ConfigError`` is raised for anything unusable,
    so a constructed config is always safe to hand to the transport.
    """
    base_url: str
    timeout: float = DEFAULT_TIMEOUT
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    workers: int = DEFAULT_WORKERS
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    scan_depth: int = DEFAULT_SCAN_DEPTH
    crawl_concurrency: int = DEFAULT_CRAWL_CONCURRENCY
    proxy_urls: Tuple[str, ...] = ()
    proxy_rotate: bool = False
    headers: Mapping[str, str] = field(default_factory=dict)
    cookies: Mapping[str, str] = field(default_factory=dict)
    insecure_ssl: bool = False
    exclude_extractors: FrozenSet[str] = frozenset()

    def __post_init__(self):
        parsed = urlparse(self.base_url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigError(f"Invalid base URL: {self.base_url!r}")

        if self.timeout <= 0 or self.connect_timeout <= 0:
            raise ConfigError("Timeouts must be positive")
        if self.workers < 1:
            raise ConfigError(f"workers must be >= 1, got {self.workers}")
        if self.crawl_concurrency < 1:
            raise ConfigError(f"crawl_concurrency must be >= 1, got {self.crawl_concurrency}")
        if self.max_redirects < 0:
            raise ConfigError(f"max_redirects must be >= 0, got {self.max_redirects}")
        if self.scan_depth < 0:
            raise ConfigError(f"scan_depth must be >= 0, got {self.scan_depth}")

        # Normalize containers to read-only types
        object.__setattr__(self, "proxy_urls", tuple(self.proxy_urls or ()))
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers or {})))
        object.__setattr__(self, "cookies", MappingProxyType(dict(self.cookies or {})))
        object.__setattr__(self, "exclude_extractors", frozenset(self.exclude_extractors or ()))

    @property
    def use_proxies(self) -> bool:
        return bool(self.proxy_urls)

    def replace(self, **changes) -> "ScanConfig":
        """Return a new validated config with ``changes`` applied."""
        return dataclasses.replace(self, **changes)


def config_fields() -> List[str]:
    """Names accepted by ``ScanConfig``."""
    return [f.name for f in dataclasses.fields(ScanConfig)]
