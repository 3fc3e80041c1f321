import httpx
import logging
import threading
from typing import Dict, List, Optional
from urllib.parse import urlparse

from core.config import ScanConfig
from core.errors import ConstructionError, RequestError

# Connection pool sizing
MAX_CONNECTIONS = 100
MAX_KEEPALIVE_CONNECTIONS = 10
KEEPALIVE_EXPIRY = 30.0

PROXY_SCHEMES = ("http", "https", "socks5", "socks5h")


def _is_valid_proxy(proxy_url: str) -> bool:
    parsed = urlparse(proxy_url)
    return parsed.scheme in PROXY_SCHEMES and bool(parsed.netloc)


class HttpClient:
    """Shared request transport for the crawler and the brute forcer.

    Applies the configured User-Agent, headers and cookies to every request
    unless the caller already set them, follows redirects up to the configured
    cap, and keeps one pooled ``httpx.AsyncClient`` per proxy route.

    When ``proxy_rotate`` is enabled and several proxies are configured, a
    failed request advances the active proxy (round-robin) before the error is
    raised. The failed request itself is not retried.
    """

    def __init__(self, config: ScanConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.logger = logging.getLogger(__name__)
        self._config = config
        self._transport = transport
        self._clients: Dict[Optional[str], httpx.AsyncClient] = {}

        self._lock = threading.Lock()
        self._proxies: List[str] = []
        self._current_proxy = 0

        for proxy_url in config.proxy_urls:
            if _is_valid_proxy(proxy_url):
                self._proxies.append(proxy_url)
            else:
                self.logger.warning(f"Skipping invalid proxy URL: {proxy_url}")

        try:
            self._timeout = httpx.Timeout(config.timeout, connect=config.connect_timeout)
            self._limits = httpx.Limits(
                max_connections=MAX_CONNECTIONS,
                max_keepalive_connections=MAX_KEEPALIVE_CONNECTIONS,
                keepalive_expiry=KEEPALIVE_EXPIRY,
            )
            # Build every route up front so a bad proxy fails here, not mid-scan
            for proxy in self._proxies or [None]:
                self._client_for(proxy)
        except (ValueError, TypeError, ImportError, httpx.HTTPError) as e:
            raise ConstructionError(f"Failed to create HTTP client: {e}") from e

        if self._proxies:
            self.logger.info(f"Using {len(self._proxies)} proxies (rotate: {config.proxy_rotate})")

    @property
    def config(self) -> ScanConfig:
        return self._config

    @property
    def proxy_index(self) -> int:
        with self._lock:
            return self._current_proxy

    @property
    def current_proxy(self) -> Optional[str]:
        with self._lock:
            if not self._proxies:
                return None
            return self._proxies[self._current_proxy]

    @property
    def proxies(self) -> List[str]:
        with self._lock:
            return list(self._proxies)

    def rotate_proxy(self) -> Optional[str]:
        """Switch to the next configured proxy and return it."""
        with self._lock:
            if not self._proxies:
                return None
            self._current_proxy = (self._current_proxy + 1) % len(self._proxies)
            proxy = self._proxies[self._current_proxy]
        self.logger.debug(f"Rotated to proxy {proxy}")
        return proxy

    def set_proxy(self, proxy_url: str) -> None:
        """Make ``proxy_url`` the active proxy. An empty string disables proxying.

        Raises:
            ValueError: if ``proxy_url`` is not a supported proxy URL
            ConstructionError: if no client can be built for the proxy
        """
        if not proxy_url:
            self._client_for(None)
            with self._lock:
                self._proxies = []
                self._current_proxy = 0
            return

        if not _is_valid_proxy(proxy_url):
            raise ValueError(f"Invalid proxy URL: {proxy_url}")

        try:
            self._client_for(proxy_url)
        except (ValueError, TypeError, ImportError, httpx.HTTPError) as e:
            raise ConstructionError(f"Failed to create HTTP client for proxy {proxy_url}: {e}") from e

        with self._lock:
            if proxy_url not in self._proxies:
                self._proxies.append(proxy_url)
            self._current_proxy = self._proxies.index(proxy_url)

    async def execute(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        content: Optional[bytes] = None,
    ) -> httpx.Response:
        """
        Send one request and return the final response.

        Args:
            method: HTTP method (GET, POST, etc.)
            url: Absolute URL to request
            headers: Request headers; these win over the configured defaults
            content: Optional request body

        Returns:
            httpx.Response with its body already read

        Raises:
            RequestError: on any transport failure
        """
        proxy = self.current_proxy
        client = self._client_for(proxy)
        self.logger.debug(f"HTTP {method} {url}" + (f" via {proxy}" if proxy else ""))

        try:
            request = client.build_request(method, url, headers=headers, content=content)
            response = await client.send(request, follow_redirects=False)

            hops = 0
            while response.next_request is not None and hops < self._config.max_redirects:
                next_request = response.next_request
                await response.aclose()
                response = await client.send(next_request, follow_redirects=False)
                hops += 1
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self.logger.warning(f"HTTP request error for {url}: {e!r}")
            if self._config.proxy_rotate and len(self._proxies) > 1:
                self.rotate_proxy()
            raise RequestError(f"request failed: {e!r}", url=url, method=method) from e

        self.logger.debug(f"HTTP {response.status_code} {url} ({len(response.content)} bytes)")
        return response

    def _client_for(self, proxy: Optional[str]) -> httpx.AsyncClient:
        client = self._clients.get(proxy)
        if client is None:
            client = self._build_client(proxy)
            self._clients[proxy] = client
        return client

    def _build_client(self, proxy: Optional[str]) -> httpx.AsyncClient:
        default_headers = {}
        if self._config.user_agent:
            default_headers["User-Agent"] = self._config.user_agent
        default_headers.update(self._config.headers)

        kwargs = dict(
            headers=default_headers,
            cookies=dict(self._config.cookies),
            timeout=self._timeout,
            limits=self._limits,
            verify=not self._config.insecure_ssl,
            follow_redirects=False,
        )
        if self._transport is not None:
            kwargs["transport"] = self._transport
        elif proxy:
            kwargs["proxy"] = proxy
        return httpx.AsyncClient(**kwargs)

    async def aclose(self) -> None:
        clients = list(self._clients.values())
        self._clients.clear()
        for client in clients:
            await client.aclose()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
