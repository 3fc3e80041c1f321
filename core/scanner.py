import logging
import threading
from datetime import datetime
from typing import List, Optional, Sequence

import httpx

from core.bruteforce import BruteForcer
from core.cancellation import CancellationToken
from core.config import ScanConfig
from core.crawler import Crawler
from core.errors import ConstructionError
from core.wordlist_loader import load_wordlist
from fetch.http_client import HttpClient
from models.endpoint import Endpoint
from models.result import ScanResult
from models.stats import Stats

DEFAULT_METHODS = ("GET", "POST", "PUT", "DELETE")


class Scanner:
    """Discovery and brute-force scanning against one base URL.

    Owns the configuration, shares one HttpClient between the crawler and
    the brute forcer, and keeps cumulative statistics until ``reset()``.
    """

    def __init__(self, config: ScanConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        """Initialize the scanner.

        Args:
            config: Validated run settings
            transport: Optional httpx transport used instead of the network

        Raises:
            ConstructionError: if the HTTP client or crawler cannot be set up
        """
        self.logger = logging.getLogger(__name__)
        self.config = config

        self.client = HttpClient(config, transport=transport)
        try:
            self.crawler = Crawler(
                self.client,
                max_depth=config.scan_depth,
                max_concurrency=config.crawl_concurrency,
                exclude_extractors=set(config.exclude_extractors),
            )
        except ValueError as e:
            raise ConstructionError(str(e)) from e
        self.bruteforcer = BruteForcer(self.client)

        self._lock = threading.Lock()
        self._stats = Stats()
        self._active_token: Optional[CancellationToken] = None

        self.logger.info(f"Initialized scanner for {config.base_url}")

    @classmethod
    def create(cls, base_url: str, transport: Optional[httpx.AsyncBaseTransport] = None, **settings) -> "Scanner":
        """Build a scanner from keyword settings (see ScanConfig)."""
        return cls(ScanConfig(base_url=base_url, **settings), transport=transport)

    async def discover(self, token: Optional[CancellationToken] = None) -> List[Endpoint]:
        """Crawl the target and return every endpoint discovered so far."""
        started = datetime.now()
        crawl_token = token.child() if token else CancellationToken()
        with self._lock:
            self._stats.discovery_start_time = started
            self._active_token = crawl_token

        try:
            endpoints = await self.crawler.crawl(self.config.base_url, token=crawl_token)
        finally:
            self._release(crawl_token)

        with self._lock:
            now = datetime.now()
            self._stats.total_discovered = len(endpoints)
            self._stats.discovery_duration = (now - started).total_seconds()
            self._stats.duration = (now - self._stats.start_time).total_seconds()
        return endpoints

    async def scan(
        self,
        methods: Optional[Sequence[str]] = None,
        delay: float = 0.0,
        token: Optional[CancellationToken] = None,
    ) -> List[ScanResult]:
        """Brute force the built-in wordlist with the configured worker count."""
        return await self.scan_with_wordlist(load_wordlist(), methods, self.config.workers, delay, token)

    async def scan_with_wordlist(
        self,
        wordlist: Sequence[str],
        methods: Optional[Sequence[str]] = None,
        concurrency: Optional[int] = None,
        delay: float = 0.0,
        token: Optional[CancellationToken] = None,
    ) -> List[ScanResult]:
        """Brute force ``wordlist`` x ``methods`` and fold the outcome into the stats."""
        started = datetime.now()
        scan_token = token.child() if token else CancellationToken()
        with self._lock:
            self._stats.scan_start_time = started
            self._active_token = scan_token

        try:
            results = await self.bruteforcer.scan_wordlist(
                self.config.base_url,
                wordlist,
                list(methods or DEFAULT_METHODS),
                concurrency or self.config.workers,
                delay,
                token=scan_token,
            )
        finally:
            self._release(scan_token)

        results = [r.with_source("bruteforce") for r in results]

        with self._lock:
            self._stats.total_requests += len(results)
            for r in results:
                if r.error:
                    self._stats.errors += 1
                elif 200 <= r.status_code < 300:
                    self._stats.successful += 1
                elif r.status_code >= 400:
                    self._stats.failed += 1
            now = datetime.now()
            self._stats.scan_duration += (now - started).total_seconds()
            self._stats.duration = (now - self._stats.start_time).total_seconds()

        self.logger.info(f"Scan finished: {len(results)} results")
        return results

    def _release(self, token: CancellationToken) -> None:
        with self._lock:
            if self._active_token is token:
                self._active_token = None

    def get_stats(self) -> Stats:
        with self._lock:
            return self._stats.copy()

    def stop(self) -> None:
        """Cancel the running crawl or scan, if any. Requests already in flight complete."""
        with self._lock:
            token = self._active_token
            self._active_token = None
        if token is not None:
            self.logger.info("Stopping active scan")
            token.cancel()

    def reset(self) -> None:
        """Zero the statistics and forget crawl state."""
        with self._lock:
            self._stats = Stats()
        self.crawler.clear()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "Scanner":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
