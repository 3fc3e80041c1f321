"""Recursive same-host crawler that harvests candidate endpoints."""
import asyncio
import logging
import threading
from typing import Dict, List, Optional, Set
from urllib.parse import urlparse

from core.cancellation import CancellationToken
from core.context import PageContext, normalize_url
from core.errors import ConstructionError, RequestError
from core.extractor_registry import ExtractorRegistry
from fetch.http_client import HttpClient
from models.endpoint import Endpoint, EndpointSource

# Import all extractors to trigger @ExtractorRegistry.register decorators
import extractors.links
import extractors.forms
import extractors.script_content

HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


class Crawler:
    """Depth-bounded crawler deduplicated by a visited set of normalized URLs.

    The visited set and the accumulated endpoint list share one lock, which is
    only held while they are mutated, never across a request. Each page
    fans out into its same-host links concurrently and waits for all of them
    before returning.
    """

    def __init__(
        self,
        client: HttpClient,
        max_depth: int,
        max_concurrency: int = 10,
        exclude_extractors: Optional[Set[str]] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.client = client
        self.max_depth = max_depth
        self.max_concurrency = max_concurrency
        self.extractors = ExtractorRegistry.instantiate_all(exclude=exclude_extractors)

        self._lock = threading.Lock()
        self._visited: Set[str] = set()
        self._endpoints: List[Endpoint] = []
        self._base_url: Optional[str] = None
        self._semaphore: Optional[asyncio.Semaphore] = None

    async def crawl(self, base_url: str, token: Optional[CancellationToken] = None) -> List[Endpoint]:
        """Crawl from ``base_url`` and return every endpoint found so far."""
        parsed = urlparse(base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConstructionError(f"Invalid base URL: {base_url!r}")

        self._base_url = base_url
        self._semaphore = asyncio.Semaphore(self.max_concurrency)
        token = token or CancellationToken()

        self.logger.info(f"Crawling {base_url} (max depth {self.max_depth})")
        await self._crawl_page(normalize_url(base_url), 0, token)

        endpoints = self.get_endpoints()
        self.logger.info(f"Crawl finished: {len(endpoints)} endpoints, {self.visited_count} pages visited")
        return endpoints

    async def _crawl_page(self, url: str, depth: int, token: CancellationToken) -> None:
        if depth > self.max_depth or token.cancelled:
            return

        key = normalize_url(url)
        with self._lock:
            if key in self._visited:
                return
            self._visited.add(key)

        try:
            async with self._semaphore:
                response = await self.client.execute("GET", key, headers={"Accept": HTML_ACCEPT})
        except RequestError as e:
            self.logger.debug(f"Dropping crawl branch {key}: {e}")
            return

        self._append([Endpoint(url=key, method="GET", source=EndpointSource.DIRECT, depth=depth)])

        # Anything extracted here would land beyond the depth limit
        if depth >= self.max_depth:
            return

        page = PageContext(
            base_url=self._base_url,
            url=key,
            html=response.text,
            depth=depth,
            status_code=response.status_code,
            content_type=response.headers.get("content-type"),
        )
        found = await self._run_extractors(page)

        to_follow: Dict[str, None] = {}
        for name, endpoints in found.items():
            added = self._append(endpoints, skip_visited=ExtractorRegistry.follows(name))
            if ExtractorRegistry.follows(name):
                to_follow.update((e.url, None) for e in added)

        if not to_follow or token.cancelled:
            return

        results = await asyncio.gather(
            *(self._crawl_page(link, depth + 1, token) for link in to_follow),
            return_exceptions=True,
        )
        for link, result in zip(to_follow, results):
            if isinstance(result, Exception):
                self.logger.error(f"Crawl branch {link} failed: {result}", exc_info=result)

    async def _run_extractors(self, page: PageContext) -> Dict[str, List[Endpoint]]:
        async def run_extractor(name: str, extractor) -> List[Endpoint]:
            try:
                endpoints = await extractor.extract(page)
                self.logger.debug(f"{name} extractor found {len(endpoints)} endpoints on {page.url}")
                return endpoints
            except Exception as e:
                self.logger.error(f"Error in {name} extractor on {page.url}: {e}", exc_info=True)
                return []

        names = list(self.extractors)
        results = await asyncio.gather(*(run_extractor(n, self.extractors[n]) for n in names))
        return dict(zip(names, results))

    def _append(self, endpoints: List[Endpoint], skip_visited: bool = False) -> List[Endpoint]:
        with self._lock:
            if skip_visited:
                endpoints = [e for e in endpoints if e.url not in self._visited]
            self._endpoints.extend(endpoints)
        return endpoints

    def get_endpoints(self) -> List[Endpoint]:
        """Snapshot of every endpoint discovered since the last clear()."""
        with self._lock:
            return list(self._endpoints)

    @property
    def visited_count(self) -> int:
        with self._lock:
            return len(self._visited)

    def clear(self) -> None:
        """Forget visited pages and discovered endpoints."""
        with self._lock:
            self._visited = set()
            self._endpoints = []
