"""Wordlist brute forcing over (path, method) pairs."""
import asyncio
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

import httpx
from bs4 import BeautifulSoup

from core.cancellation import CancellationToken
from core.errors import RequestError
from fetch.http_client import HttpClient
from models.result import ScanResult

JSON_BODY_METHODS = {"POST", "PUT"}

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProbeTask:
    url: str
    method: str


def join_path(base_url: str, path: str) -> str:
    """Join a wordlist entry onto ``base_url`` with exactly one slash between them."""
    return base_url.rstrip("/") + "/" + path.strip().lstrip("/")


def build_tasks(base_url: str, wordlist: Iterable[str], methods: Sequence[str]) -> List[ProbeTask]:
    """Cartesian product of normalized wordlist paths and upper-cased methods."""
    methods = [m.strip().upper() for m in methods if m and m.strip()]
    tasks: List[ProbeTask] = []
    for path in wordlist:
        if not path or not path.strip():
            continue
        url = join_path(base_url, path)
        for method in methods:
            tasks.append(ProbeTask(url=url, method=method))
    return tasks


def extract_title(html: str) -> Optional[str]:
    try:
        soup = BeautifulSoup(html, "html.parser")
    except Exception as e:
        logger.debug(f"Could not parse HTML for title: {e}")
        return None
    if soup.title is None:
        return None
    return soup.title.get_text(strip=True) or None


class BruteForcer:
    """Probe a closed set of (path, method) pairs with a fixed-size worker pool.

    The full task list is built before any worker starts. Workers check the
    cancellation token only between tasks and sleep ``delay`` seconds after
    each response, so throughput scales with ``concurrency / delay``.
    Request failures become results with ``status_code == 0`` and an error
    message; they never abort the batch.
    """

    def __init__(self, client: HttpClient):
        self.client = client

    async def scan_wordlist(
        self,
        base_url: str,
        wordlist: Iterable[str],
        methods: Sequence[str],
        concurrency: int,
        delay: float = 0.0,
        token: Optional[CancellationToken] = None,
    ) -> List[ScanResult]:
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")

        tasks = build_tasks(base_url, wordlist, methods)
        queue: asyncio.Queue = asyncio.Queue()
        for task in tasks:
            queue.put_nowait(task)

        token = token or CancellationToken()
        results: List[ScanResult] = []
        lock = threading.Lock()

        logger.info(f"Probing {len(tasks)} path/method pairs with {concurrency} workers (delay {delay}s)")

        async def worker(worker_id: int) -> None:
            while not token.cancelled:
                try:
                    task = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return

                result = await self.probe(task.url, task.method)
                with lock:
                    results.append(result)

                if delay > 0:
                    await asyncio.sleep(delay)
            logger.debug(f"Worker {worker_id} stopped by cancellation")

        await asyncio.gather(*(worker(i) for i in range(concurrency)))

        if len(results) < len(tasks):
            logger.info(f"Probing cancelled after {len(results)}/{len(tasks)} requests")
        return results

    async def scan_path(
        self,
        url: str,
        methods: Sequence[str],
        delay: float = 0.0,
        token: Optional[CancellationToken] = None,
    ) -> List[ScanResult]:
        """Probe a single URL once per method, all methods concurrently."""
        token = token or CancellationToken()
        results: List[ScanResult] = []
        lock = threading.Lock()

        async def probe_method(method: str) -> None:
            if token.cancelled:
                return
            result = await self.probe(url, method.upper())
            with lock:
                results.append(result)
            if delay > 0:
                await asyncio.sleep(delay)

        await asyncio.gather(*(probe_method(m) for m in methods))
        return results

    async def probe(self, url: str, method: str) -> ScanResult:
        """Send one request and record what came back."""
        timestamp = datetime.now()
        headers = {"Accept": "*/*"}
        if method in JSON_BODY_METHODS:
            headers["Content-Type"] = "application/json"

        # execute() reads the body, so body read failures arrive as RequestError too
        try:
            response = await self.client.execute(method, url, headers=headers)
        except RequestError as e:
            return ScanResult(url=url, method=method, timestamp=timestamp, error=str(e))

        body = response.content
        title = None
        if "text/html" in response.headers.get("content-type", "").lower():
            title = extract_title(response.text)

        return ScanResult(
            url=url,
            method=method,
            status_code=response.status_code,
            size=len(body),
            headers=_first_values(response.headers),
            title=title,
            timestamp=timestamp,
        )


def _first_values(headers: httpx.Headers) -> Dict[str, str]:
    """First value per header name."""
    first: Dict[str, str] = {}
    for name, value in headers.multi_items():
        first.setdefault(name, value)
    return first
