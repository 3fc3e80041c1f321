import asyncio

import httpx
import pytest

from conftest import BASE_URL, connect_error
from core.cancellation import CancellationToken
from core.config import ScanConfig
from core.errors import ConfigError, ConstructionError
from core.scanner import Scanner, DEFAULT_METHODS
from core.wordlist_loader import load_wordlist
from models.endpoint import EndpointSource

PAGES = {
    "/": '<a href="/about">about</a>',
    "/about": "<p>about</p>",
    "/a": "<title>A</title>",
    "/b": lambda r: httpx.Response(404),
    "/err": connect_error,
}


def make_scanner(site, **settings):
    return Scanner(ScanConfig(base_url=BASE_URL, **settings), transport=site.transport)


def test_construction_rejects_invalid_base_url():
    with pytest.raises(ConfigError):
        Scanner.create("example.test/no-scheme")

    # ConfigError is a construction error
    with pytest.raises(ConstructionError):
        Scanner.create("")


def test_construction_rejects_unknown_extractor():
    with pytest.raises(ConstructionError):
        Scanner.create(BASE_URL, exclude_extractors={"bogus"})


@pytest.mark.asyncio
async def test_discover_depth_zero_returns_root_only(make_site):
    scanner = make_scanner(make_site(PAGES), scan_depth=0)

    endpoints = await scanner.discover()

    assert [(e.url, e.source) for e in endpoints] == [(f"{BASE_URL}/", EndpointSource.DIRECT)]
    stats = scanner.get_stats()
    assert stats.total_discovered == 1
    assert stats.discovery_start_time is not None
    assert stats.discovery_duration >= 0


@pytest.mark.asyncio
async def test_scan_with_wordlist_accumulates_stats_across_calls(make_site):
    scanner = make_scanner(make_site(PAGES))

    first = await scanner.scan_with_wordlist(["a", "b", "err"], ["GET"], concurrency=2)
    stats = scanner.get_stats()
    assert len(first) == 3
    assert all(r.found_via == "bruteforce" for r in first)
    assert (stats.total_requests, stats.successful, stats.failed, stats.errors) == (3, 1, 1, 1)
    first_duration = stats.scan_duration

    await scanner.scan_with_wordlist(["a", "b", "err"], ["GET"], concurrency=2)
    stats = scanner.get_stats()
    assert (stats.total_requests, stats.successful, stats.failed, stats.errors) == (6, 2, 2, 2)
    assert stats.scan_duration >= first_duration
    assert stats.duration >= stats.scan_duration - 1e-6


@pytest.mark.asyncio
async def test_default_methods_used_when_none_given(make_site):
    scanner = make_scanner(make_site(PAGES))

    results = await scanner.scan_with_wordlist(["a"])

    assert sorted(r.method for r in results) == sorted(DEFAULT_METHODS)


@pytest.mark.asyncio
async def test_scan_uses_builtin_wordlist_and_worker_count(make_site):
    site = make_site({})
    scanner = make_scanner(site, workers=3)

    results = await scanner.scan(methods=["GET"])

    assert len(results) == len(load_wordlist())
    assert all(r.status_code == 404 for r in results)


def test_get_stats_returns_snapshot(make_site):
    scanner = make_scanner(make_site(PAGES))

    stats = scanner.get_stats()
    stats.total_requests = 99

    assert scanner.get_stats().total_requests == 0


def test_stop_without_active_scan_is_noop(make_site):
    scanner = make_scanner(make_site(PAGES))

    scanner.stop()
    scanner.stop()

    assert scanner.get_stats().total_requests == 0


@pytest.mark.asyncio
async def test_stop_cancels_running_scan(make_site):
    holder = {}

    def stop_on_first(request):
        holder["scanner"].stop()
        return httpx.Response(200)

    site = make_site({f"/w{i}": stop_on_first for i in range(10)})
    scanner = make_scanner(site)
    holder["scanner"] = scanner

    results = await scanner.scan_with_wordlist([f"w{i}" for i in range(10)], ["GET"], concurrency=1)

    assert len(results) == 1
    assert scanner.get_stats().total_requests == 1

    # A later scan gets a fresh token
    site.pages = {"/x": "<p>x</p>"}
    assert len(await scanner.scan_with_wordlist(["x"], ["GET"], concurrency=1)) == 1


@pytest.mark.asyncio
async def test_caller_token_cancels_scan(make_site):
    token = CancellationToken()
    token.cancel()
    scanner = make_scanner(make_site(PAGES))

    results = await scanner.scan_with_wordlist(["a", "b"], ["GET"], concurrency=1, token=token)

    assert results == []


@pytest.mark.asyncio
async def test_reset_zeroes_stats_and_clears_crawl_state(make_site):
    site = make_site(PAGES)
    scanner = make_scanner(site, scan_depth=1)

    first = await scanner.discover()
    await scanner.scan_with_wordlist(["a"], ["GET"])
    started = scanner.get_stats().start_time

    scanner.reset()

    stats = scanner.get_stats()
    assert (stats.total_requests, stats.total_discovered, stats.scan_duration) == (0, 0, 0.0)
    assert stats.start_time >= started
    assert scanner.crawler.get_endpoints() == []

    # Crawl state is gone, so pages are fetched again
    requests_before = len(site.requests)
    again = await scanner.discover()
    assert len(site.requests) > requests_before
    assert sorted(e.url for e in again) == sorted(e.url for e in first)


def test_scanner_closes_transport(make_site):
    async def run():
        async with make_scanner(make_site(PAGES), scan_depth=0) as scanner:
            await scanner.discover()
        return scanner

    scanner = asyncio.run(run())
    assert scanner.client._clients == {}
