import os
import sys
from typing import Callable, Dict, List, Union

import httpx
import pytest

# Ensure project root is on sys.path for imports like `core.*`
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Configure pytest-asyncio
pytest_plugins = ('pytest_asyncio',)

BASE_URL = "http://example.test"

Page = Union[str, Callable[[httpx.Request], httpx.Response]]


class FakeSite:
    """In-memory site served through httpx.MockTransport.

    ``pages`` maps a path to HTML or to a handler returning a response.
    Paths not listed get a 404. Every request is recorded in ``requests``.
    """

    def __init__(self, pages: Dict[str, Page]):
        self.pages = pages
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        page = self.pages.get(request.url.path)
        if page is None:
            return httpx.Response(404, html="<html><title>Not Found</title></html>")
        if callable(page):
            return page(request)
        return httpx.Response(200, html=page)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def fetched(self) -> List[str]:
        return [str(r.url) for r in self.requests]


@pytest.fixture
def make_site():
    return FakeSite


def connect_error(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)
