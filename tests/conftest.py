"""
Pytest configuration for extractor tests.

Offline tests run against an in-memory fetcher. Live test URLs are loaded
from environment variables; locally, add them to your .env file.
"""

import os
from pathlib import Path
from typing import Dict, Iterable, Optional

import httpx
import pytest
from dotenv import load_dotenv

from archive_resolver.extractors.archive import ArchiveExtractor
from archive_resolver.utils.diagnostics import CollectingDiagnosticSink
from archive_resolver.utils.http_utils import DownloadError, FetchResult

# Load .env file from project root
project_root = Path(__file__).parent.parent
load_dotenv(project_root / ".env")


def pytest_configure(config):
    """Configure pytest-asyncio mode."""
    config.addinivalue_line("markers", "asyncio: mark test as async")


class FakeFetcher:
    """In-memory stand-in for HttpFetcher.

    pages maps a final URL to its HTML, redirects maps a URL to the URL it
    redirects to, failures lists URLs whose requests raise a network error,
    missing lists URLs answering 404 and invalid lists URLs httpx refuses
    to parse.
    """

    def __init__(
        self,
        pages: Optional[Dict[str, str]] = None,
        redirects: Optional[Dict[str, str]] = None,
        failures: Iterable[str] = (),
        missing: Iterable[str] = (),
        invalid: Iterable[str] = (),
    ):
        self.pages = pages or {}
        self.redirects = redirects or {}
        self.failures = set(failures)
        self.missing = set(missing)
        self.invalid = set(invalid)
        self.requests = []

    async def get(self, url, headers=None, allow_redirects=True):
        return self._respond("GET", url, headers)

    async def head(self, url, headers=None, allow_redirects=True):
        return self._respond("HEAD", url, headers)

    def _respond(self, method, url, headers):
        self.requests.append((method, url, dict(headers or {})))
        if url in self.failures:
            raise httpx.ConnectError(f"connection refused: {url}")
        if url in self.invalid:
            raise httpx.InvalidURL(f"Invalid URL: {url}")
        if url in self.missing:
            raise DownloadError(404, f"HTTP error 404 while requesting {url}")

        final_url = self.redirects.get(url, url)
        text = self.pages.get(final_url, "") if method == "GET" else ""
        return FetchResult(final_url=final_url, content_type="text/html", text=text)


@pytest.fixture
def make_fetcher():
    return FakeFetcher


@pytest.fixture
def diagnostics():
    return CollectingDiagnosticSink()


@pytest.fixture
def make_extractor(diagnostics):
    """
    Factory fixture building an ArchiveExtractor on top of a FakeFetcher.

    Usage:
        def test_something(make_extractor):
            extractor, fetcher = make_extractor(pages={"https://site.com/ep/1": "<video src='/v.mp4'>"})
    """

    def _make(stop_on_first_match=False, **fetcher_kwargs):
        fetcher = FakeFetcher(**fetcher_kwargs)
        extractor = ArchiveExtractor(
            {}, fetcher=fetcher, diagnostics=diagnostics, stop_on_first_match=stop_on_first_match
        )
        return extractor, fetcher

    return _make


@pytest.fixture
def get_test_url():
    """
    Factory fixture that returns a function to get test URLs from environment.

    Usage:
        def test_something(get_test_url):
            url = get_test_url("Archive")
            if url is None:
                pytest.skip("TEST_URL_ARCHIVE not set")
    """

    def _get_url(extractor_name: str) -> str | None:
        env_var = f"TEST_URL_{extractor_name.upper()}"
        return os.environ.get(env_var)

    return _get_url
