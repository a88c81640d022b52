import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx
from bs4 import BeautifulSoup
from starlette.requests import Request
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from archive_resolver.configs import settings
from archive_resolver.const import MEDIA_CONTENT_TYPES, SUPPORTED_REQUEST_HEADERS
from archive_resolver.utils.html_utils import parse_html

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)


class DownloadError(Exception):
    def __init__(self, status_code, message):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


def create_httpx_client(
    follow_redirects: bool = True,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **kwargs,
) -> httpx.AsyncClient:
    """
    Create an HTTPX AsyncClient configured from the transport settings.

    Args:
        follow_redirects (bool): Whether to follow 3xx redirects automatically.
        transport (httpx.AsyncBaseTransport | None): Explicit transport. Proxy mounts are skipped when given.
        **kwargs: Additional AsyncClient keyword arguments.

    Returns:
        httpx.AsyncClient: Configured client.
    """
    kwargs.setdefault("timeout", settings.transport_config.timeout)
    if transport is not None:
        kwargs["transport"] = transport
    else:
        kwargs["mounts"] = settings.transport_config.get_mounts()

    return httpx.AsyncClient(follow_redirects=follow_redirects, **kwargs)


def is_media_content_type(content_type: str) -> bool:
    return content_type.lower().startswith(MEDIA_CONTENT_TYPES)


@dataclass
class FetchResult:
    """Outcome of a GET or HEAD request after redirects."""

    final_url: str
    status_code: int = 200
    content_type: str = ""
    text: str = ""
    _document: Optional[BeautifulSoup] = field(default=None, repr=False)

    @property
    def document(self) -> BeautifulSoup:
        if self._document is None:
            self._document = parse_html(self.text)
        return self._document


class HttpFetcher:
    """GET/HEAD capability with retry of transient network errors.

    Bodies of media responses are never read, so requesting a direct video URL
    only costs the response headers.
    """

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retries: Optional[int] = None,
        backoff_factor: float = 0.5,
    ):
        self.transport = transport
        self.retries = settings.request_retries if retries is None else retries
        self.backoff_factor = backoff_factor

    async def get(self, url: str, headers: Optional[Dict[str, str]] = None, allow_redirects: bool = True) -> FetchResult:
        return await self._request("GET", url, headers, allow_redirects)

    async def head(self, url: str, headers: Optional[Dict[str, str]] = None, allow_redirects: bool = True) -> FetchResult:
        return await self._request("HEAD", url, headers, allow_redirects)

    async def _request(
        self, method: str, url: str, headers: Optional[Dict[str, str]], allow_redirects: bool
    ) -> FetchResult:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.retries),
            wait=wait_exponential(multiplier=self.backoff_factor, max=8),
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(f"Retrying {method} {url} (attempt {attempt.retry_state.attempt_number}/{self.retries})")
                return await self._send(method, url, headers or {}, allow_redirects)

    async def _send(self, method: str, url: str, headers: Dict[str, str], allow_redirects: bool) -> FetchResult:
        async with create_httpx_client(follow_redirects=allow_redirects, transport=self.transport) as client:
            async with client.stream(method, url, headers=headers) as response:
                if response.status_code >= 400:
                    logger.debug(f"{method} {url} returned HTTP {response.status_code}")
                    raise DownloadError(response.status_code, f"HTTP error {response.status_code} while requesting {url}")

                content_type = response.headers.get("content-type", "")
                text = ""
                if method == "GET" and not is_media_content_type(content_type):
                    await response.aread()
                    text = response.text

                return FetchResult(
                    final_url=str(response.url),
                    status_code=response.status_code,
                    content_type=content_type,
                    text=text,
                )


def get_request_headers(request: Request) -> Dict[str, str]:
    """
    Extract the headers to forward from request headers and `h_` query parameters.

    Args:
        request (Request): Incoming HTTP request.

    Returns:
        Dict[str, str]: Headers used for outgoing requests.
    """
    request_headers = {k: v for k, v in request.headers.items() if k in SUPPORTED_REQUEST_HEADERS}
    request_headers.update({k[2:].lower(): v for k, v in request.query_params.items() if k.startswith("h_")})
    return request_headers


def get_fetcher() -> HttpFetcher:
    return HttpFetcher()
