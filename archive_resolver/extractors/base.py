from abc import ABC, abstractmethod
from typing import AsyncIterator, Callable, Dict, List, Optional

import httpx
import logging

from archive_resolver.configs import settings
from archive_resolver.const import MEDIA_LINK_HEADERS
from archive_resolver.schemas import MediaLink, SubtitleFile
from archive_resolver.utils.diagnostics import DiagnosticSink, LoggingDiagnosticSink
from archive_resolver.utils.http_utils import DownloadError, FetchResult, HttpFetcher
from archive_resolver.utils.media_utils import link_kind_for, quality_from_name

logger = logging.getLogger(__name__)


class ExtractorError(Exception):
    """Base exception for all extractors."""
    pass


class NetworkError(ExtractorError):
    """A request failed, timed out or returned an error status."""
    pass


class ParseError(ExtractorError):
    """A document could not be parsed."""
    pass


class DecodeError(ExtractorError):
    """An obfuscated value could not be decoded."""
    pass


class BaseExtractor(ABC):
    """Base class for all page extractors.

    An extractor is a stateless service: it is constructed once with its
    capabilities (HTTP fetcher, diagnostic sink) and resolves any number of
    page URLs. All per-call state lives in the resolution itself.
    """

    name = "Base"
    main_url = ""

    def __init__(
        self,
        request_headers: Optional[dict] = None,
        fetcher: Optional[HttpFetcher] = None,
        diagnostics: Optional[DiagnosticSink] = None,
    ):
        self.base_headers = {
            "user-agent": settings.user_agent,
        }
        # merge incoming headers (e.g. Accept-Language / Referer) with default base headers
        self.base_headers.update(request_headers or {})
        self.fetcher = fetcher or HttpFetcher()
        self.diagnostics = diagnostics or LoggingDiagnosticSink(logger)

    async def _make_request(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Dict] = None,
        allow_redirects: bool = True,
    ) -> FetchResult:
        """
        Make an HTTP request through the fetcher capability.

        Parameters
        ----------
        method : str
            "GET" or "HEAD".
        headers : dict | None
            Per-request headers merged over the base headers.
        allow_redirects : bool
            Whether redirects are followed to the final URL.

        Raises
        ------
        NetworkError
            When the request fails, times out or returns an error status.
        """
        request_headers = self.base_headers.copy()
        if headers:
            request_headers.update(headers)

        try:
            if method == "HEAD":
                return await self.fetcher.head(url, headers=request_headers, allow_redirects=allow_redirects)
            return await self.fetcher.get(url, headers=request_headers, allow_redirects=allow_redirects)
        except DownloadError as e:
            raise NetworkError(f"HTTP error {e.status_code} while requesting {url}") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NetworkError(f"Request failed for URL {url}: {str(e)}") from e

    def new_media_link(self, url: str, referer: str, display_name: Optional[str] = None) -> MediaLink:
        """Wrap a discovered URL. Quality, kind and player headers are derived here only."""
        headers = {"User-Agent": self.base_headers["user-agent"], **MEDIA_LINK_HEADERS, "Referer": referer}
        return MediaLink(
            source_name=self.name,
            display_name=f"{display_name} - {self.name}" if display_name else self.name,
            url=url,
            kind=link_kind_for(url),
            referer=referer,
            quality=quality_from_name(url),
            headers=headers,
        )

    @abstractmethod
    def resolve(self, url: str, referer: Optional[str] = None) -> AsyncIterator[MediaLink]:
        """Yield the media links found for url, first found first."""
        pass

    async def extract(self, url: str, referer: Optional[str] = None) -> List[MediaLink]:
        """Resolve url and collect every link."""
        return [link async for link in self.resolve(url, referer)]

    async def get_url(
        self,
        url: str,
        referer: Optional[str],
        subtitle_callback: Callable[[SubtitleFile], None],
        callback: Callable[[MediaLink], None],
    ) -> None:
        """Push each link to callback as soon as it is discovered."""
        async for link in self.resolve(url, referer):
            callback(link)
