import logging
import re
from typing import AsyncIterator, List, Optional
from urllib.parse import urlparse

from archive_resolver.configs import settings
from archive_resolver.const import PAGE_REQUEST_HEADERS
from archive_resolver.extractors.base import BaseExtractor, DecodeError, ExtractorError, NetworkError
from archive_resolver.schemas import MediaLink, ResolutionContext
from archive_resolver.utils.base64_utils import decode_base64_text
from archive_resolver.utils.html_utils import (
    document_base_url,
    iter_script_texts,
    parse_html,
    select_download_anchors,
    select_iframe_sources,
    select_media_sources,
    select_mirror_options,
)
from archive_resolver.utils.http_utils import FetchResult
from archive_resolver.utils.media_utils import (
    clean_url,
    is_direct_media_url,
    is_download_page,
    is_media_file_url,
    is_streaming_node,
    normalize_url,
)

# Tried in order against every inline script. Group 1 is the candidate URL.
SCRIPT_PATTERNS = [
    re.compile(r"""(https?://(?:www\.)?archive\.org/download/[^"'\s<>]+\.(?:mp4|m3u8)[^"'\s<>]*)""", re.IGNORECASE),
    re.compile(r"""(https?://ia\d+\.[\w.-]*archive\.org/[^"'\s<>]+\.(?:mp4|m3u8)[^"'\s<>]*)""", re.IGNORECASE),
    re.compile(r"""fetch\(\s*["']([^"']+\.(?:mp4|m3u8)[^"']*)["']""", re.IGNORECASE),
    re.compile(r"""["']?file["']?\s*:\s*["']([^"']+)["']""", re.IGNORECASE),
    re.compile(r"""\b(?:src|url)\s*[:=]\s*["']([^"']+\.(?:mp4|m3u8)[^"']*)["']""", re.IGNORECASE),
    re.compile(r"""(https?://[^"'\s<>]+\.(?:mp4|m3u8)(?:\?[^"'\s<>]*)?)""", re.IGNORECASE),
]


class ArchiveExtractor(BaseExtractor):
    """Archive.org and mirror page extractor.

    Runs an ordered chain of strategies against a page URL and yields every
    media link found, in discovery order:

    1. the URL itself when it already is a .mp4/.m3u8 file
    2. the target of a HEAD redirect when it is a media file
    3. video/source elements and download anchors of the fetched page
    4. base64 encoded mirror options, decoded and scraped like step 3
    5. media URLs found in inline scripts, deduplicated

    Candidates pointing at a download page are followed once more to their
    streaming node. A failing strategy is reported to the diagnostic sink and
    the next one still runs.
    """

    name = "Archive"
    main_url = "https://archive.org"

    def __init__(
        self,
        request_headers: Optional[dict] = None,
        stop_on_first_match: Optional[bool] = None,
        default_referer: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(request_headers, **kwargs)
        self.stop_on_first_match = (
            settings.stop_on_first_match if stop_on_first_match is None else stop_on_first_match
        )
        self.default_referer = default_referer or settings.default_referer

    async def resolve(self, url: str, referer: Optional[str] = None) -> AsyncIterator[MediaLink]:
        page_url = clean_url(url)
        if not page_url:
            return

        referer = referer or self.default_referer
        context = ResolutionContext(page_url=page_url, referer=referer, headers={"referer": referer})

        direct_match = False
        async for link in self._isolated("direct", context, self._direct_link(context)):
            direct_match = True
            yield link
        if direct_match and self.stop_on_first_match:
            return

        async for link in self._isolated("redirect", context, self._redirect_link(context)):
            yield link

        page = await self._fetch_page(context)
        if page is None:
            return

        document = page.document
        base_url = document_base_url(document, page.final_url)
        for step, links in (
            ("scrape", self._scrape_page(context, document, base_url)),
            ("mirrors", self._decode_mirrors(context, document, base_url)),
            ("scripts", self._scan_scripts(context, document, base_url)),
        ):
            async for link in self._isolated(step, context, links):
                yield link

    async def _isolated(
        self, step: str, context: ResolutionContext, links: AsyncIterator[MediaLink]
    ) -> AsyncIterator[MediaLink]:
        try:
            async for link in links:
                self.diagnostics(logging.DEBUG, f"{self.name}: {step} found {link.url}")
                yield link
        except ExtractorError as e:
            self.diagnostics(logging.WARNING, f"{self.name}: {step} step failed for {context.page_url}: {e}")
        except Exception as e:
            self.diagnostics(logging.ERROR, f"{self.name}: unexpected error in {step} step for {context.page_url}: {e!r}")

    async def _direct_link(self, context: ResolutionContext) -> AsyncIterator[MediaLink]:
        if is_direct_media_url(context.page_url):
            context.remember(context.page_url)
            yield self.new_media_link(context.page_url, context.referer)

    async def _redirect_link(self, context: ResolutionContext) -> AsyncIterator[MediaLink]:
        result = await self._make_request(
            context.page_url, method="HEAD", headers={**context.headers, "accept": "*/*"}
        )
        final_url = clean_url(result.final_url)
        if final_url != context.page_url and is_media_file_url(final_url):
            context.remember(final_url)
            yield self.new_media_link(final_url, context.referer, "Direct")

    async def _fetch_page(self, context: ResolutionContext) -> Optional[FetchResult]:
        try:
            page = await self._make_request(context.page_url, headers={**PAGE_REQUEST_HEADERS, **context.headers})
        except NetworkError as e:
            self.diagnostics(logging.WARNING, f"{self.name}: page fetch failed for {context.page_url}: {e}")
            return None
        except Exception as e:
            self.diagnostics(logging.ERROR, f"{self.name}: unexpected error fetching {context.page_url}: {e!r}")
            return None

        if not page.text.strip():
            self.diagnostics(logging.DEBUG, f"{self.name}: no page content at {context.page_url} ({page.content_type})")
            return None
        return page

    async def _scrape_page(self, context: ResolutionContext, document, base_url: str) -> AsyncIterator[MediaLink]:
        for src in select_media_sources(document):
            candidate = normalize_url(src, base_url)
            if candidate:
                yield await self._create_link(context, candidate, "Direct")

        for href, text in select_download_anchors(document):
            candidate = normalize_url(href, base_url)
            if candidate:
                yield await self._create_link(context, candidate, text or "Video")

    async def _decode_mirrors(self, context: ResolutionContext, document, base_url: str) -> AsyncIterator[MediaLink]:
        for index, (value, label) in enumerate(select_mirror_options(document), start=1):
            label = label or f"Mirror {index}"
            try:
                candidates = self._decode_mirror(value, base_url)
            except DecodeError as e:
                self.diagnostics(logging.INFO, f"{self.name}: mirror '{label}' not decoded: {e}")
                if not value.lower().startswith(("http://", "https://")):
                    continue
                candidates = [clean_url(value)]

            for candidate in candidates:
                yield await self._create_link(context, candidate, label)

    def _decode_mirror(self, value: str, base_url: str) -> List[str]:
        """Decode a base64 mirror option into the media URLs of its embed snippet."""
        decoded = decode_base64_text(value)
        if decoded is None:
            raise DecodeError(f"Invalid base64 payload: {value[:50]}")

        fragment = parse_html(decoded)
        candidates = []
        for src in select_media_sources(fragment):
            candidate = normalize_url(src, base_url)
            if candidate:
                candidates.append(candidate)

        for src in select_iframe_sources(fragment):
            candidate = normalize_url(src, base_url)
            if candidate and (is_media_file_url(candidate) or self._is_provider_url(candidate)):
                candidates.append(candidate)
        return candidates

    async def _scan_scripts(self, context: ResolutionContext, document, base_url: str) -> AsyncIterator[MediaLink]:
        for content in iter_script_texts(document):
            for pattern in SCRIPT_PATTERNS:
                for match in pattern.finditer(content):
                    candidate = normalize_url(match.group(1).replace("\\/", "/"), base_url)
                    if not candidate or not self._looks_like_media(candidate) or context.seen(candidate):
                        continue
                    link = await self._create_link(context, candidate, "Script", dedupe=True)
                    if link is not None:
                        yield link

    async def _create_link(
        self, context: ResolutionContext, candidate: str, label: str, dedupe: bool = False
    ) -> Optional[MediaLink]:
        final_url = await self._resolve_download_page(candidate) if is_download_page(candidate) else candidate
        if dedupe and context.seen(final_url):
            context.remember(candidate)
            return None

        context.remember(candidate, final_url)
        return self.new_media_link(final_url, context.referer, label)

    async def _resolve_download_page(self, url: str) -> str:
        """Follow a download page to its streaming node, keeping url when that fails."""
        headers = {"accept": "*/*"}
        for method in ("HEAD", "GET"):
            try:
                result = await self._make_request(url, method=method, headers=headers)
            except NetworkError as e:
                self.diagnostics(logging.INFO, f"{self.name}: {method} resolution failed for {url}: {e}")
                continue

            final_url = clean_url(result.final_url)
            if is_streaming_node(final_url):
                return final_url
            return url
        return url

    def _is_provider_url(self, url: str) -> bool:
        host = urlparse(url).netloc.lower()
        provider = urlparse(self.main_url).netloc.lower()
        return host == provider or host.endswith(f".{provider}")

    @staticmethod
    def _looks_like_media(url: str) -> bool:
        lowered = url.lower()
        return is_media_file_url(url) or ".mp4" in lowered or ".m3u8" in lowered or is_download_page(url)


class ArchiveOrgExtractor(ArchiveExtractor):
    """The same resolver, registered under the name used by archive.org embeds."""

    name = "ArchiveOrg"
