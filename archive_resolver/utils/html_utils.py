from typing import Iterator, List, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from archive_resolver.const import DOWNLOAD_ANCHOR_EXTENSIONS


def parse_html(text: str) -> BeautifulSoup:
    return BeautifulSoup(text or "", "lxml")


def _src_of(element) -> str:
    src = (element.get("src") or "").strip()
    if not src:
        src = (element.get("data-src") or "").strip()
    return src


def select_media_sources(document: BeautifulSoup) -> List[str]:
    """Return the non-blank src (or data-src) of every video/source element, in document order."""
    sources = []
    for element in document.select("video, source"):
        src = _src_of(element)
        if src:
            sources.append(src)
    return sources


def select_iframe_sources(document: BeautifulSoup) -> List[str]:
    sources = []
    for element in document.select("iframe"):
        src = _src_of(element)
        if src:
            sources.append(src)
    return sources


def select_download_anchors(document: BeautifulSoup) -> List[Tuple[str, str]]:
    """
    Return (href, text) for anchors pointing at media files, as listed on download pages.

    Args:
        document (BeautifulSoup): The parsed page.

    Returns:
        List[Tuple[str, str]]: The href and the visible anchor text.
    """
    anchors = []
    for anchor in document.select("a[href]"):
        href = anchor["href"].strip()
        if href and any(ext in href.lower() for ext in DOWNLOAD_ANCHOR_EXTENSIONS):
            anchors.append((href, anchor.get_text(strip=True)))
    return anchors


def select_mirror_options(document: BeautifulSoup) -> List[Tuple[str, str]]:
    """
    Return (value, label) of every mirror option with a non-blank value.

    Mirror pickers are rendered as `select.mirror` / `.mobius` option lists
    whose values are usually base64 encoded embed snippets.
    """
    options = []
    for option in document.select("option"):
        value = (option.get("value") or "").strip()
        if value:
            options.append((value, option.get_text(strip=True)))
    return options


def iter_script_texts(document: BeautifulSoup) -> Iterator[str]:
    for script in document.find_all("script"):
        content = script.string if script.string is not None else script.get_text()
        if content and content.strip():
            yield content


def document_base_url(document: BeautifulSoup, fallback: str) -> str:
    base = document.find("base", href=True)
    if base and base["href"].strip():
        return urljoin(fallback, base["href"].strip())
    return fallback
