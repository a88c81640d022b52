import re
from typing import Optional
from urllib.parse import urljoin

from archive_resolver.configs import settings
from archive_resolver.const import DIRECT_MEDIA_EXTENSIONS, MEDIA_FILE_EXTENSIONS
from archive_resolver.schemas import LinkKind, QualityTier

# Ordered, first match wins.
QUALITY_RULES = (
    (("1080",), QualityTier.P1080),
    (("720", "hd"), QualityTier.P720),
    (("480", "sd"), QualityTier.P480),
    (("360",), QualityTier.P360),
    (("240",), QualityTier.P240),
)

DIRECT_MEDIA_RE = re.compile(
    r"\.(?:%s)(?:[?#].*)?$" % "|".join(DIRECT_MEDIA_EXTENSIONS),
    re.IGNORECASE,
)
MEDIA_FILE_RE = re.compile(
    r"\.(?:%s)(?:[?#].*)?$" % "|".join(MEDIA_FILE_EXTENSIONS),
    re.IGNORECASE,
)


def quality_from_name(name: str) -> QualityTier:
    """
    Derive the quality tier from a URL or file name.

    Args:
        name (str): The URL or file name.

    Returns:
        QualityTier: The first matching tier, or UNKNOWN.
    """
    lowered = name.lower()
    for needles, tier in QUALITY_RULES:
        if any(needle in lowered for needle in needles):
            return tier
    return QualityTier.UNKNOWN


def link_kind_for(url: str) -> LinkKind:
    return LinkKind.MANIFEST if ".m3u8" in url.lower() else LinkKind.VIDEO


def clean_url(url: str) -> str:
    return url.strip().replace(" ", "%20")


def normalize_url(src: Optional[str], base_url: str) -> Optional[str]:
    """
    Turn a src/href attribute value into an absolute URL.

    Protocol-relative URLs get an https scheme, relative URLs are resolved
    against base_url and spaces are percent-encoded.

    Args:
        src (str | None): The raw attribute value.
        base_url (str): The URL of the document the value was found in.

    Returns:
        str | None: The absolute URL, or None for a blank value.
    """
    if not src or not src.strip():
        return None

    url = clean_url(src)
    if url.startswith("//"):
        return f"https:{url}"
    if url.lower().startswith(("http://", "https://")):
        return url
    return urljoin(clean_url(base_url), url)


def is_direct_media_url(url: str) -> bool:
    return bool(DIRECT_MEDIA_RE.search(url))


def is_media_file_url(url: str) -> bool:
    return bool(MEDIA_FILE_RE.search(url))


def is_streaming_node(url: str) -> bool:
    return re.search(settings.streaming_node_pattern, url, re.IGNORECASE) is not None


def is_download_page(url: str) -> bool:
    """Whether url points at a provider download page that still redirects to a streaming node."""
    if is_streaming_node(url):
        return False
    return re.search(settings.download_page_pattern, url, re.IGNORECASE) is not None
