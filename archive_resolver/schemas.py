from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field


class LinkKind(str, Enum):
    VIDEO = "video"
    MANIFEST = "manifest"


class QualityTier(IntEnum):
    P240 = 240
    P360 = 360
    P480 = 480
    P720 = 720
    P1080 = 1080
    UNKNOWN = -1


class MediaLink(BaseModel):
    """A playable media URL discovered on a page."""

    model_config = ConfigDict(frozen=True)

    source_name: str = Field(..., description="Name of the extractor that found the link.")
    display_name: str = Field(..., description="Human readable name, including the mirror label when known.")
    url: str = Field(..., description="Direct video file or streaming manifest URL.")
    kind: LinkKind = Field(..., description="Whether the URL is a progressive video or an HLS manifest.")
    referer: str = Field(..., description="Referer the player must send when fetching the URL.")
    quality: QualityTier = Field(QualityTier.UNKNOWN, description="Quality derived from the URL.")
    headers: Dict[str, str] = Field(default_factory=dict, description="Headers the player must send.")


class SubtitleFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    lang: str
    url: str


@dataclass
class ResolutionContext:
    """Per-call state of a single resolution. Never shared between calls."""

    page_url: str
    referer: str
    headers: Dict[str, str]
    emitted_urls: Set[str] = field(default_factory=set)

    def seen(self, *urls: str) -> bool:
        return any(url in self.emitted_urls for url in urls)

    def remember(self, *urls: str) -> None:
        self.emitted_urls.update(urls)


class GenericParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ExtractorURLParams(GenericParams):
    host: str = Field("Archive", description="The extractor to resolve the URL with (Archive or ArchiveOrg).")
    destination: str = Field(..., description="The URL of the page or media file.", alias="d")
    referer: Optional[str] = Field(None, description="Referer to send. Defaults to the provider origin.")
    stop_on_first_match: Optional[bool] = Field(
        None,
        description="Stop after a direct media URL match instead of searching the page for more mirrors.",
    )


class ResolveResponse(BaseModel):
    links: List[MediaLink] = Field(default_factory=list)
    subtitles: List[SubtitleFile] = Field(default_factory=list)
