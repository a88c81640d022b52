from typing import Dict, Type

from archive_resolver.extractors.archive import ArchiveExtractor, ArchiveOrgExtractor
from archive_resolver.extractors.base import BaseExtractor, ExtractorError


class ExtractorFactory:
    """Factory for creating page extractors."""

    _extractors: Dict[str, Type[BaseExtractor]] = {
        "Archive": ArchiveExtractor,
        "ArchiveOrg": ArchiveOrgExtractor,
    }

    @classmethod
    def get_extractor(cls, host: str, request_headers: dict, **kwargs) -> BaseExtractor:
        """Get appropriate extractor instance for the given host."""
        extractor_class = cls._extractors.get(host)
        if not extractor_class:
            raise ExtractorError(f"Unsupported host: {host}")
        return extractor_class(request_headers, **kwargs)

    @classmethod
    def available_hosts(cls) -> list[str]:
        return list(cls._extractors)
