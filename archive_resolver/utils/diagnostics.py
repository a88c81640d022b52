import logging
from typing import List, Optional, Protocol, Tuple


class DiagnosticSink(Protocol):
    def __call__(self, level: int, message: str) -> None: ...


class LoggingDiagnosticSink:
    """Forward diagnostics to a standard logger."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("archive_resolver.extractors")

    def __call__(self, level: int, message: str) -> None:
        self.logger.log(level, message)


class CollectingDiagnosticSink:
    """Keep diagnostics in memory, e.g. to return them alongside results."""

    def __init__(self):
        self.records: List[Tuple[int, str]] = []

    def __call__(self, level: int, message: str) -> None:
        self.records.append((level, message))

    def messages(self, min_level: int = logging.DEBUG) -> List[str]:
        return [message for level, message in self.records if level >= min_level]
