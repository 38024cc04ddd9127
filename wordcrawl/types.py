from dataclasses import dataclass, field
from typing import Dict, List, Protocol


@dataclass(frozen=True)
class HttpResponse:
    status: int
    content_type: str
    text: str


@dataclass(frozen=True)
class PageParseResult:
    word_counts: Dict[str, int] = field(default_factory=dict)
    links: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CrawlResult:
    word_counts: Dict[str, int]
    urls_visited: int


class HttpClientProtocol(Protocol):
    def fetch(self, url: str) -> HttpResponse: ...


class DocumentFetcher(Protocol):
    def fetch(self, url: str) -> PageParseResult: ...
