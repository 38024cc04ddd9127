import re
from collections import Counter
from typing import Iterable, List, Optional, Sequence
from urllib.parse import urljoin, urldefrag, urlparse

from bs4 import BeautifulSoup

from .config import compile_patterns
from .errors import FetchError
from .types import HttpClientProtocol, PageParseResult


FETCHABLE_SCHEMES = ("http", "https", "file")
_NON_WORD = re.compile(r"[\W_]+")


class UrlTools:
    @staticmethod
    def normalize_start(urls: Iterable[str]) -> List[str]:
        normalized: List[str] = []
        for u in urls:
            u = (u or "").strip()
            if not u:
                continue
            parsed = urlparse(u)
            if not parsed.scheme:
                u = "https://" + u
            u, _ = urldefrag(u)
            normalized.append(u)
        return normalized

    @staticmethod
    def normalize_link(base_url: str, href: str) -> Optional[str]:
        if not href:
            return None
        href = href.strip()
        if href.startswith(("mailto:", "javascript:", "tel:", "#")):
            return None
        absolute = urljoin(base_url, href)
        absolute, _ = urldefrag(absolute)
        parsed = urlparse(absolute)
        if parsed.scheme not in FETCHABLE_SCHEMES:
            return None
        return absolute


class PageParser:
    """Turns a document into word counts and the absolute links it contains."""

    def __init__(self, ignored_words: Sequence[str] = ()):
        self._ignored_words = compile_patterns(ignored_words, "ignored_words")

    def _is_ignored_word(self, word: str) -> bool:
        return any(p.fullmatch(word) for p in self._ignored_words)

    def count_words(self, text: str) -> Counter:
        counts: Counter = Counter()
        for raw in text.split():
            word = _NON_WORD.sub("", raw).lower()
            if not word or self._is_ignored_word(word):
                continue
            counts[word] += 1
        return counts

    def parse(self, url: str, html: str) -> PageParseResult:
        soup = BeautifulSoup(html, "html.parser")
        for el in soup(["script", "style"]):
            el.decompose()
        links: List[str] = []
        for a in soup.find_all("a", href=True):
            normalized = UrlTools.normalize_link(url, a["href"])
            if normalized:
                links.append(normalized)
        counts = self.count_words(soup.get_text(" ", strip=True))
        return PageParseResult(word_counts=dict(counts), links=links)

    def parse_text(self, text: str) -> PageParseResult:
        return PageParseResult(word_counts=dict(self.count_words(text)), links=[])


class HtmlPageFetcher:
    """Document fetcher backed by an HTTP client and a page parser."""

    def __init__(self, http: HttpClientProtocol, parser: PageParser):
        self.http = http
        self.parser = parser

    def fetch(self, url: str) -> PageParseResult:
        response = self.http.fetch(url)
        if response.status < 200 or response.status >= 300:
            raise FetchError(url, f"HTTP status {response.status}")
        if "text/html" in response.content_type:
            return self.parser.parse(url, response.text)
        if "text/plain" in response.content_type:
            return self.parser.parse_text(response.text)
        raise FetchError(url, f"unsupported content type {response.content_type!r}")
