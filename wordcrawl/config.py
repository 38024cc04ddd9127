import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .errors import ConfigurationError


DEFAULT_USER_AGENT = "wordcrawl/1.0 (+https://example.com; contact: crawler@example.com)"


def default_parallelism() -> int:
    return os.cpu_count() or 1


@dataclass(frozen=True)
class CrawlConfig:
    start_urls: List[str] = field(default_factory=list)
    max_depth: int = 0
    timeout_seconds: float = 1.0
    popular_word_count: int = 0
    ignored_urls: List[str] = field(default_factory=list)
    ignored_words: List[str] = field(default_factory=list)
    parallelism: int = field(default_factory=default_parallelism)
    request_timeout: float = 15.0
    max_connections: int = 16
    user_agent: str = DEFAULT_USER_AGENT
    result_path: Optional[str] = None
    metrics_interval: float = 0.0
    prometheus_port: Optional[int] = None

    def validate(self) -> None:
        if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int) or self.max_depth < 0:
            raise ConfigurationError(f"max_depth must be a non-negative integer, got {self.max_depth!r}")
        if isinstance(self.popular_word_count, bool) or not isinstance(self.popular_word_count, int) \
                or self.popular_word_count < 0:
            raise ConfigurationError(
                f"popular_word_count must be a non-negative integer, got {self.popular_word_count!r}"
            )
        if not isinstance(self.timeout_seconds, (int, float)) or self.timeout_seconds < 0:
            raise ConfigurationError(f"timeout_seconds must be >= 0, got {self.timeout_seconds!r}")
        if isinstance(self.parallelism, bool) or not isinstance(self.parallelism, int) or self.parallelism < 1:
            raise ConfigurationError(f"parallelism must be a positive integer, got {self.parallelism!r}")
        validate_start_urls(self.start_urls)
        compile_patterns(self.ignored_urls, "ignored_urls")
        compile_patterns(self.ignored_words, "ignored_words")


def validate_start_urls(urls: Sequence[str]) -> None:
    if isinstance(urls, str):
        raise ConfigurationError("start URLs must be a list of strings, not a single string")
    for url in urls:
        if not isinstance(url, str) or not url.strip():
            raise ConfigurationError(f"start URLs must be non-empty strings, got {url!r}")


def compile_patterns(patterns: Sequence[str], name: str = "patterns") -> List["re.Pattern[str]"]:
    compiled = []
    for p in patterns:
        try:
            compiled.append(re.compile(p))
        except (re.error, TypeError) as e:
            raise ConfigurationError(f"invalid regular expression in {name}: {p!r} ({e})") from e
    return compiled


def ignore_predicate(patterns: Sequence[str]) -> Callable[[str], bool]:
    """Build the URL-ignore predicate; a URL is ignored if any pattern matches it in full."""
    compiled = compile_patterns(patterns, "ignored_urls")

    def is_ignored(url: str) -> bool:
        return any(p.fullmatch(url) for p in compiled)

    return is_ignored


# JSON key -> (CrawlConfig field, accepted types)
_JSON_FIELDS = {
    "startPages": ("start_urls", (list,)),
    "maxDepth": ("max_depth", (int,)),
    "timeoutSeconds": ("timeout_seconds", (int, float)),
    "popularWordCount": ("popular_word_count", (int,)),
    "ignoredUrls": ("ignored_urls", (list,)),
    "ignoredWords": ("ignored_words", (list,)),
    "parallelism": ("parallelism", (int,)),
    "resultPath": ("result_path", (str,)),
}


def config_from_dict(data: dict) -> CrawlConfig:
    if not isinstance(data, dict):
        raise ConfigurationError("crawl configuration must be a JSON object")
    kwargs = {}
    for key, (name, types) in _JSON_FIELDS.items():
        if key not in data or data[key] is None:
            continue
        value = data[key]
        if isinstance(value, bool) or not isinstance(value, types):
            raise ConfigurationError(f"{key} has the wrong type: {value!r}")
        kwargs[name] = value
    return CrawlConfig(**kwargs)


def load_config(path: str) -> CrawlConfig:
    try:
        with Path(path).open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except OSError as e:
        raise ConfigurationError(f"cannot read config file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"config file {path} is not valid JSON: {e}") from e
    return config_from_dict(data)
