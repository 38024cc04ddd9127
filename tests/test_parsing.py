import pytest

from wordcrawl.errors import FetchError
from wordcrawl.net import HttpClient
from wordcrawl.parsing import HtmlPageFetcher, PageParser, UrlTools
from wordcrawl.types import HttpClientProtocol, HttpResponse


def test_normalize_start():
    urls = ["example.com", "https://foo.com/path#frag", "", "  file:///tmp/a.html "]
    out = UrlTools.normalize_start(urls)
    assert out[0].startswith("https://example.com")
    assert out[1] == "https://foo.com/path"
    assert out[2] == "file:///tmp/a.html"
    assert len(out) == 3


def test_normalize_link():
    base = "https://example.com/a/b"
    assert UrlTools.normalize_link(base, "mailto:x") is None
    assert UrlTools.normalize_link(base, "javascript:void(0)") is None
    assert UrlTools.normalize_link(base, "#frag") is None
    assert UrlTools.normalize_link(base, "ftp://example.com/f") is None
    assert UrlTools.normalize_link(base, "/c") == "https://example.com/c"
    assert UrlTools.normalize_link(base, "d#x") == "https://example.com/a/d"
    assert UrlTools.normalize_link("file:///site/index.html", "b.html") == "file:///site/b.html"


def test_count_words_normalizes_and_ignores():
    parser = PageParser(ignored_words=["^.{1,2}$", "the"])
    counts = parser.count_words("The cat, the CAT! and a dog's bone. Cat")
    assert counts == {"cat": 3, "and": 1, "dogs": 1, "bone": 1}


def test_parse_html():
    html = """
    <html><head><title>Hi There</title><style>p { color: red }</style></head>
    <body>
      <script>var hidden = 1;</script>
      <p>hello world hello</p>
      <a href="/x">link</a>
      <a href="mailto:me@example.com">mail</a>
    </body></html>
    """
    result = PageParser().parse("https://example.com", html)
    assert result.links == ["https://example.com/x"]
    assert result.word_counts == {"hi": 1, "there": 1, "hello": 2, "world": 1, "link": 1, "mail": 1}


class StubHttp(HttpClientProtocol):
    def __init__(self, response):
        self.response = response

    def fetch(self, url: str) -> HttpResponse:
        return self.response


def test_fetcher_parses_html_and_text():
    html = '<html><body>a b b <a href="/n">n</a></body></html>'
    fetcher = HtmlPageFetcher(StubHttp(HttpResponse(200, "text/html; charset=utf-8", html)), PageParser())
    result = fetcher.fetch("https://example.com/")
    assert result.word_counts == {"a": 1, "b": 2, "n": 1}
    assert result.links == ["https://example.com/n"]

    fetcher = HtmlPageFetcher(StubHttp(HttpResponse(200, "text/plain", "x y x")), PageParser())
    result = fetcher.fetch("https://example.com/t.txt")
    assert result.word_counts == {"x": 2, "y": 1}
    assert result.links == []


@pytest.mark.parametrize(
    "response",
    [
        HttpResponse(404, "text/html", ""),
        HttpResponse(500, "text/html", "oops"),
        HttpResponse(200, "image/png", ""),
    ],
)
def test_fetcher_rejects_unusable_responses(response):
    fetcher = HtmlPageFetcher(StubHttp(response), PageParser())
    with pytest.raises(FetchError):
        fetcher.fetch("https://example.com/")


def test_http_client_reads_file_urls(tmp_path):
    page = tmp_path / "page.html"
    page.write_text("<p>local</p>", encoding="utf-8")
    client = HttpClient("test-agent", 1.0, 1)
    response = client.fetch(page.as_uri())
    assert response.status == 200
    assert response.content_type == "text/html"
    assert response.text == "<p>local</p>"

    with pytest.raises(FetchError):
        client.fetch((tmp_path / "missing.html").as_uri())
    with pytest.raises(FetchError):
        client.fetch("gopher://example.com/")
