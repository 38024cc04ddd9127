from pathlib import Path
from urllib.parse import unquote, urlparse

import urllib3
from urllib3.util.retry import Retry
from urllib3 import exceptions as urllib3_exc

from .errors import FetchError
from .types import HttpResponse


class HttpClient:
    def __init__(self, user_agent: str, request_timeout: float, concurrency: int, max_connections: int = 16):
        self.user_agent = user_agent
        self.timeout = urllib3.Timeout(connect=5.0, read=request_timeout)
        # Failed fetches are not retried; redirects are still followed.
        self.http = urllib3.PoolManager(
            num_pools=max(8, concurrency),
            maxsize=max_connections,
            headers={
                "User-Agent": user_agent,
                "Accept": "text/html,text/plain;q=0.9,*/*;q=0.8",
                "Accept-Encoding": "gzip, deflate",
            },
            retries=Retry(total=None, connect=0, read=0, status=0, other=0, redirect=5,
                          raise_on_status=False),
        )

    def _request_bytes(self, url: str) -> tuple[int, str, bytes]:
        try:
            response = self.http.request(
                "GET",
                url,
                timeout=self.timeout,
                preload_content=True,
                headers={"User-Agent": self.user_agent},
            )
        except urllib3_exc.HTTPError as e:
            raise FetchError(url, str(e)) from e
        except ValueError as e:
            raise FetchError(url, f"bad URL ({e})") from e
        return response.status, response.headers.get("Content-Type", ""), response.data or b""

    def _read_file(self, url: str) -> tuple[int, str, bytes]:
        path = Path(unquote(urlparse(url).path))
        try:
            body = path.read_bytes()
        except OSError as e:
            raise FetchError(url, str(e)) from e
        content_type = "text/html" if path.suffix.lower() in (".html", ".htm") else "text/plain"
        return 200, content_type, body

    def fetch(self, url: str) -> HttpResponse:
        scheme = urlparse(url).scheme
        if scheme == "file":
            status, content_type, body = self._read_file(url)
        elif scheme in ("http", "https"):
            status, content_type, body = self._request_bytes(url)
        else:
            raise FetchError(url, f"unsupported scheme {scheme!r}")
        text = ""
        if "text/html" in (content_type or "") or "text/plain" in (content_type or ""):
            text = body.decode("utf-8", errors="ignore")
        return HttpResponse(status=status, content_type=content_type or "", text=text)
