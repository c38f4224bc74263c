from __future__ import annotations

import json
import ssl
from dataclasses import dataclass
from typing import Any, Mapping, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode, urljoin
from urllib.request import Request, urlopen

API_KEY_HEADER: str = "X-Tweetsan-API-Key"


@dataclass(frozen=True, slots=True)
class HttpResponse:
    """HTTP response wrapper; `body_bytes` is untrusted."""

    status: int
    headers: Mapping[str, str]
    body_bytes: bytes

    def json(self) -> Any:
        """Decode body as JSON."""

        return json.loads(self.body_bytes.decode("utf-8", errors="strict"))

    def text(self) -> str:
        return self.body_bytes.decode("utf-8", errors="replace")

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""

        lname = name.lower()
        for k, v in self.headers.items():
            if k.lower() == lname:
                return v
        return None


class TweetsanHttpClient:
    """Minimal stdlib-only HTTP client for the tweetsan API.

    Enforces a max body size so a huge tweet dump is not sent by accident.
    TLS verification is never disabled.
    """

    def __init__(
        self, base_url: str, api_key: Optional[str] = None, max_body_bytes: int = 5 * 1024 * 1024
    ):
        self.base_url = base_url.rstrip("/") + "/"
        self.api_key = api_key
        self.max_body_bytes = int(max_body_bytes)

    def _url(self, path: str, params: Optional[Mapping[str, str]] = None) -> str:
        url = urljoin(self.base_url, path.lstrip("/"))
        if params:
            url = f"{url}?{urlencode(dict(params))}"
        return url

    def _request(
        self,
        url: str,
        *,
        method: str,
        body: Optional[bytes] = None,
        content_type: Optional[str] = None,
    ) -> Request:
        if body is not None and len(body) > self.max_body_bytes:
            raise ValueError(f"body too large for client cap: {len(body)} > {self.max_body_bytes}")
        req = Request(url=url, data=body, method=method)
        if content_type:
            req.add_header("Content-Type", content_type)
        if body is not None:
            req.add_header("Content-Length", str(len(body)))
        if self.api_key:
            req.add_header(API_KEY_HEADER, self.api_key)
        return req

    def get(self, path: str) -> HttpResponse:
        """HTTP GET."""

        return _do_request(self._request(self._url(path), method="GET"))

    def post_text(
        self,
        path: str,
        text: str,
        *,
        content_type: str = "application/json",
        params: Optional[Mapping[str, str]] = None,
    ) -> HttpResponse:
        """HTTP POST of a UTF-8 text body."""

        req = self._request(
            self._url(path, params),
            method="POST",
            body=text.encode("utf-8"),
            content_type=content_type,
        )
        return _do_request(req)

    def put_json(self, path: str, payload: Mapping[str, Any]) -> HttpResponse:
        """HTTP PUT of a JSON payload."""

        body = json.dumps(dict(payload)).encode("utf-8")
        req = self._request(
            self._url(path), method="PUT", body=body, content_type="application/json"
        )
        return _do_request(req)


def _do_request(req: Request) -> HttpResponse:
    """Execute a request; HTTP errors come back as responses, network errors raise."""

    try:
        ctx = ssl.create_default_context()
        with urlopen(req, context=ctx) as resp:
            body = resp.read()
            headers = {k: v for k, v in resp.headers.items()}
            return HttpResponse(status=int(resp.status), headers=headers, body_bytes=body)
    except HTTPError as e:
        body = e.read() if hasattr(e, "read") else b""
        headers = dict(getattr(e, "headers", {}) or {})
        return HttpResponse(
            status=int(getattr(e, "code", 0) or 0), headers=headers, body_bytes=body
        )
    except URLError as e:
        raise RuntimeError(f"network error: {e}") from e
