from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

log = logging.getLogger("tweetsan.api")

REQUEST_ID_HEADER = "X-Request-ID"
DOCUMENTS_HEADER = "X-Tweetsan-Documents"
ERRORS_HEADER = "X-Tweetsan-Errors"


def _count(response: Optional[Response], header: str) -> Optional[int]:
    if response is None:
        return None
    raw = response.headers.get(header)
    try:
        return int(raw) if raw is not None else None
    except ValueError:
        return None


class SanitiseRequestMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log one "sanitise_request" record.

    A client-supplied X-Request-ID is echoed back if it is at most max_len
    characters, otherwise a fresh one is generated. The record carries the
    document and error counts of batch calls, and a single-document call
    answered with 422 counts as one failed document. Tweet content is never
    logged.
    """

    def __init__(self, app, *, max_len: int = 128):
        super().__init__(app)
        self._max_len = max_len

    def _request_id(self, request: Request) -> str:
        rid = request.headers.get(REQUEST_ID_HEADER)
        if not rid or len(rid) > self._max_len:
            rid = uuid4().hex
        return rid

    async def dispatch(self, request: Request, call_next: Callable):
        rid = self._request_id(request)
        request.state.request_id = rid
        start = time.monotonic()
        response: Optional[Response] = None
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = rid
            return response
        finally:
            fields: Dict[str, object] = {
                "request_id": rid,
                "actor_id": getattr(request.state, "actor_id", None),
                "method": request.method,
                "path": request.url.path,
                "status_code": getattr(response, "status_code", None),
                "duration_ms": int((time.monotonic() - start) * 1000),
                "documents": _count(response, DOCUMENTS_HEADER),
                "errors": _count(response, ERRORS_HEADER),
            }
            if request.url.path == "/sanitise" and fields["status_code"] in (200, 422):
                fields["documents"] = 1
                fields["errors"] = 1 if response.status_code == 422 else 0
            if fields["errors"]:
                log.warning("sanitise_request", extra=fields)
            else:
                log.info("sanitise_request", extra=fields)
