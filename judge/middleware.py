import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class HTTPLogMiddleware(BaseHTTPMiddleware):
    """Debug logging of every request, tagged with a request id."""

    def __init__(self, app, logger_name: str = "judge.http"):
        super().__init__(app)
        self._logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next):
        start = time.time()
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
        path = request.url.path
        method = request.method
        client = request.client.host if request.client else "-"
        self._logger.debug("http.request start id=%s method=%s path=%s client=%s",
                           request_id, method, path, client)
        try:
            response: Response = await call_next(request)
        except Exception as e:
            dur_ms = int((time.time() - start) * 1000)
            self._logger.warning("http.request error id=%s method=%s path=%s dur_ms=%s err=%r",
                                 request_id, method, path, dur_ms, e)
            raise
        dur_ms = int((time.time() - start) * 1000)
        response.headers["X-Request-ID"] = request_id
        self._logger.debug("http.request end id=%s status=%s dur_ms=%s",
                           request_id, response.status_code, dur_ms)
        return response
