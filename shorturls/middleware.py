"""Access logging and the last-resort error boundary."""

import datetime
import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from shorturls.clicks import RequestMetadata, client_ip
from shorturls.errors import ShortenerError

__all__ = ["AccessLogMiddleware"]


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Writes one access line per request and turns unexpected exceptions into a bare 500."""

    def __init__(
        self,
        app,
        access_logger: logging.Logger | None = None,
        error_logger: logging.Logger | None = None,
    ):
        super().__init__(app)
        self.access_logger = access_logger or logging.getLogger("shorturls.access")
        self.error_logger = error_logger or logging.getLogger("shorturls.errors")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception:
            self.error_logger.exception(f"{request.method} {request.url.path} error")
            response = JSONResponse(
                status_code=500,
                content={"error": ShortenerError.message},
            )

        duration_ms = (time.time() - start_time) * 1000
        self.access_logger.info(
            " ".join(
                [
                    datetime.datetime.now(datetime.timezone.utc).isoformat(),
                    client_ip(RequestMetadata.from_request(request)),
                    request.method,
                    request.url.path,
                    str(response.status_code),
                    f"{duration_ms:.0f}ms",
                ]
            )
        )
        return response
