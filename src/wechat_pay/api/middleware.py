from __future__ import annotations

import time
import uuid

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from wechat_pay.core.constants import REQUEST_ID_HEADER
from wechat_pay.core.logging import bind_request_context, clear_request_context

__all__ = ["RequestContextMiddleware"]

logger = structlog.get_logger("wechat_pay.request")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id for the pipeline logs and write one access line.

    Notification bodies are never logged here; only their size is, so a
    rejected callback can be matched to the pipeline's own warning by
    ``request_id``.
    """

    def __init__(self, app: ASGIApp, header_name: str = REQUEST_ID_HEADER) -> None:
        super().__init__(app)
        self._header_name = header_name

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(self._header_name) or uuid.uuid4().hex
        request.state.request_id = request_id
        bind_request_context(request_id, method=request.method, path=request.url.path)
        start = time.perf_counter()

        try:
            response = await call_next(request)
            self._log(request, response.status_code, start)
        except Exception:
            logger.exception("request_failed", duration_ms=_elapsed_ms(start))
            raise
        finally:
            clear_request_context()

        response.headers[self._header_name] = request_id
        return response

    def _log(self, request: Request, status_code: int, start: float) -> None:
        if status_code >= 500:
            log = logger.error
        elif status_code >= 400:
            log = logger.warning
        else:
            log = logger.info
        log(
            "request_completed",
            status_code=status_code,
            body_bytes=request.headers.get("content-length"),
            duration_ms=_elapsed_ms(start),
        )


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 3)
