from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from movie_rental.core.metrics import request_metrics
from movie_rental.core.request_context import clear_request_context, set_request_context

logger = logging.getLogger(__name__)
REQUEST_ID_HEADER = "X-Request-ID"


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Request id, métricas por endpoint e log de conclusão de cada requisição.

    O motivo de falha (``ErrorReason``) é lido de ``request.state.error_reason``,
    preenchido pelo handler de ``OperationFailedError``.
    """

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        set_request_context(request_id=request_id)

        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            reason = getattr(request.state, "error_reason", None)
            request_metrics.observe(
                endpoint=request.url.path,
                method=request.method,
                status_code=status_code,
                duration_ms=duration_ms,
                reason=reason,
            )
            level = logging.ERROR if status_code >= 500 else logging.INFO
            logger.log(
                level,
                "request completed %s %s status=%s",
                request.method,
                request.url.path,
                status_code,
                extra={
                    "endpoint": request.url.path,
                    "method": request.method,
                    "status_code": status_code,
                    "duration_ms": duration_ms,
                    "reason": reason,
                },
            )
            clear_request_context()
