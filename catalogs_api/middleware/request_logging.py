from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from catalogs_api.core.request_context import clear_request_context, set_request_context

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        set_request_context(request_id=request_id)

        status_code = 500
        response = None
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            identity = getattr(request.state, "identity", None)
            tenant_id = getattr(identity, "tenant_id", None)
            user_id = getattr(identity, "id", None)
            duration_ms = round((time.perf_counter() - start) * 1000, 2)

            logger.info(
                "[%s] %s - %s (%sms) - Tenant: %s",
                request.method,
                request.url.path,
                status_code,
                duration_ms,
                tenant_id if tenant_id is not None else "unknown",
                extra={
                    "request_id": request_id,
                    "tenant_id": str(tenant_id) if tenant_id is not None else None,
                    "user_id": str(user_id) if user_id is not None else None,
                    "endpoint": request.url.path,
                    "method": request.method,
                    "status_code": status_code,
                    "duration_ms": duration_ms,
                },
            )

            if response is not None:
                response.headers["X-Request-ID"] = request_id

            clear_request_context()
