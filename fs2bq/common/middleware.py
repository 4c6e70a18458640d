"""
Request tracking for the export API.

Binds the X-Request-ID header (or a fresh one) as the logging
correlation ID, so every line logged by the batch a request starts can
be traced back to it, and echoes it on the response.
"""

import logging
import re
import time
from typing import Any, Callable, Dict

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from fs2bq.common.logging_config import clear_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Polled by orchestrators and scrapers; not worth a log line each
_QUIET_PATHS = frozenset({"/health", "/live", "/metrics"})

_TARGET_PATTERN = re.compile(r"/(?P<kind>datasets|collections)/(?P<name>[^/]+)")


def request_target(path: str) -> Dict[str, str]:
    """
    Extract the dataset or collection a request operates on.

    ``/api/v1/datasets/sales/copy`` gives ``{"dataset": "sales"}``,
    ``/api/v1/collections/users/schema`` gives ``{"collection": "users"}``.
    """
    match = _TARGET_PATTERN.search(path)
    if not match:
        return {}
    key = "dataset" if match.group("kind") == "datasets" else "collection"
    return {key: match.group("name")}


class RequestTrackingMiddleware(BaseHTTPMiddleware):
    """Correlation IDs and one summary log line per export request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_correlation_id(request.headers.get(REQUEST_ID_HEADER))
        path = request.url.path
        fields: Dict[str, Any] = {"method": request.method, "path": path, **request_target(path)}
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{request.method} {path} failed",
                extra={"extra_fields": {**fields, "error_type": type(e).__name__, "error": str(e)}},
            )
            raise
        finally:
            clear_correlation_id()

        response.headers[REQUEST_ID_HEADER] = request_id

        if path not in _QUIET_PATHS:
            fields["status_code"] = response.status_code
            fields["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
            fields["request_id"] = request_id
            # Partial batch failures come back as 409/502
            level = logging.WARNING if response.status_code >= 400 else logging.INFO
            logger.log(level, f"{request.method} {path} -> {response.status_code}",
                       extra={"extra_fields": fields})

        return response
