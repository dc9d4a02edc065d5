"""Monitoring and observability middleware"""
import time
from typing import Callable

from fastapi import Request, Response
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

from storefront_admin.utils.logger import logger


# ===== Prometheus Metrics =====

http_requests_total = Counter(
    "storefront_admin_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "storefront_admin_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"]
)

http_errors_total = Counter(
    "storefront_admin_http_errors_total",
    "Total HTTP errors",
    ["method", "endpoint", "status"]
)

# Admin auth metrics
authentication_failures_total = Counter(
    "storefront_admin_authentication_failures_total",
    "Total admin authentication failures",
    ["reason"]  # NO_TOKEN, INVALID_TOKEN, NOT_ADMIN, ADMIN_NOT_FOUND, CREDENTIALS_UPDATED, ...
)

admin_logins_total = Counter(
    "storefront_admin_logins_total",
    "Admin login attempts",
    ["outcome"]  # success, invalid_credentials, credentials_updated
)

forced_logouts_total = Counter(
    "storefront_admin_forced_logouts_total",
    "Admins flagged for forced logout after a credential edit"
)


class MonitoringMiddleware(BaseHTTPMiddleware):
    """Middleware for monitoring and metrics collection"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and collect metrics"""
        start_time = time.time()

        method = request.method
        endpoint = request.url.path

        # Add request ID for tracing
        request_id = request.headers.get("x-request-id", f"req_{int(time.time() * 1000)}")
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            status = response.status_code

            duration = time.time() - start_time
            http_requests_total.labels(
                method=method,
                endpoint=endpoint,
                status=status
            ).inc()

            http_request_duration_seconds.labels(
                method=method,
                endpoint=endpoint
            ).observe(duration)

            # Log slow requests
            if duration > 1.0:
                logger.warning(
                    f"Slow request detected: {method} {endpoint}",
                    extra={"request_id": request_id}
                )

            if status >= 400:
                http_errors_total.labels(
                    method=method,
                    endpoint=endpoint,
                    status=status
                ).inc()

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration:.3f}s"

            return response

        except Exception:
            http_errors_total.labels(
                method=method,
                endpoint=endpoint,
                status=500
            ).inc()

            logger.error(
                f"Request failed: {method} {endpoint}",
                extra={"request_id": request_id},
                exc_info=True
            )
            raise


def record_auth_failure(reason: str):
    """Record authentication failure"""
    authentication_failures_total.labels(reason=reason).inc()


def record_login(outcome: str):
    """Record admin login outcome"""
    admin_logins_total.labels(outcome=outcome).inc()



def record_forced_logout():
    """Record an admin flagged for forced logout"""
    forced_logouts_total.inc()
