"""Per-path request timing, exposed at /health/metrics."""

import logging
import time
from collections import defaultdict
from typing import Callable, Dict

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

# Gemini round-trips routinely take seconds; thresholds are set above that.
SLOW_REQUEST_SECONDS = 10.0
VERY_SLOW_REQUEST_SECONDS = 30.0


class PathStats:
    def __init__(self) -> None:
        self.count = 0
        self.errors = 0
        self.total_duration = 0.0
        self.max_duration = 0.0

    def as_dict(self) -> Dict[str, float]:
        return {
            "count": self.count,
            "errors": self.errors,
            "average_ms": round(self.total_duration / self.count * 1000, 2) if self.count else 0.0,
            "max_ms": round(self.max_duration * 1000, 2),
        }


class PerformanceMetrics:
    """Request counters, overall and per path."""

    def __init__(self) -> None:
        self.request_count = 0
        self.total_duration = 0.0
        self.slow_requests = 0
        self.very_slow_requests = 0
        self.errors = 0
        self.paths: Dict[str, PathStats] = defaultdict(PathStats)

    def record_request(self, path: str, duration: float, is_error: bool = False) -> None:
        self.request_count += 1
        self.total_duration += duration
        if is_error:
            self.errors += 1
        if duration >= VERY_SLOW_REQUEST_SECONDS:
            self.very_slow_requests += 1
        elif duration >= SLOW_REQUEST_SECONDS:
            self.slow_requests += 1

        stats = self.paths[path]
        stats.count += 1
        stats.total_duration += duration
        stats.max_duration = max(stats.max_duration, duration)
        if is_error:
            stats.errors += 1

    def get_summary(self) -> dict:
        average = (self.total_duration / self.request_count) * 1000 if self.request_count else 0.0
        error_rate = (self.errors / self.request_count) * 100 if self.request_count else 0.0
        return {
            "total_requests": self.request_count,
            "average_duration_ms": round(average, 2),
            "slow_requests": self.slow_requests,
            "very_slow_requests": self.very_slow_requests,
            "errors": self.errors,
            "error_rate": round(error_rate, 2),
            "paths": {path: stats.as_dict() for path, stats in sorted(self.paths.items())},
        }

    def reset(self) -> None:
        self.__init__()


# Global metrics instance
metrics = PerformanceMetrics()


class PerformanceMiddleware(BaseHTTPMiddleware):
    """Times each request, records it in ``metrics`` and sets ``X-Response-Time``."""

    def __init__(self, app: ASGIApp, slow_request_threshold: float = SLOW_REQUEST_SECONDS):
        super().__init__(app)
        self.slow_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        method = request.method
        path = request.url.path

        try:
            response = await call_next(request)
        except Exception:
            metrics.record_request(path, time.time() - start_time, is_error=True)
            raise

        duration = time.time() - start_time
        duration_ms = round(duration * 1000, 2)
        metrics.record_request(path, duration, is_error=response.status_code >= 500)
        response.headers["X-Response-Time"] = f"{duration_ms}ms"

        if duration >= self.slow_threshold:
            logger.warning(
                f"Slow request: {method} {path} took {duration_ms}ms",
                extra={
                    "request_id": getattr(request.state, "request_id", "unknown"),
                    "path": path,
                    "duration_ms": duration_ms,
                },
            )
        return response
