"""Request/response logging middleware."""

import json
import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from chefgenius.core.request_id import REQUEST_ID_HEADER, generate_request_id, set_request_id

logger = logging.getLogger(__name__)

_SENSITIVE_KEYS = ("api_key", "password", "token", "secret", "auth")
_MAX_LOGGED_BODY = 500


def mask_sensitive_data(data: Any) -> Any:
    """Recursively mask secrets in logged parameters."""
    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            if any(s in str(key).lower() for s in _SENSITIVE_KEYS):
                masked[key] = f"{value[:8]}..." if isinstance(value, str) and len(value) > 8 else "***"
            else:
                masked[key] = mask_sensitive_data(value)
        return masked
    if isinstance(data, list):
        return [mask_sensitive_data(item) for item in data]
    return data


async def get_request_params(request: Request) -> Tuple[Dict[str, Any], Optional[bytes]]:
    """
    Collect query and JSON body parameters for logging.

    Returns the params and the consumed body bytes so the body can be replayed.
    Multipart photo uploads are never read here.
    """
    params: Dict[str, Any] = {}
    body_bytes: Optional[bytes] = None

    if request.query_params:
        params["query"] = dict(request.query_params)

    content_type = request.headers.get("content-type", "").lower()
    if "application/json" in content_type:
        body_bytes = await request.body()
        if body_bytes:
            try:
                params["body"] = json.loads(body_bytes)
            except json.JSONDecodeError:
                params["body"] = body_bytes.decode("utf-8", errors="ignore")[:_MAX_LOGGED_BODY]
    elif "multipart/form-data" in content_type:
        params["form"] = {"type": "multipart/form-data", "bytes": request.headers.get("content-length")}

    return params, body_bytes


def _replay_body(request: Request, body_bytes: bytes) -> None:
    # Serve the cached body once, then hand over to the original channel so the
    # server's disconnect message still reaches Starlette.
    original_receive = request._receive
    body_sent = False

    async def receive():
        nonlocal body_sent
        if not body_sent:
            body_sent = True
            return {"type": "http.request", "body": body_bytes, "more_body": False}
        message = await original_receive()
        if message["type"] == "http.request" and not message.get("more_body"):
            return {"type": "http.disconnect"}
        return message

    request._receive = receive


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Assigns a request id, logs request/response with timing, echoes the id back."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        set_request_id(request_id)
        request.state.request_id = request_id

        start_time = time.time()
        method = request.method
        path = request.url.path

        params, body_bytes = await get_request_params(request)
        if body_bytes is not None:
            _replay_body(request, body_bytes)

        logger.info(
            f"API Request: {method} {path}",
            extra={
                "request_id": request_id,
                "method": method,
                "path": path,
                "params": mask_sensitive_data(params),
                "client_ip": request.client.host if request.client else None,
            },
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"API Error: {method} {path} - {str(e)}",
                extra={
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "process_time_ms": round((time.time() - start_time) * 1000, 2),
                },
                exc_info=True,
            )
            raise

        logger.info(
            f"API Response: {method} {path} - {response.status_code}",
            extra={
                "request_id": request_id,
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "process_time_ms": round((time.time() - start_time) * 1000, 2),
            },
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
