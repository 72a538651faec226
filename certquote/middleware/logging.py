"""
Logging middleware for request/response tracking.
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
import time
import logging
import uuid
from typing import Any, Dict, Optional
import json

from certquote.config import settings


# Configure logger
logger = logging.getLogger("certquote.middleware")

SENSITIVE_HEADERS = {'authorization', 'x-api-key', 'cookie', 'x-auth-token'}
SENSITIVE_FIELDS = {'password', 'token', 'api_key', 'secret'}
MAX_LOGGED_BODY = 10000  # 10KB


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging HTTP requests and responses with a request id."""

    def __init__(self, app, log_request_body: Optional[bool] = None):
        super().__init__(app)
        self.log_request_body = settings.debug if log_request_body is None else log_request_body

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get('X-Request-ID') or str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()
        await self._log_request(request, request_id)

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"Request error - {request_id} - {type(e).__name__}: {str(e)}",
                extra={'error_data': {
                    'request_id': request_id,
                    'method': request.method,
                    'path': request.url.path,
                    'process_time': process_time,
                }},
                exc_info=True
            )
            raise

        process_time = time.time() - start_time
        self._log_response(request, response, request_id, process_time)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{process_time:.4f}s"
        return response

    async def _log_request(self, request: Request, request_id: str):
        """Log incoming request."""
        client_ip = request.client.host if request.client else "unknown"
        forwarded_for = request.headers.get('X-Forwarded-For')
        if forwarded_for:
            client_ip = forwarded_for.split(',')[0].strip()

        log_data = {
            'request_id': request_id,
            'method': request.method,
            'path': request.url.path,
            'query_params': dict(request.query_params),
            'client_ip': client_ip,
            'headers': self._sanitize_headers(dict(request.headers)),
        }

        if self.log_request_body and request.method == 'POST' and self._should_log_body(request):
            try:
                log_data['body'] = self._sanitize_body(await request.json())
            except ValueError as e:
                log_data['body_error'] = str(e)

        if settings.is_development:
            logger.info(f"Incoming request: {request.method} {request.url.path}")
            logger.debug(f"Request details: {json.dumps(log_data, default=str, indent=2)}")
        else:
            logger.info(
                f"Request - {request_id} - {request.method} {request.url.path} - {client_ip}",
                extra={'request_data': log_data}
            )

    def _log_response(self, request: Request, response, request_id: str, process_time: float):
        """Log outgoing response; 4xx as warning, 5xx as error."""
        if response.status_code >= 500:
            log_level = logging.ERROR
        elif response.status_code >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            f"Response - {request_id} - {response.status_code} - {process_time:.4f}s - "
            f"{request.method} {request.url.path}",
            extra={'response_data': {
                'request_id': request_id,
                'status_code': response.status_code,
                'process_time': process_time,
            }}
        )

    def _sanitize_headers(self, headers: Dict[str, str]) -> Dict[str, str]:
        """Remove sensitive information from headers."""
        return {
            key: "[REDACTED]" if key.lower() in SENSITIVE_HEADERS else value
            for key, value in headers.items()
        }

    def _should_log_body(self, request: Request) -> bool:
        content_type = request.headers.get('Content-Type', '').lower()
        if 'application/json' not in content_type:
            return False

        content_length = request.headers.get('Content-Length')
        if content_length and int(content_length) > MAX_LOGGED_BODY:
            return False

        return True

    def _sanitize_body(self, body: Any) -> Any:
        """Remove sensitive information from a JSON body."""
        if isinstance(body, dict):
            return {
                key: "[REDACTED]" if any(field in key.lower() for field in SENSITIVE_FIELDS)
                else self._sanitize_body(value)
                for key, value in body.items()
            }
        if isinstance(body, list):
            return [self._sanitize_body(item) for item in body]
        return body
