import logging
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from .request_context import REQUEST_ID_HEADER, assign_request_id

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach common security headers and the request id to every response."""

    def __init__(
        self,
        app,
        *,
        enable_hsts: bool = True,
        csp: Optional[str] = None,
    ) -> None:
        super().__init__(app)
        self.enable_hsts = enable_hsts
        self.csp = csp

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        request_id = assign_request_id(request)
        response = await call_next(request)
        headers = response.headers

        headers.setdefault(REQUEST_ID_HEADER, request_id)
        headers.setdefault("X-Content-Type-Options", "nosniff")
        headers.setdefault("X-Frame-Options", "DENY")
        headers.setdefault("Referrer-Policy", "same-origin")
        if self.enable_hsts and request.url.scheme == "https":
            headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        if self.csp:
            headers.setdefault("Content-Security-Policy", self.csp)

        return response


def log_security_warnings(jwt_secret: str, default_secret: str, balance_policy: str) -> None:
    if jwt_secret == default_secret:
        logger.warning("JWT secret is using the insecure default; set JWT_SECRET in the environment.")
    if balance_policy == "amount_delta":
        logger.info("Balance policy amount_delta: unpaid payments also move the current balance.")
