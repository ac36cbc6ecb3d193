"""
Security Headers Middleware - adds a fixed set of response headers.

The API only ever returns JSON, so the content policy forbids loading
anything and the response may not be framed. HSTS is added only when
ENFORCE_HTTPS is set, since it would pin browsers to HTTPS on a plain
HTTP dev server.

Usage:
    app.add_middleware(SecurityHeadersMiddleware, enforce_https=settings.ENFORCE_HTTPS)
"""

from starlette.middleware.base import BaseHTTPMiddleware

from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'; base-uri 'none'",
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Cache-Control": "no-store",
}

HSTS_VALUE = "max-age=31536000; includeSubDomains"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add SECURITY_HEADERS (and HSTS when enforced) to every response."""

    def __init__(self, app, enforce_https: bool = False):
        super().__init__(app)
        self.enforce_https = enforce_https

        logger.info("Security headers middleware initialized", enforce_https=enforce_https)

    async def dispatch(self, request, call_next):
        response = await call_next(request)

        for name, value in SECURITY_HEADERS.items():
            # routes may set their own caching policy
            response.headers.setdefault(name, value)

        if self.enforce_https:
            response.headers["Strict-Transport-Security"] = HSTS_VALUE

        return response
