"""
CORS Middleware - lets the browser CRM frontend call the API.

The dashboard is a single-page app served from its own origin (the Vite dev
server on :5173 during development), so every call it makes is cross-origin.
Only origins listed in CORS_ALLOWED_ORIGINS receive Access-Control headers.

Usage:
    from app.middleware.cors import CORSMiddleware

    app.add_middleware(
        CORSMiddleware,
        allowed_origins=settings.cors_origins(),
    )
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_METHODS = ("GET", "POST", "PUT", "DELETE", "OPTIONS")
DEFAULT_HEADERS = ("Accept", "Content-Type", "X-Request-ID", "X-Requested-With")


class CORSMiddleware(BaseHTTPMiddleware):
    """
    Answers preflight OPTIONS requests and tags responses for allowed origins.

    A preflight from an unknown origin gets 403. A simple request from an
    unknown origin is still served; the browser drops the response because
    no Access-Control-Allow-Origin header is present.
    """

    def __init__(
        self,
        app,
        allowed_origins: list[str] | None = None,
        allow_credentials: bool = False,
        allow_methods: list[str] | None = None,
        allow_headers: list[str] | None = None,
        max_age: int = 600,
    ):
        super().__init__(app)
        self.allowed_origins = set(allowed_origins or [])
        self.allow_credentials = allow_credentials
        self.allow_methods = list(allow_methods or DEFAULT_METHODS)
        self.allow_headers = list(allow_headers or DEFAULT_HEADERS)
        self.max_age = max_age

        logger.info(
            "CORS middleware initialized",
            allowed_origins=sorted(self.allowed_origins),
            allow_credentials=self.allow_credentials,
        )

    def is_allowed(self, origin: str | None) -> bool:
        return bool(origin) and origin in self.allowed_origins

    async def dispatch(self, request, call_next):
        origin = request.headers.get("origin")
        is_preflight = (
            request.method == "OPTIONS"
            and "access-control-request-method" in request.headers
        )

        if is_preflight:
            if self.is_allowed(origin):
                return self._preflight_response(origin)
            logger.warning("CORS preflight rejected", origin=origin, path=request.url.path)
            return Response(status_code=403, content="Origin not allowed")

        response = await call_next(request)

        if self.is_allowed(origin):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Expose-Headers"] = "X-Request-ID"
            response.headers["Vary"] = "Origin"
            if self.allow_credentials:
                response.headers["Access-Control-Allow-Credentials"] = "true"
        elif origin:
            logger.debug("CORS origin not allowed", origin=origin, path=request.url.path)

        return response

    def _preflight_response(self, origin: str) -> Response:
        headers = {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Methods": ", ".join(self.allow_methods),
            "Access-Control-Allow-Headers": ", ".join(self.allow_headers),
            "Access-Control-Max-Age": str(self.max_age),
            "Vary": "Origin",
            # preflight never reaches SecurityHeadersMiddleware
            "X-Content-Type-Options": "nosniff",
        }
        if self.allow_credentials:
            headers["Access-Control-Allow-Credentials"] = "true"

        return Response(status_code=204, headers=headers)
