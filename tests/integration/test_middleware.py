from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from app.middleware import CORSMiddleware, RequestContextMiddleware, SecurityHeadersMiddleware
from app.utils.error_handling import setup_error_handling


def build_app(**cors_kwargs) -> FastAPI:
    app = FastAPI()
    setup_error_handling(app)
    app.add_middleware(SecurityHeadersMiddleware, enforce_https=cors_kwargs.pop("https", False))
    app.add_middleware(CORSMiddleware, allowed_origins=["http://localhost:5173"], **cors_kwargs)
    app.add_middleware(RequestContextMiddleware)

    @app.get("/echo")
    async def echo(request: Request):
        return {
            "request_id": request.state.request_id,
            "ip_address": request.state.ip_address,
        }

    return app


def test_request_id_generated_and_echoed():
    client = TestClient(build_app())

    response = client.get("/echo")

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == response.json()["request_id"]


def test_incoming_request_id_is_kept():
    client = TestClient(build_app())

    response = client.get("/echo", headers={"X-Request-ID": "req-123"})

    assert response.json()["request_id"] == "req-123"
    assert response.headers["X-Request-ID"] == "req-123"


def test_forwarded_for_ignored_by_default():
    client = TestClient(build_app())

    response = client.get("/echo", headers={"X-Forwarded-For": "203.0.113.9"})

    assert response.json()["ip_address"] == "testclient"


def test_forwarded_for_trusted_proxy(monkeypatch):
    monkeypatch.setattr("app.middleware.request_context.settings.TRUST_X_FORWARDED_FOR", True)
    monkeypatch.setattr(
        "app.middleware.request_context.settings.TRUSTED_PROXY_IPS", ["testclient"]
    )
    client = TestClient(build_app())

    response = client.get("/echo", headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})

    assert response.json()["ip_address"] == "203.0.113.9"


def test_security_headers_present():
    client = TestClient(build_app())

    response = client.get("/echo")

    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "default-src 'none'" in response.headers["Content-Security-Policy"]
    assert "Strict-Transport-Security" not in response.headers


def test_hsts_only_when_enforced():
    client = TestClient(build_app(https=True))

    response = client.get("/echo")

    assert response.headers["Strict-Transport-Security"].startswith("max-age=31536000")


def test_cors_allowed_origin():
    client = TestClient(build_app())

    response = client.get("/echo", headers={"Origin": "http://localhost:5173"})

    assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"
    assert "Access-Control-Allow-Credentials" not in response.headers


def test_cors_disallowed_origin_gets_no_header():
    client = TestClient(build_app())

    response = client.get("/echo", headers={"Origin": "https://evil.example"})

    assert response.status_code == 200
    assert "Access-Control-Allow-Origin" not in response.headers


def test_cors_preflight():
    client = TestClient(build_app(allow_credentials=True))

    response = client.options(
        "/echo",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "PUT",
        },
    )

    assert response.status_code == 204
    assert "PUT" in response.headers["Access-Control-Allow-Methods"]
    assert response.headers["Access-Control-Allow-Credentials"] == "true"


def test_cors_preflight_rejected_for_unknown_origin():
    client = TestClient(build_app())

    response = client.options(
        "/echo",
        headers={"Origin": "https://evil.example", "Access-Control-Request-Method": "GET"},
    )

    assert response.status_code == 403


def test_unmatched_route_json_404_carries_request_id():
    client = TestClient(build_app())

    response = client.get("/missing", headers={"X-Request-ID": "req-404"})

    assert response.status_code == 404
    assert response.json() == {"error": "Route not found", "request_id": "req-404"}
