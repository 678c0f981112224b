"""
Snippetbox — Middleware Stack Tests
====================================

What:  Tests for the application-wide stack (recovery, logging, security
       headers) and the route-group stages (session, CSRF, auth gate).
Why:   These are the guarantees every page relies on: a fault in one
       request never affects another, forged POSTs never reach a handler,
       anonymous users never reach a protected handler.
How:   Test-only routes are registered on a real app next to the normal routes,
       using the same route classes the application uses.

What we test:
    ✅ Security headers on pages, errors, static files and panics
    ✅ A header the handler set itself is kept
    ✅ Request ID generated or echoed; request logged before dispatch
    ✅ Unhandled exception → 500 + Connection: close; others unaffected
    ✅ 404 for unknown paths, 405 + Allow for wrong methods
    ✅ CSRF: missing / wrong token → 400, nothing stored; header accepted
    ✅ CSRF cookie: anonymous page views create no session records
    ✅ Auth gate: protected handler never invoked for anonymous requests
    ✅ Template failures → 500 with no partial page
"""

import asyncio
import logging

import pytest
import pytest_asyncio
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from snippetbox.middleware.headers import SECURITY_HEADERS
from snippetbox.routes.groups import DynamicRoute, ProtectedRoute
from snippetbox.templates import render

from conftest import USER_EMAIL, USER_PASSWORD, csrf_token_from


@pytest_asyncio.fixture
async def handler_calls(app):
    """Registers test-only routes on `app`; returns the list of protected handler invocations."""
    calls = []

    async def panic():
        raise RuntimeError("boom")

    async def protected_handler():
        calls.append("invoked")
        return PlainTextResponse("secret")

    async def missing_page(request: Request):
        return render(request, "nope.html")

    async def broken_page(request: Request):
        # view.html needs a snippet
        return render(request, "view.html")

    async def framed_page():
        return PlainTextResponse("embeddable", headers={"X-Frame-Options": "sameorigin"})

    app.router.add_api_route("/testing/panic", panic, methods=["GET"])
    app.router.add_api_route("/testing/framed", framed_page, methods=["GET"])
    app.router.add_api_route(
        "/testing/protected", protected_handler, methods=["GET", "POST"], route_class_override=ProtectedRoute
    )
    app.router.add_api_route(
        "/testing/missing-page", missing_page, methods=["GET"], route_class_override=DynamicRoute
    )
    app.router.add_api_route(
        "/testing/broken-page", broken_page, methods=["GET"], route_class_override=DynamicRoute
    )
    return calls


def assert_security_headers(response):
    for name, value in SECURITY_HEADERS.items():
        assert response.headers[name] == value


class TestSecurityHeaders:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/", "/user/login", "/does-not-exist", "/static/css/main.css"])
    async def test_headers_on_every_response(self, client, path):
        response = await client.get(path)
        assert_security_headers(response)

    @pytest.mark.asyncio
    async def test_static_files_carry_no_session(self, client):
        response = await client.get("/static/css/main.css")

        assert response.status_code == 200
        assert "set-cookie" not in response.headers

    @pytest.mark.asyncio
    async def test_handler_header_overrides_default(self, client, handler_calls):
        response = await client.get("/testing/framed")

        assert response.headers["x-frame-options"] == "sameorigin"
        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers.get_list("x-frame-options") == ["sameorigin"]


class TestRequestLogging:

    @pytest.mark.asyncio
    async def test_request_id_generated(self, client):
        response = await client.get("/")
        assert response.headers["x-request-id"]

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client):
        response = await client.get("/", headers={"X-Request-ID": "abc123"})
        assert response.headers["x-request-id"] == "abc123"

    @pytest.mark.asyncio
    async def test_request_logged_before_completion(self, client, caplog):
        caplog.set_level(logging.INFO, logger="snippetbox.access")

        await client.get("/user/login?next=1")

        messages = [r.getMessage() for r in caplog.records if r.name == "snippetbox.access"]
        assert messages[0] == "received request HTTP/1.1 GET /user/login?next=1 from 127.0.0.1"
        assert messages[1].startswith("GET /user/login?next=1 200")


class TestRecovery:

    @pytest.mark.asyncio
    async def test_unhandled_exception_becomes_500(self, client, handler_calls, caplog):
        caplog.set_level(logging.ERROR, logger="snippetbox.middleware.recovery")

        response = await client.get("/testing/panic")

        assert response.status_code == 500
        assert response.text == "Internal Server Error"
        assert response.headers["connection"] == "close"
        assert_security_headers(response)
        assert any("GET /testing/panic" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_fault_is_isolated_to_its_request(self, client, handler_calls):
        results = await asyncio.gather(
            client.get("/testing/panic"),
            client.get("/"),
            client.get("/testing/panic"),
            client.get("/user/login"),
        )

        assert [r.status_code for r in results] == [500, 200, 500, 200]

        # The application keeps serving afterwards
        assert (await client.get("/")).status_code == 200


class TestRouting:

    @pytest.mark.asyncio
    async def test_unknown_path_is_404(self, client):
        response = await client.get("/does-not-exist")

        assert response.status_code == 404
        assert response.text == "Not Found"

    @pytest.mark.asyncio
    async def test_wrong_method_is_405_with_allow(self, client):
        response = await client.post("/")

        assert response.status_code == 405
        assert response.text == "Method Not Allowed"
        assert "GET" in response.headers["allow"]


class TestCSRF:

    @pytest.mark.asyncio
    async def test_missing_token_rejected(self, client):
        response = await client.post(
            "/user/signup", data={"name": "Eve", "email": "eve@example.com", "password": "password123"}
        )

        assert response.status_code == 400
        assert response.text == "Bad Request"

    @pytest.mark.asyncio
    async def test_wrong_token_rejected_without_store_mutation(self, app, auth_client):
        store = app.state.session_manager.store
        token = auth_client.cookies.get("session")
        before = (await store.find(token)).values

        response = await auth_client.post(
            "/snippet/create",
            data={"title": "t", "content": "c", "expires": "7", "csrf_token": "forged"},
        )

        assert response.status_code == 400
        assert (await store.find(token)).values == before
        home = await auth_client.get("/")
        assert "There's nothing to see here... yet!" in home.text

    @pytest.mark.asyncio
    async def test_token_accepted_from_header(self, auth_client):
        page = await auth_client.get("/snippet/create")

        response = await auth_client.post(
            "/snippet/create",
            data={"title": "t", "content": "c", "expires": "1"},
            headers={"X-CSRF-Token": csrf_token_from(page.text)},
        )

        assert response.status_code == 303

    @pytest.mark.asyncio
    async def test_token_rotates_on_login(self, client, registered_user):
        page = await client.get("/user/login")
        anonymous_csrf = csrf_token_from(page.text)

        await client.post(
            "/user/login",
            data={"email": USER_EMAIL, "password": USER_PASSWORD, "csrf_token": anonymous_csrf},
        )
        create_page = await client.get("/snippet/create")

        assert csrf_token_from(create_page.text) != anonymous_csrf

    @pytest.mark.asyncio
    async def test_anonymous_page_views_store_no_sessions(self, app, client):
        for _ in range(5):
            client.cookies.clear()
            home = await client.get("/")
            login_page = await client.get("/user/login")

            assert home.status_code == 200
            assert "csrf_token=" in home.headers["set-cookie"]
            assert "session=" not in home.headers["set-cookie"]
            assert login_page.status_code == 200

        assert len(app.state.session_manager.store) == 0

    @pytest.mark.asyncio
    async def test_form_token_without_cookie_rejected(self, client):
        page = await client.get("/user/signup")
        client.cookies.clear()

        response = await client.post(
            "/user/signup",
            data={
                "name": "Eve",
                "email": "eve@example.com",
                "password": "password123",
                "csrf_token": csrf_token_from(page.text),
            },
        )

        assert response.status_code == 400


class TestAuthGate:

    @pytest.mark.asyncio
    async def test_anonymous_get_never_invokes_handler(self, client, handler_calls):
        response = await client.get("/testing/protected")

        assert response.status_code == 303
        assert response.headers["location"] == "/user/login"
        assert handler_calls == []

    @pytest.mark.asyncio
    async def test_anonymous_post_never_invokes_handler(self, client, handler_calls):
        page = await client.get("/user/login")

        response = await client.post("/testing/protected", data={"csrf_token": csrf_token_from(page.text)})

        assert response.status_code == 303
        assert handler_calls == []

    @pytest.mark.asyncio
    async def test_authenticated_reaches_handler_with_no_store(self, auth_client, handler_calls):
        response = await auth_client.get("/testing/protected")

        assert response.status_code == 200
        assert response.text == "secret"
        assert response.headers["cache-control"] == "no-store"
        assert handler_calls == ["invoked"]

    @pytest.mark.asyncio
    async def test_forged_session_cookie_is_anonymous(self, client, handler_calls):
        client.cookies.set("session", "made-up-token")

        response = await client.get("/testing/protected")

        assert response.status_code == 303
        assert handler_calls == []


class TestTemplateFailures:

    @pytest.mark.asyncio
    async def test_unknown_page_is_500(self, client, handler_calls):
        response = await client.get("/testing/missing-page")

        assert response.status_code == 500
        assert response.text == "Internal Server Error"

    @pytest.mark.asyncio
    async def test_render_failure_sends_no_partial_page(self, client, handler_calls):
        response = await client.get("/testing/broken-page")

        assert response.status_code == 500
        assert response.text == "Internal Server Error"
        assert "<html" not in response.text
