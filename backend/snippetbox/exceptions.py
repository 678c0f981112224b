"""
Snippetbox — Custom Exception Hierarchy
========================================

What:  Application-specific exceptions for the different error scenarios.
Why:   Global exception handlers (registered in main.py) map each type to an
       HTTP status with a generic status-text body. Internal detail travels in
       `context` and is logged, never returned to the client.
Who:   Raised by services, route handlers, the CSRF middleware and the
       template renderer.

Exception Hierarchy:
    SnippetboxError (base)
    ├── ClientError              → 400 Bad Request
    │   └── CSRFTokenError       → 400 Bad Request
    ├── NotFoundError            → 404 Not Found
    ├── DuplicateEmailError      → handled by the signup handler (form error)
    ├── InvalidCredentialsError  → handled by the login handler (form error)
    └── ServerError              → 500 Internal Server Error
        ├── DatabaseError
        ├── TemplateNotFoundError (configuration error)
        └── TemplateRenderError

Anything outside this hierarchy is an unrecovered fault and is answered by
the panic recovery middleware.
"""

from typing import Any, Dict, Optional


class SnippetboxError(Exception):
    """
    Base exception for all Snippetbox application errors.

    Attributes:
        message:     Human-readable description (logged)
        context:     Additional debug info (logged but NOT returned to client)
        status_code: HTTP status the global handler answers with
    """

    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ClientError(SnippetboxError):
    """Bad input the client can fix (malformed request, missing field)."""

    status_code = 400

    def __init__(
        self,
        message: str = "Bad request",
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        if status_code is not None:
            self.status_code = status_code


class CSRFTokenError(ClientError):
    """
    Raised when a state-changing request lacks a valid anti-forgery token.

    When:    POST whose form field or X-CSRF-Token header does not match the CSRF cookie.
    HTTP:    400 Bad Request
    """

    def __init__(self, reason: str = "missing", context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["reason"] = reason
        super().__init__(message=f"CSRF token {reason}", context=ctx)


class NotFoundError(SnippetboxError):
    """
    Raised when a requested record does not exist (or has expired).

    HTTP:    404 Not Found
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DuplicateEmailError(SnippetboxError):
    """Signup attempted with an email address that is already registered."""

    status_code = 409

    def __init__(self, email: str = ""):
        super().__init__(message="Email address is already in use", context={"email": email})


class InvalidCredentialsError(SnippetboxError):
    """Login attempted with an unknown email or a wrong password."""

    status_code = 401

    def __init__(self):
        super().__init__(message="Email or password is incorrect")


class ServerError(SnippetboxError):
    """Base for failures the client cannot fix. Always answered with 500."""

    status_code = 500


class DatabaseError(ServerError):
    """
    Raised when database operations fail unexpectedly.

    Security Note:
        The response body is always the generic status text. The SQL, the
        constraint name and the driver message are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class TemplateNotFoundError(ServerError):
    """
    A handler asked for a page that is not in the template cache.

    This is a configuration error (the page was never compiled at startup),
    distinct from a failure while rendering an existing page.
    """

    def __init__(self, page: str):
        super().__init__(message=f"The template {page} does not exist", context={"page": page})
        self.page = page


class TemplateRenderError(ServerError):
    """Rendering an existing page failed part-way through."""

    def __init__(self, page: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["page"] = page
        super().__init__(message=f"Rendering template {page} failed", context=ctx)
        self.page = page
