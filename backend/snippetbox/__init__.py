"""
Snippetbox — Application Package Initializer
=============================================

What: Marks the `snippetbox` directory as a Python package.
Who:  Used by uvicorn (`snippetbox.main:create_app`), Alembic, pytest and `python -m snippetbox`.

Architecture Note:
    ┌─────────────────────────────────────┐
    │   Middleware (recovery, logging,    │  ← every request
    │   security headers)                 │
    ├─────────────────────────────────────┤
    │   Routes + route-group chains       │  ← session, CSRF, auth gate
    │   (dynamic / protected)             │
    ├─────────────────────────────────────┤
    │   Services (snippets, users)        │  ← credential store
    ├─────────────────────────────────────┤
    │   Models + Database                 │  ← async SQLAlchemy
    └─────────────────────────────────────┘

    Handlers never know about the middleware wrapped around them; they read the
    request-scoped Session from `request.state.session` and render pages through
    the template cache held on `app.state.templates`.
"""

__version__ = "1.0.0"
