"""
Snippetbox — Snippet Route Handlers
====================================

What:  Home page, snippet view, snippet creation (form + submit).

    GET  /                      dynamic     latest snippets
    GET  /snippet/view/{id}     dynamic     one snippet
    GET  /snippet/create        protected   empty form
    POST /snippet/create        protected   validate, store, redirect

Path parameter:
    `{snippet_id:int}` only matches digits, so /snippet/view/abc never reaches
    a handler (404 from the router). Zero, and ids past the range of the
    INTEGER id column, are rejected here as not found without a query.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.database import get_db_session
from snippetbox.exceptions import NotFoundError
from snippetbox.routes.dependencies import get_snippet_service
from snippetbox.routes.groups import DynamicRoute, ProtectedRoute
from snippetbox.schemas.forms import FormState, SnippetCreateForm, parse_form
from snippetbox.services.snippet_service import SnippetService
from snippetbox.sessions.manager import FLASH_KEY
from snippetbox.templates import render

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Snippets"], route_class=DynamicRoute, default_response_class=HTMLResponse)
protected_router = APIRouter(
    tags=["Snippets"], route_class=ProtectedRoute, default_response_class=HTMLResponse
)

# Largest value the INTEGER id column can hold (PostgreSQL int4)
MAX_SNIPPET_ID = 2**31 - 1


@router.get("/")
async def home(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    snippets: SnippetService = Depends(get_snippet_service),
) -> Response:
    latest = await snippets.latest(db)
    return render(request, "home.html", {"snippets": latest})


@router.get("/snippet/view/{snippet_id:int}")
async def snippet_view(
    request: Request,
    snippet_id: int,
    db: AsyncSession = Depends(get_db_session),
    snippets: SnippetService = Depends(get_snippet_service),
) -> Response:
    if not 1 <= snippet_id <= MAX_SNIPPET_ID:
        raise NotFoundError(resource="snippet", resource_id=str(snippet_id))

    snippet = await snippets.get(db, snippet_id)
    return render(request, "view.html", {"snippet": snippet})


@protected_router.get("/snippet/create")
async def snippet_create(request: Request) -> Response:
    form = FormState(values={"expires": "365"})
    return render(request, "create.html", {"form": form})


@protected_router.post("/snippet/create")
async def snippet_create_post(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    snippets: SnippetService = Depends(get_snippet_service),
) -> Response:
    data, form = parse_form(SnippetCreateForm, await request.form())
    if data is None:
        return render(request, "create.html", {"form": form}, status_code=422)

    snippet_id = await snippets.insert(db, data.title, data.content, data.expires)

    request.state.session.put(FLASH_KEY, "Snippet successfully created!")
    return RedirectResponse(f"/snippet/view/{snippet_id}", status_code=303)
