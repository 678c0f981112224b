"""
Snippetbox — Template Renderer
===============================

What:  Compiles every page template once at startup and renders pages to
       bytes on demand.
Why:   A page is rendered completely into memory BEFORE any response object
       exists. If rendering fails half-way, there is no response to send
       and no status has been committed; the failure becomes a 500 through
       the exception handlers instead of a truncated 200.

Template layout (ui/templates):
    base.html          shared layout every page extends
    partials/*.html    fragments included by the layout
    pages/*.html       one file per page; the cache key is the file name

Template Cache:
    Built by TemplateRenderer.__init__ and exposed as a read-only mapping.
    The Jinja2 environment runs with auto_reload disabled and every layout
    and partial is loaded up-front, so nothing is compiled while serving and
    concurrent requests only ever read the cache.

Errors:
    unknown page name    → TemplateNotFoundError (configuration error)
    failure mid-render   → TemplateRenderError
    syntax error         → jinja2.TemplateSyntaxError at startup (fatal)
"""

import logging
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template, select_autoescape
from starlette.requests import Request
from starlette.responses import HTMLResponse

from snippetbox.exceptions import TemplateNotFoundError, TemplateRenderError
from snippetbox.sessions.manager import FLASH_KEY

logger = logging.getLogger(__name__)

PAGES_PREFIX = "pages/"


def human_date(value: Optional[datetime]) -> str:
    """Format a timestamp as '02 Jan 2024 at 15:04' in UTC. Naive values are taken as UTC."""
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%d %b %Y at %H:%M")


class TemplateRenderer:
    """Immutable cache of compiled page templates."""

    def __init__(self, templates_dir: str):
        self.env = Environment(
            loader=FileSystemLoader(templates_dir),
            autoescape=select_autoescape(["html"]),
            undefined=StrictUndefined,
            auto_reload=False,
        )
        self.env.filters["human_date"] = human_date
        self._pages: Mapping[str, Template] = MappingProxyType(self._compile())
        logger.info("Template cache ready: %s", ", ".join(sorted(self._pages)))

    def _compile(self) -> Dict[str, Template]:
        pages: Dict[str, Template] = {}
        for name in self.env.list_templates(extensions=["html"]):
            template = self.env.get_template(name)
            if name.startswith(PAGES_PREFIX):
                pages[name[len(PAGES_PREFIX):]] = template
        return pages

    @property
    def pages(self) -> Mapping[str, Template]:
        return self._pages

    def render(self, page: str, data: Dict[str, Any]) -> bytes:
        template = self._pages.get(page)
        if template is None:
            raise TemplateNotFoundError(page)
        try:
            return template.render(data).encode("utf-8")
        except Exception as e:
            raise TemplateRenderError(
                page,
                context={"error_type": type(e).__name__, "error": str(e)},
            ) from e


def new_template_data(request: Request) -> Dict[str, Any]:
    """
    Request-scoped data every page receives.

    Reading the flash message removes it from the session, so it is shown
    exactly once.
    """
    session = getattr(request.state, "session", None)
    return {
        "current_year": datetime.now(timezone.utc).year,
        "flash": session.pop(FLASH_KEY, "") if session is not None else "",
        "is_authenticated": session is not None and session.is_authenticated,
        "csrf_token": getattr(request.state, "csrf_token", ""),
    }


def render(
    request: Request,
    page: str,
    data: Optional[Dict[str, Any]] = None,
    status_code: int = 200,
) -> HTMLResponse:
    """Render `page` with the ambient data merged in, then build the response."""
    renderer: TemplateRenderer = request.app.state.templates
    context = new_template_data(request)
    context.update(data or {})
    body = renderer.render(page, context)
    return HTMLResponse(body, status_code=status_code)
