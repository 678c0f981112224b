"""Dependencies handing route handlers the services built by the application factory."""

from fastapi import Request

from snippetbox.services.snippet_service import SnippetService
from snippetbox.services.user_service import UserService


def get_snippet_service(request: Request) -> SnippetService:
    return request.app.state.snippets


def get_user_service(request: Request) -> UserService:
    return request.app.state.users
