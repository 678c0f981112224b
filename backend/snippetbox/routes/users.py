"""
Snippetbox — User Route Handlers
=================================

What:  Signup, login and logout; the transitions of the authentication
       state machine.

    GET  /user/signup   dynamic     empty form
    POST /user/signup   dynamic     create account, flash, → /user/login
    GET  /user/login    dynamic     empty form
    POST /user/login    dynamic     Anonymous → Authenticated(id)
    POST /user/logout   protected   Authenticated(id) → Anonymous

Session fixation:
    Both transitions renew the session token. The token the client held
    before logging in is deleted from the store when the session is
    committed, so it can never be used as an authenticated token.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.database import get_db_session
from snippetbox.exceptions import DuplicateEmailError, InvalidCredentialsError
from snippetbox.routes.dependencies import get_user_service
from snippetbox.routes.groups import DynamicRoute, ProtectedRoute
from snippetbox.schemas.forms import FormState, UserLoginForm, UserSignupForm, parse_form
from snippetbox.services.user_service import UserService
from snippetbox.sessions.manager import AUTH_USER_KEY, FLASH_KEY, REDIRECT_AFTER_LOGIN_KEY
from snippetbox.templates import render

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/user", tags=["Users"], route_class=DynamicRoute, default_response_class=HTMLResponse
)
protected_router = APIRouter(
    prefix="/user", tags=["Users"], route_class=ProtectedRoute, default_response_class=HTMLResponse
)

DEFAULT_AFTER_LOGIN = "/snippet/create"


@router.get("/signup")
async def user_signup(request: Request) -> Response:
    return render(request, "signup.html", {"form": FormState()})


@router.post("/signup")
async def user_signup_post(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> Response:
    data, form = parse_form(UserSignupForm, await request.form())
    if data is None:
        return render(request, "signup.html", {"form": form}, status_code=422)

    try:
        await users.insert(db, data.name, data.email, data.password)
    except DuplicateEmailError as e:
        form.add_field_error("email", e.message)
        return render(request, "signup.html", {"form": form}, status_code=422)

    request.state.session.put(FLASH_KEY, "Your signup was successful. Please log in.")
    return RedirectResponse("/user/login", status_code=303)


@router.get("/login")
async def user_login(request: Request) -> Response:
    return render(request, "login.html", {"form": FormState()})


@router.post("/login")
async def user_login_post(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> Response:
    data, form = parse_form(UserLoginForm, await request.form())
    if data is None:
        return render(request, "login.html", {"form": form}, status_code=422)

    try:
        user_id = await users.authenticate(db, data.email, data.password)
    except InvalidCredentialsError as e:
        form.add_non_field_error(e.message)
        return render(request, "login.html", {"form": form}, status_code=422)

    session = request.state.session
    # Logging in again as the same user changes nothing
    if session.authenticated_user_id != user_id:
        session.renew_token()
        session.put(AUTH_USER_KEY, user_id)
        logger.info("User %d logged in", user_id)

    destination = session.pop(REDIRECT_AFTER_LOGIN_KEY) or DEFAULT_AFTER_LOGIN
    return RedirectResponse(destination, status_code=303)


@protected_router.post("/logout")
async def user_logout_post(request: Request) -> Response:
    session = request.state.session
    user_id = session.authenticated_user_id

    session.renew_token()
    session.remove(AUTH_USER_KEY)
    session.put(FLASH_KEY, "You've been logged out successfully!")

    logger.info("User %s logged out", user_id)
    return RedirectResponse("/", status_code=303)
