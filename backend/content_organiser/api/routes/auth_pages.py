"""
Authentication web pages
"""
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse

from content_organiser.core.auth import (get_identity,
                                         resolve_session_decision,
                                         set_session_cookie)
from content_organiser.core.config import get_settings
from content_organiser.core.exceptions import GatewayError
from content_organiser.core.guards import HOME_PATH, LOGIN_PATH
from content_organiser.core.identity import IdentityResolver
from content_organiser.core.logging_config import LoggingConfig
from content_organiser.core.templates import render_template

logger = LoggingConfig.get_logger(__name__)

router = APIRouter(tags=["auth_pages"])


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request, resolver: IdentityResolver = Depends(get_identity)):
    """Login / sign-up page; an already signed-in client goes to the calendar"""
    decision = await resolve_session_decision(resolver)
    if decision.allowed:
        return RedirectResponse(url=HOME_PATH, status_code=status.HTTP_303_SEE_OTHER)

    settings = get_settings()
    return render_template("auth/login.html", {
        "app_name": settings.app_name,
        "allow_signup": settings.allow_signup,
        "reason": request.query_params.get("reason"),
    }, request)


@router.post("/logout")
async def logout_page(resolver: IdentityResolver = Depends(get_identity)):
    """Sign out from the dashboard navigation and return to the login page"""
    try:
        await resolver.sign_out()
    except GatewayError as e:
        logger.error(f"Error signing out: {e}", exc_info=True)
    response = RedirectResponse(url=LOGIN_PATH, status_code=status.HTTP_303_SEE_OTHER)
    set_session_cookie(response, None)
    return response
