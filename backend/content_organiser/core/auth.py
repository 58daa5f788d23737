"""
Authentication dependencies: request-scoped identity resolver and route guards
"""
from typing import AsyncIterator, Callable, Iterable, Optional

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from content_organiser.core.config import get_settings
from content_organiser.core.exceptions import GuardRedirect
from content_organiser.core.guards import (LOGIN_PATH, GuardDecision,
                                           GuardOutcome, LoadingTimer,
                                           role_guard, session_guard)
from content_organiser.core.identity import AuthState, IdentityResolver
from content_organiser.core.logging_config import LoggingConfig
from content_organiser.core.metrics import guard_decisions_total
from content_organiser.models.profile import UserRole
from content_organiser.services.identity_provider import (LocalIdentityProvider,
                                                          SqlProfileLookup)

logger = LoggingConfig.get_logger(__name__)

SESSION_COOKIE = "session_token"

# HTTP Bearer security scheme
security = HTTPBearer(auto_error=False)


def get_request_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    """Bearer token if present, otherwise the session cookie"""
    if credentials:
        return credentials.credentials
    return request.cookies.get(SESSION_COOKIE)


async def get_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> AsyncIterator[IdentityResolver]:
    """
    Request-scoped identity resolver

    Boots from the request credential and is torn down (unsubscribed, late
    results discarded) once the request is finished.
    """
    provider = LocalIdentityProvider(token=get_request_token(request, credentials))
    async with IdentityResolver(provider, SqlProfileLookup()) as resolver:
        request.state.identity = resolver
        yield resolver


def set_session_cookie(response: Response, token: Optional[str]) -> None:
    """Mirror the provider's credential onto the response"""
    if token:
        settings = get_settings()
        response.set_cookie(
            key=SESSION_COOKIE,
            value=token,
            httponly=True,
            secure=settings.session_cookie_secure,
            samesite="lax",
            max_age=settings.session_duration_hours * 60 * 60,
        )
    else:
        response.delete_cookie(key=SESSION_COOKIE)


def _wait_seconds() -> float:
    return get_settings().auth_wait_timeout_ms / 1000.0


async def resolve_session_decision(resolver: IdentityResolver, timeout_ms: Optional[float] = None) -> GuardDecision:
    """
    Run the session guard until it stops answering 'loading'

    While loading, wait for the next resolver change; the timer bounds the
    total wait and turns an expired wait into a login redirect.
    """
    timeout_ms = timeout_ms if timeout_ms is not None else get_settings().auth_wait_timeout_ms
    timer = LoadingTimer()
    while True:
        state = resolver.state
        elapsed = timer.observe(state.loading)
        decision = session_guard(state, elapsed, timeout_ms)
        if decision.outcome is not GuardOutcome.LOADING:
            break
        await resolver.wait_for_change(timeout=max(timeout_ms - (elapsed or 0.0), 0.0) / 1000.0)

    guard_decisions_total.labels(guard="session", outcome=decision.outcome.value).inc()
    if decision.reason == "auth_timeout":
        logger.warning("Identity resolution timed out; redirecting to login")
    return decision


async def resolve_role_decision(resolver: IdentityResolver, allow: Iterable[UserRole]) -> GuardDecision:
    """Role guard over a settled profile (in-flight lookup awaited, bounded)"""
    state: AuthState = await resolver.wait_for_profile(timeout=_wait_seconds())
    decision = role_guard(state, allow)
    guard_decisions_total.labels(guard="role", outcome=decision.outcome.value).inc()
    return decision


# ----------------------------------------------------------------------
# Page guards: decisions become redirects
# ----------------------------------------------------------------------

async def require_session(resolver: IdentityResolver = Depends(get_identity)) -> AuthState:
    """Page dependency: render for a signed-in client, otherwise redirect to login

    The decision only needs the session; the returned state also carries the
    profile when its lookup lands within the wait duration, for navigation.
    """
    decision = await resolve_session_decision(resolver)
    if not decision.allowed:
        raise GuardRedirect(decision.location or LOGIN_PATH, decision.reason)
    return await resolver.wait_for_profile(timeout=_wait_seconds())


def require_role(*allowed_roles: UserRole) -> Callable:
    """
    Page dependency factory: session guard, then role guard

    Usage:
        @router.get("/admin")
        async def admin_page(state: AuthState = Depends(require_role(UserRole.ADMIN))):
            ...
    """
    async def dependency(
        _: AuthState = Depends(require_session),
        resolver: IdentityResolver = Depends(get_identity),
    ) -> AuthState:
        decision = await resolve_role_decision(resolver, allowed_roles)
        if not decision.allowed:
            raise GuardRedirect(decision.location or LOGIN_PATH, decision.reason)
        return resolver.state

    return dependency


# ----------------------------------------------------------------------
# API guards: decisions become 401 / 403
# ----------------------------------------------------------------------

def _raise_for_decision(decision: GuardDecision, allowed_roles: Iterable[UserRole] = ()) -> None:
    if decision.allowed:
        return
    if decision.location == LOGIN_PATH:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=f"Access denied. Required roles: {sorted(r.value for r in allowed_roles)}"
    )


async def require_api_session(resolver: IdentityResolver = Depends(get_identity)) -> AuthState:
    """API dependency: 401 unless the request carries a valid session"""
    _raise_for_decision(await resolve_session_decision(resolver))
    return resolver.state


def require_api_role(*allowed_roles: UserRole) -> Callable:
    """API dependency factory: 401 without a session or profile, 403 for a disallowed role"""
    async def dependency(
        _: AuthState = Depends(require_api_session),
        resolver: IdentityResolver = Depends(get_identity),
    ) -> AuthState:
        _raise_for_decision(await resolve_role_decision(resolver, allowed_roles), allowed_roles)
        return resolver.state

    return dependency
