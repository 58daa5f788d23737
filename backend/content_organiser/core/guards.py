"""
Route guards: pure access decisions over an AuthState.

Both guards return a GuardDecision; the FastAPI layer (core.auth) turns the
decision into a rendered page, a redirect or an HTTP error.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, FrozenSet, Iterable, Optional

from content_organiser.core.identity import AuthState
from content_organiser.models.profile import UserRole

LOGIN_PATH = "/login"
HOME_PATH = "/"
DEFAULT_AUTH_WAIT_MS = 4000

CATEGORY_ROLES: FrozenSet[UserRole] = frozenset({UserRole.ADMIN, UserRole.EDITOR})
ADMIN_ROLES: FrozenSet[UserRole] = frozenset({UserRole.ADMIN})
EDITOR_ROLES: FrozenSet[UserRole] = frozenset({UserRole.ADMIN, UserRole.EDITOR})


class GuardOutcome(str, Enum):
    RENDER = "render"
    LOADING = "loading"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class GuardDecision:
    outcome: GuardOutcome
    location: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def render(cls) -> "GuardDecision":
        return cls(GuardOutcome.RENDER)

    @classmethod
    def loading(cls) -> "GuardDecision":
        return cls(GuardOutcome.LOADING)

    @classmethod
    def redirect(cls, location: str, reason: str) -> "GuardDecision":
        return cls(GuardOutcome.REDIRECT, location=location, reason=reason)

    @property
    def allowed(self) -> bool:
        return self.outcome is GuardOutcome.RENDER


def session_guard(
    state: AuthState,
    elapsed_ms: Optional[float],
    timeout_ms: float = DEFAULT_AUTH_WAIT_MS,
) -> GuardDecision:
    """Gate on presence of a session.

    elapsed_ms is how long loading has been observed (None when it has not
    been observed loading). Hitting the timeout while still loading fails
    closed to the login page.
    """
    if state.loading:
        if elapsed_ms is not None and elapsed_ms >= timeout_ms:
            return GuardDecision.redirect(LOGIN_PATH, "auth_timeout")
        return GuardDecision.loading()
    if state.session is None:
        return GuardDecision.redirect(LOGIN_PATH, "no_session")
    return GuardDecision.render()


def role_guard(state: AuthState, allow: Iterable[UserRole]) -> GuardDecision:
    """Gate on the profile role.

    A missing profile counts as unauthenticated (login); a known role that is
    not allowed goes back to the landing page.
    """
    if state.loading:
        return GuardDecision.loading()
    if state.profile is None:
        return GuardDecision.redirect(LOGIN_PATH, "no_profile")
    if state.profile.role not in frozenset(allow):
        return GuardDecision.redirect(HOME_PATH, "role_not_allowed")
    return GuardDecision.render()


class LoadingTimer:
    """Measures how long loading has been observed true.

    Starts on the first loading=True observation and resets as soon as
    loading is observed False, so an expired wait never fires late.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._started: Optional[float] = None

    @property
    def running(self) -> bool:
        return self._started is not None

    def observe(self, loading: bool) -> Optional[float]:
        if not loading:
            self._started = None
            return None
        now = self._clock()
        if self._started is None:
            self._started = now
        return (now - self._started) * 1000.0

    def reset(self) -> None:
        self._started = None
