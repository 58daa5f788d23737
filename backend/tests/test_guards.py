"""
Tests for route guard decisions
"""
from content_organiser.core.guards import (ADMIN_ROLES, CATEGORY_ROLES,
                                           GuardOutcome, LoadingTimer,
                                           role_guard, session_guard)
from content_organiser.core.identity import AuthSession, AuthState, Profile
from content_organiser.models.profile import UserRole

SESSION = AuthSession(access_token="t", user_id="u1")


def _state(session=None, role=None, loading=False):
    profile = Profile(user_id="u1", role=role) if role else None
    return AuthState(session=session, profile=profile, loading=loading)


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestSessionGuard:
    def test_loading_within_wait(self):
        decision = session_guard(_state(loading=True), elapsed_ms=3999, timeout_ms=4000)

        assert decision.outcome is GuardOutcome.LOADING
        assert not decision.allowed

    def test_loading_timeout_redirects_to_login(self):
        decision = session_guard(_state(loading=True), elapsed_ms=4000, timeout_ms=4000)

        assert decision.outcome is GuardOutcome.REDIRECT
        assert decision.location == "/login"
        assert decision.reason == "auth_timeout"

    def test_no_session_redirects_to_login(self):
        decision = session_guard(_state(), elapsed_ms=None)

        assert decision.location == "/login"
        assert decision.reason == "no_session"

    def test_session_renders(self):
        assert session_guard(_state(session=SESSION), elapsed_ms=None).allowed

    def test_session_renders_without_profile(self):
        """The session guard does not care about the profile"""
        assert session_guard(_state(session=SESSION, role=None), elapsed_ms=None).allowed


class TestRoleGuard:
    def test_loading(self):
        assert role_guard(_state(loading=True), ADMIN_ROLES).outcome is GuardOutcome.LOADING

    def test_missing_profile_redirects_to_login(self):
        decision = role_guard(_state(session=SESSION), ADMIN_ROLES)

        assert decision.location == "/login"
        assert decision.reason == "no_profile"

    def test_viewer_on_categories_goes_home(self):
        decision = role_guard(_state(session=SESSION, role=UserRole.VIEWER), CATEGORY_ROLES)

        assert decision.outcome is GuardOutcome.REDIRECT
        assert decision.location == "/"

    def test_editor_on_categories_renders(self):
        assert role_guard(_state(session=SESSION, role=UserRole.EDITOR), CATEGORY_ROLES).allowed

    def test_editor_on_admin_goes_home(self):
        decision = role_guard(_state(session=SESSION, role=UserRole.EDITOR), ADMIN_ROLES)

        assert decision.location == "/"

    def test_admin_on_admin_renders(self):
        assert role_guard(_state(session=SESSION, role=UserRole.ADMIN), ADMIN_ROLES).allowed


class TestLoadingTimer:
    def test_starts_on_first_loading_observation(self):
        clock = FakeClock()
        timer = LoadingTimer(clock=clock)

        clock.now = 10.0
        assert timer.observe(True) == 0.0
        clock.now = 12.5
        assert timer.observe(True) == 2500.0
        assert timer.running

    def test_resets_when_loading_clears(self):
        """An expired wait never fires after loading was seen false"""
        clock = FakeClock()
        timer = LoadingTimer(clock=clock)

        timer.observe(True)
        clock.now = 3.0
        assert timer.observe(False) is None
        assert not timer.running

        clock.now = 10.0
        assert timer.observe(True) == 0.0

    def test_timer_drives_session_guard_timeout(self):
        clock = FakeClock()
        timer = LoadingTimer(clock=clock)
        state = _state(loading=True)

        assert session_guard(state, timer.observe(True), 4000).outcome is GuardOutcome.LOADING
        clock.now = 4.0
        assert session_guard(state, timer.observe(True), 4000).location == "/login"
