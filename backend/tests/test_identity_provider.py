"""
Tests for the database-backed identity provider and profile lookup
"""
import pytest
from content_organiser.core.exceptions import AuthenticationError, GatewayError
from content_organiser.core.identity import IdentityResolver
from content_organiser.models.profile import UserRole
from content_organiser.services.identity_provider import (LocalIdentityProvider,
                                                          SqlProfileLookup)
from sqlalchemy.exc import OperationalError

from conftest import TEST_PASSWORD


@pytest.mark.asyncio
async def test_sign_in_sets_token_and_notifies(db, make_user):
    user = make_user("ivy@example.com", role="editor")
    provider = LocalIdentityProvider()
    seen = []
    provider.subscribe(seen.append)

    session = await provider.sign_in_with_password("ivy@example.com", TEST_PASSWORD)

    assert session.user_id == user.id
    assert provider.token == session.access_token
    assert seen == [session]
    assert (await provider.get_current_session()).user_id == user.id


@pytest.mark.asyncio
async def test_sign_in_with_wrong_password(db, make_user):
    make_user("jack@example.com")
    provider = LocalIdentityProvider()

    with pytest.raises(AuthenticationError):
        await provider.sign_in_with_password("jack@example.com", "not-the-password")
    assert provider.token is None


@pytest.mark.asyncio
async def test_unknown_token_has_no_session(db):
    assert await LocalIdentityProvider(token="bogus").get_current_session() is None
    assert await LocalIdentityProvider().get_current_session() is None


@pytest.mark.asyncio
async def test_sign_out_invalidates_token(db, make_user):
    make_user("kim@example.com")
    provider = LocalIdentityProvider()
    session = await provider.sign_in_with_password("kim@example.com", TEST_PASSWORD)
    seen = []
    unsubscribe = provider.subscribe(seen.append)

    await provider.sign_out()

    assert seen == [None]
    assert provider.token is None
    assert await LocalIdentityProvider(token=session.access_token).get_current_session() is None
    unsubscribe()
    await provider.sign_out()
    assert seen == [None]


@pytest.mark.asyncio
async def test_refresh_rotates_token(db, make_user):
    make_user("lee@example.com")
    provider = LocalIdentityProvider()
    old = await provider.sign_in_with_password("lee@example.com", TEST_PASSWORD)

    new = await provider.refresh_session()

    assert new.access_token != old.access_token
    assert new.user_id == old.user_id
    assert await LocalIdentityProvider(token=old.access_token).get_current_session() is None


@pytest.mark.asyncio
async def test_sign_up_uses_default_role(db, settings):
    provider = LocalIdentityProvider()

    await provider.sign_up("mia@example.com", "long-enough", display_name="Mia")
    session = await provider.sign_in_with_password("mia@example.com", "long-enough")
    profile = await SqlProfileLookup().find_profile_by_user_id(session.user_id)

    assert profile.role is UserRole.VIEWER
    assert profile.display_name == "Mia"


@pytest.mark.asyncio
async def test_sign_up_duplicate_email(db, make_user):
    make_user("ned@example.com")

    with pytest.raises(AuthenticationError, match="already exists"):
        await LocalIdentityProvider().sign_up("ned@example.com", "long-enough")


@pytest.mark.asyncio
async def test_sign_up_disabled(db, settings, monkeypatch):
    monkeypatch.setattr(settings, "allow_signup", False)

    with pytest.raises(AuthenticationError, match="disabled"):
        await LocalIdentityProvider().sign_up("olga@example.com", "long-enough")


@pytest.mark.asyncio
async def test_profile_lookup_is_fail_soft(db, monkeypatch):
    lookup = SqlProfileLookup()

    def broken(user_id):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr("content_organiser.services.auth_service.AuthService.get_profile",
                        lambda self, user_id: broken(user_id))

    assert await lookup.find_profile_by_user_id("anyone") is None


@pytest.mark.asyncio
async def test_resolver_over_local_provider(db, make_user):
    """End to end: token boots a resolver to a complete identity"""
    make_user("pat@example.com", role="admin")
    provider = LocalIdentityProvider()
    session = await provider.sign_in_with_password("pat@example.com", TEST_PASSWORD)

    async with IdentityResolver(LocalIdentityProvider(token=session.access_token), SqlProfileLookup()) as resolver:
        state = await resolver.wait_for_profile(timeout=2)

    assert state.session.user_id == session.user_id
    assert state.profile.role is UserRole.ADMIN


@pytest.mark.asyncio
async def test_refresh_storage_failure_raises_gateway_error(db, make_user, monkeypatch):
    make_user("quin@example.com")
    provider = LocalIdentityProvider()
    session = await provider.sign_in_with_password("quin@example.com", TEST_PASSWORD)

    def broken(self, user_id):
        raise OperationalError("INSERT", {}, Exception("disk full"))

    monkeypatch.setattr("content_organiser.services.auth_service.AuthService.create_session", broken)

    with pytest.raises(GatewayError, match="Session refresh failed"):
        await provider.refresh_session()
    assert provider.token == session.access_token
