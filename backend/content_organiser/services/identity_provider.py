"""
Local identity provider and profile lookup backed by the users/sessions/profiles tables.

One LocalIdentityProvider is bound to one client credential (the session
cookie or bearer token of a request). Sign-in, sign-out and token refresh
replace that credential and notify subscribers, which is how the identity
resolver learns about auth events.
"""
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from content_organiser.core.config import get_settings
from content_organiser.core.database import get_session_local
from content_organiser.core.exceptions import AuthenticationError, GatewayError
from content_organiser.core.identity import (AuthSession, Profile,
                                             SessionListener)
from content_organiser.core.logging_config import LoggingConfig
from content_organiser.models.profile import UserRole
from content_organiser.models.user import UserSession
from content_organiser.services.auth_service import AuthService

logger = LoggingConfig.get_logger(__name__)


def _to_auth_session(row: UserSession) -> AuthSession:
    return AuthSession(access_token=row.token, user_id=row.user_id, expires_at=row.expires_at)


class LocalIdentityProvider:
    """Password auth with opaque, database-stored session tokens"""

    def __init__(self, token: Optional[str] = None, session_factory: Optional[sessionmaker] = None):
        self._token = token
        self._session_factory = session_factory
        self._listeners: List[SessionListener] = []

    @property
    def token(self) -> Optional[str]:
        """Credential the client should hold after the last operation"""
        return self._token

    def _factory(self) -> sessionmaker:
        return self._session_factory or get_session_local()

    # ------------------------------------------------------------------
    # Change stream
    # ------------------------------------------------------------------

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, session: Optional[AuthSession]) -> None:
        for listener in list(self._listeners):
            listener(session)

    # ------------------------------------------------------------------
    # Provider operations
    # ------------------------------------------------------------------

    async def get_current_session(self) -> Optional[AuthSession]:
        token = self._token
        if not token:
            return None
        return await run_in_threadpool(self._lookup_session, token)

    def _lookup_session(self, token: str) -> Optional[AuthSession]:
        with self._factory()() as db:
            try:
                row = AuthService(db).get_valid_session(token)
            except SQLAlchemyError as e:
                db.rollback()
                raise GatewayError(f"Session lookup failed: {e}") from e
            return _to_auth_session(row) if row else None

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        session = await run_in_threadpool(self._sign_in, email, password)
        self._token = session.access_token
        self._emit(session)
        return session

    def _sign_in(self, email: str, password: str) -> AuthSession:
        with self._factory()() as db:
            service = AuthService(db)
            try:
                user = service.authenticate(email, password)
                if not user:
                    raise AuthenticationError("Invalid email or password")
                return _to_auth_session(service.create_session(user.id))
            except SQLAlchemyError as e:
                db.rollback()
                raise GatewayError(f"Sign-in failed: {e}") from e

    async def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> None:
        settings = get_settings()
        if not settings.allow_signup:
            raise AuthenticationError("Sign-up is disabled; ask an administrator for an account")
        await run_in_threadpool(self._sign_up, email, password, display_name, settings.default_signup_role)

    def _sign_up(self, email: str, password: str, display_name: Optional[str], role: str) -> None:
        with self._factory()() as db:
            try:
                AuthService(db).register_user(email, password, role=role, display_name=display_name)
            except ValueError as e:
                raise AuthenticationError(str(e)) from e
            except SQLAlchemyError as e:
                db.rollback()
                raise GatewayError(f"Sign-up failed: {e}") from e

    async def sign_out(self) -> None:
        token = self._token
        if token:
            await run_in_threadpool(self._sign_out, token)
        self._token = None
        self._emit(None)

    def _sign_out(self, token: str) -> None:
        with self._factory()() as db:
            try:
                AuthService(db).logout(token)
            except SQLAlchemyError as e:
                db.rollback()
                raise GatewayError(f"Sign-out failed: {e}") from e

    async def refresh_session(self) -> Optional[AuthSession]:
        """Rotate the current token; emits the new session (or None if the old one is invalid)."""
        token = self._token
        session = await run_in_threadpool(self._refresh, token) if token else None
        self._token = session.access_token if session else None
        self._emit(session)
        return session

    def _refresh(self, token: str) -> Optional[AuthSession]:
        with self._factory()() as db:
            service = AuthService(db)
            try:
                current = service.get_valid_session(token)
                if not current:
                    return None
                user_id = current.user_id
                service.logout(token)
                return _to_auth_session(service.create_session(user_id))
            except SQLAlchemyError as e:
                db.rollback()
                raise GatewayError(f"Session refresh failed: {e}") from e


class SqlProfileLookup:
    """Fail-soft profile lookup: any storage error reads as 'no profile'"""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self._session_factory = session_factory

    async def find_profile_by_user_id(self, user_id: str) -> Optional[Profile]:
        return await run_in_threadpool(self._find, user_id)

    def _find(self, user_id: str) -> Optional[Profile]:
        factory = self._session_factory or get_session_local()
        try:
            with factory() as db:
                row = AuthService(db).get_profile(user_id)
                if row is None:
                    return None
                return Profile(
                    user_id=row.user_id,
                    role=UserRole(row.role),
                    display_name=row.display_name,
                )
        except (SQLAlchemyError, ValueError) as e:
            logger.error(f"Profile fetch error for user {user_id}: {e}")
            return None
