"""
Authentication service for user management and sessions
"""
import secrets
from datetime import timedelta
from typing import Optional

import bcrypt
from sqlalchemy.orm import Session

from content_organiser.core.config import get_settings
from content_organiser.core.logging_config import LoggingConfig
from content_organiser.models.profile import UserProfile, UserRole
from content_organiser.models.user import User, UserSession
from content_organiser.utils.datetime_utils import utc_now_naive

logger = LoggingConfig.get_logger(__name__)


class AuthService:
    """Service for user authentication and session management"""

    def __init__(self, db: Session):
        self.db = db
        self.session_duration_hours = get_settings().session_duration_hours

    def register_user(
        self,
        email: str,
        password: str,
        role: str = UserRole.VIEWER.value,
        display_name: Optional[str] = None,
    ) -> User:
        """
        Register a new user together with their profile row

        Args:
            email: Email address (also the login name)
            password: Plain text password
            role: Role stored on the profile
            display_name: Optional name shown in the dashboard

        Returns:
            Created User object

        Raises:
            ValueError: If the email already exists or the role is unknown
        """
        email = email.strip().lower()
        if role not in [r.value for r in UserRole]:
            raise ValueError(f"Invalid role '{role}'. Allowed roles: {[r.value for r in UserRole]}")

        if self.db.query(User).filter(User.email == email).first():
            raise ValueError(f"Email '{email}' already exists")

        user = User(
            email=email,
            password_hash=self._hash_password(password),
            is_active=True
        )
        user.profile = UserProfile(display_name=display_name, role=role)

        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"Registered new user: {email} (role: {role})")
        return user

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate a user by email and password

        Returns:
            User object if authentication successful, None otherwise
        """
        email = email.strip().lower()
        user = self.db.query(User).filter(User.email == email).first()

        if not user:
            logger.warning(f"Authentication failed: user '{email}' not found")
            return None

        if not user.is_active:
            logger.warning(f"Authentication failed: user '{email}' is inactive")
            return None

        if not self._verify_password(password, user.password_hash):
            logger.warning(f"Authentication failed: invalid credentials for user '{email}'")
            return None

        user.last_login = utc_now_naive()
        self.db.commit()

        logger.info(f"User '{email}' authenticated successfully")
        return user

    def create_session(self, user_id: str, duration_hours: Optional[int] = None) -> UserSession:
        """
        Create a new session for a user

        Args:
            user_id: User ID
            duration_hours: Session duration in hours (default from settings)

        Returns:
            Created UserSession object
        """
        duration = duration_hours or self.session_duration_hours
        session = UserSession(
            user_id=user_id,
            token=secrets.token_urlsafe(32),
            expires_at=utc_now_naive() + timedelta(hours=duration)
        )

        self.db.add(session)
        self.db.commit()
        self.db.refresh(session)

        logger.info(f"Created session for user {user_id}")
        return session

    def get_valid_session(self, token: str) -> Optional[UserSession]:
        """
        Validate a session token

        Returns:
            The session row if the token is known, unexpired and its user is
            active; None otherwise
        """
        session = self.db.query(UserSession).filter(
            UserSession.token == token
        ).first()

        if not session:
            return None

        if session.expires_at < utc_now_naive():
            logger.info(f"Session {session.id} expired")
            self.db.delete(session)
            self.db.commit()
            return None

        user = self.db.query(User).filter(User.id == session.user_id).first()
        if not user or not user.is_active:
            return None

        session.last_activity = utc_now_naive()
        self.db.commit()
        return session

    def logout(self, token: str) -> bool:
        """
        Logout by invalidating a session

        Returns:
            True if session was found and deleted, False otherwise
        """
        session = self.db.query(UserSession).filter(
            UserSession.token == token
        ).first()

        if session:
            self.db.delete(session)
            self.db.commit()
            logger.info(f"Session {session.id} invalidated")
            return True

        return False

    def set_role(self, email: str, role: str) -> UserProfile:
        """Change a user's role, creating the profile row if it is missing"""
        if role not in [r.value for r in UserRole]:
            raise ValueError(f"Invalid role '{role}'. Allowed roles: {[r.value for r in UserRole]}")
        user = self.db.query(User).filter(User.email == email.strip().lower()).first()
        if not user:
            raise ValueError(f"User '{email}' not found")

        if user.profile is None:
            user.profile = UserProfile(role=role)
        else:
            user.profile.role = role
        self.db.commit()
        logger.info(f"Role for '{user.email}' set to {role}")
        return user.profile

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        return self.db.query(UserProfile).filter(UserProfile.user_id == user_id).first()

    @staticmethod
    def _hash_password(password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

    @staticmethod
    def _verify_password(password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            return False
