"""
Identity resolver: the single authoritative (session, profile, loading) triple.

States:
    booting              loading=True,  session=None,  profile=None
    unauthenticated      loading=False, session=None,  profile=None
    pending_profile      loading=False, session=set,   profile=None
    complete             loading=False, session=set,   profile=set

Boot runs as a background task, so `loading` stays visible to consumers until
the session is known; the profile lookup then runs as a second task and fills the profile in when it lands. Every
session transition bumps a sequence number, and a continuation only applies
its result while the resolver is alive and its sequence is still current, so
a late boot or a stale profile lookup can never overwrite newer state.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from datetime import datetime
from typing import (Awaitable, Callable, Optional, Protocol, Set,
                    runtime_checkable)

from content_organiser.core.exceptions import ProviderScopeError
from content_organiser.core.logging_config import LoggingConfig
from content_organiser.core.metrics import identity_transitions_total
from content_organiser.models.profile import UserRole

logger = LoggingConfig.get_logger(__name__)


@dataclass(frozen=True)
class AuthSession:
    """Opaque authentication handle; only presence and user_id matter to the core"""
    access_token: str
    user_id: str
    expires_at: Optional[datetime] = None


@dataclass(frozen=True)
class Profile:
    user_id: str
    role: UserRole
    display_name: Optional[str] = None


@dataclass(frozen=True)
class AuthState:
    session: Optional[AuthSession] = None
    profile: Optional[Profile] = None
    loading: bool = True

    @property
    def phase(self) -> str:
        if self.loading:
            return "booting"
        if self.session is None:
            return "unauthenticated"
        if self.profile is None:
            return "pending_profile"
        return "complete"


SessionListener = Callable[[Optional[AuthSession]], None]


@runtime_checkable
class IdentityProvider(Protocol):
    async def get_current_session(self) -> Optional[AuthSession]: ...

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession: ...

    async def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> None: ...

    async def sign_out(self) -> None: ...

    def subscribe(self, listener: SessionListener) -> Callable[[], None]: ...


@runtime_checkable
class ProfileLookup(Protocol):
    async def find_profile_by_user_id(self, user_id: str) -> Optional[Profile]: ...


class IdentityResolver:
    """Keeps an AuthState in sync with an identity provider's change stream.

    Use as an async context manager; entering subscribes and starts the boot
    lookup without waiting for it, leaving unsubscribes. Results that arrive
    after leaving are discarded.
    """

    def __init__(self, provider: IdentityProvider, profiles: ProfileLookup):
        self._provider = provider
        self._profiles = profiles
        self._state = AuthState()
        self._started = False
        self._alive = False
        self._sequence = 0
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._boot_task: Optional[asyncio.Task] = None
        self._profile_task: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._changed = asyncio.Event()

    # ------------------------------------------------------------------
    # Consumer surface
    # ------------------------------------------------------------------

    @property
    def state(self) -> AuthState:
        if not self._started:
            raise ProviderScopeError("IdentityResolver.state read before start(); use it inside 'async with'")
        return self._state

    @property
    def provider(self) -> IdentityProvider:
        return self._provider

    @property
    def alive(self) -> bool:
        return self._alive

    @property
    def profile_pending(self) -> bool:
        return self._profile_task is not None and not self._profile_task.done()

    async def wait_for_change(self, timeout: Optional[float] = None) -> AuthState:
        """Block until the next state change or timeout, then return the current state."""
        event = self._changed
        try:
            await asyncio.wait_for(event.wait(), timeout)
        except asyncio.TimeoutError:
            pass
        return self.state

    async def wait_for_boot(self, timeout: Optional[float] = None) -> AuthState:
        """Let the boot lookup finish (bounded by timeout) before reading state."""
        task = self._boot_task
        if task is not None and not task.done():
            await asyncio.wait({task}, timeout=timeout)
        return self.state

    async def wait_for_profile(self, timeout: Optional[float] = None) -> AuthState:
        """Let boot and the in-flight profile lookup finish, together bounded by timeout."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout if timeout is not None else None
        await self.wait_for_boot(timeout)
        task = self._profile_task
        if task is not None and not task.done():
            remaining = max(deadline - loop.time(), 0.0) if deadline is not None else None
            await asyncio.wait({task}, timeout=remaining)
        return self.state

    async def sign_out(self) -> None:
        await self._provider.sign_out()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> "IdentityResolver":
        if self._started:
            return self
        self._started = True
        self._alive = True
        self._unsubscribe = self._provider.subscribe(self._on_session_change)
        self._boot_task = self._spawn(self._boot(self._sequence))
        return self

    async def close(self) -> None:
        if not self._alive:
            return
        self._alive = False
        self._sequence += 1
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        logger.debug("Identity resolver closed", extra={"pending_tasks": len(self._tasks)})

    async def __aenter__(self) -> "IdentityResolver":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _is_current(self, sequence: int) -> bool:
        return self._alive and sequence == self._sequence

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _boot(self, sequence: int) -> None:
        session: Optional[AuthSession] = None
        try:
            session = await self._provider.get_current_session()
        except Exception as e:
            logger.error(f"Fetching current session failed: {e}", exc_info=True)
            session = None

        if not self._is_current(sequence):
            logger.debug("Discarding boot result superseded by a newer auth event")
            return
        self._apply_session(session)

    def _on_session_change(self, session: Optional[AuthSession]) -> None:
        if not self._alive:
            return
        logger.info(
            "Auth state change",
            extra={"signed_in": session is not None}
        )
        self._apply_session(session)

    def _apply_session(self, session: Optional[AuthSession]) -> None:
        self._sequence += 1
        sequence = self._sequence

        previous = self._state
        profile = previous.profile
        if session is None or profile is None or profile.user_id != session.user_id:
            profile = None

        self._set_state(AuthState(session=session, profile=profile, loading=False))

        if session is not None:
            self._profile_task = self._spawn(self._load_profile(session.user_id, sequence))
        else:
            self._profile_task = None

    async def _load_profile(self, user_id: str, sequence: int) -> None:
        profile: Optional[Profile] = None
        try:
            profile = await self._profiles.find_profile_by_user_id(user_id)
        except Exception as e:
            logger.error(f"Profile lookup failed for user {user_id}: {e}", exc_info=True)
            profile = None

        if not self._is_current(sequence):
            logger.debug("Discarding stale profile lookup", extra={"user_id": user_id})
            return
        if profile is None:
            logger.warning("No profile for user; role unknown", extra={"user_id": user_id})
        self._set_state(replace(self._state, profile=profile))

    def _set_state(self, state: AuthState) -> None:
        self._state = state
        identity_transitions_total.labels(state=state.phase).inc()
        # Wake current waiters and arm a fresh event for the next change
        event, self._changed = self._changed, asyncio.Event()
        event.set()
