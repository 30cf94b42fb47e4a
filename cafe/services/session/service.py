"""Session registry service.

Session directory built on top of the generic cache port:

- ``session:{sessionId}``     -> session blob (token lifetime TTL)
- ``user-sessions:{userId}``  -> ordered list of that user's session ids

Mutations are read-modify-write with no concurrency check, same as the cart.
Key-space scans (online users, cleanup) cost O(number of keys) and are
meant for admin views and periodic maintenance, not request hot paths.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Optional

from cafe.models import SessionEntry, UserSession
from cafe.services.cache import CacheService

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL_SECONDS = 604800

SESSION_PATTERN = "session:*"
USER_SESSIONS_PATTERN = "user-sessions:*"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionRegistry(ABC):
    """Abstract session directory."""

    @abstractmethod
    async def create_session(self, session_id: str, data: UserSession, ttl_seconds: Optional[int] = None) -> None:
        """Store a session blob; the caller records it with ``add_session_to_user``."""
        pass

    @abstractmethod
    async def add_session_to_user(self, user_id: str, session_id: str, ttl_seconds: Optional[int] = None) -> None:
        pass

    @abstractmethod
    async def get_session(self, session_id: str) -> Optional[UserSession]:
        pass

    @abstractmethod
    async def update_activity(self, session_id: str) -> None:
        """Bump ``last_active`` and slide the expiry; never creates a session."""
        pass

    @abstractmethod
    async def extend_session(self, session_id: str) -> None:
        pass

    @abstractmethod
    async def has_active_sessions(self, user_id: str) -> bool:
        pass

    @abstractmethod
    async def list_user_sessions(self, user_id: str) -> list[SessionEntry]:
        pass

    @abstractmethod
    async def invalidate_session(self, session_id: str) -> None:
        pass

    @abstractmethod
    async def invalidate_all_user_sessions(self, user_id: str) -> None:
        pass

    @abstractmethod
    async def count_online(self) -> int:
        pass

    @abstractmethod
    async def list_online(self) -> list[UserSession]:
        pass

    @abstractmethod
    async def cleanup_expired_sessions(self) -> int:
        """Prune ids of expired sessions from user directories.

        Returns:
            Number of stale session ids removed.
        """
        pass

    @abstractmethod
    async def logout_all_users(self) -> dict:
        pass


class CacheSessionRegistry(SessionRegistry):
    """Session directory stored in a ``CacheService``.

    Attributes:
        _cache: Shared TTL cache.
        _ttl: Session lifetime in seconds, reapplied on activity and extend.
        _now: Clock used for ``last_active`` timestamps.
    """

    def __init__(
        self,
        cache: CacheService,
        ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._cache = cache
        self._ttl = ttl_seconds
        self._now = now

    async def _scan_keys(self, pattern: str) -> list[str]:
        try:
            return await self._cache.scan_keys(pattern)
        except Exception as e:
            logger.error(f"[SESSION] Error scanning cache keys for {pattern}: {e}")
            return []

    async def _get_session_ids(self, user_id: str) -> list[str]:
        ids = await self._cache.get(CacheService.build_user_sessions_key(user_id))
        return list(ids) if isinstance(ids, list) else []

    async def _save_session_ids(self, user_id: str, session_ids: list[str]) -> None:
        key = CacheService.build_user_sessions_key(user_id)
        if session_ids:
            await self._cache.set(key, session_ids, ttl_seconds=self._ttl)
        else:
            await self._cache.delete(key)

    async def _remove_from_user(self, user_id: str, session_id: str) -> bool:
        session_ids = await self._get_session_ids(user_id)
        remaining = [sid for sid in session_ids if sid != session_id]
        if len(remaining) == len(session_ids):
            return False
        await self._save_session_ids(user_id, remaining)
        return True

    async def _write_session(self, session_id: str, data: UserSession, ttl_seconds: int) -> None:
        await self._cache.set(
            CacheService.build_session_key(session_id),
            data.model_dump(mode="json", exclude_none=True),
            ttl_seconds=ttl_seconds,
        )

    async def create_session(self, session_id: str, data: UserSession, ttl_seconds: Optional[int] = None) -> None:
        await self._write_session(session_id, data, ttl_seconds or self._ttl)

    async def add_session_to_user(self, user_id: str, session_id: str, ttl_seconds: Optional[int] = None) -> None:
        session_ids = await self._get_session_ids(user_id)
        session_ids.append(session_id)
        await self._cache.set(
            CacheService.build_user_sessions_key(user_id),
            session_ids,
            ttl_seconds=ttl_seconds or self._ttl,
        )

    async def get_session(self, session_id: str) -> Optional[UserSession]:
        data = await self._cache.get(CacheService.build_session_key(session_id))
        if not data:
            return None
        return UserSession.model_validate(data)

    async def update_activity(self, session_id: str) -> None:
        session = await self.get_session(session_id)
        if session is None:
            return
        session.last_active = self._now().isoformat()
        await self._write_session(session_id, session, self._ttl)

    async def extend_session(self, session_id: str) -> None:
        session = await self.get_session(session_id)
        if session is None:
            return
        await self._write_session(session_id, session, self._ttl)
        session_ids = await self._get_session_ids(session.id)
        if session_id not in session_ids:
            session_ids.append(session_id)
        await self._save_session_ids(session.id, session_ids)

    async def has_active_sessions(self, user_id: str) -> bool:
        return len(await self._get_session_ids(user_id)) > 0

    async def list_user_sessions(self, user_id: str) -> list[SessionEntry]:
        sessions: list[SessionEntry] = []
        for session_id in await self._get_session_ids(user_id):
            data = await self.get_session(session_id)
            if data is not None:
                sessions.append(SessionEntry(session_id=session_id, user_data=data))
        return sessions

    async def invalidate_session(self, session_id: str) -> None:
        session = await self.get_session(session_id)
        if session is None:
            return
        await self._cache.delete(CacheService.build_session_key(session_id))
        await self._remove_from_user(session.id, session_id)
        logger.info(f"[SESSION] Invalidated session for user {session.id}")

    async def invalidate_all_user_sessions(self, user_id: str) -> None:
        session_ids = await self._get_session_ids(user_id)
        for session_id in session_ids:
            await self._cache.delete(CacheService.build_session_key(session_id))
        await self._cache.delete(CacheService.build_user_sessions_key(user_id))
        logger.info(f"[SESSION] Invalidated {len(session_ids)} sessions for user {user_id}")

    async def count_online(self) -> int:
        return len(await self._scan_keys(SESSION_PATTERN))

    async def list_online(self) -> list[UserSession]:
        users: list[UserSession] = []
        for key in await self._scan_keys(SESSION_PATTERN):
            data = await self._cache.get(key)
            if data:
                users.append(UserSession.model_validate(data))
        return users

    async def _find_user_id_by_session(self, session_id: str) -> Optional[str]:
        prefix = CacheService.build_user_sessions_key("")
        for key in await self._scan_keys(USER_SESSIONS_PATTERN):
            session_ids = await self._cache.get(key) or []
            if session_id in session_ids:
                return key[len(prefix):]
        return None

    async def cleanup_expired_sessions(self) -> int:
        prefix = CacheService.build_session_key("")
        pruned = 0
        for key in await self._scan_keys(SESSION_PATTERN):
            if await self._cache.get(key):
                continue
            session_id = key[len(prefix):]
            user_id = await self._find_user_id_by_session(session_id)
            if user_id is not None and await self._remove_from_user(user_id, session_id):
                pruned += 1
        if pruned:
            logger.info(f"[SESSION] Pruned {pruned} expired session ids")
        return pruned

    async def logout_all_users(self) -> dict:
        """Emergency action: drop every key in the cache database."""
        try:
            await self._cache.flush_all()
        except Exception as e:
            logger.error(f"[SESSION] Failed to log out all users: {e}")
            return {"message": "Failed to log out all users", "error": str(e)}
        logger.warning("[SESSION] All users logged out")
        return {"message": "All users logged out successfully"}
