"""Server-side sessions keyed by opaque tokens.

A session moves through CREATED -> ACTIVE -> EXPIRED (store TTL) or REVOKED
(logout); once gone it never comes back.  :class:`SessionReader` only reads
the store and is what the request guard middleware uses; :class:`SessionManager`
adds issuing and revoking.
"""

from fastapi import Response
from loguru import logger
from pydantic import ValidationError
from redis.exceptions import RedisError

from address_verifier.core.kv_store import KeyValueStore
from address_verifier.core.security import generate_session_token
from address_verifier.schemas.auth import UserSession

SESSION_KEY_PREFIX = "session:"


def session_key(token: str) -> str:
    """Store key holding the session for ``token``."""
    return f"{SESSION_KEY_PREFIX}{token}"


class SessionReader:
    """Read-only session resolution.

    Needs nothing beyond a store lookup, so it is safe to call from
    middleware that runs before dependency injection.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def resolve_session(self, token: str | None) -> UserSession | None:
        """Return the session for ``token``, or None when absent, expired, malformed or unreadable.

        Args:
            token: The opaque token from the session cookie.

        Returns:
            The stored UserSession, or None.
        """
        if not token:
            return None
        try:
            raw = await self._store.get(session_key(token))
        except RedisError as e:
            logger.warning(f"Session store unavailable, treating request as signed out: {e}")
            return None
        if raw is None:
            return None
        try:
            return UserSession.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding malformed session payload")
            return None


class SessionManager(SessionReader):
    """Issues, resolves and revokes sessions and their cookies."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        cookie_name: str,
        ttl_seconds: int,
        secure_cookie: bool,
    ) -> None:
        super().__init__(store)
        self.cookie_name = cookie_name
        self.ttl_seconds = ttl_seconds
        self.secure_cookie = secure_cookie

    async def create_session(self, user: UserSession, response: Response) -> str:
        """Store a new session for ``user`` and set its cookie on ``response``.

        Args:
            user: Identity to store (user id and display name).
            response: Response that receives the session cookie.

        Returns:
            The new session token.
        """
        token = generate_session_token()
        await self._store.set(session_key(token), user.model_dump_json(), ttl_seconds=self.ttl_seconds)
        self.set_cookie(response, token)
        return token

    async def revoke_session(self, token: str | None, response: Response) -> None:
        """Delete the session for ``token`` and clear the cookie. No-op when absent."""
        if token:
            await self._store.delete(session_key(token))
        response.delete_cookie(
            self.cookie_name,
            httponly=True,
            samesite="lax",
            secure=self.secure_cookie,
        )

    def set_cookie(self, response: Response, token: str) -> None:
        response.set_cookie(
            self.cookie_name,
            token,
            max_age=self.ttl_seconds,
            expires=self.ttl_seconds,
            httponly=True,
            samesite="lax",
            secure=self.secure_cookie,
        )
