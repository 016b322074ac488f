"""
Access/refresh token lifecycle.

A user holds at most one active refresh token. Issuing a pair overwrites it,
a successful refresh rotates it, and logout clears it. Access tokens are
stateless and never stored.

    NoSession --issue--> Active(T) --validate_and_rotate(T)--> Active(T')
    Active(*) --revoke--> NoSession
"""
from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, NamedTuple

import jwt
from sqlalchemy.exc import SQLAlchemyError

from utils.errors import InternalError, UnauthorizedError
from utils.security import sign_token, verify_token

logger = logging.getLogger(__name__)

INVALID_REFRESH_TOKEN = "Invalid refresh token"
STALE_REFRESH_TOKEN = "Refresh token is expired or used"
INVALID_ACCESS_TOKEN = "Invalid access token"
ISSUE_FAILED = "Something went wrong while generating refresh and access token"


@dataclass(frozen=True)
class TokenConfig:
    access_secret: str
    refresh_secret: str
    access_ttl: timedelta
    refresh_ttl: timedelta
    algorithm: str = "HS256"
    issuer: str | None = None

    @classmethod
    def from_mapping(cls, config) -> "TokenConfig":
        """Build from a Flask config (or any mapping with the same keys)."""
        return cls(
            access_secret=config["ACCESS_TOKEN_SECRET"],
            refresh_secret=config["REFRESH_TOKEN_SECRET"],
            access_ttl=config["ACCESS_TOKEN_EXPIRES"],
            refresh_ttl=config["REFRESH_TOKEN_EXPIRES"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            issuer=config.get("JWT_ISSUER"),
        )


class TokenPair(NamedTuple):
    access_token: str
    refresh_token: str


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenManager:
    """Issues, rotates, revokes and verifies tokens for users in `store`."""

    def __init__(self, config: TokenConfig, store, clock: Callable[[], datetime] = _utcnow):
        self.config = config
        self.store = store
        self.clock = clock

    def _sign_pair(self, user_id: str) -> TokenPair:
        cfg = self.config
        now = self.clock()
        try:
            access = sign_token(user_id, "access", cfg.access_secret, cfg.access_ttl,
                                now, algorithm=cfg.algorithm, issuer=cfg.issuer)
            refresh = sign_token(user_id, "refresh", cfg.refresh_secret, cfg.refresh_ttl,
                                 now, algorithm=cfg.algorithm, issuer=cfg.issuer)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            logger.error("Token signing failed for user %s: %s", user_id, exc)
            raise InternalError(ISSUE_FAILED) from exc
        return TokenPair(access, refresh)

    def issue(self, user) -> TokenPair:
        """
        Sign a new pair and store its refresh half on the user, replacing
        whatever was there before.
        """
        pair = self._sign_pair(user.id)
        try:
            stored = self.store.set_refresh_token(user.id, pair.refresh_token)
        except SQLAlchemyError as exc:
            logger.exception("Persisting refresh token failed for user %s", user.id)
            raise InternalError(ISSUE_FAILED) from exc
        if not stored:
            logger.error("No user row to hold the refresh token for user %s", user.id)
            raise InternalError(ISSUE_FAILED)
        logger.info("Issued token pair for user %s", user.id)
        return pair

    def validate_and_rotate(self, presented: str) -> TokenPair:
        """
        Exchange a refresh token for a new pair. The presented token must
        verify and must be the one currently stored for its user; once
        rotated away it is rejected for good.
        """
        if not presented:
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)
        cfg = self.config
        try:
            decoded = verify_token(presented, cfg.refresh_secret, "refresh",
                                   algorithm=cfg.algorithm, issuer=cfg.issuer)
        except jwt.PyJWTError as exc:
            logger.info("Refresh token rejected: %s", exc)
            raise UnauthorizedError(INVALID_REFRESH_TOKEN) from exc

        user = self.store.find_by_id(decoded["sub"])
        if user is None:
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        stored = user.refresh_token
        if stored is None or not hmac.compare_digest(stored.encode(), presented.encode()):
            logger.warning("Stale or reused refresh token presented for user %s", user.id)
            raise UnauthorizedError(STALE_REFRESH_TOKEN)

        pair = self._sign_pair(user.id)
        try:
            swapped = self.store.swap_refresh_token(user.id, presented, pair.refresh_token)
        except SQLAlchemyError as exc:
            logger.exception("Rotating refresh token failed for user %s", user.id)
            raise InternalError(ISSUE_FAILED) from exc
        if not swapped:
            # another request rotated this token between our read and write
            logger.warning("Concurrent refresh token rotation lost for user %s", user.id)
            raise UnauthorizedError(STALE_REFRESH_TOKEN)
        logger.info("Rotated refresh token for user %s", user.id)
        return pair

    def revoke(self, user) -> None:
        """Clear the user's refresh session."""
        try:
            self.store.clear_refresh_token(user.id)
        except SQLAlchemyError as exc:
            logger.exception("Revoking refresh token failed for user %s", user.id)
            raise InternalError("Something went wrong while logging out") from exc
        logger.info("Revoked refresh session for user %s", user.id)

    def verify_access(self, token: str) -> str:
        """Return the user id embedded in a valid access token."""
        if not token:
            raise UnauthorizedError(INVALID_ACCESS_TOKEN)
        cfg = self.config
        try:
            decoded = verify_token(token, cfg.access_secret, "access",
                                   algorithm=cfg.algorithm, issuer=cfg.issuer)
        except jwt.PyJWTError as exc:
            raise UnauthorizedError(INVALID_ACCESS_TOKEN) from exc
        return decoded["sub"]
