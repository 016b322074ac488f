"""
Narrow persistence interface the token manager works against.

Refresh-token writes are single-column UPDATE statements so the rest of the
user row is neither re-validated nor overwritten.
"""
from __future__ import annotations

from sqlalchemy import update

from models.user import User


class UserTokenStore:
    def __init__(self, storage):
        self.storage = storage

    def find_by_id(self, user_id: str) -> User | None:
        return self.storage.get(User, user_id)

    def _write(self, stmt) -> int:
        session = self.storage.get_session()
        result = session.execute(stmt.execution_options(synchronize_session="evaluate"))
        self.storage.save()
        return result.rowcount

    def set_refresh_token(self, user_id: str, token: str) -> bool:
        """False when no row was written (the user no longer exists)."""
        return self._write(update(User).where(User.id == user_id).values(refresh_token=token)) == 1

    def swap_refresh_token(self, user_id: str, expected: str, token: str) -> bool:
        """Compare-and-swap: replace `expected` with `token`; False if `expected` is no longer stored."""
        stmt = (
            update(User)
            .where(User.id == user_id, User.refresh_token == expected)
            .values(refresh_token=token)
        )
        return self._write(stmt) == 1

    def clear_refresh_token(self, user_id: str) -> None:
        self._write(update(User).where(User.id == user_id).values(refresh_token=None))
