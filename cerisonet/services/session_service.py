import json
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from cerisonet.config import settings
from cerisonet.errors import PersistenceFailure, StorageUnavailable
from cerisonet.models import Account, SessionUser
from cerisonet.models_sql import UserSession

logger = logging.getLogger(__name__)

_STORAGE_ERRORS = (OperationalError, InterfaceError, OSError)


def utcnow() -> datetime:
    # Stored without tzinfo so PostgreSQL and SQLite compare the same way
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SessionService:
    """Server-side sessions keyed by the token carried in the session cookie."""

    def __init__(self, session: AsyncSession, max_age: Optional[int] = None):
        self.session = session
        self.max_age = max_age if max_age is not None else settings.SESSION_MAX_AGE

    async def create_session(self, account: Account) -> tuple[str, SessionUser]:
        """Open a session for the account and return (token, user summary)"""
        now = utcnow()
        user = SessionUser(
            id=account.id,
            email=account.email,
            firstName=account.first_name,
            lastName=account.last_name,
            lastLogin=now.replace(tzinfo=timezone.utc).isoformat(),
        )
        token = secrets.token_urlsafe(32)
        row = UserSession(
            id=token,
            user_id=account.id,
            session_data=user.model_dump_json(),
            created_at=now,
            expires_at=now + timedelta(seconds=self.max_age),
        )
        try:
            self.session.add(row)
            await self.session.commit()
        except _STORAGE_ERRORS as e:
            await self.session.rollback()
            raise StorageUnavailable() from e
        return token, user

    async def get_session_user(self, token: Optional[str]) -> Optional[SessionUser]:
        """Return the user bound to a live session, None when absent or expired"""
        if not token:
            return None
        try:
            result = await self.session.execute(
                select(UserSession).where(UserSession.id == token)
            )
        except _STORAGE_ERRORS as e:
            raise StorageUnavailable() from e
        row = result.scalar_one_or_none()
        if row is None:
            return None
        if row.expires_at <= utcnow():
            await self.destroy_session(token)
            return None
        return SessionUser(**json.loads(row.session_data))

    async def destroy_session(self, token: str) -> None:
        try:
            await self.session.execute(delete(UserSession).where(UserSession.id == token))
            await self.session.commit()
        except _STORAGE_ERRORS as e:
            await self.session.rollback()
            raise PersistenceFailure("Erreur lors de la déconnexion") from e

    async def purge_expired(self) -> int:
        """Delete every expired session row. Returns the number removed."""
        result = await self.session.execute(
            delete(UserSession).where(UserSession.expires_at <= utcnow())
        )
        await self.session.commit()
        if result.rowcount:
            logger.info("Purged %s expired sessions", result.rowcount)
        return result.rowcount or 0
