import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from typing import Dict, Iterable, List, Optional
from passlib.context import CryptContext
from cerisonet.errors import AccountNotFound, InvalidCredential, StorageUnavailable
from cerisonet.models import Account, AccountDisplay
from cerisonet.models_sql import AccountSQL

logger = logging.getLogger(__name__)

# Accounts imported from the legacy directory carry unsalted SHA-1 hex digests.
# They still verify, and are rehashed with bcrypt on the next successful login.
pwd_context = CryptContext(schemes=["bcrypt", "hex_sha1"], deprecated="auto")

_STORAGE_ERRORS = (OperationalError, InterfaceError, OSError)

ONLINE = 1
OFFLINE = 0


def _to_account(account_sql: AccountSQL) -> Account:
    return Account(
        id=account_sql.id,
        email=account_sql.email,
        password_hash=account_sql.password_hash,
        first_name=account_sql.first_name or "",
        last_name=account_sql.last_name or "",
        avatar=account_sql.avatar,
        connection_status=account_sql.connection_status or 0,
    )


def _to_display(account_sql: AccountSQL) -> AccountDisplay:
    return AccountDisplay(
        id=account_sql.id,
        firstName=account_sql.first_name or "",
        lastName=account_sql.last_name or "",
        avatar=account_sql.avatar,
    )


class AccountService:
    def __init__(self, session: AsyncSession):
        self.session = session

    def hash_password(self, password: str) -> str:
        """Hash a password"""
        return pwd_context.hash(password)

    async def create_account(
        self,
        email: str,
        password: str,
        first_name: str = "",
        last_name: str = "",
        avatar: Optional[str] = None,
        account_id: Optional[int] = None,
    ) -> Account:
        """Create an account. Only used by the seed script, there is no signup route."""
        account_sql = AccountSQL(
            id=account_id,
            email=email,
            password_hash=self.hash_password(password),
            first_name=first_name,
            last_name=last_name,
            avatar=avatar,
            connection_status=OFFLINE,
        )
        try:
            self.session.add(account_sql)
            await self.session.commit()
            await self.session.refresh(account_sql)
        except IntegrityError:
            await self.session.rollback()
            raise ValueError(f"Account with email '{email}' already exists")
        return _to_account(account_sql)

    async def get_account_by_email(self, email: str) -> Optional[Account]:
        """Get an account by email"""
        try:
            result = await self.session.execute(
                select(AccountSQL).where(AccountSQL.email == email)
            )
        except _STORAGE_ERRORS as e:
            raise StorageUnavailable() from e
        account_sql = result.scalar_one_or_none()
        return _to_account(account_sql) if account_sql else None

    async def authenticate(self, email: str, password: str) -> Account:
        """Check credentials and return the matching account.

        Raises AccountNotFound for an unknown email and InvalidCredential for
        a wrong password. A legacy hash is upgraded in place on success.
        """
        account = await self.get_account_by_email(email)
        if account is None:
            raise AccountNotFound()

        valid, new_hash = pwd_context.verify_and_update(password, account.password_hash)
        if not valid:
            raise InvalidCredential()

        if new_hash:
            try:
                await self.session.execute(
                    update(AccountSQL)
                    .where(AccountSQL.id == account.id)
                    .values(password_hash=new_hash)
                )
                await self.session.commit()
            except _STORAGE_ERRORS as e:
                raise StorageUnavailable() from e
            account.password_hash = new_hash
            logger.info("Upgraded password hash for account %s", account.id)
        return account

    async def set_connection_status(self, account_id: int, status: int) -> None:
        """Write the connection flag. Fails loudly: this is a write path."""
        try:
            await self.session.execute(
                update(AccountSQL)
                .where(AccountSQL.id == account_id)
                .values(connection_status=status)
            )
            await self.session.commit()
        except _STORAGE_ERRORS as e:
            await self.session.rollback()
            raise StorageUnavailable() from e
        logger.info("Connection status set to %s for account %s", status, account_id)

    async def get_connected_accounts(self) -> List[AccountDisplay]:
        """Accounts flagged as connected. Returns [] when the store is unreachable."""
        query = select(AccountSQL).where(AccountSQL.connection_status == ONLINE)
        try:
            result = await self.session.execute(query.order_by(AccountSQL.id))
        except _STORAGE_ERRORS as e:
            logger.warning("Could not list connected accounts: %s", e)
            return []
        return [_to_display(a) for a in result.scalars().all()]

    async def get_display_map(self, account_ids: Iterable[int]) -> Dict[int, AccountDisplay]:
        """Bulk lookup of display data, keyed by account id.

        Unknown ids are simply absent. Returns {} when the store is unreachable.
        """
        ids = {i for i in account_ids if i is not None}
        if not ids:
            return {}
        try:
            result = await self.session.execute(
                select(AccountSQL).where(AccountSQL.id.in_(ids))
            )
        except _STORAGE_ERRORS as e:
            logger.warning("Could not look up accounts %s: %s", sorted(ids), e)
            return {}
        return {a.id: _to_display(a) for a in result.scalars().all()}
