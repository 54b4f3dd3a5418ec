from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request
from cerisonet.config import settings
from cerisonet.database import get_db
from cerisonet.db import get_database
from cerisonet.errors import Unauthenticated
from cerisonet.models import SessionUser
from cerisonet.services.account_service import AccountService
from cerisonet.services.feed_service import FeedService
from cerisonet.services.post_service import PostService
from cerisonet.services.session_service import SessionService
from typing import Optional

def get_account_service(session: AsyncSession = Depends(get_db)) -> AccountService:
    return AccountService(session)

def get_session_service(session: AsyncSession = Depends(get_db)) -> SessionService:
    return SessionService(session)

def get_post_service(db: AsyncIOMotorDatabase = Depends(get_database)) -> PostService:
    return PostService(db)

def get_feed_service(
    posts: PostService = Depends(get_post_service),
    accounts: AccountService = Depends(get_account_service),
) -> FeedService:
    return FeedService(posts, accounts)

def get_session_token(request: Request) -> Optional[str]:
    return request.cookies.get(settings.SESSION_COOKIE_NAME)

async def get_optional_current_user(
    token: Optional[str] = Depends(get_session_token),
    sessions: SessionService = Depends(get_session_service),
) -> Optional[SessionUser]:
    """Get the session user if authenticated, None otherwise"""
    return await sessions.get_session_user(token)

async def get_current_user(
    user: Optional[SessionUser] = Depends(get_optional_current_user),
) -> SessionUser:
    """Get the current authenticated user from the session cookie"""
    if user is None:
        raise Unauthenticated()
    return user
