import logging
from fastapi import APIRouter, Depends, Response
from typing import Optional
from cerisonet.config import settings
from cerisonet.dependencies import (
    get_account_service,
    get_optional_current_user,
    get_session_service,
    get_session_token,
)
from cerisonet.errors import InvalidInput
from cerisonet.models import SessionUser
from cerisonet.schemas import LoginResponse, MessageResponse, UserLogin
from cerisonet.services.account_service import OFFLINE, ONLINE, AccountService
from cerisonet.services.session_service import SessionService

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/login", response_model=LoginResponse)
async def login(
    user_data: UserLogin,
    response: Response,
    accounts: AccountService = Depends(get_account_service),
    sessions: SessionService = Depends(get_session_service),
):
    if not user_data.email or not user_data.password:
        raise InvalidInput("Email et mot de passe requis")

    account = await accounts.authenticate(user_data.email, user_data.password)
    await accounts.set_connection_status(account.id, ONLINE)
    token, user = await sessions.create_session(account)

    # Set session
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_MAX_AGE,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite=settings.SESSION_COOKIE_SAMESITE,
    )
    logger.info("Account %s logged in", account.id)
    return LoginResponse(user=user)

@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    user: Optional[SessionUser] = Depends(get_optional_current_user),
    accounts: AccountService = Depends(get_account_service),
    sessions: SessionService = Depends(get_session_service),
):
    if user is not None:
        await accounts.set_connection_status(user.id, OFFLINE)
    if token:
        await sessions.destroy_session(token)

    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite=settings.SESSION_COOKIE_SAMESITE,
    )
    if user is not None:
        logger.info("Account %s logged out", user.id)
    return MessageResponse(message="Déconnexion réussie")
