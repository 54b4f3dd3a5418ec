from fastapi import APIRouter, Depends
from cerisonet.dependencies import get_account_service, get_current_user
from cerisonet.models import SessionUser
from cerisonet.schemas import ConnectedUsersResponse, UserResponse
from cerisonet.services.account_service import AccountService

router = APIRouter()

@router.get("/user", response_model=UserResponse)
async def get_user(user: SessionUser = Depends(get_current_user)):
    return UserResponse(user=user)

@router.get("/users/connected", response_model=ConnectedUsersResponse)
async def get_connected_users(
    user: SessionUser = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
):
    """Accounts whose connection flag is set, read from the database on every call"""
    connected = await accounts.get_connected_accounts()
    return ConnectedUsersResponse(connectedUsers=connected)
