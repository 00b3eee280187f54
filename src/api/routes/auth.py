from typing import Optional
from fastapi import APIRouter, Depends, Response
from src.api.deps import get_account_service, get_current_user, get_optional_user, get_token
from src.api.errors import http_error
from src.core.exceptions import CafeteriaError
from src.models.database import User
from src.models.schemas import LoginRequest, LoginResponse, RegisterResponse, UserCreate
from src.services.account_service import AccountService

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(credentials: LoginRequest, accounts: AccountService = Depends(get_account_service)):
    try:
        user, token = await accounts.login(credentials.username, credentials.password)
    except CafeteriaError as e:
        raise http_error(e)

    return LoginResponse(
        username=user.username,
        full_name=user.full_name,
        role=user.role,
        branch_id=user.branch_id,
        access_token=token
    )


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    user_data: UserCreate,
    accounts: AccountService = Depends(get_account_service),
    acting_user: Optional[User] = Depends(get_optional_user),
):
    """Create an account; only an admin may create another admin"""
    try:
        user = await accounts.register(user_data, acting_user=acting_user)
    except CafeteriaError as e:
        raise http_error(e)
    return RegisterResponse(message="User registered successfully", username=user.username)


@router.post("/logout", status_code=204)
async def logout(
    user: User = Depends(get_current_user),
    token: Optional[str] = Depends(get_token),
    accounts: AccountService = Depends(get_account_service),
):
    try:
        await accounts.logout(token)
    except CafeteriaError as e:
        raise http_error(e)
    return Response(status_code=204)
