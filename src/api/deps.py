from datetime import timedelta
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from src.api.errors import http_error
from src.core.config import Settings, get_settings
from src.core.database import get_db
from src.core.exceptions import CafeteriaError
from src.models.database import User
from src.models.schemas import Role
from src.services.account_service import AccountService
from src.services.order_service import OrderService
from src.stores.orders import OrderStore
from src.stores.products import ProductStore
from src.stores.sessions import SessionStore
from src.stores.users import UserStore

bearer_scheme = HTTPBearer(auto_error=False)


def get_product_store(db: Session = Depends(get_db)) -> ProductStore:
    return ProductStore(db)


def get_order_store(db: Session = Depends(get_db)) -> OrderStore:
    return OrderStore(db)


def get_order_service(
    products: ProductStore = Depends(get_product_store),
    orders: OrderStore = Depends(get_order_store),
    settings: Settings = Depends(get_settings),
) -> OrderService:
    return OrderService(
        products,
        orders,
        write_mode=settings.stock_write_mode,
        max_retries=settings.stock_write_retries
    )


def get_account_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AccountService:
    return AccountService(
        UserStore(db),
        SessionStore(db),
        session_ttl=timedelta(hours=settings.session_ttl_hours)
    )


def get_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    return credentials.credentials if credentials else None


async def get_current_user(
    token: Optional[str] = Depends(get_token),
    accounts: AccountService = Depends(get_account_service),
) -> User:
    try:
        return await accounts.authenticate(token)
    except CafeteriaError as e:
        raise http_error(e)


async def get_optional_user(
    token: Optional[str] = Depends(get_token),
    accounts: AccountService = Depends(get_account_service),
) -> Optional[User]:
    """Resolve the caller if a token was sent; a bad token is still rejected"""
    if not token:
        return None
    try:
        return await accounts.authenticate(token)
    except CafeteriaError as e:
        raise http_error(e)


def require_role(*roles: Role):
    """Dependency factory: allow the request only for the given roles"""

    async def checker(user: User = Depends(get_current_user)) -> User:
        try:
            return AccountService.authorize(user, *roles)
        except CafeteriaError as e:
            raise http_error(e)

    return checker
