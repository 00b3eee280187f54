from fastapi import APIRouter, Depends
from typing import List
from src.api.deps import get_account_service, get_product_store
from src.api.errors import http_error
from src.core.exceptions import CafeteriaError
from src.models.schemas import (
    ActiveStateChange,
    InventoryAdjust,
    Message,
    Product,
    ProductCreate,
    ProductUpdate,
    User,
    UserUpdate,
)
from src.services.account_service import AccountService
from src.stores.products import ProductStore

# Every route here sits behind require_role(Role.admin), attached in main.py
router = APIRouter()


@router.get("/products/branch/{branch_id}", response_model=List[Product])
async def list_branch_products(branch_id: int, products: ProductStore = Depends(get_product_store)):
    """All products of a branch, inactive and sold-out included"""
    try:
        return await products.list_by_branch(branch_id)
    except CafeteriaError as e:
        raise http_error(e)


@router.get("/products/{branch_id}/{product_id}", response_model=Product)
async def get_product(branch_id: int, product_id: str, products: ProductStore = Depends(get_product_store)):
    try:
        return await products.get(branch_id, product_id)
    except CafeteriaError as e:
        raise http_error(e)


@router.post("/products", response_model=Product, status_code=201)
async def create_product(product_data: ProductCreate, products: ProductStore = Depends(get_product_store)):
    """Alta: add a product to a branch, active immediately"""
    try:
        return await products.create(
            branch_id=product_data.branch_id,
            product_id=product_data.product_id,
            name=product_data.name,
            category=product_data.category,
            description=product_data.description,
            unit_price=product_data.unit_price,
            initial_quantity=product_data.initial_quantity
        )
    except CafeteriaError as e:
        raise http_error(e)


@router.put("/products/{branch_id}/{product_id}", response_model=Product)
async def update_product(
    branch_id: int,
    product_id: str,
    product_data: ProductUpdate,
    products: ProductStore = Depends(get_product_store),
):
    try:
        return await products.update_details(branch_id, product_id, **product_data.model_dump())
    except CafeteriaError as e:
        raise http_error(e)


@router.patch("/products/{branch_id}/{product_id}/inventory", response_model=Message)
async def adjust_inventory(
    branch_id: int,
    product_id: str,
    adjustment: InventoryAdjust,
    products: ProductStore = Depends(get_product_store),
):
    try:
        await products.adjust_quantity(branch_id, product_id, adjustment.new_quantity)
    except CafeteriaError as e:
        raise http_error(e)
    return Message(message=f"Inventory of {product_id} set to {adjustment.new_quantity}")


@router.patch("/products/{branch_id}/{product_id}/status", response_model=Message)
async def change_product_state(
    branch_id: int,
    product_id: str,
    state: ActiveStateChange,
    products: ProductStore = Depends(get_product_store),
):
    """Activate a product or take it off sale (baja)"""
    try:
        await products.set_active(branch_id, product_id, state.is_active)
    except CafeteriaError as e:
        raise http_error(e)
    action = "activated" if state.is_active else "deactivated"
    return Message(message=f"Product {product_id} {action}")


@router.get("/users", response_model=List[User])
async def list_users(accounts: AccountService = Depends(get_account_service)):
    try:
        return await accounts.list_users()
    except CafeteriaError as e:
        raise http_error(e)


@router.put("/users/{username}", response_model=User)
async def update_user(
    username: str,
    user_data: UserUpdate,
    accounts: AccountService = Depends(get_account_service),
):
    try:
        return await accounts.update_user(
            username, user_data.full_name, user_data.role, user_data.branch_id
        )
    except CafeteriaError as e:
        raise http_error(e)


@router.delete("/users/{username}", response_model=Message)
async def delete_user(username: str, accounts: AccountService = Depends(get_account_service)):
    try:
        await accounts.delete_user(username)
    except CafeteriaError as e:
        raise http_error(e)
    return Message(message=f"User {username} deleted")
