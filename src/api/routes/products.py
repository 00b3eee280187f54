from fastapi import APIRouter, Depends
from typing import List
from src.api.deps import get_order_store, get_product_store
from src.api.errors import http_error
from src.core.exceptions import CafeteriaError
from src.models.schemas import CatalogProduct, Product
from src.stores.orders import OrderStore
from src.stores.products import ProductStore

router = APIRouter()


@router.get("/products/branch/{branch_id}", response_model=List[Product])
async def get_branch_products(branch_id: int, products: ProductStore = Depends(get_product_store)):
    """Active, in-stock products of a branch"""
    try:
        return await products.list_available(branch_id)
    except CafeteriaError as e:
        raise http_error(e)


@router.get("/products/", response_model=List[CatalogProduct])
async def get_all_products(products: ProductStore = Depends(get_product_store)):
    """Every known product once, active or not"""
    try:
        return await products.list_unique()
    except CafeteriaError as e:
        raise http_error(e)


@router.get("/catalog/products", response_model=List[CatalogProduct])
async def get_catalog(products: ProductStore = Depends(get_product_store)):
    """Products on sale somewhere, deduplicated across branches"""
    try:
        return await products.list_catalog()
    except CafeteriaError as e:
        raise http_error(e)


@router.get("/branches/", response_model=List[int])
async def get_branches(orders: OrderStore = Depends(get_order_store)):
    try:
        return await orders.list_branches()
    except CafeteriaError as e:
        raise http_error(e)
