import logging
from fastapi import APIRouter, Depends, HTTPException
from typing import List
from src.api.deps import get_order_service, get_order_store
from src.api.errors import http_error
from src.core.config import Settings, get_settings
from src.core.exceptions import CafeteriaError
from src.models.schemas import OrderCreate, OrderLine, OrderPlaced
from src.services.order_service import OrderService
from src.stores.orders import OrderStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", response_model=OrderPlaced, status_code=201)
async def place_order(order_data: OrderCreate, service: OrderService = Depends(get_order_service)):
    """Place an order, decrementing the branch stock"""
    try:
        result = await service.place_order(
            branch_id=order_data.branch_id,
            product_id=order_data.product_id,
            product_name=order_data.product_name,
            category=order_data.category,
            quantity=order_data.quantity,
            unit_price=order_data.unit_price,
            username=order_data.username,
            order_time=order_data.order_time
        )
    except CafeteriaError as e:
        raise http_error(e)
    except Exception as e:
        logger.exception(f"Unexpected error placing order: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")

    return OrderPlaced(
        message="Order recorded and inventory updated",
        new_quantity=result.new_quantity
    )


@router.get("/branch/{branch_id}", response_model=List[OrderLine])
async def get_branch_orders(
    branch_id: int,
    orders: OrderStore = Depends(get_order_store),
    settings: Settings = Depends(get_settings),
):
    """Most recent orders of a branch"""
    try:
        return await orders.list_by_branch(branch_id, limit=settings.order_history_limit)
    except CafeteriaError as e:
        raise http_error(e)


@router.get("/product/{product_name}", response_model=List[OrderLine])
async def get_product_orders(
    product_name: str,
    orders: OrderStore = Depends(get_order_store),
    settings: Settings = Depends(get_settings),
):
    try:
        return await orders.list_by_product(product_name, limit=settings.order_history_limit)
    except CafeteriaError as e:
        raise http_error(e)
