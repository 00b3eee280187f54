import asyncio
import uuid
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from src.core.exceptions import ConcurrencyConflict, InsufficientStock, NotFound
from src.models.database import OrderLine

logger = logging.getLogger(__name__)

UNCONDITIONAL = "unconditional"
CONDITIONAL = "conditional"
WRITE_MODES = (UNCONDITIONAL, CONDITIONAL)

CENTS = Decimal("0.01")


def compute_total(quantity: int, unit_price) -> Decimal:
    """quantity x unit_price, rounded half-up to two decimals"""
    return (Decimal(quantity) * Decimal(str(unit_price))).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass
class OrderResult:
    new_quantity: int
    order_line: OrderLine


class OrderService:
    """
    Places an order: checks stock, decrements it, appends an order line.

    In the default unconditional mode the stock read and the stock write are
    two independent store calls. Two concurrent orders for the same product
    can both pass the check against the same read and oversell.
    Conditional mode closes that gap with a compare-and-set on the stock
    count, retrying the read-check-write a few times before giving up.
    """

    def __init__(self, products, orders, write_mode: str = UNCONDITIONAL, max_retries: int = 3):
        if write_mode not in WRITE_MODES:
            raise ValueError(f"Unknown stock write mode: {write_mode}")
        self.products = products
        self.orders = orders
        self.write_mode = write_mode
        self.max_retries = max(1, max_retries)

    async def place_order(
        self,
        branch_id: int,
        product_id: str,
        product_name: str,
        category: Optional[str],
        quantity: int,
        unit_price,
        username: str,
        order_time: Optional[datetime] = None,
    ) -> OrderResult:
        logger.info(
            f"Placing order for {username}: {quantity} x {product_id} in branch {branch_id}"
        )

        if self.write_mode == CONDITIONAL:
            new_quantity = await self._decrement_with_retries(branch_id, product_id, quantity)
        else:
            new_quantity = await self._decrement(branch_id, product_id, quantity, conditional=False)

        line = OrderLine(
            branch_id=branch_id,
            order_time=order_time or datetime.utcnow(),
            order_id=str(uuid.uuid1()),
            product_name=product_name,
            category=category,
            quantity=quantity,
            unit_price=Decimal(str(unit_price)),
            total=compute_total(quantity, unit_price),
            username=username
        )
        await self.orders.append(line)

        logger.info(
            f"Order {line.order_id} recorded in branch {branch_id}, "
            f"stock of {product_id} now {new_quantity}"
        )
        return OrderResult(new_quantity=new_quantity, order_line=line)

    async def _decrement_with_retries(self, branch_id: int, product_id: str, quantity: int) -> int:
        for attempt in range(self.max_retries):
            new_quantity = await self._decrement(branch_id, product_id, quantity, conditional=True)
            if new_quantity is not None:
                return new_quantity
            logger.warning(
                f"Stock of {product_id} in branch {branch_id} changed concurrently "
                f"(attempt {attempt + 1}/{self.max_retries})"
            )
            await asyncio.sleep(0.01 * (attempt + 1))

        raise ConcurrencyConflict(
            f"Stock of {product_id} kept changing, gave up after {self.max_retries} attempts"
        )

    async def _decrement(
        self, branch_id: int, product_id: str, quantity: int, conditional: bool
    ) -> Optional[int]:
        """One read-check-write pass. Returns None if a compare-and-set lost."""
        current = await self.products.get_quantity(branch_id, product_id)
        if current is None:
            raise NotFound(f"Product {product_id} not found in branch {branch_id}")

        if current < quantity:
            logger.warning(
                f"Insufficient stock for {product_id} in branch {branch_id}: "
                f"available {current}, requested {quantity}"
            )
            raise InsufficientStock(
                f"Insufficient stock for {product_id}. "
                f"Available: {current}, Requested: {quantity}",
                current_quantity=current
            )

        new_quantity = current - quantity
        if conditional:
            applied = await self.products.compare_and_set_quantity(
                branch_id, product_id, current, new_quantity
            )
            return new_quantity if applied else None

        await self.products.set_quantity(branch_id, product_id, new_quantity)
        return new_quantity
