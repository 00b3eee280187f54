import logging
from decimal import Decimal
from typing import List, Optional
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from src.core.exceptions import DuplicateKey, NotFound
from src.models.database import Product
from src.stores.base import SQLStore

logger = logging.getLogger(__name__)


def _unique_by_product_id(rows: List[Product]) -> List[Product]:
    """Keep the first row seen for each product id"""
    unique = {}
    for row in rows:
        if row.product_id not in unique:
            unique[row.product_id] = row
    return list(unique.values())


class ProductStore(SQLStore):
    """Per-branch product rows keyed by (branch_id, product_id)"""

    async def get_quantity(self, branch_id: int, product_id: str) -> Optional[int]:
        with self._guard("reading stock"):
            row = self.db.query(Product.quantity_available).filter(
                Product.branch_id == branch_id,
                Product.product_id == product_id
            ).first()
        return row[0] if row is not None else None

    async def set_quantity(self, branch_id: int, product_id: str, new_quantity: int) -> bool:
        """Unconditional overwrite of the stock count. Returns False if no row matched."""
        with self._guard("writing stock"):
            result = self.db.execute(
                update(Product)
                .where(Product.branch_id == branch_id, Product.product_id == product_id)
                .values(quantity_available=new_quantity)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        return result.rowcount == 1

    async def compare_and_set_quantity(
        self, branch_id: int, product_id: str, expected: int, new_quantity: int
    ) -> bool:
        """
        Write new_quantity only if the stored value still equals expected.

        Same contract as a lightweight transaction (UPDATE ... IF quantity = ?):
        returns False when another writer got there first.
        """
        with self._guard("writing stock"):
            result = self.db.execute(
                update(Product)
                .where(
                    Product.branch_id == branch_id,
                    Product.product_id == product_id,
                    Product.quantity_available == expected
                )
                .values(quantity_available=new_quantity)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        return result.rowcount == 1

    async def list_available(self, branch_id: int) -> List[Product]:
        """Active, in-stock products of one branch"""
        with self._guard("listing branch products"):
            return self.db.query(Product).filter(
                Product.branch_id == branch_id,
                Product.is_active.is_(True),
                Product.quantity_available > 0
            ).order_by(Product.product_id).all()

    async def list_catalog(self) -> List[Product]:
        """Active, in-stock products across all branches, one entry per product id"""
        with self._guard("listing catalog"):
            rows = self.db.query(Product).filter(
                Product.is_active.is_(True),
                Product.quantity_available > 0
            ).order_by(Product.branch_id, Product.product_id).all()
        return _unique_by_product_id(rows)

    async def list_unique(self) -> List[Product]:
        with self._guard("listing products"):
            rows = self.db.query(Product).order_by(Product.branch_id, Product.product_id).all()
        return _unique_by_product_id(rows)

    # Administration

    async def get(self, branch_id: int, product_id: str) -> Product:
        with self._guard("reading product"):
            product = self.db.query(Product).filter(
                Product.branch_id == branch_id,
                Product.product_id == product_id
            ).first()
        if not product:
            raise NotFound(f"Product {product_id} not found in branch {branch_id}")
        return product

    async def list_by_branch(self, branch_id: int) -> List[Product]:
        """Every product of a branch, including inactive and sold-out ones"""
        with self._guard("listing branch products"):
            return self.db.query(Product).filter(
                Product.branch_id == branch_id
            ).order_by(Product.product_id).all()

    async def create(
        self,
        branch_id: int,
        product_id: str,
        name: str,
        category: Optional[str],
        description: Optional[str],
        unit_price,
        initial_quantity: int,
    ) -> Product:
        """Alta: register a product at a branch, active from the start"""
        product = Product(
            branch_id=branch_id,
            product_id=product_id,
            name=name,
            category=category,
            description=description,
            unit_price=Decimal(str(unit_price)),
            quantity_available=initial_quantity,
            is_active=True
        )
        with self._guard("creating product"):
            exists = self.db.query(Product.product_id).filter(
                Product.branch_id == branch_id,
                Product.product_id == product_id
            ).first()
            if exists:
                raise DuplicateKey(f"Product {product_id} already exists in branch {branch_id}")
            try:
                self.db.add(product)
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                raise DuplicateKey(
                    f"Product {product_id} already exists in branch {branch_id}"
                ) from e
            self.db.refresh(product)
        logger.info(f"Product {product_id} created in branch {branch_id}")
        return product

    async def update_details(
        self,
        branch_id: int,
        product_id: str,
        name: str,
        category: Optional[str],
        description: Optional[str],
        unit_price,
    ) -> Product:
        product = await self.get(branch_id, product_id)
        with self._guard("updating product"):
            product.name = name
            product.category = category
            product.description = description
            product.unit_price = Decimal(str(unit_price))
            self.db.commit()
            self.db.refresh(product)
        return product

    async def adjust_quantity(self, branch_id: int, product_id: str, new_quantity: int) -> None:
        if new_quantity < 0:
            raise ValueError("Stock cannot be negative")
        if not await self.set_quantity(branch_id, product_id, new_quantity):
            raise NotFound(f"Product {product_id} not found in branch {branch_id}")
        logger.info(f"Stock of {product_id} in branch {branch_id} set to {new_quantity}")

    async def set_active(self, branch_id: int, product_id: str, is_active: bool) -> None:
        with self._guard("changing product state"):
            result = self.db.execute(
                update(Product)
                .where(Product.branch_id == branch_id, Product.product_id == product_id)
                .values(is_active=is_active)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        if result.rowcount != 1:
            raise NotFound(f"Product {product_id} not found in branch {branch_id}")
