import uuid
from typing import List
from src.models.database import OrderLine
from src.stores.base import SQLStore


def _newest_first(lines: List[OrderLine]) -> List[OrderLine]:
    """Equal order times fall back to the timestamp inside the uuid1 order id"""
    return sorted(
        lines,
        key=lambda line: (line.order_time, uuid.UUID(line.order_id).time),
        reverse=True
    )


class OrderStore(SQLStore):
    """Append-only order log partitioned by branch"""

    async def append(self, line: OrderLine) -> OrderLine:
        with self._guard("recording order"):
            self.db.add(line)
            self.db.commit()
            self.db.refresh(line)
        return line

    async def list_by_branch(self, branch_id: int, limit: int = 2000) -> List[OrderLine]:
        """Most recent orders of a branch first"""
        with self._guard("listing branch orders"):
            rows = self.db.query(OrderLine).filter(
                OrderLine.branch_id == branch_id
            ).order_by(OrderLine.order_time.desc()).limit(limit).all()
        return _newest_first(rows)

    async def list_by_product(self, product_name: str, limit: int = 2000) -> List[OrderLine]:
        with self._guard("listing product orders"):
            return self.db.query(OrderLine).filter(
                OrderLine.product_name == product_name
            ).order_by(OrderLine.branch_id, OrderLine.order_time).limit(limit).all()

    async def list_branches(self) -> List[int]:
        """Distinct branches that have at least one order"""
        with self._guard("listing branches"):
            rows = self.db.query(OrderLine.branch_id).distinct().all()
        return sorted(row[0] for row in rows)
