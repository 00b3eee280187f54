import asyncio
import pytest
from src.core.exceptions import ConcurrencyConflict, InsufficientStock
from src.services.order_service import CONDITIONAL, UNCONDITIONAL, OrderResult, OrderService


def order(service, quantity, username):
    return service.place_order(
        branch_id=1, product_id="P1", product_name="Espresso", category="Coffee",
        quantity=quantity, unit_price=2.50, username=username
    )


class TestUnconditionalWriteRace:
    """
    Stress tests that document the read-check-write gap of the default mode.

    The store fakes yield on every call, so concurrent orders interleave
    between the stock read and the stock write exactly like requests hitting
    a remote database do.
    """

    @pytest.mark.asyncio
    async def test_single_order(self, fake_products, fake_orders):
        service = OrderService(fake_products, fake_orders, write_mode=UNCONDITIONAL)

        result = await order(service, 3, "alice")

        assert result.new_quantity == 7
        assert fake_products.stock[(1, "P1")] == 7
        assert len(fake_orders.lines) == 1
        assert str(fake_orders.lines[0].total) == "7.50"

    @pytest.mark.asyncio
    async def test_concurrent_orders_against_stale_read(self, fake_products, fake_orders):
        """
        Stock is 10. Orders for 3 and 8 are placed at the same time; together
        they exceed the stock, so a correct system accepts only one of them.
        """
        service1 = OrderService(fake_products, fake_orders, write_mode=UNCONDITIONAL)
        service2 = OrderService(fake_products, fake_orders, write_mode=UNCONDITIONAL)

        results = await asyncio.gather(
            order(service1, 3, "alice"),
            order(service2, 8, "bob"),
            return_exceptions=True
        )

        successful = [r for r in results if isinstance(r, OrderResult)]
        errors = [r for r in results if isinstance(r, Exception)]
        final_quantity = fake_products.stock[(1, "P1")]
        sold = sum(line.quantity for line in fake_orders.lines)

        print(f"Successful orders: {len(successful)}")
        print(f"Final stock: {final_quantity}, units sold: {sold}")

        assert all(isinstance(e, InsufficientStock) for e in errors)
        assert len(fake_orders.lines) == len(successful)

        if len(successful) == 2:
            # Known gap: both passed the check against the same read of 10,
            # the later write silently replaced the earlier one
            assert sold == 11
            assert final_quantity in (7, 2)
            print("KNOWN GAP REPRODUCED: 11 units sold out of 10, one decrement lost")
        else:
            assert final_quantity == 10 - sold
            print("Race did not occur this time")

    @pytest.mark.asyncio
    async def test_many_concurrent_orders(self, fake_orders, product_store_class):
        """Five orders of 2 against a stock of 5; more than two may get through"""
        products = product_store_class({(1, "P1"): 5})
        services = [OrderService(products, fake_orders) for _ in range(5)]

        results = await asyncio.gather(
            *[order(service, 2, f"customer{i}") for i, service in enumerate(services)],
            return_exceptions=True
        )

        successful = sum(1 for r in results if isinstance(r, OrderResult))
        final_quantity = products.stock[(1, "P1")]

        print(f"Successful orders: {successful}, final stock: {final_quantity}")

        if successful > 2:
            print(f"KNOWN GAP REPRODUCED: {successful} orders accepted for 2 possible")
        # The unconditional write never stores a negative value by itself;
        # overselling shows up as lost decrements instead
        assert final_quantity >= 0
        assert len(fake_orders.lines) == successful


class TestConditionalWrite:
    """Compare-and-set mode must never oversell"""

    @pytest.mark.asyncio
    async def test_concurrent_orders_against_stale_read(self, fake_products, fake_orders):
        service1 = OrderService(fake_products, fake_orders, write_mode=CONDITIONAL)
        service2 = OrderService(fake_products, fake_orders, write_mode=CONDITIONAL)

        results = await asyncio.gather(
            order(service1, 3, "alice"),
            order(service2, 8, "bob"),
            return_exceptions=True
        )

        successful = [r for r in results if isinstance(r, OrderResult)]
        errors = [r for r in results if isinstance(r, Exception)]

        assert len(successful) == 1
        assert len(errors) == 1
        assert isinstance(errors[0], InsufficientStock)
        assert fake_products.stock[(1, "P1")] == 10 - successful[0].order_line.quantity
        assert len(fake_orders.lines) == 1

    @pytest.mark.asyncio
    async def test_many_concurrent_orders(self, fake_orders, product_store_class):
        products = product_store_class({(1, "P1"): 5})
        services = [
            OrderService(products, fake_orders, write_mode=CONDITIONAL, max_retries=10)
            for _ in range(5)
        ]

        results = await asyncio.gather(
            *[order(service, 2, f"customer{i}") for i, service in enumerate(services)],
            return_exceptions=True
        )

        successful = sum(1 for r in results if isinstance(r, OrderResult))
        errors = [r for r in results if isinstance(r, Exception)]
        final_quantity = products.stock[(1, "P1")]

        assert successful == 2
        assert final_quantity == 1
        assert len(fake_orders.lines) == 2
        for error in errors:
            assert isinstance(error, InsufficientStock), f"Unexpected error: {error!r}"

    @pytest.mark.asyncio
    async def test_gives_up_after_retries(self, fake_orders, product_store_class):
        """A compare-and-set that always loses ends in ConcurrencyConflict"""

        class AlwaysContended(product_store_class):
            async def compare_and_set_quantity(self, branch_id, product_id, expected, new_quantity):
                await asyncio.sleep(0)
                return False

        products = AlwaysContended({(1, "P1"): 10})
        service = OrderService(products, fake_orders, write_mode=CONDITIONAL, max_retries=3)

        with pytest.raises(ConcurrencyConflict, match="3 attempts"):
            await order(service, 1, "alice")

        assert products.stock[(1, "P1")] == 10
        assert fake_orders.lines == []
