"""Tests for the stock ledger writer and the low-stock evaluator."""
import asyncio
from decimal import Decimal
import uuid

import pytest
from sqlalchemy import select

from stockledger.core.database import get_session_factory
from stockledger.error_handlers import InsufficientStock, NotFound, ValidationFailed
from stockledger.models import AuditLog, StockMovement
from stockledger.services.alerts import evaluate_low_stock
from stockledger.services.audit import AuditRecorder
from stockledger.services.events import EventBus, EventTopic
from stockledger.services.ledger import StockLedger
from stockledger.services.products import ProductCatalogue

from conftest import run_async, create_product, stock_and_ledger_sum, count_rows


async def record(user_id, product_id, movement_type, reason, quantity, bus=None, **kwargs):
    factory = get_session_factory()
    async with factory() as db:
        ledger = StockLedger(db, bus or EventBus(), AuditRecorder(factory))
        return await ledger.record_movement(product_id, user_id, movement_type, reason, quantity, **kwargs)


async def sell(user_id, product_id, quantity, unit_price, bus=None, **kwargs):
    factory = get_session_factory()
    async with factory() as db:
        ledger = StockLedger(db, bus or EventBus(), AuditRecorder(factory))
        return await ledger.record_sale(product_id, user_id, quantity, unit_price, **kwargs)


async def low_stock_product_ids(user_id):
    async with get_session_factory()() as db:
        return [alert.product_id for alert in await evaluate_low_stock(db, user_id)]


class TestRecordMovement:
    """Tests for StockLedger.record_movement."""

    def test_in_movement_adds_stock(self, user):
        async def scenario():
            product = await create_product(user.id, current_stock=Decimal("4"))
            movement = await record(user.id, product.id, "IN", "PURCHASE", Decimal("6"))
            return movement, await stock_and_ledger_sum(product.id)

        movement, (stock, ledger_sum) = run_async(scenario())

        assert movement.movement_type == "IN"
        assert movement.reason == "PURCHASE"
        assert movement.quantity == Decimal("6")
        assert movement.created_by == user.id
        assert stock == Decimal("10")
        assert ledger_sum == stock

    def test_decimal_sale_example(self, user):
        """10 kg, sell 3.5 then 2: the product turns critical only at 4.5."""
        async def scenario():
            product = await create_product(
                user.id, unit="kg", current_stock=Decimal("10"), minimum_stock=Decimal("5")
            )
            first = await record(user.id, product.id, "OUT", "SALE", Decimal("3.5"))
            after_first = await stock_and_ledger_sum(product.id)
            flagged_first = await low_stock_product_ids(user.id)

            await record(user.id, product.id, "OUT", "SALE", Decimal("2"))
            after_second = await stock_and_ledger_sum(product.id)
            flagged_second = await low_stock_product_ids(user.id)
            return product, first, after_first, flagged_first, after_second, flagged_second

        product, first, after_first, flagged_first, after_second, flagged_second = run_async(scenario())

        assert first.quantity == Decimal("3.5")
        assert after_first == (Decimal("6.5"), Decimal("6.5"))
        assert product.id not in flagged_first
        assert after_second == (Decimal("4.5"), Decimal("4.5"))
        assert flagged_second == [product.id]

    def test_fractional_quantity_rejected_for_pieces(self, user):
        async def scenario():
            product = await create_product(user.id, unit="adet", current_stock=Decimal("10"))
            with pytest.raises(ValidationFailed):
                await record(user.id, product.id, "OUT", "SALE", Decimal("2.5"))
            return await stock_and_ledger_sum(product.id)

        assert run_async(scenario()) == (Decimal("10"), Decimal("10"))

    def test_insufficient_stock_mutates_nothing(self, user):
        bus = EventBus()
        published = []
        bus.subscribe(EventTopic.STOCK_MOVEMENT_CREATED, lambda: published.append(1))

        async def scenario():
            product = await create_product(user.id, current_stock=Decimal("5"))
            with pytest.raises(InsufficientStock) as exc_info:
                await record(user.id, product.id, "OUT", "WASTE", Decimal("6"), bus=bus)
            movements = await count_rows(StockMovement, StockMovement.product_id == product.id)
            return exc_info.value, movements, await stock_and_ledger_sum(product.id)

        error, movements, (stock, ledger_sum) = run_async(scenario())

        assert error.details == {"available": 5.0, "requested": 6.0}
        assert movements == 1  # opening stock only
        assert stock == Decimal("5")
        assert ledger_sum == Decimal("5")
        assert published == []

    def test_out_movement_may_empty_the_stock(self, user):
        async def scenario():
            product = await create_product(user.id, current_stock=Decimal("3"))
            await record(user.id, product.id, "OUT", "WASTE", Decimal("3"))
            return await stock_and_ledger_sum(product.id)

        assert run_async(scenario()) == (Decimal("0"), Decimal("0"))

    @pytest.mark.parametrize("movement_type,reason", [
        ("IN", "SALE"),
        ("IN", "WASTE"),
        ("OUT", "PURCHASE"),
        ("OUT", "COUNT"),
    ])
    def test_reason_must_match_direction(self, user, movement_type, reason):
        async def scenario():
            product = await create_product(user.id, current_stock=Decimal("5"))
            with pytest.raises(ValidationFailed):
                await record(user.id, product.id, movement_type, reason, Decimal("1"))

        run_async(scenario())

    def test_return_is_valid_both_ways(self, user):
        async def scenario():
            product = await create_product(user.id, current_stock=Decimal("5"))
            await record(user.id, product.id, "OUT", "RETURN", Decimal("2"))
            await record(user.id, product.id, "IN", "RETURN", Decimal("1"))
            return await stock_and_ledger_sum(product.id)

        assert run_async(scenario()) == (Decimal("4"), Decimal("4"))

    def test_non_positive_quantity_rejected(self, user):
        async def scenario():
            product = await create_product(user.id, current_stock=Decimal("5"))
            with pytest.raises(ValidationFailed):
                await record(user.id, product.id, "IN", "PURCHASE", Decimal("0"))

        run_async(scenario())

    def test_unknown_product(self, user):
        async def scenario():
            with pytest.raises(NotFound):
                await record(user.id, uuid.uuid4(), "IN", "PURCHASE", Decimal("1"))

        run_async(scenario())

    def test_other_users_product_is_not_found(self, user, other_user):
        async def scenario():
            product = await create_product(other_user.id, current_stock=Decimal("5"))
            with pytest.raises(NotFound):
                await record(user.id, product.id, "OUT", "SALE", Decimal("1"))
            return await stock_and_ledger_sum(product.id)

        assert run_async(scenario()) == (Decimal("5"), Decimal("5"))

    def test_publishes_once_and_writes_audit(self, user):
        bus = EventBus()
        published = []
        bus.subscribe(EventTopic.STOCK_MOVEMENT_CREATED, lambda: published.append(1))

        async def scenario():
            product = await create_product(user.id, current_stock=Decimal("8"))
            movement = await record(user.id, product.id, "OUT", "WASTE", Decimal("3"), bus=bus)
            async with get_session_factory()() as db:
                logs = (await db.execute(
                    select(AuditLog).where(AuditLog.entity_type == "StockMovement")
                )).scalars().all()
            return movement, logs

        movement, logs = run_async(scenario())

        assert published == [1]
        assert len(logs) == 1
        assert logs[0].entity_id == str(movement.id)
        assert logs[0].details["old_stock"] == 8.0
        assert logs[0].details["new_stock"] == 5.0
        assert logs[0].details["reason"] == "WASTE"

    def test_ledger_sum_holds_over_many_movements(self, user):
        steps = [
            ("IN", "PURCHASE", "12"),
            ("OUT", "SALE", "5"),
            ("IN", "COUNT", "3"),
            ("OUT", "WASTE", "1"),
            ("OUT", "OTHER", "9"),
        ]

        async def scenario():
            product = await create_product(user.id, current_stock=Decimal("0"))
            for movement_type, reason, quantity in steps:
                await record(user.id, product.id, movement_type, reason, Decimal(quantity))
            return await stock_and_ledger_sum(product.id)

        assert run_async(scenario()) == (Decimal("0"), Decimal("0"))


class TestConcurrency:
    """Concurrent writers against one product."""

    def test_no_lost_updates(self, user):
        async def scenario():
            product = await create_product(user.id, current_stock=Decimal("20"))
            await asyncio.gather(*[
                record(user.id, product.id, "OUT", "SALE", Decimal("2"))
                for _ in range(5)
            ])
            return await stock_and_ledger_sum(product.id)

        assert run_async(scenario()) == (Decimal("10"), Decimal("10"))

    def test_concurrent_overdraw_is_refused(self, user):
        async def scenario():
            product = await create_product(user.id, current_stock=Decimal("3"))
            results = await asyncio.gather(
                *[record(user.id, product.id, "OUT", "SALE", Decimal("1")) for _ in range(5)],
                return_exceptions=True
            )
            return results, await stock_and_ledger_sum(product.id)

        results, (stock, ledger_sum) = run_async(scenario())

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 2
        assert all(isinstance(r, InsufficientStock) for r in failures)
        assert stock == Decimal("0")
        assert ledger_sum == Decimal("0")


class TestRecordSale:
    """Tests for StockLedger.record_sale."""

    def test_sale_defaults_total_price(self, user):
        bus = EventBus()
        topics = []
        bus.subscribe(EventTopic.SALE_CREATED, lambda: topics.append("sale"))
        bus.subscribe(EventTopic.STOCK_MOVEMENT_CREATED, lambda: topics.append("movement"))

        async def scenario():
            product = await create_product(user.id, unit="kg", current_stock=Decimal("10"))
            sale = await sell(user.id, product.id, Decimal("1.5"), Decimal("4.90"), bus=bus)
            return sale, await stock_and_ledger_sum(product.id)

        sale, (stock, ledger_sum) = run_async(scenario())

        assert sale.movement_type == "OUT"
        assert sale.reason == "SALE"
        assert sale.unit_price == Decimal("4.90")
        assert sale.total_price == Decimal("7.35")
        assert stock == ledger_sum == Decimal("8.5")
        assert topics == ["sale"]

    def test_sale_keeps_explicit_total(self, user):
        async def scenario():
            product = await create_product(user.id, current_stock=Decimal("10"))
            return await sell(user.id, product.id, Decimal("2"), Decimal("15"), total_price=Decimal("25"))

        assert run_async(scenario()).total_price == Decimal("25")

    def test_sale_larger_than_stock(self, user):
        async def scenario():
            product = await create_product(user.id, current_stock=Decimal("1"))
            with pytest.raises(InsufficientStock):
                await sell(user.id, product.id, Decimal("2"), Decimal("15"))
            return await stock_and_ledger_sum(product.id)

        assert run_async(scenario()) == (Decimal("1"), Decimal("1"))


class TestEvaluateLowStock:
    """Tests for the threshold evaluator."""

    def test_creates_alert_per_low_product(self, user, other_user):
        async def scenario():
            low = await create_product(user.id, name="Flour", current_stock=Decimal("2"), minimum_stock=Decimal("5"))
            edge = await create_product(user.id, name="Eggs", current_stock=Decimal("5"), minimum_stock=Decimal("5"))
            await create_product(user.id, name="Salt", current_stock=Decimal("9"), minimum_stock=Decimal("5"))
            await create_product(other_user.id, name="Oil", current_stock=Decimal("0"), minimum_stock=Decimal("5"))
            async with get_session_factory()() as db:
                alerts = await evaluate_low_stock(db, user.id)
            return low, edge, alerts

        low, edge, alerts = run_async(scenario())

        assert [a.product_id for a in alerts] == [edge.id, low.id]  # name order
        assert all(a.user_id == user.id and a.is_read is False for a in alerts)
        assert "Flour" in alerts[1].message
        assert "Current stock: 2 Piece" in alerts[1].message

    def test_does_not_deduplicate(self, user):
        async def scenario():
            await create_product(user.id, current_stock=Decimal("0"), minimum_stock=Decimal("1"))
            first = await low_stock_product_ids(user.id)
            second = await low_stock_product_ids(user.id)
            return first, second

        first, second = run_async(scenario())

        assert len(first) == 1
        assert len(second) == 1

    def test_ignores_deleted_products(self, user):
        async def scenario():
            product = await create_product(user.id, current_stock=Decimal("0"), minimum_stock=Decimal("1"))
            factory = get_session_factory()
            async with factory() as db:
                await ProductCatalogue(db, EventBus(), AuditRecorder(factory)).delete(user.id, product.id)
            return await low_stock_product_ids(user.id)

        assert run_async(scenario()) == []
