"""Integration tests for catalog, adjustment and history use cases."""

from datetime import datetime, timezone

import pytest

from ims.application.add_product import AddProductHandler
from ims.application.adjust_stock import AdjustStockHandler, ReverseMovementHandler
from ims.application.show_inventory import ShowInventoryHandler
from ims.application.show_stock_history import ShowStockHistoryHandler
from ims.domain.exceptions import (
    EntityNotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from ims.domain.model.stock_movement import MovementType, ReferenceType
from tests.application.helpers import make_world
from tests.fakes import FailingMovementLog, FakeMovementLog, SteppingClock


class TestAddProduct:

    def test_opening_stock_is_a_movement(self):
        world = make_world()

        product = AddProductHandler(world.products, world.ledger).handle(
            "Sprocket", "2.50", opening_stock=40, min_stock=5, actor_id="u1"
        )

        assert product.id == "3"
        assert product.stock_quantity == 40
        [movement] = world.movements.for_product("3")
        assert movement.movement_type is MovementType.ADJUSTMENT
        assert (movement.previous_quantity, movement.new_quantity) == (0, 40)
        assert world.ledger.replay("3") == 40

    def test_no_opening_stock_no_movement(self):
        world = make_world()

        product = AddProductHandler(world.products, world.ledger).handle("Bolt", "0.10")

        assert product.stock_quantity == 0
        assert world.movements.for_product(product.id) == []

    def test_failed_opening_stock_removes_product(self):
        world = make_world(movements=FailingMovementLog())

        with pytest.raises(StoreUnavailableError):
            AddProductHandler(world.products, world.ledger).handle(
                "Sprocket", "2.50", opening_stock=40
            )

        assert world.products.get_by_name("Sprocket") is None
        assert world.movements.all() == []

    def test_duplicate_name_rejected(self):
        world = make_world()
        with pytest.raises(ValidationError, match="already exists"):
            AddProductHandler(world.products, world.ledger).handle("widget", "1.00")

    def test_negative_opening_stock_rejected(self):
        world = make_world()
        with pytest.raises(ValidationError):
            AddProductHandler(world.products, world.ledger).handle("Nut", "1", -1)


class TestInventory:

    def test_low_stock_report(self):
        world = make_world()
        AddProductHandler(world.products, world.ledger).handle(
            "Sprocket", "2.50", opening_stock=5, min_stock=5
        )

        everything = ShowInventoryHandler(world.products).handle()
        low = ShowInventoryHandler(world.products).handle(low_stock_only=True)

        assert {line.product_name for line in everything} == {"Widget", "Gadget", "Sprocket"}
        # Gadget: 0 <= 0, Sprocket: 5 <= 5
        assert {line.product_name for line in low} == {"Gadget", "Sprocket"}


class TestAdjustStock:

    def test_adjustment_needs_reason(self):
        world = make_world()
        with pytest.raises(ValidationError, match="reason is required"):
            AdjustStockHandler(world.ledger).handle("1", -3, "  ")
        assert world.movements.all() == []

    def test_adjustment_references_product(self):
        world = make_world()

        dto = AdjustStockHandler(world.ledger).handle("1", -3, "breakage", actor_id="u1")

        assert dto.reference == "ADJUSTMENT #1"
        assert (dto.previous_quantity, dto.new_quantity) == (50, 47)
        assert dto.created_by == "u1"

    def test_reverse_through_handler(self):
        world = make_world()
        original = AdjustStockHandler(world.ledger).handle("1", -3, "breakage")

        dto = ReverseMovementHandler(world.ledger).handle(original.id)

        assert dto.quantity == 3
        assert dto.reference == "REVERSAL #1"
        assert world.stock("1") == 50


class TestShowStockHistory:

    @pytest.fixture
    def world(self):
        world = make_world(movements=FakeMovementLog(clock=SteppingClock()))
        world.ledger.adjust_stock("1", 5, "count")  # 09:00
        world.ledger.record_movement("1", "SALE", -2, "SALE", 1)  # 09:01
        world.ledger.record_movement("1", "PURCHASE", 7, "PURCHASE", 1)  # 09:02
        return world

    def test_newest_first(self, world):
        rows = ShowStockHistoryHandler(world.ledger).handle("1")

        assert [r.quantity for r in rows] == [7, -2, 5]
        assert rows[0].created_at == "2024-01-01T09:02:00+00:00"

    def test_window_and_type(self, world):
        handler = ShowStockHistoryHandler(world.ledger)

        window = handler.handle(
            "1",
            start=datetime(2024, 1, 1, 9, 1, tzinfo=timezone.utc),
            end=datetime(2024, 1, 1, 9, 2),
        )
        sales = handler.handle("1", movement_type="sale")

        assert [r.quantity for r in window] == [7, -2]
        assert [r.reference for r in sales] == [f"{ReferenceType.SALE.value} #1"]

    def test_unknown_product(self, world):
        with pytest.raises(EntityNotFoundError):
            ShowStockHistoryHandler(world.ledger).handle("404")
