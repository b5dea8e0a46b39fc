"""Integration tests for the purchase use cases."""

import pytest

from ims.application.bulk_purchase import BulkPurchaseHandler
from ims.application.create_purchase_return import CreatePurchaseReturnHandler
from ims.application.delete_purchase import DeletePurchaseHandler
from ims.application.dto import LineSpec
from ims.application.record_purchase import RecordPurchaseHandler
from ims.application.update_purchase import UpdatePurchaseHandler
from ims.domain.exceptions import (
    EntityNotFoundError,
    InsufficientStockError,
    StoreUnavailableError,
    ValidationError,
)
from ims.domain.model.stock_movement import MovementType, ReferenceType
from tests.application.helpers import make_world
from tests.fakes import FailingMovementLog, FlakyMovementLog, FlakyPurchaseRepository


def _record(world, **overrides):
    kwargs = dict(supplier_id="s1", product_id="1", quantity=20, unit_price="4.00")
    kwargs.update(overrides)
    handler = RecordPurchaseHandler(world.purchases, world.products, world.ledger)
    return handler.handle(**kwargs)


def _updater(world):
    return UpdatePurchaseHandler(
        world.purchases, world.returns, world.products, world.ledger
    )


class TestRecordPurchase:

    def test_adds_to_stock_and_logs_movement(self):
        world = make_world()

        purchase = _record(world, actor_id="u1")

        assert world.stock("1") == 70
        [movement] = world.movements.all()
        assert movement.movement_type is MovementType.PURCHASE
        assert movement.reference_type is ReferenceType.PURCHASE
        assert movement.reference_id == str(purchase.id)
        assert (movement.previous_quantity, movement.new_quantity) == (50, 70)
        assert movement.created_by == "u1"

    def test_boxes_are_converted_to_pieces(self):
        world = make_world()

        purchase = _record(world, product_id="2", quantity=3, unit_type="BOX")

        assert purchase.base_quantity == 36
        assert world.stock("2") == 36

    def test_unknown_product_rejected(self):
        world = make_world()
        with pytest.raises(EntityNotFoundError):
            _record(world, product_id="999")
        assert world.purchases.list_all() == []

    def test_missing_supplier_rejected(self):
        world = make_world()
        with pytest.raises(ValidationError, match="Supplier is required"):
            _record(world, supplier_id=" ")

    def test_ledger_failure_removes_purchase(self):
        world = make_world(movements=FailingMovementLog(fail_after=0))

        with pytest.raises(StoreUnavailableError):
            _record(world)

        assert world.purchases.list_all() == []
        assert world.stock("1") == 50


class TestUpdatePurchase:

    def test_quantity_change_moves_stock_by_difference(self):
        world = make_world()
        purchase = _record(world, quantity=20)

        _updater(world).handle(purchase.id, quantity=12)

        assert world.stock("1") == 62
        correction = world.movements.all()[-1]
        assert correction.quantity == -8
        assert correction.reference_type is ReferenceType.PURCHASE
        assert world.purchases.get_by_id(purchase.id).base_quantity == 12

    def test_price_only_change_writes_no_movement(self):
        world = make_world()
        purchase = _record(world)

        _updater(world).handle(purchase.id, unit_price="5.00")

        assert len(world.movements.all()) == 1
        assert str(world.purchases.get_by_id(purchase.id).unit_price) == "$5.00"

    def test_ledger_refusal_restores_purchase(self):
        world = make_world(allow_negative_stock=False)
        purchase = _record(world, quantity=20)
        world.ledger.adjust_stock("1", -65, "stocktake")  # 70 -> 5

        with pytest.raises(InsufficientStockError):
            _updater(world).handle(purchase.id, quantity=10)

        assert world.purchases.get_by_id(purchase.id).quantity.value == 20
        assert world.stock("1") == 5

    def test_unknown_purchase_rejected(self):
        world = make_world()
        with pytest.raises(EntityNotFoundError, match="#5 not found"):
            _updater(world).handle(5)

    def test_cannot_drop_below_returned_quantity(self):
        world = make_world()
        purchase = _record(world, quantity=10)
        CreatePurchaseReturnHandler(world.returns, world.purchases, world.ledger).handle(
            purchase.id, 8
        )

        with pytest.raises(ValidationError, match="8 already returned"):
            _updater(world).handle(purchase.id, quantity=5)

        assert world.purchases.get_by_id(purchase.id).base_quantity == 10
        assert world.stock("1") == 52

        _updater(world).handle(purchase.id, quantity=8)
        assert world.stock("1") == 50


class TestDeletePurchase:

    def test_delete_reverses_stock(self):
        world = make_world()
        purchase = _record(world, quantity=10)

        DeletePurchaseHandler(world.purchases, world.returns, world.ledger).handle(
            purchase.id, actor_id="u1"
        )

        assert world.stock("1") == 50
        assert world.purchases.get_by_id(purchase.id) is None
        original, reversal = world.movements.all()
        assert reversal.quantity == -10
        assert reversal.movement_type is MovementType.ADJUSTMENT
        assert reversal.reference_type is ReferenceType.PURCHASE_DELETION
        assert reversal.reverses_movement_id == original.id

    def test_delete_after_edit_reverses_net_quantity(self):
        world = make_world()
        purchase = _record(world, quantity=10)
        _updater(world).handle(purchase.id, quantity=25)
        assert world.stock("1") == 75

        DeletePurchaseHandler(world.purchases, world.returns, world.ledger).handle(purchase.id)

        assert world.stock("1") == 50
        assert world.ledger.replay("1") == 0

    def test_delete_with_returns_rejected(self):
        world = make_world()
        purchase = _record(world, quantity=10)
        CreatePurchaseReturnHandler(world.returns, world.purchases, world.ledger).handle(
            purchase.id, 2
        )

        with pytest.raises(ValidationError, match="has returns"):
            DeletePurchaseHandler(world.purchases, world.returns, world.ledger).handle(
                purchase.id
            )
        assert world.purchases.get_by_id(purchase.id) is not None

    def test_ledger_refusal_keeps_purchase(self):
        world = make_world(allow_negative_stock=False)
        purchase = _record(world, quantity=10)
        world.ledger.adjust_stock("1", -55, "stocktake")  # 60 -> 5

        with pytest.raises(InsufficientStockError):
            DeletePurchaseHandler(world.purchases, world.returns, world.ledger).handle(
                purchase.id
            )

        assert world.purchases.get_by_id(purchase.id) is not None
        assert world.stock("1") == 5

    def test_partial_failure_restores_reversed_movements(self):
        world = make_world(movements=FlakyMovementLog(fail_on=4))
        purchase = _record(world, quantity=10)
        _updater(world).handle(purchase.id, quantity=4)
        assert world.stock("1") == 54

        # Third append reverses the +10, the fourth (reversing -6) fails.
        with pytest.raises(StoreUnavailableError):
            DeletePurchaseHandler(world.purchases, world.returns, world.ledger).handle(
                purchase.id
            )

        assert world.stock("1") == 54
        assert world.purchases.get_by_id(purchase.id) is not None
        live = world.ledger.live_movements(ReferenceType.PURCHASE, purchase.id)
        assert sum(m.quantity for m in live) == 4

        DeletePurchaseHandler(world.purchases, world.returns, world.ledger).handle(
            purchase.id
        )
        assert world.stock("1") == 50

    def test_unknown_purchase_rejected(self):
        world = make_world()
        with pytest.raises(EntityNotFoundError):
            DeletePurchaseHandler(world.purchases, world.returns, world.ledger).handle(1)


class TestBulkPurchase:

    def test_each_line_becomes_purchase_and_movement(self):
        world = make_world()
        handler = BulkPurchaseHandler(world.purchases, world.products, world.ledger)

        purchases = handler.handle(
            "s1",
            [LineSpec("1", 5, "4.00"), LineSpec("2", 2, "30.00", "BOX")],
            reference_number="PO-9",
        )

        assert [p.reference_number for p in purchases] == ["PO-9", "PO-9"]
        assert world.stock("1") == 55
        assert world.stock("2") == 24
        assert len(world.movements.all()) == 2

    def test_empty_batch_rejected(self):
        world = make_world()
        with pytest.raises(ValidationError, match="at least one product"):
            BulkPurchaseHandler(world.purchases, world.products, world.ledger).handle("s1", [])

    def test_bad_line_writes_nothing(self):
        world = make_world()
        handler = BulkPurchaseHandler(world.purchases, world.products, world.ledger)

        with pytest.raises(EntityNotFoundError):
            handler.handle("s1", [LineSpec("1", 5, "4.00"), LineSpec("999", 1, "1.00")])

        assert world.purchases.list_all() == []
        assert world.movements.all() == []

    def test_ledger_failure_rolls_back_whole_batch(self):
        world = make_world(movements=FlakyMovementLog(fail_on=2))
        handler = BulkPurchaseHandler(world.purchases, world.products, world.ledger)

        with pytest.raises(StoreUnavailableError):
            handler.handle("s1", [LineSpec("1", 5, "4.00"), LineSpec("2", 1, "2.00")])

        assert world.purchases.list_all() == []
        assert world.stock("1") == 50
        assert world.stock("2") == 0

    def test_failed_save_removes_rows_already_saved(self):
        world = make_world()
        purchases = FlakyPurchaseRepository(fail_on=2)
        handler = BulkPurchaseHandler(purchases, world.products, world.ledger)

        with pytest.raises(StoreUnavailableError):
            handler.handle("s1", [LineSpec("1", 5, "4.00"), LineSpec("2", 1, "2.00")])

        assert purchases.list_all() == []
        assert world.movements.all() == []
        assert world.stock("1") == 50
