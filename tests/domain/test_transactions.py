"""Unit tests for the Purchase, Sale and PurchaseReturn aggregates."""

import pytest

from ims.domain.exceptions import ValidationError
from ims.domain.model.transactions import Purchase, PurchaseReturn, ReturnStatus, Sale
from ims.domain.model.value_objects import Money, Quantity, UnitType


class TestTotals:

    def test_purchase_total_uses_entered_quantity(self):
        p = Purchase(
            id=None, supplier_id="s1", product_id="1", quantity=Quantity(2),
            unit_price=Money.of("30.00"), base_quantity=24, unit_type=UnitType.BOX,
        )
        assert p.total_amount == Money.of("60.00")

    def test_sale_total(self):
        s = Sale(
            id=None, customer_id="c1", product_id="1", quantity=Quantity(3),
            unit_price=Money.of("2.50"), actual_quantity=3,
        )
        assert s.total_amount == Money.of("7.50")


class TestPurchaseReturnStatus:

    def _return(self) -> PurchaseReturn:
        return PurchaseReturn(id=1, purchase_id=1, quantity=Quantity(2))

    def test_starts_waiting(self):
        assert self._return().status is ReturnStatus.WAITING

    def test_moves_forward(self):
        r = self._return()
        r.advance_to(ReturnStatus.SENT, "u1")
        r.advance_to(ReturnStatus.CONFIRMED, "u2")
        assert r.status is ReturnStatus.CONFIRMED
        assert r.updated_by == "u2"

    def test_cannot_move_backwards(self):
        r = self._return()
        r.advance_to(ReturnStatus.CONFIRMED, "u1")
        with pytest.raises(ValidationError, match="cannot go from CONFIRMED back to SENT"):
            r.advance_to(ReturnStatus.SENT, "u1")

    def test_parse_unknown_status(self):
        with pytest.raises(ValidationError, match="Unknown return status"):
            ReturnStatus.parse("LOST")
