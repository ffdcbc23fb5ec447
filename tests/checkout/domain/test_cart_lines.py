"""Tests for client cart values: CartLine and CartSession."""

import pytest
from protean.exceptions import ValidationError

from checkout.cart.lines import CartLine, CartSession


def _line(**overrides):
    kwargs = {"product_ref": "SP-1", "name": "Widget", "unit_price": 10.0, "quantity": 2}
    kwargs.update(overrides)
    return CartLine(**kwargs)


class TestCartLine:
    def test_valid_line(self):
        line = _line()
        assert line.quantity == 2
        assert line.seller_id is None

    def test_zero_quantity_is_rejected(self):
        with pytest.raises(ValidationError):
            _line(quantity=0)

    def test_negative_price_is_rejected(self):
        with pytest.raises(ValidationError):
            _line(unit_price=-1.0)

    def test_blank_name_is_rejected(self):
        with pytest.raises(ValidationError):
            _line(name="  ")

    def test_line_is_immutable(self):
        line = _line()
        with pytest.raises(AttributeError):
            line.quantity = 5

    def test_from_dict(self):
        line = CartLine.from_dict({"product_ref": "SP-9", "name": "Bolt", "unit_price": "2.5", "quantity": "4"})
        assert line == CartLine(product_ref="SP-9", name="Bolt", unit_price=2.5, quantity=4)


class TestCartSession:
    def test_lines_become_a_tuple(self):
        session = CartSession(buyer_id="buyer-001", lines=[_line()])
        assert isinstance(session.lines, tuple)

    def test_empty_cart_is_rejected(self):
        with pytest.raises(ValidationError):
            CartSession(buyer_id="buyer-001", lines=[])

    def test_buyer_is_required(self):
        with pytest.raises(ValidationError):
            CartSession(buyer_id="", lines=[_line()])
