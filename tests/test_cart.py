"""Tests for the cart store."""

from decimal import Decimal

import pytest

from bakery_server.cart import CartStore, parse_quantity_input


class TestAdd:
    """Tests for adding products."""

    @pytest.mark.parametrize("times", [1, 2, 5])
    def test_repeated_add_keeps_one_line(self, pao, times):
        """Adding the same product n times gives one line with quantity n."""
        cart = CartStore()
        for _ in range(times):
            cart.add(pao)

        lines = cart.lines()
        assert len(lines) == 1
        assert lines[0].id == pao.id
        assert lines[0].quantity == times

    def test_add_different_products(self, pao, brigadeiro):
        cart = CartStore()
        cart.add(pao)
        cart.add(brigadeiro)

        assert [line.id for line in cart.lines()] == [pao.id, brigadeiro.id]
        assert cart.count() == 2


class TestSetQuantity:
    """Tests for overwriting quantities."""

    def test_overwrites_quantity(self, pao):
        cart = CartStore()
        cart.add(pao)
        cart.set_quantity(pao.id, 12)

        assert cart.quantity_of(pao.id) == 12

    @pytest.mark.parametrize("quantity", [0, -1, -20])
    def test_non_positive_quantity_removes_line(self, pao, brigadeiro, quantity):
        """set_quantity with q <= 0 behaves like remove."""
        cart = CartStore()
        cart.add(pao)
        cart.add(brigadeiro)

        cart.set_quantity(pao.id, quantity)

        assert [line.id for line in cart.lines()] == [brigadeiro.id]

    def test_unknown_product_is_ignored(self, pao):
        cart = CartStore()
        cart.add(pao)
        cart.set_quantity(999, 3)

        assert cart.count() == 1
        assert cart.quantity_of(999) == 0


class TestIncrementDecrement:
    def test_increment(self, pao):
        cart = CartStore()
        cart.add(pao)
        cart.increment(pao.id)

        assert cart.quantity_of(pao.id) == 2

    def test_decrement_stops_at_one(self, pao):
        """The minus button never removes a line."""
        cart = CartStore()
        cart.add(pao)
        cart.decrement(pao.id)
        cart.decrement(pao.id)

        assert cart.quantity_of(pao.id) == 1


class TestRemoveAndClear:
    def test_remove_missing_product_is_noop(self, pao):
        cart = CartStore()
        cart.add(pao)
        cart.remove(999)

        assert cart.count() == 1

    def test_clear_empties_cart(self, pao, brigadeiro):
        cart = CartStore()
        cart.add(pao)
        cart.add(brigadeiro)
        cart.clear()

        assert cart.count() == 0
        assert cart.subtotal() == Decimal("0")
        assert cart.is_empty()


class TestTotals:
    def test_subtotal_scenario(self, pao, brigadeiro):
        """15.00 x2 + 8.50 x1 = 38.50"""
        cart = CartStore()
        cart.add(pao)
        cart.add(pao)
        cart.add(brigadeiro)

        assert cart.subtotal() == Decimal("38.50")
        assert cart.count() == 3

    def test_subtotal_tracks_every_change(self, pao, brigadeiro):
        cart = CartStore()
        cart.add(pao)
        cart.add(brigadeiro)
        cart.set_quantity(brigadeiro.id, 4)
        assert cart.subtotal() == Decimal("15.00") + Decimal("8.50") * 4

        cart.remove(pao.id)
        assert cart.subtotal() == Decimal("34.00")

    def test_empty_cart_totals(self):
        cart = CartStore()

        assert cart.subtotal() == Decimal("0")
        assert cart.count() == 0


class TestSnapshots:
    def test_lines_are_copies(self, pao):
        """Mutating a snapshot does not touch the cart."""
        cart = CartStore()
        cart.add(pao)

        snapshot = cart.lines()
        snapshot[0].quantity = 50

        assert cart.quantity_of(pao.id) == 1


class TestParseQuantityInput:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("3", 3),
            (" 7 ", 7),
            ("1", 1),
            ("0", 4),
            ("-2", 4),
            ("abc", 4),
            ("", 4),
            ("2.5", 4),
        ],
    )
    def test_parse(self, text, expected):
        assert parse_quantity_input(text, current=4) == expected
