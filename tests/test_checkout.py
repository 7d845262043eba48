"""Tests for the checkout flow and form validation."""

from datetime import date, time
from decimal import Decimal

import pytest

from bakery_server.checkout import (
    LEAD_TIME_NOTICE,
    PREPAYMENT_NOTICE,
    CheckoutFlow,
    CheckoutView,
    checkout_notices,
    validate_checkout,
)
from bakery_server.errors import CheckoutValidationError, InvalidTransitionError
from bakery_server.models import PICKUP_ONLY_ADDRESS, PaymentMethod, PickupShift

TODAY = date(2026, 10, 19)


class TestValidateCheckout:
    """Tests for the client-side checkout gate."""

    def test_complete_form(self, complete_form):
        details = validate_checkout(complete_form, today=TODAY)

        assert details.name == "Maria Silva"
        assert details.payment_method is PaymentMethod.PIX
        assert details.pickup_date == date(2099, 12, 31)
        assert details.pickup_shift is PickupShift.MORNING
        assert details.pickup_time == time(9, 30)
        assert details.pickup_address == PICKUP_ONLY_ADDRESS

    @pytest.mark.parametrize("field", ["payment_method", "pickup_date", "pickup_shift", "pickup_time"])
    def test_blocks_missing_scheduling_field(self, complete_form, field):
        form = complete_form.model_copy(update={field: ""})

        with pytest.raises(CheckoutValidationError) as exc_info:
            validate_checkout(form, today=TODAY)
        assert field in exc_info.value.missing

    @pytest.mark.parametrize("field", ["name", "whatsapp_contact"])
    def test_blocks_missing_contact_field(self, complete_form, field):
        form = complete_form.model_copy(update={field: "   "})

        with pytest.raises(CheckoutValidationError) as exc_info:
            validate_checkout(form, today=TODAY)
        assert exc_info.value.missing == [field]

    @pytest.mark.parametrize(
        "field,value",
        [
            ("payment_method", "Bitcoin"),
            ("pickup_shift", "midnight"),
            ("pickup_date", "31/12/2099"),
            ("pickup_date", "2026-10-18"),
            ("pickup_time", "noon"),
        ],
    )
    def test_rejects_malformed_values(self, complete_form, field, value):
        form = complete_form.model_copy(update={field: value})

        with pytest.raises(CheckoutValidationError) as exc_info:
            validate_checkout(form, today=TODAY)
        assert exc_info.value.invalid == [field]

    def test_same_day_pickup_is_allowed(self, complete_form):
        form = complete_form.model_copy(update={"pickup_date": TODAY.isoformat()})

        assert validate_checkout(form, today=TODAY).pickup_date == TODAY

    @pytest.mark.parametrize(
        "payment,shift,expected_payment,expected_shift",
        [
            ("Dinheiro", "Manhã", PaymentMethod.CASH, PickupShift.MORNING),
            ("cartão de crédito/débito", "tarde", PaymentMethod.CARD, PickupShift.AFTERNOON),
            ("card", "Noite", PaymentMethod.CARD, PickupShift.EVENING),
        ],
    )
    def test_accepts_labels(self, complete_form, payment, shift, expected_payment, expected_shift):
        form = complete_form.model_copy(update={"payment_method": payment, "pickup_shift": shift})
        details = validate_checkout(form, today=TODAY)

        assert details.payment_method is expected_payment
        assert details.pickup_shift is expected_shift


class TestCheckoutNotices:
    def test_lead_time_notice_always_shown(self):
        assert checkout_notices(Decimal("10")) == [LEAD_TIME_NOTICE]

    def test_prepayment_notice_above_threshold(self):
        assert checkout_notices(Decimal("200.01")) == [LEAD_TIME_NOTICE, PREPAYMENT_NOTICE]

    def test_no_prepayment_notice_at_threshold(self):
        assert PREPAYMENT_NOTICE not in checkout_notices(Decimal("200"))


class TestCheckoutFlow:
    """Tests for the panel view transitions."""

    def test_starts_in_cart_view(self):
        flow = CheckoutFlow()

        assert flow.view == CheckoutView.CART
        assert not flow.panel_open
        assert flow.form is None

    def test_begin_checkout_requires_items(self):
        flow = CheckoutFlow()
        flow.open_panel()

        with pytest.raises(InvalidTransitionError):
            flow.begin_checkout(cart_is_empty=True)
        assert flow.view == CheckoutView.CART

    def test_begin_checkout_creates_fresh_form(self):
        flow = CheckoutFlow(pickup_address="Rua das Flores, 10")
        flow.open_panel()
        flow.begin_checkout(cart_is_empty=False)

        assert flow.view == CheckoutView.CHECKOUT_FORM
        assert flow.form.name == ""
        assert flow.form.pickup_address == "Rua das Flores, 10"

    def test_back_discards_form(self):
        flow = CheckoutFlow()
        flow.begin_checkout(cart_is_empty=False)
        flow.update_form(name="Maria")
        flow.back()

        assert flow.view == CheckoutView.CART
        assert flow.form is None

        flow.begin_checkout(cart_is_empty=False)
        assert flow.form.name == ""

    def test_update_form(self):
        flow = CheckoutFlow()
        flow.begin_checkout(cart_is_empty=False)
        form = flow.update_form(name="Maria", pickup_shift="evening")

        assert form.name == "Maria"
        assert flow.form.pickup_shift == "evening"

    def test_pickup_address_is_read_only(self):
        flow = CheckoutFlow()
        flow.begin_checkout(cart_is_empty=False)

        with pytest.raises(ValueError):
            flow.update_form(pickup_address="Minha casa")

    def test_update_form_rejects_unknown_fields(self):
        flow = CheckoutFlow()
        flow.begin_checkout(cart_is_empty=False)

        with pytest.raises(ValueError):
            flow.update_form(coupon="FREE")

    def test_update_form_outside_checkout(self):
        with pytest.raises(InvalidTransitionError):
            CheckoutFlow().update_form(name="Maria")

    def test_complete_only_from_form(self):
        flow = CheckoutFlow()

        with pytest.raises(InvalidTransitionError):
            flow.complete()

        flow.begin_checkout(cart_is_empty=False)
        flow.complete()
        assert flow.view == CheckoutView.SUCCESS

    def test_success_resets_on_reopen(self):
        """Closing and reopening the panel goes back to the cart view."""
        flow = CheckoutFlow()
        flow.open_panel()
        flow.begin_checkout(cart_is_empty=False)
        flow.complete()

        flow.close_panel()
        assert flow.view == CheckoutView.SUCCESS

        flow.open_panel()
        assert flow.view == CheckoutView.CART

    def test_open_when_already_open_keeps_view(self):
        flow = CheckoutFlow()
        flow.open_panel()
        flow.begin_checkout(cart_is_empty=False)
        flow.open_panel()

        assert flow.view == CheckoutView.CHECKOUT_FORM
