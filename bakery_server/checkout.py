"""Checkout flow: cart view, checkout form and success view."""

import logging
import unicodedata
from datetime import date, time
from decimal import Decimal
from enum import Enum
from typing import Optional

from .errors import CheckoutValidationError, InvalidTransitionError
from .models import CheckoutDetails, CheckoutForm, PaymentMethod, PickupShift, PICKUP_ONLY_ADDRESS

logger = logging.getLogger(__name__)

PREPAYMENT_THRESHOLD = Decimal("200")

LEAD_TIME_NOTICE = (
    "Atenção ao Horário de Encomendas: pedidos devem ser feitos com um dia de "
    "antecedência ou antes das 10:00 da manhã do dia atual."
)
PREPAYMENT_NOTICE = (
    "Retirada de Pedidos Grandes: para pedidos acima de R$ 200,00 com opção de "
    "retirada, é necessário o pagamento antecipado de 50%."
)

# Checked in this order; scheduling and payment first.
REQUIRED_FIELDS = (
    "payment_method",
    "pickup_date",
    "pickup_shift",
    "pickup_time",
    "name",
    "whatsapp_contact",
)


class CheckoutView(str, Enum):
    CART = "cart"
    CHECKOUT_FORM = "checkout"
    SUCCESS = "success"


def checkout_notices(subtotal: Decimal) -> list[str]:
    """Advisory notices shown on the checkout form. They never block submission."""
    notices = [LEAD_TIME_NOTICE]
    if subtotal > PREPAYMENT_THRESHOLD:
        notices.append(PREPAYMENT_NOTICE)
    return notices


def _normalize(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text.strip().lower())
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def _parse_choice(enum_cls, text: str):
    """Match an enum by value or by its customer-facing label."""
    wanted = _normalize(text)
    for member in enum_cls:
        if wanted in (_normalize(member.value), _normalize(member.label)):
            return member
    return None


def validate_checkout(form: CheckoutForm, today: Optional[date] = None) -> CheckoutDetails:
    """
    Check the checkout form before anything is sent to the backend.

    Args:
        form: The form as typed by the customer
        today: Reference date for rejecting past pickup dates (default: today)

    Returns:
        Validated checkout details

    Raises:
        CheckoutValidationError: If a required field is empty or malformed
    """
    missing = [field for field in REQUIRED_FIELDS if not getattr(form, field).strip()]
    if missing:
        raise CheckoutValidationError(missing)

    invalid = []

    payment_method = _parse_choice(PaymentMethod, form.payment_method)
    if payment_method is None:
        invalid.append("payment_method")

    pickup_shift = _parse_choice(PickupShift, form.pickup_shift)
    if pickup_shift is None:
        invalid.append("pickup_shift")

    pickup_date: Optional[date] = None
    try:
        pickup_date = date.fromisoformat(form.pickup_date.strip())
    except ValueError:
        invalid.append("pickup_date")
    else:
        if pickup_date < (today or date.today()):
            invalid.append("pickup_date")

    pickup_time: Optional[time] = None
    try:
        pickup_time = time.fromisoformat(form.pickup_time.strip())
    except ValueError:
        invalid.append("pickup_time")

    if invalid:
        raise CheckoutValidationError([], invalid)

    return CheckoutDetails(
        name=form.name.strip(),
        whatsapp_contact=form.whatsapp_contact.strip(),
        pickup_address=form.pickup_address,
        payment_method=payment_method,
        pickup_date=pickup_date,
        pickup_shift=pickup_shift,
        pickup_time=pickup_time,
    )


class CheckoutFlow:
    """
    The cart panel's view state.

    CART -> CHECKOUT_FORM -> SUCCESS. Reopening a closed panel always starts
    again from CART.
    """

    def __init__(self, pickup_address: str = PICKUP_ONLY_ADDRESS) -> None:
        self.pickup_address = pickup_address
        self.view = CheckoutView.CART
        self.panel_open = False
        self.form: Optional[CheckoutForm] = None

    def open_panel(self) -> None:
        if not self.panel_open:
            self.panel_open = True
            self.view = CheckoutView.CART
            self.form = None

    def close_panel(self) -> None:
        self.panel_open = False

    def begin_checkout(self, cart_is_empty: bool) -> None:
        if self.view != CheckoutView.CART:
            raise InvalidTransitionError(f"Cannot start checkout from the {self.view.value} view")
        if cart_is_empty:
            raise InvalidTransitionError("Cannot start checkout with an empty cart")
        self.view = CheckoutView.CHECKOUT_FORM
        self.form = CheckoutForm(pickup_address=self.pickup_address)

    def back(self) -> None:
        if self.view != CheckoutView.CHECKOUT_FORM:
            raise InvalidTransitionError(f"Cannot go back to the cart from the {self.view.value} view")
        self.view = CheckoutView.CART
        self.form = None

    def update_form(self, **fields: str) -> CheckoutForm:
        """Edit fields of the in-progress checkout form."""
        if self.view != CheckoutView.CHECKOUT_FORM or self.form is None:
            raise InvalidTransitionError("No checkout form in progress")

        unknown = set(fields) - set(CheckoutForm.model_fields)
        if unknown:
            raise ValueError(f"Unknown checkout fields: {', '.join(sorted(unknown))}")
        if "pickup_address" in fields:
            raise ValueError("pickup_address is read-only")

        self.form = self.form.model_copy(update={k: str(v) for k, v in fields.items()})
        return self.form.model_copy()

    def complete(self) -> None:
        if self.view != CheckoutView.CHECKOUT_FORM:
            raise InvalidTransitionError(f"Cannot complete checkout from the {self.view.value} view")
        self.view = CheckoutView.SUCCESS
        self.form = None
        logger.info("Checkout completed")
