"""Storefront session: owns the catalog, cart and checkout state."""

import logging
import time
from datetime import date
from decimal import Decimal
from typing import Callable, Literal, Optional, Union

from pydantic import BaseModel, Field

from .cart import CartStore, parse_quantity_input
from .catalog import ALL_CATEGORIES, CatalogStore
from .checkout import CheckoutFlow, CheckoutView, checkout_notices, validate_checkout
from .errors import (
    CatalogLoadError,
    CheckoutValidationError,
    InvalidTransitionError,
    OrderSubmissionError,
    PartialOrderError,
)
from .models import PICKUP_ONLY_ADDRESS, CartItem, Category, CheckoutForm, Product
from .notices import Notice, NoticeBoard
from .orders import OrderSubmitter
from .supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

MENU_LOAD_FAILED = "Erro ao carregar o cardápio. Tente novamente mais tarde."
INCOMPLETE_FORM = "Por favor, preencha todos os campos de agendamento e pagamento."
ORDER_FAILED = "Houve um erro ao enviar seu pedido. Por favor, tente novamente."
ORDER_RECEIVED = (
    "Obrigado! Seu pedido foi recebido e está sendo processado. "
    "Entraremos em contato pelo WhatsApp para confirmação."
)


# Actions


class SelectCategory(BaseModel):
    category: Union[int, Literal["all"]] = ALL_CATEGORIES


class AddToCart(BaseModel):
    product_id: int


class SetQuantity(BaseModel):
    product_id: int
    quantity: int


class EditQuantity(BaseModel):
    """Quantity typed as free text; invalid input leaves the cart unchanged."""

    product_id: int
    text: str


class IncrementQuantity(BaseModel):
    product_id: int


class DecrementQuantity(BaseModel):
    product_id: int


class RemoveFromCart(BaseModel):
    product_id: int


class OpenPanel(BaseModel):
    pass


class ClosePanel(BaseModel):
    pass


class BeginCheckout(BaseModel):
    pass


class BackToCart(BaseModel):
    pass


class UpdateCheckoutForm(BaseModel):
    fields: dict[str, str] = Field(default_factory=dict)


class DismissAlerts(BaseModel):
    pass


Action = Union[
    SelectCategory,
    AddToCart,
    SetQuantity,
    EditQuantity,
    IncrementQuantity,
    DecrementQuantity,
    RemoveFromCart,
    OpenPanel,
    ClosePanel,
    BeginCheckout,
    BackToCart,
    UpdateCheckoutForm,
    DismissAlerts,
]


# Actions that leave the cart and the checkout flow alone
ALLOWED_WHILE_SUBMITTING = (SelectCategory, DismissAlerts)


# Views


class CartView(BaseModel):
    items: list[CartItem] = Field(default_factory=list)
    subtotal: Decimal = Decimal("0")
    count: int = 0


class StorefrontView(BaseModel):
    """Read-only snapshot of a storefront session."""

    categories: list[Category]
    selected_category: Union[int, str]
    products: list[Product]
    is_loading: bool
    catalog_loaded: bool
    cart: CartView
    panel_open: bool
    view: CheckoutView
    form: Optional[CheckoutForm] = None
    checkout_notices: list[str] = Field(default_factory=list)
    notices: list[Notice] = Field(default_factory=list)
    submitting: bool = False


class SubmissionOutcome(BaseModel):
    """Result of a checkout submission, for the surfaces to report."""

    status: Literal["success", "invalid", "failed", "partial", "busy"]
    message: str
    order_id: Optional[int] = None
    missing: list[str] = Field(default_factory=list)
    invalid: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == "success"


class Storefront:
    """
    State for one customer session.

    Synchronous changes go through dispatch(); the two network effects are
    load_catalog() and submit_order().
    """

    def __init__(
        self,
        backend: SupabaseClient,
        pickup_address: str = PICKUP_ONLY_ADDRESS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.backend = backend
        self.catalog = CatalogStore()
        self.cart = CartStore()
        self.flow = CheckoutFlow(pickup_address=pickup_address)
        self.notices = NoticeBoard(clock=clock)
        self.selected_category: Union[int, str] = ALL_CATEGORIES
        self.submitter = OrderSubmitter(backend)
        self._submitting = False

        self._handlers = {
            SelectCategory: self._select_category,
            AddToCart: self._add_to_cart,
            SetQuantity: self._set_quantity,
            EditQuantity: self._edit_quantity,
            IncrementQuantity: lambda action: self.cart.increment(action.product_id),
            DecrementQuantity: lambda action: self.cart.decrement(action.product_id),
            RemoveFromCart: lambda action: self.cart.remove(action.product_id),
            OpenPanel: lambda action: self.flow.open_panel(),
            ClosePanel: lambda action: self.flow.close_panel(),
            BeginCheckout: lambda action: self.flow.begin_checkout(self.cart.is_empty()),
            BackToCart: lambda action: self.flow.back(),
            UpdateCheckoutForm: lambda action: self.flow.update_form(**action.fields),
            DismissAlerts: lambda action: self.notices.dismiss_alerts(),
        }

    @property
    def submitting(self) -> bool:
        return self._submitting

    def dispatch(self, action: Action) -> None:
        """
        Apply an action to the session state.

        Raises:
            ProductNotFoundError: If AddToCart names a product not on the menu
            InvalidTransitionError: If the checkout flow cannot take the action,
                or the action would change the cart or panel mid-submission
            ValueError: If the action is unknown or its fields are invalid
        """
        handler = self._handlers.get(type(action))
        if handler is None:
            raise ValueError(f"Unknown action: {type(action).__name__}")
        if self._submitting and type(action) not in ALLOWED_WHILE_SUBMITTING:
            raise InvalidTransitionError(
                f"Cannot {type(action).__name__} while the order is being sent"
            )
        logger.debug(f"dispatch {type(action).__name__}: {action.model_dump()}")
        handler(action)

    def _select_category(self, action: SelectCategory) -> None:
        self.selected_category = action.category

    def _add_to_cart(self, action: AddToCart) -> None:
        product = self.catalog.get_product(action.product_id)
        self.cart.add(product)
        self.notices.toast(f"{product.name} adicionado ao carrinho!")

    def _set_quantity(self, action: SetQuantity) -> None:
        self.cart.set_quantity(action.product_id, action.quantity)

    def _edit_quantity(self, action: EditQuantity) -> None:
        current = self.cart.quantity_of(action.product_id)
        if not current:
            return
        quantity = parse_quantity_input(action.text, current)
        if quantity != current:
            self.cart.set_quantity(action.product_id, quantity)

    async def load_catalog(self) -> bool:
        """Load the menu. A failure leaves the menu empty and shows a toast."""
        try:
            await self.catalog.load(self.backend)
        except CatalogLoadError:
            self.notices.toast(MENU_LOAD_FAILED)
            return False
        return True

    async def submit_order(self, today: Optional[date] = None) -> SubmissionOutcome:
        """
        Validate the checkout form and place the order.

        The cart is cleared and the flow moves to SUCCESS only when both the
        order and its items were written.

        Raises:
            InvalidTransitionError: If no checkout form is in progress
        """
        if self._submitting:
            logger.warning("Order submission already in progress, ignoring")
            return SubmissionOutcome(status="busy", message="Seu pedido já está sendo enviado.")

        if self.flow.view != CheckoutView.CHECKOUT_FORM or self.flow.form is None:
            raise InvalidTransitionError("No checkout form in progress")

        try:
            details = validate_checkout(self.flow.form, today=today)
        except CheckoutValidationError as e:
            logger.warning(f"Checkout blocked: {e}")
            self.notices.alert(INCOMPLETE_FORM)
            return SubmissionOutcome(
                status="invalid", message=INCOMPLETE_FORM, missing=e.missing, invalid=e.invalid
            )

        lines = self.cart.lines()
        self._submitting = True
        try:
            order = await self.submitter.submit(lines, details)
        except PartialOrderError as e:
            logger.error(f"Partial order {e.order_id} needs manual reconciliation")
            self.notices.alert(ORDER_FAILED)
            return SubmissionOutcome(status="partial", message=ORDER_FAILED, order_id=e.order_id)
        except OrderSubmissionError as e:
            logger.error(f"Error submitting order: {e}")
            self.notices.alert(ORDER_FAILED)
            return SubmissionOutcome(status="failed", message=ORDER_FAILED)
        finally:
            self._submitting = False

        self.cart.clear()
        if self.flow.view == CheckoutView.CHECKOUT_FORM:
            self.flow.complete()
        return SubmissionOutcome(status="success", message=ORDER_RECEIVED, order_id=order.id)

    def cart_view(self) -> CartView:
        return CartView(items=self.cart.lines(), subtotal=self.cart.subtotal(), count=self.cart.count())

    def snapshot(self) -> StorefrontView:
        subtotal = self.cart.subtotal()
        in_form = self.flow.view == CheckoutView.CHECKOUT_FORM
        return StorefrontView(
            categories=list(self.catalog.categories),
            selected_category=self.selected_category,
            products=self.catalog.filtered(self.selected_category),
            is_loading=self.catalog.is_loading,
            catalog_loaded=self.catalog.loaded,
            cart=self.cart_view(),
            panel_open=self.flow.panel_open,
            view=self.flow.view,
            form=self.flow.form.model_copy() if self.flow.form else None,
            checkout_notices=checkout_notices(subtotal) if in_form else [],
            notices=self.notices.active(),
            submitting=self._submitting,
        )
