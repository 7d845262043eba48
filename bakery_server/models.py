"""Data models for the bakery storefront."""

from datetime import date, time
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

PLACEHOLDER_IMAGE_URL = "https://picsum.photos/400/300"
PICKUP_ONLY_ADDRESS = "Entregas, somente com retirada em loja"


def format_price(amount: Decimal) -> str:
    """Render an amount as Brazilian currency, e.g. ``R$ 38,50``."""
    quantized = Decimal(amount).quantize(Decimal("0.01"))
    return f"R$ {quantized:.2f}".replace(".", ",")


class Category(BaseModel):
    """Product category from the backend."""

    id: int
    name: str


class Product(BaseModel):
    """Represents a product on the menu."""

    id: int = Field(description="Product ID")
    name: str = Field(description="Product name")
    description: Optional[str] = Field(None, description="Product description")
    price: Decimal = Field(description="Unit price in BRL")
    category_id: int = Field(description="ID of the category the product belongs to")
    image_url: Optional[str] = Field(None, description="Product image URL")

    @property
    def display_image_url(self) -> str:
        return self.image_url or PLACEHOLDER_IMAGE_URL


class CartItem(Product):
    """A cart line: one product plus the quantity ordered."""

    quantity: int = Field(ge=1, description="Quantity of the product")

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class PaymentMethod(str, Enum):
    """Payment methods accepted at pickup."""

    PIX = "PIX"
    CARD = "Card"
    CASH = "Cash"

    @property
    def label(self) -> str:
        return {
            PaymentMethod.PIX: "PIX",
            PaymentMethod.CARD: "Cartão de Crédito/Débito",
            PaymentMethod.CASH: "Dinheiro",
        }[self]


class PickupShift(str, Enum):
    """Time-of-day bucket for picking up an order."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"

    @property
    def label(self) -> str:
        return {
            PickupShift.MORNING: "Manhã",
            PickupShift.AFTERNOON: "Tarde",
            PickupShift.EVENING: "Noite",
        }[self]


class CheckoutForm(BaseModel):
    """Checkout form as typed by the customer, not yet validated."""

    name: str = ""
    whatsapp_contact: str = ""
    pickup_address: str = PICKUP_ONLY_ADDRESS
    payment_method: str = ""
    pickup_date: str = ""
    pickup_shift: str = ""
    pickup_time: str = ""


class CheckoutDetails(BaseModel):
    """Validated checkout details, ready to be turned into an order."""

    name: str
    whatsapp_contact: str
    pickup_address: str
    payment_method: PaymentMethod
    pickup_date: date
    pickup_shift: PickupShift
    pickup_time: time


class NewOrder(BaseModel):
    """Row inserted into the ``orders`` table."""

    customer_name: str
    customer_whatsapp: str
    delivery_address: str
    payment_method: PaymentMethod
    status: str = "pending"
    subtotal: Decimal
    pickup_date: date
    pickup_shift: PickupShift
    pickup_time: time


class Order(BaseModel):
    """Order row as returned by the backend after insert."""

    id: int = Field(description="Order ID generated by the backend")
    customer_name: Optional[str] = None
    customer_whatsapp: Optional[str] = None
    delivery_address: Optional[str] = None
    payment_method: Optional[str] = None
    status: str = Field("pending", description="Order status")
    subtotal: Optional[Decimal] = None
    pickup_date: Optional[date] = None
    pickup_shift: Optional[str] = None
    pickup_time: Optional[time] = None


class NewOrderItem(BaseModel):
    """Row inserted into the ``order_items`` table."""

    order_id: int
    product_id: int
    quantity: int = Field(ge=1)
    unit_price: Decimal = Field(description="Unit price captured when the order was placed")
