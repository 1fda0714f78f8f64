"""Stripe object shapes consumed by the billing reconciler.

Only the fields plzdm reads are declared; everything else Stripe sends is ignored.
Required fields are required, so a malformed or wrong-type object fails with a
pydantic ``ValidationError`` instead of an attribute error deep in a handler.
"""

from typing import Annotated, Any, Generic, Literal, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator


def stripe_to_dict(obj: Any) -> Any:
    """Convert a ``StripeObject`` (or plain dict from a webhook body) to plain data."""
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return obj


def _expandable_id(value: Any) -> Any:
    """Stripe ids may arrive expanded into full objects; keep just the id."""
    if isinstance(value, dict):
        return value.get("id")
    return value


ExpandableId = Annotated[str, BeforeValidator(_expandable_id)]
T = TypeVar("T")


class StripeProduct(BaseModel):
    object: Literal["product"] = "product"
    id: str
    active: bool
    name: str
    description: str | None = None
    images: list[str] = Field(default_factory=list)
    metadata: dict[str, str] = Field(default_factory=dict)


class StripeRecurring(BaseModel):
    interval: str
    interval_count: int
    trial_period_days: int | None = None


class StripePrice(BaseModel):
    object: Literal["price"] = "price"
    id: str
    product: ExpandableId
    active: bool
    currency: str
    nickname: str | None = None
    type: Literal["one_time", "recurring"]
    unit_amount: int | None = None
    recurring: StripeRecurring | None = None
    metadata: dict[str, str] = Field(default_factory=dict)


class StripeAddress(BaseModel):
    city: str | None = None
    country: str | None = None
    line1: str | None = None
    line2: str | None = None
    postal_code: str | None = None
    state: str | None = None


class StripeBillingDetails(BaseModel):
    name: str | None = None
    phone: str | None = None
    email: str | None = None
    address: StripeAddress | None = None


class StripePaymentMethod(BaseModel):
    # Type-specific details ("card", "sepa_debit", ...) live under a key named by `type`
    model_config = ConfigDict(extra="allow")

    object: Literal["payment_method"] = "payment_method"
    id: str
    type: str
    customer: ExpandableId | None = None
    billing_details: StripeBillingDetails = Field(default_factory=StripeBillingDetails)

    def type_details(self) -> dict | None:
        return (self.model_extra or {}).get(self.type)


class StripePriceRef(BaseModel):
    id: str


class StripeSubscriptionItem(BaseModel):
    price: StripePriceRef
    quantity: int | None = None
    current_period_start: int | None = None
    current_period_end: int | None = None


class StripeList(BaseModel, Generic[T]):
    data: list[T] = Field(default_factory=list)


class StripeSubscription(BaseModel):
    object: Literal["subscription"] = "subscription"
    id: str
    customer: ExpandableId
    # Stored verbatim; Stripe owns the legality of status transitions
    status: str
    items: StripeList[StripeSubscriptionItem]
    metadata: dict[str, str] = Field(default_factory=dict)
    quantity: int | None = None
    cancel_at_period_end: bool = False
    cancel_at: int | None = None
    canceled_at: int | None = None
    current_period_start: int | None = None
    current_period_end: int | None = None
    created: int
    ended_at: int | None = None
    trial_start: int | None = None
    trial_end: int | None = None
    default_payment_method: StripePaymentMethod | str | None = None

    @model_validator(mode="after")
    def _fill_from_first_item(self) -> "StripeSubscription":
        """Newer API versions (2024-06-20+) moved period and quantity fields to items.data[0]."""
        if self.items.data:
            item = self.items.data[0]
            if self.current_period_start is None:
                self.current_period_start = item.current_period_start
            if self.current_period_end is None:
                self.current_period_end = item.current_period_end
            if self.quantity is None:
                self.quantity = item.quantity
        return self

    @property
    def price_id(self) -> str | None:
        if not self.items.data:
            return None
        return self.items.data[0].price.id

    @property
    def expanded_payment_method(self) -> StripePaymentMethod | None:
        if isinstance(self.default_payment_method, StripePaymentMethod):
            return self.default_payment_method
        return None


class StripeSubscriptionRef(BaseModel):
    """The part of a subscription event the webhook routes on; the full object is re-fetched."""

    object: Literal["subscription"] = "subscription"
    id: str
    customer: ExpandableId


class StripeLineItem(BaseModel):
    price: StripePriceRef


class StripeCheckoutSession(BaseModel):
    object: Literal["checkout.session"] = "checkout.session"
    id: str
    mode: Literal["payment", "setup", "subscription"]
    customer: ExpandableId | None = None
    subscription: ExpandableId | None = None
    created: int
    line_items: StripeList[StripeLineItem] | None = None


class StripeCharge(BaseModel):
    object: Literal["charge"] = "charge"
    id: str
    customer: ExpandableId | None = None
    receipt_url: str | None = None
    created: int


class StripeEventData(BaseModel):
    object: dict[str, Any]


class StripeEvent(BaseModel):
    id: str
    type: str
    data: StripeEventData

    @property
    def data_object(self) -> dict[str, Any]:
        return self.data.object
