"""
Pydantic v2 models for carts, coupons and discount candidates.

Coupons are a tagged union on ``type``: each variant carries its own
conditions model, so the conditions shape is validated once when the coupon
is built and strategies can rely on it.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    NonNegativeInt,
    PositiveInt,
    Tag,
    TypeAdapter,
    field_validator,
    model_validator,
)


class CouponType(str, Enum):
    """Coupon type tags, as stored and sent over the wire."""
    CART_WIDE = "cart"
    PRODUCT_SCOPED = "product"
    BUY_X_GET_Y = "bxgy"


# Tags written by older clients
LEGACY_TYPE_TAGS = {
    "Product": CouponType.PRODUCT_SCOPED.value,
    "BxGy": CouponType.BUY_X_GET_Y.value,
    "Cart": CouponType.CART_WIDE.value,
}


def normalize_type_tag(tag: Any) -> Any:
    """Map legacy spellings onto the canonical tag; anything else passes through."""
    if isinstance(tag, CouponType):
        return tag.value
    if isinstance(tag, str):
        return LEGACY_TYPE_TAGS.get(tag, tag)
    return tag


#
# Cart
#

class CartItem(BaseModel):
    """One cart line. The discount fields are written only by strategy application."""
    product_id: str = Field(..., min_length=1)
    quantity: PositiveInt
    price: NonNegativeInt = Field(..., description="Unit price in minor currency units")
    category: Optional[str] = None

    total_discount: NonNegativeInt = 0
    final_price: Optional[int] = None
    free_quantity: NonNegativeInt = 0
    applied_coupon_ids: List[str] = Field(default_factory=list)

    @property
    def subtotal(self) -> int:
        return self.quantity * self.price


class Cart(BaseModel):
    """
    A shopping cart.

    ``total_amount`` is computed from the items when omitted (or zero), and
    ``sub_total`` defaults to ``total_amount - discounted_amount``.
    """
    id: Optional[str] = None
    items: List[CartItem] = Field(default_factory=list)
    total_amount: Optional[NonNegativeInt] = None
    discounted_amount: NonNegativeInt = 0
    sub_total: Optional[int] = None

    @model_validator(mode="after")
    def _fill_totals(self) -> "Cart":
        if not self.total_amount:
            self.total_amount = self.items_total()
        if self.discounted_amount > self.total_amount:
            raise ValueError("discounted_amount cannot exceed total_amount")
        if self.sub_total is None:
            self.sub_total = self.total_amount - self.discounted_amount
        return self

    def items_total(self) -> int:
        """Sum of price * quantity over all items."""
        return sum(item.subtotal for item in self.items)


#
# Discount details
#

class PercentageDiscount(BaseModel):
    type: Literal["percentage"] = "percentage"
    value: float = Field(..., gt=0, le=100, description="Percent off (0-100]")
    max_discount: Optional[NonNegativeInt] = Field(None, description="Cap in minor units")


class FixedDiscount(BaseModel):
    type: Literal["fixed"] = "fixed"
    value: float = Field(..., gt=0, description="Amount off in minor units")


class FreeProductDiscount(BaseModel):
    """Buy-X-get-Y coupons discount by granting free units; no amount is configured."""
    type: Literal["free_product"] = "free_product"


AmountDiscount = Annotated[
    Union[PercentageDiscount, FixedDiscount],
    Field(discriminator="type"),
]

DiscountDetails = Annotated[
    Union[PercentageDiscount, FixedDiscount, FreeProductDiscount],
    Field(discriminator="type"),
]


#
# Conditions
#

class CartWideConditions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    min_cart_value: NonNegativeInt = 0
    max_cart_value: Optional[NonNegativeInt] = None
    min_items: Optional[PositiveInt] = Field(None, description="Minimum number of cart lines")

    @model_validator(mode="after")
    def _check_range(self) -> "CartWideConditions":
        if self.max_cart_value is not None and self.max_cart_value < self.min_cart_value:
            raise ValueError("max_cart_value must be >= min_cart_value")
        return self


class ProductScopedConditions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    product_ids: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    min_quantity: Optional[PositiveInt] = None

    @model_validator(mode="after")
    def _check_targets(self) -> "ProductScopedConditions":
        if not self.product_ids and not self.categories:
            raise ValueError("product_ids or categories must be provided")
        return self

    def matches(self, item: CartItem) -> bool:
        """An item matches by product id OR by category."""
        if item.product_id in self.product_ids:
            return True
        return item.category is not None and item.category in self.categories


class ProductQuantity(BaseModel):
    product_id: str = Field(..., min_length=1)
    quantity: PositiveInt


class BuyXGetYConditions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    buy_products: List[ProductQuantity] = Field(..., min_length=1)
    get_products: List[ProductQuantity] = Field(..., min_length=1)
    repetition_limit: PositiveInt = 1


#
# Coupons
#

class CouponBase(BaseModel):
    id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=200)
    is_active: bool = True
    expiry_date: Optional[datetime] = None
    usage_limit: Optional[NonNegativeInt] = None
    used_count: NonNegativeInt = 0

    @field_validator("type", mode="before", check_fields=False)
    @classmethod
    def _normalize_type(cls, value: Any) -> Any:
        return normalize_type_tag(value)

    @field_validator("expiry_date")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Naive timestamps are stored as UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _check_usage(self):
        if self.usage_limit is not None and self.used_count > self.usage_limit:
            raise ValueError("used_count cannot exceed usage_limit")
        return self

    @property
    def coupon_type(self) -> CouponType:
        return CouponType(self.type)


class CartWideCoupon(CouponBase):
    type: Literal["cart"] = "cart"
    conditions: CartWideConditions = Field(default_factory=CartWideConditions)
    discount_details: AmountDiscount


class ProductScopedCoupon(CouponBase):
    type: Literal["product"] = "product"
    conditions: ProductScopedConditions
    discount_details: AmountDiscount


class BuyXGetYCoupon(CouponBase):
    type: Literal["bxgy"] = "bxgy"
    conditions: BuyXGetYConditions
    discount_details: DiscountDetails = Field(default_factory=FreeProductDiscount)


def _coupon_tag(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        return normalize_type_tag(value.get("type"))
    return normalize_type_tag(getattr(value, "type", None))


Coupon = Annotated[
    Union[
        Annotated[CartWideCoupon, Tag(CouponType.CART_WIDE.value)],
        Annotated[ProductScopedCoupon, Tag(CouponType.PRODUCT_SCOPED.value)],
        Annotated[BuyXGetYCoupon, Tag(CouponType.BUY_X_GET_Y.value)],
    ],
    Discriminator(_coupon_tag),
]

COUPON_ADAPTER = TypeAdapter(Coupon)


def parse_coupon(data: Dict[str, Any]) -> CouponBase:
    """Validate a raw coupon document into its variant model."""
    return COUPON_ADAPTER.validate_python(data)


class CouponUpdate(BaseModel):
    """
    Partial coupon payload; set fields are merged onto the stored coupon.

    ``used_count`` is not updatable: it only moves through coupon application.
    A body ``id`` is accepted and ignored in favour of the path id.
    """
    model_config = ConfigDict(extra="forbid")

    id: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    type: Optional[str] = None
    is_active: Optional[bool] = None
    expiry_date: Optional[datetime] = None
    usage_limit: Optional[NonNegativeInt] = None
    conditions: Optional[Dict[str, Any]] = None
    discount_details: Optional[Dict[str, Any]] = None

    @model_validator(mode="after")
    def _not_empty(self) -> "CouponUpdate":
        if not self.changes():
            raise ValueError("At least one field must be provided for update")
        return self

    def changes(self) -> Dict[str, Any]:
        """Fields to merge onto the stored coupon."""
        return self.model_dump(exclude_unset=True, exclude={"id"})


#
# Discovery output
#

class ApplicableCandidate(BaseModel):
    """A coupon found applicable to a cart, with the discount it would give."""
    coupon_id: str
    type: CouponType
    discount: PositiveInt
