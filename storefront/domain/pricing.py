# storefront/domain/pricing.py
"""
Cart pricing: subtotal, one promotional adjustment, promotion validity.

Money is always an integer amount in the smallest currency unit. Nothing here
touches the database; services load rows, wrap them in ``Promotion`` and call
these functions.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Protocol

from storefront.data.models.coupon import COUPON_FIXED, COUPON_PERCENTAGE
from storefront.domain.errors import (
    InvalidPromotionKind,
    PromotionAlreadyUsed,
    PromotionExpired,
    PromotionInactive,
    PromotionNotApplicable,
    PromotionNotFound,
    PromotionNotYetValid,
    PromotionUsageExhausted,
)

PERCENTAGE = "percentage"
FIXED = "fixed"

SOURCE_DISCOUNT = "discount"
SOURCE_COUPON = "coupon"


class PricedLine(Protocol):
    product_id: int
    unit_price: int
    quantity: int


@dataclass(frozen=True)
class Line:
    product_id: int
    unit_price: int
    quantity: int


@dataclass(frozen=True)
class Promotion:
    """Read-only view of a discount or coupon row."""

    source: str
    id: object
    code: str
    kind: str
    value: int
    product_id: Optional[int] = None
    active: bool = True
    used: bool = False
    single_use: bool = False
    uses: int = 0
    max_uses: Optional[int] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None

    @classmethod
    def from_discount(cls, row) -> "Promotion":
        return cls(
            source=SOURCE_DISCOUNT,
            id=row.id,
            code=row.code,
            kind=PERCENTAGE,
            value=row.percentage,
            product_id=row.product_id,
            used=bool(row.used),
            valid_from=row.valid_from,
            valid_until=row.valid_until,
        )

    @classmethod
    def from_coupon(cls, row) -> "Promotion":
        kinds = {COUPON_PERCENTAGE: PERCENTAGE, COUPON_FIXED: FIXED}
        return cls(
            source=SOURCE_COUPON,
            id=row.id,
            code=row.code,
            kind=kinds.get(row.kind, row.kind),
            value=row.value,
            active=bool(row.active),
            single_use=bool(row.single_use),
            uses=row.uses or 0,
            max_uses=row.max_uses,
            valid_from=row.valid_from,
            valid_until=row.valid_until,
        )


@dataclass(frozen=True)
class ValidPromotion:
    """Effect parameters of a promotion that passed validation."""

    promotion: Promotion

    @property
    def kind(self) -> str:
        return self.promotion.kind

    @property
    def value(self) -> int:
        return self.promotion.value

    @property
    def product_id(self) -> Optional[int]:
        return self.promotion.product_id


@dataclass(frozen=True)
class CartTotal:
    subtotal: int
    discount_amount: int
    total: int


def _as_utc(value: datetime) -> datetime:
    # sqlite hands timestamps back without tzinfo
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def subtotal_of(items: Iterable[PricedLine]) -> int:
    return sum(int(i.unit_price) * int(i.quantity) for i in items)


def percentage_of(amount: int, percentage: int) -> int:
    share = Decimal(amount) * Decimal(percentage) / Decimal(100)
    return int(share.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_cart_total(items: Iterable[PricedLine], promotion=None) -> CartTotal:
    """
    Subtotal of ``items`` plus at most one promotion.

    ``promotion`` may be a ``Promotion`` or a ``ValidPromotion``. When it is
    bound to a product, only that product's lines form the discount base, and
    a cart without that product cannot use it. The discount never exceeds
    its base.
    """
    items = list(items)
    subtotal = subtotal_of(items)

    if promotion is None:
        return CartTotal(subtotal=subtotal, discount_amount=0, total=subtotal)

    if isinstance(promotion, ValidPromotion):
        promotion = promotion.promotion

    base = subtotal
    if promotion.product_id is not None:
        bound = [i for i in items if i.product_id == promotion.product_id]
        if not bound:
            raise PromotionNotApplicable(promotion.code, promotion.product_id)
        base = subtotal_of(bound)

    if promotion.kind == PERCENTAGE:
        discount = min(percentage_of(base, promotion.value), base)
    elif promotion.kind == FIXED:
        discount = min(int(promotion.value), base)
    else:
        raise InvalidPromotionKind(promotion.kind)

    total = max(subtotal - discount, 0)
    return CartTotal(subtotal=subtotal, discount_amount=discount, total=total)


def validate_promotion(
    promotion: Optional[Promotion],
    now: Optional[datetime] = None,
    code: Optional[str] = None,
) -> ValidPromotion:
    """
    Check that a promotion can be applied at ``now``.

    First failure wins: not found, inactive, not yet valid, expired, already
    used, usage exhausted. Usage counters are only read here.
    """
    if promotion is None:
        raise PromotionNotFound(code)

    now = _as_utc(now or datetime.now(timezone.utc))

    if promotion.source == SOURCE_COUPON and not promotion.active:
        raise PromotionInactive(promotion.code)

    if promotion.valid_from is not None and now < _as_utc(promotion.valid_from):
        raise PromotionNotYetValid(promotion.code, _as_utc(promotion.valid_from))

    if promotion.valid_until is not None and now > _as_utc(promotion.valid_until):
        raise PromotionExpired(promotion.code, _as_utc(promotion.valid_until))

    if promotion.source == SOURCE_DISCOUNT:
        if promotion.used:
            raise PromotionAlreadyUsed(promotion.code)
    elif promotion.single_use and promotion.uses > 0:
        raise PromotionAlreadyUsed(promotion.code)

    if promotion.max_uses is not None and promotion.uses >= promotion.max_uses:
        raise PromotionUsageExhausted(promotion.code, promotion.uses, promotion.max_uses)

    return ValidPromotion(promotion)
