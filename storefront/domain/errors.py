# storefront/domain/errors.py
"""
Typed failures raised by the services.

Every error carries a stable ``code`` and a ``detail`` dict with the data a
caller needs to act on it (which product, which limit, ...). The API layer
maps the four families to HTTP statuses; services never return them.
"""
from typing import Any, Dict


class ShopError(Exception):
    code = "shop_error"

    def __init__(self, message: str, **detail: Any):
        super().__init__(message)
        self.message = message
        self.detail: Dict[str, Any] = detail

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "detail": self.detail}


class NotFoundError(ShopError):
    code = "not_found"


class ValidationError(ShopError):
    code = "validation_error"


class StateConflictError(ShopError):
    code = "state_conflict"


class UpstreamError(ShopError):
    code = "upstream_failure"


# not found
class ProductNotFound(NotFoundError):
    code = "product_not_found"

    def __init__(self, product_id):
        super().__init__(f"Product {product_id} not found", product_id=product_id)


class CartNotFound(NotFoundError):
    code = "cart_not_found"

    def __init__(self, cart_id):
        super().__init__(f"Cart {cart_id} not found", cart_id=str(cart_id))


class LineNotFound(NotFoundError):
    code = "line_not_found"

    def __init__(self, cart_id, line_id):
        super().__init__(
            f"Line {line_id} not found in cart {cart_id}",
            cart_id=str(cart_id),
            line_id=str(line_id),
        )


class PromotionNotFound(NotFoundError):
    code = "promotion_not_found"

    def __init__(self, code):
        super().__init__(f"No discount or coupon with code {code!r}", promotion_code=code)


class PackNotFound(NotFoundError):
    code = "pack_not_found"

    def __init__(self, pack_id):
        super().__init__(f"Pack {pack_id} not found", pack_id=str(pack_id))


class PaymentNotFound(NotFoundError):
    code = "payment_not_found"

    def __init__(self, payment_id):
        super().__init__(f"Payment {payment_id} not found", payment_id=str(payment_id))


class CustomerNotFound(NotFoundError):
    code = "customer_not_found"

    def __init__(self, customer_id):
        super().__init__(f"Customer {customer_id} not found", customer_id=str(customer_id))


class CouponNotFound(NotFoundError):
    code = "coupon_not_found"

    def __init__(self, coupon_id):
        super().__init__(f"Coupon {coupon_id} not found", coupon_id=str(coupon_id))


# validation
class InvalidQuantity(ValidationError):
    code = "invalid_quantity"

    def __init__(self, quantity, **detail):
        super().__init__(f"Quantity must be greater than 0, got {quantity}", quantity=quantity, **detail)


class InvalidPaymentMethod(ValidationError):
    code = "invalid_payment_method"

    def __init__(self, method, allowed):
        super().__init__(
            f"Unsupported payment method {method!r}",
            payment_method=method,
            allowed=sorted(allowed),
        )


class InvalidTotal(ValidationError):
    code = "invalid_total"

    def __init__(self, total):
        super().__init__(f"Total must be greater than 0, got {total}", total=total)


class InvalidPromotionKind(ValidationError):
    code = "invalid_promotion_kind"

    def __init__(self, kind):
        super().__init__(f"Unknown promotion kind {kind!r}", kind=kind)


class InvalidPercentage(ValidationError):
    code = "invalid_percentage"

    def __init__(self, percentage):
        super().__init__(
            f"Percentage must be between 1 and 100, got {percentage}", percentage=percentage
        )


class InvalidContact(ValidationError):
    code = "invalid_contact"


class EmptySale(ValidationError):
    code = "empty_sale"

    def __init__(self):
        super().__init__("A sale needs at least one line")


# state conflicts
class PromotionInactive(StateConflictError):
    code = "promotion_inactive"

    def __init__(self, code):
        super().__init__(f"Promotion {code} is not active", promotion_code=code)


class PromotionNotYetValid(StateConflictError):
    code = "promotion_not_yet_valid"

    def __init__(self, code, valid_from):
        super().__init__(
            f"Promotion {code} is valid from {valid_from.isoformat()}",
            promotion_code=code,
            valid_from=valid_from.isoformat(),
        )


class PromotionExpired(StateConflictError):
    code = "promotion_expired"

    def __init__(self, code, valid_until):
        super().__init__(
            f"Promotion {code} expired at {valid_until.isoformat()}",
            promotion_code=code,
            valid_until=valid_until.isoformat(),
        )


class PromotionAlreadyUsed(StateConflictError):
    code = "promotion_already_used"

    def __init__(self, code):
        super().__init__(f"Promotion {code} has already been used", promotion_code=code)


class PromotionUsageExhausted(StateConflictError):
    code = "promotion_usage_exhausted"

    def __init__(self, code, uses, max_uses):
        super().__init__(
            f"Promotion {code} reached its limit of {max_uses} uses",
            promotion_code=code,
            uses=uses,
            max_uses=max_uses,
        )


class PromotionNotApplicable(StateConflictError):
    code = "promotion_not_applicable"

    def __init__(self, code, product_id):
        super().__init__(
            f"Promotion {code} only applies to product {product_id}, which is not in the cart",
            promotion_code=code,
            product_id=product_id,
        )


class InsufficientStock(StateConflictError):
    code = "insufficient_stock"

    def __init__(self, product_id, available, requested):
        super().__init__(
            f"Product {product_id} has {available} in stock, {requested} requested",
            product_id=product_id,
            available=available,
            requested=requested,
        )


class EmptyCart(StateConflictError):
    code = "empty_cart"

    def __init__(self, cart_id):
        super().__init__(f"Cart {cart_id} has no items", cart_id=str(cart_id))


class CartNotPending(StateConflictError):
    code = "cart_not_pending"

    def __init__(self, cart_id, status):
        super().__init__(
            f"Cart {cart_id} is {status}, expected pendiente", cart_id=str(cart_id), status=status
        )


class CheckoutInProgress(StateConflictError):
    code = "checkout_in_progress"

    def __init__(self, cart_id, payment_id):
        super().__init__(
            f"Cart {cart_id} already has pending payment {payment_id}",
            cart_id=str(cart_id),
            payment_id=str(payment_id),
        )


class PaymentNotPending(StateConflictError):
    code = "payment_not_pending"

    def __init__(self, payment_id, status):
        super().__init__(
            f"Payment {payment_id} is already {status}", payment_id=str(payment_id), status=status
        )


class ResourceLocked(StateConflictError):
    code = "resource_locked"

    def __init__(self, resource):
        super().__init__(f"{resource} is being modified by another request", resource=resource)


class DuplicateCode(StateConflictError):
    code = "duplicate_code"

    def __init__(self, code):
        super().__init__(f"Code {code} is already in use", promotion_code=code)


class ActiveDiscountExists(StateConflictError):
    code = "active_discount_exists"

    def __init__(self, product_id, discount_code):
        super().__init__(
            f"Product {product_id} already has active discount {discount_code}",
            product_id=product_id,
            discount_code=discount_code,
        )

