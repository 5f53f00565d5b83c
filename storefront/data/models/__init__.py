# import all models so they register in Base.metadata

from storefront.data.models.product import ProductModel
from storefront.data.models.customer import CustomerModel
from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.discount import DiscountModel
from storefront.data.models.coupon import CouponModel
from storefront.data.models.pack import PackModel, PackProductModel
from storefront.data.models.payment import PaymentModel
from storefront.data.models.shipment import ShipmentModel

__all__ = [
    "ProductModel",
    "CustomerModel",
    "CartModel",
    "CartItemModel",
    "DiscountModel",
    "CouponModel",
    "PackModel",
    "PackProductModel",
    "PaymentModel",
    "ShipmentModel",
]
