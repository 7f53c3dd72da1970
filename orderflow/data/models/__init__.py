# import every model so SQLAlchemy registers it in Base.metadata

from orderflow.data.models.user import UserModel
from orderflow.data.models.address import AddressModel
from orderflow.data.models.product import ProductModel, ProductVariantModel
from orderflow.data.models.discount_code import DiscountCodeModel
from orderflow.data.models.order import OrderModel
from orderflow.data.models.order_item import OrderItemModel

__all__ = [
    "UserModel",
    "AddressModel",
    "ProductModel",
    "ProductVariantModel",
    "DiscountCodeModel",
    "OrderModel",
    "OrderItemModel",
]
