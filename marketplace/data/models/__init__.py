#import all models so SQLAlchemy registers them in Base.metadata

from marketplace.data.models.user import UserModel
from marketplace.data.models.store import StoreModel
from marketplace.data.models.product import ProductModel
from marketplace.data.models.cart_item import CartItemModel
from marketplace.data.models.order import OrderModel
from marketplace.data.models.order_item import OrderItemModel
from marketplace.data.models.review import ReviewModel
from marketplace.data.models.notification import NotificationModel

__all__ = [
    "UserModel",
    "StoreModel",
    "ProductModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
    "ReviewModel",
    "NotificationModel",
]
