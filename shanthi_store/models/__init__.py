from shanthi_store.models.user import User, UserRole
from shanthi_store.models.product import Product
from shanthi_store.models.cart import CartItem
from shanthi_store.models.wishlist import WishlistItem
from shanthi_store.models.order import Order, OrderItem, OrderStatus, PaymentMethod, PaymentGateway
from shanthi_store.models.order_status_history import OrderStatusHistory, UpdatedBy
from shanthi_store.models.payment import Payment, PaymentStatus
