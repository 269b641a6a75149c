# Import models so that SQLAlchemy metadata includes them on app startup
from .user import User  # noqa: F401
from .address import Address  # noqa: F401
from .vendor import Vendor  # noqa: F401
from .product import Product  # noqa: F401
from .order import Order, OrderNumber  # noqa: F401
from .review import ProductReview  # noqa: F401
from .notification import Notification  # noqa: F401
from .wallet import Wallet, WalletTransaction, CashbackConfig  # noqa: F401
