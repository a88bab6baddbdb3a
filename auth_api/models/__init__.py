from auth_api.models.seller import Seller, Shop
from auth_api.models.user import User

__all__ = ["Seller", "Shop", "User"]
