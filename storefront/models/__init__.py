# storefront/models/__init__.py
from .product import Product
from .product_image import ProductImage
from .admin import Admin
from .user import User
from .orphaned_file import OrphanedFile

__all__ = [
    "Product",
    "ProductImage",
    "Admin",
    "User",
    "OrphanedFile",
]
