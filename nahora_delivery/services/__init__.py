"""
                        Services Module

Business logic behind the HTTP routes. Each service is bound to one
database session; the image storage backend is chosen at startup.

Services:
    - catalog: product listing/upsert/delete with image lifecycle
    - orders: cart submission and admin order listing
    - store_config: key/value store settings
    - access: admin credential check
    - storage: Local and Cloudinary image backends
"""

from nahora_delivery.services.access import AccessService
from nahora_delivery.services.catalog import CatalogService
from nahora_delivery.services.orders import OrderService
from nahora_delivery.services.store_config import ConfigService

__all__ = ["AccessService", "CatalogService", "OrderService", "ConfigService"]
