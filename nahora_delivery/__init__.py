"""
                Nahora Delivery API

Order-management backend for a food-delivery storefront: product
catalog with image upload, customer orders, store configuration
and a simple admin login.

Author: Khalil_Bannouri
Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Khalil_Bannouri"
