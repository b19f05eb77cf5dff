"""
                Storefront Ordering System

Backend for a storefront: customers browse the menu, place orders and
track them; administrators manage the menu and the order lifecycle.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
