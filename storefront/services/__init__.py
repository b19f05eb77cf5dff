"""
                        Services Module

Business logic, kept free of HTTP concerns.

Services:
    - ordering: order builder, status machine, order queries
    - catalog: menu item lookup and maintenance
    - access: access gate strategies resolving the caller
"""
