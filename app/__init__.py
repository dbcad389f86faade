"""
Shopify Tenant Dashboard

Multi-tenant backend that mirrors each merchant's Shopify data locally:
- Per-tenant sync of customers, products and orders
- Dashboard aggregates (revenue, top customers, recent orders, daily revenue)
- Webhook-driven resync
"""

__version__ = "1.0.0"
