"""
Business logic services: Shopify client, sync and dashboard analytics
"""

from .shopify_client import ShopifyClient
from .sync_service import ShopifySyncService
from .analytics_service import DashboardAnalytics
from .database_service import DatabaseService

__all__ = ["ShopifyClient", "ShopifySyncService", "DashboardAnalytics", "DatabaseService"]
