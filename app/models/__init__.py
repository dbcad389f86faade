"""
Database models and API schemas for the dashboard application
"""

from .schemas import (
    ShopifyCustomer,
    ShopifyProduct,
    ShopifyOrder,
    ShopifyShop,
    TenantCreate,
    TenantOut,
    SummaryStats,
    DashboardResponse,
    SyncCounts,
    SyncDataType,
    ErrorResponse
)

__all__ = [
    "ShopifyCustomer",
    "ShopifyProduct",
    "ShopifyOrder",
    "ShopifyShop",
    "TenantCreate",
    "TenantOut",
    "SummaryStats",
    "DashboardResponse",
    "SyncCounts",
    "SyncDataType",
    "ErrorResponse"
]
