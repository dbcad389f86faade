from typing import Callable

from fastapi import Depends
from sqlalchemy.orm import Session

from app.models.database import get_db, Tenant
from app.services.analytics_service import DashboardAnalytics
from app.services.database_service import DatabaseService
from app.services.shopify_client import ShopifyClient


# Dependency injection for services
def get_database_service(db: Session = Depends(get_db)) -> DatabaseService:
    return DatabaseService(db)


def get_analytics(db: Session = Depends(get_db)) -> DashboardAnalytics:
    return DashboardAnalytics(db)


def get_client_factory() -> Callable[[Tenant], ShopifyClient]:
    """Builds one Shopify client per tenant from its stored credentials"""
    return ShopifyClient.for_tenant
