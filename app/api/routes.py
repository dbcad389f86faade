import logging
from datetime import datetime

from fastapi import APIRouter, HTTPException, status, Depends, Query
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.api.dependencies import get_database_service, get_analytics
from app.config import settings, get_environment
from app.models.database import get_db
from app.models.schemas import (
    DashboardResponse, CustomerListResponse, ProductListResponse, TenantCreate, TenantOut
)
from app.services.analytics_service import DashboardAnalytics
from app.services.database_service import DatabaseService
from app.services.exceptions import TenantNotFound, ValidationError

logger = logging.getLogger(__name__)
router = APIRouter()


def _require_tenant(db_service: DatabaseService, tenant_id: str):
    try:
        return db_service.get_tenant(tenant_id)
    except TenantNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


@router.get("/health", tags=["Health"])
def health_check(db: Session = Depends(get_db)):
    """Health check including a database round trip"""
    try:
        db.execute(text("SELECT 1"))
        database = "Connected"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        database = "Disconnected"

    return {
        "status": "Server is running",
        "database": database,
        "timestamp": datetime.utcnow(),
        "environment": get_environment()
    }


@router.get("/tenants", response_model=list[TenantOut], tags=["Tenants"])
def list_tenants(db_service: DatabaseService = Depends(get_database_service)):
    """List active tenants"""
    return db_service.list_tenants()


@router.post("/tenants", response_model=TenantOut, status_code=status.HTTP_201_CREATED, tags=["Tenants"])
def create_tenant(
        request: TenantCreate,
        db_service: DatabaseService = Depends(get_database_service)
):
    """
    Onboard a new Shopify store as a tenant

    **Error Codes:**
    - 400: A tenant already exists for this store domain
    """
    try:
        return db_service.create_tenant(request.name, request.shopify_domain, request.shopify_access_token)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)


@router.delete("/tenants/{tenant_id}", tags=["Tenants"])
def delete_tenant(
        tenant_id: str,
        hard: bool = False,
        db_service: DatabaseService = Depends(get_database_service)
):
    """
    Deactivate a tenant, or remove it with all its data when hard=true
    """
    try:
        if hard:
            db_service.delete_tenant(tenant_id)
        else:
            db_service.deactivate_tenant(tenant_id)
    except TenantNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)

    return {
        "success": True,
        "message": f"Tenant {tenant_id} {'deleted' if hard else 'deactivated'}"
    }


@router.get("/dashboard/{tenant_id}", response_model=DashboardResponse, tags=["Dashboard"])
def get_dashboard(
        tenant_id: str,
        window_days: int = Query(settings.REVENUE_WINDOW_DAYS, ge=1, le=366),
        db_service: DatabaseService = Depends(get_database_service),
        analytics: DashboardAnalytics = Depends(get_analytics)
):
    """
    Dashboard payload for one tenant: summary metrics, top customers,
    recent orders, daily revenue and the full product and customer lists
    """
    _require_tenant(db_service, tenant_id)
    try:
        return DashboardResponse(
            tenant_id=tenant_id,
            summary=analytics.summary(tenant_id),
            top_customers=analytics.top_customers(tenant_id),
            recent_orders=analytics.recent_orders(tenant_id),
            revenue_by_date=analytics.revenue_by_date(tenant_id, window_days),
            products=analytics.list_products(tenant_id),
            customers=analytics.list_customers(tenant_id)
        )
    except Exception as e:
        logger.error(f"Error building dashboard for tenant {tenant_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while building the dashboard"
        )


@router.get("/dashboard/{tenant_id}/customers", response_model=CustomerListResponse, tags=["Dashboard"])
def get_customers(
        tenant_id: str,
        db_service: DatabaseService = Depends(get_database_service),
        analytics: DashboardAnalytics = Depends(get_analytics)
):
    """Customers ordered by total spent, highest first"""
    _require_tenant(db_service, tenant_id)
    return CustomerListResponse(customers=analytics.list_customers(tenant_id))


@router.get("/dashboard/{tenant_id}/products", response_model=ProductListResponse, tags=["Dashboard"])
def get_products(
        tenant_id: str,
        db_service: DatabaseService = Depends(get_database_service),
        analytics: DashboardAnalytics = Depends(get_analytics)
):
    """Products ordered by price, highest first"""
    _require_tenant(db_service, tenant_id)
    return ProductListResponse(products=analytics.list_products(tenant_id))
