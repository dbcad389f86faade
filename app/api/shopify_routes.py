import logging
from typing import Callable

from fastapi import APIRouter, HTTPException, status, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.dependencies import get_client_factory
from app.models.database import get_db
from app.models.schemas import (
    SyncAllResponse, SyncResponse, SyncFailureResponse, ShopifyHealthResponse, SyncDataType
)
from app.services.database_service import DatabaseService
from app.services.exceptions import DashboardError, TenantNotFound, ValidationError
from app.services.sync_service import ShopifySyncService

logger = logging.getLogger(__name__)
router = APIRouter()


def _failure(exc: DashboardError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=SyncFailureResponse(error=exc.message).model_dump(mode="json", by_alias=True)
    )


@router.post("/sync/{tenant_id}", response_model=SyncAllResponse,
             responses={401: {"model": SyncFailureResponse}, 404: {"model": SyncFailureResponse},
                        502: {"model": SyncFailureResponse}})
def sync_all(
        tenant_id: str,
        db: Session = Depends(get_db),
        client_factory: Callable = Depends(get_client_factory)
):
    """
    Sync customers, products and orders for a tenant

    **Error Codes:**
    - 401: Shopify rejected the tenant's access token
    - 404: Unknown or inactive tenant
    - 502: Shopify API unavailable or returned an error
    """
    try:
        tenant = DatabaseService(db).get_tenant(tenant_id)
        client = client_factory(tenant)
        synced = ShopifySyncService(db, client).sync_all(tenant.id)
        return SyncAllResponse(synced=synced)

    except DashboardError as e:
        logger.error(f"Shopify sync error for tenant {tenant_id}: {e.message}")
        return _failure(e)
    except Exception as e:
        logger.exception(f"Unexpected error syncing tenant {tenant_id}: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=SyncFailureResponse(error="An internal error occurred during sync").model_dump(
                mode="json", by_alias=True)
        )


@router.post("/sync/{tenant_id}/{data_type}", response_model=SyncResponse,
             responses={400: {"model": SyncFailureResponse}, 401: {"model": SyncFailureResponse},
                        404: {"model": SyncFailureResponse}, 502: {"model": SyncFailureResponse}})
def sync_data_type(
        tenant_id: str,
        data_type: str,
        db: Session = Depends(get_db),
        client_factory: Callable = Depends(get_client_factory)
):
    """
    Sync one entity type (customers, products or orders) for a tenant

    **Error Codes:**
    - 400: Invalid data type
    """
    try:
        if data_type not in {t.value for t in SyncDataType}:
            raise ValidationError("Invalid data type. Use: customers, products, or orders")

        tenant = DatabaseService(db).get_tenant(tenant_id)
        client = client_factory(tenant)
        count = ShopifySyncService(db, client).sync(tenant.id, data_type)
        return SyncResponse(
            message=f"{data_type} synced successfully",
            data_type=SyncDataType(data_type),
            count=count
        )

    except DashboardError as e:
        logger.error(f"Shopify {data_type} sync error for tenant {tenant_id}: {e.message}")
        return _failure(e)
    except Exception as e:
        logger.exception(f"Unexpected error syncing {data_type} for tenant {tenant_id}: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=SyncFailureResponse(error="An internal error occurred during sync").model_dump(
                mode="json", by_alias=True)
        )


@router.get("/health/{tenant_id}", response_model=ShopifyHealthResponse)
def shopify_health(
        tenant_id: str,
        db: Session = Depends(get_db),
        client_factory: Callable = Depends(get_client_factory)
):
    """Check that the tenant's Shopify credentials work"""
    try:
        tenant = DatabaseService(db).get_tenant(tenant_id)
        shop = client_factory(tenant).get_shop()
    except TenantNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except DashboardError as e:
        logger.error(f"Shopify health check failed for tenant {tenant_id}: {e.message}")
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return ShopifyHealthResponse(
        status="Shopify integration healthy",
        shop=shop.name,
        domain=shop.myshopify_domain or tenant.shopify_domain
    )
