import base64
import hashlib
import hmac
import logging
from typing import Callable, Optional

from fastapi import APIRouter, HTTPException, status, Depends, Request, Header
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.dependencies import get_client_factory
from app.config import settings
from app.models.database import get_db
from app.models.schemas import WebhookResponse, SyncFailureResponse, SyncDataType
from app.services.database_service import DatabaseService
from app.services.exceptions import DashboardError, TenantNotFound
from app.services.sync_service import ShopifySyncService

logger = logging.getLogger(__name__)
router = APIRouter()

TOPIC_SYNC_TYPES = {
    "customers/create": SyncDataType.CUSTOMERS,
    "customers/update": SyncDataType.CUSTOMERS,
    "orders/create": SyncDataType.ORDERS,
    "orders/updated": SyncDataType.ORDERS,
    "orders/paid": SyncDataType.ORDERS,
    "orders/cancelled": SyncDataType.ORDERS,
    "orders/fulfilled": SyncDataType.ORDERS,
    "products/create": SyncDataType.PRODUCTS,
    "products/update": SyncDataType.PRODUCTS,
}


def verify_webhook_hmac(payload: bytes, signature: Optional[str], secret: str) -> bool:
    """Compare Shopify's base64 HMAC-SHA256 header with our own digest of the raw body"""
    if not signature:
        return False
    digest = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).digest()
    computed = base64.b64encode(digest).decode("utf-8")
    return hmac.compare_digest(computed, signature)


@router.post("/shopify", response_model=WebhookResponse)
async def shopify_webhook(
        request: Request,
        x_shopify_topic: Optional[str] = Header(None),
        x_shopify_shop_domain: Optional[str] = Header(None),
        x_shopify_hmac_sha256: Optional[str] = Header(None),
        db: Session = Depends(get_db),
        client_factory: Callable = Depends(get_client_factory)
):
    """
    Receive a Shopify webhook and resync the entity type its topic names

    **Error Codes:**
    - 401: HMAC signature missing or invalid (only when a webhook secret is configured)
    - 404: No active tenant for the shop domain
    """
    raw_body = await request.body()
    if settings.SHOPIFY_WEBHOOK_SECRET and not verify_webhook_hmac(
            raw_body, x_shopify_hmac_sha256, settings.SHOPIFY_WEBHOOK_SECRET):
        logger.warning(f"Rejected webhook {x_shopify_topic} from {x_shopify_shop_domain}: bad HMAC")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook signature")

    try:
        tenant = await run_in_threadpool(DatabaseService(db).get_tenant_by_domain, x_shopify_shop_domain)
    except TenantNotFound:
        logger.info(f"No tenant found for shop: {x_shopify_shop_domain}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")

    data_type = TOPIC_SYNC_TYPES.get(x_shopify_topic or "")
    if data_type is None:
        logger.info(f"Unhandled webhook topic: {x_shopify_topic}")
        return WebhookResponse(
            message=f"Webhook {x_shopify_topic} acknowledged without action",
            topic=x_shopify_topic
        )

    try:
        client = client_factory(tenant)
        count = await run_in_threadpool(ShopifySyncService(db, client).sync, tenant.id, data_type.value)
    except DashboardError as e:
        logger.error(f"Webhook {x_shopify_topic} sync failed for tenant {tenant.id}: {e.message}")
        return JSONResponse(
            status_code=e.status_code,
            content=SyncFailureResponse(error=e.message).model_dump(mode="json", by_alias=True)
        )

    return WebhookResponse(
        message=f"Webhook {x_shopify_topic} processed successfully",
        topic=x_shopify_topic,
        synced=count
    )
