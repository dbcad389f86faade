import logging
import threading
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional

from bs4 import BeautifulSoup
from sqlalchemy.orm import Session

from app.models.database import OrderStatus
from app.models.schemas import (
    ShopifyCustomer, ShopifyProduct, ShopifyOrder, SyncCounts, SyncDataType
)
from app.services.database_service import DatabaseService
from app.services.exceptions import CustomerUnresolved, ValidationError
from app.services.shopify_client import ShopifyClient

logger = logging.getLogger(__name__)

PAID_STATUSES = {"paid", "partially_paid", "partially_refunded", "refunded", "authorized"}
SHIPPED_STATUSES = {"fulfilled", "partial"}

_tenant_locks: Dict[str, threading.Lock] = {}
_tenant_locks_guard = threading.Lock()


def tenant_sync_lock(tenant_id: str) -> threading.Lock:
    """Process-wide advisory lock serialising syncs of one tenant"""
    with _tenant_locks_guard:
        lock = _tenant_locks.get(tenant_id)
        if lock is None:
            lock = _tenant_locks[tenant_id] = threading.Lock()
        return lock


def clean_html(html_content: Optional[str]) -> str:
    """Clean HTML content and extract readable text"""
    if not html_content:
        return ""

    soup = BeautifulSoup(html_content, 'html.parser')
    text = soup.get_text(" ")

    # Clean up whitespace
    return ' '.join(text.split()).strip()


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def derive_order_status(order: ShopifyOrder) -> OrderStatus:
    """Collapse Shopify's financial/fulfillment fields into one order status"""
    if order.cancelled_at:
        return OrderStatus.CANCELLED
    if any((f.shipment_status or "").lower() == "delivered" for f in order.fulfillments):
        return OrderStatus.DELIVERED
    if (order.fulfillment_status or "").lower() in SHIPPED_STATUSES:
        return OrderStatus.SHIPPED
    if (order.financial_status or "").lower() in PAID_STATUSES:
        return OrderStatus.CONFIRMED
    return OrderStatus.PENDING


def map_customer(customer: ShopifyCustomer) -> Dict[str, Any]:
    return {
        'shopify_customer_id': customer.id,
        'first_name': customer.first_name or "",
        'last_name': customer.last_name or "",
        'email': (customer.email or "").strip() or None,
        'phone': (customer.phone or "").strip() or None,
        'total_spent': customer.total_spent,
        'orders_count': customer.orders_count,
    }


def map_product(product: ShopifyProduct) -> Optional[Dict[str, Any]]:
    """Map a product priced by its first variant; None when it has no variants"""
    if not product.variants:
        return None

    variant = product.variants[0]
    image = product.image or (product.images[0] if product.images else None)
    return {
        'shopify_product_id': product.id,
        'title': product.title,
        'description': clean_html(product.body_html),
        'price': variant.price,
        'inventory': variant.inventory_quantity or 0,
        'status': product.status,
        'image_url': image.src if image else None,
    }


def map_order(order: ShopifyOrder, customer_id: str) -> Dict[str, Any]:
    order_number = order.name or (str(order.order_number) if order.order_number is not None else None)
    return {
        'shopify_order_id': order.id,
        'customer_id': customer_id,
        'order_number': order_number,
        'total_amount': order.total_price,
        'status': derive_order_status(order),
        'order_date': to_naive_utc(order.created_at),
    }


class ShopifySyncService:
    """
    Reconciles one tenant's local rows with its Shopify store.

    Each entity type is a full pull followed by per-row upserts keyed by
    (tenant_id, shopify id). A fetch failure propagates before any write of
    that entity type; rows already committed by an earlier type stay.
    """

    def __init__(self, db: Session, client: ShopifyClient):
        self.db = db
        self.client = client
        self.store = DatabaseService(db)

    def sync_customers(self, tenant_id: str) -> int:
        logger.info(f"Syncing customers for tenant {tenant_id}...")
        customers = self.client.list_customers()

        synced_count = 0
        for customer in customers:
            _, created = self.store.upsert_customer(tenant_id, map_customer(customer))
            logger.debug(f"{'Created' if created else 'Updated'} customer {customer.id}")
            synced_count += 1

        logger.info(f"Synced {synced_count} customers for tenant {tenant_id}")
        return synced_count

    def sync_products(self, tenant_id: str) -> int:
        logger.info(f"Syncing products for tenant {tenant_id}...")
        products = self.client.list_products()

        synced_count = 0
        for product in products:
            fields = map_product(product)
            if fields is None:
                logger.warning(f"Skipping product {product.id} ('{product.title}'): no variants")
                continue
            _, created = self.store.upsert_product(tenant_id, fields)
            logger.debug(f"{'Created' if created else 'Updated'} product {product.id}")
            synced_count += 1

        logger.info(f"Synced {synced_count} of {len(products)} products for tenant {tenant_id}")
        return synced_count

    def _resolve_customer_id(self, tenant_id: str, order: ShopifyOrder) -> str:
        shopify_customer_id = order.customer.id if order.customer else None
        customer = self.store.get_customer_by_shopify_id(tenant_id, shopify_customer_id)
        if customer is None:
            raise CustomerUnresolved(tenant_id, shopify_customer_id)
        return customer.id

    def _map_line_items(self, tenant_id: str, order: ShopifyOrder) -> List[Dict[str, Any]]:
        lines = []
        for item in order.line_items:
            product = self.store.get_product_by_shopify_id(tenant_id, item.product_id)
            lines.append({
                'shopify_line_item_id': item.id,
                'product_id': product.id if product else None,
                'title': item.title,
                'quantity': item.quantity,
                'price': item.price,
            })
        return lines

    def sync_orders(self, tenant_id: str) -> int:
        logger.info(f"Syncing orders for tenant {tenant_id}...")
        orders = self.client.list_orders()

        synced_count = 0
        for order in orders:
            try:
                customer_id = self._resolve_customer_id(tenant_id, order)
            except CustomerUnresolved as e:
                logger.info(f"Skipping order {order.id}: {e.message}")
                continue

            _, created = self.store.upsert_order(
                tenant_id, map_order(order, customer_id), self._map_line_items(tenant_id, order)
            )
            logger.debug(f"{'Created' if created else 'Updated'} order {order.id}")
            synced_count += 1

        logger.info(f"Synced {synced_count} of {len(orders)} orders for tenant {tenant_id}")
        return synced_count

    def sync(self, tenant_id: str, data_type: str) -> int:
        """Run the single-entity sync named by data_type"""
        try:
            kind = SyncDataType(data_type)
        except ValueError:
            raise ValidationError("Invalid data type. Use: customers, products, or orders")

        handlers = {
            SyncDataType.CUSTOMERS: self.sync_customers,
            SyncDataType.PRODUCTS: self.sync_products,
            SyncDataType.ORDERS: self.sync_orders,
        }
        with tenant_sync_lock(tenant_id):
            return handlers[kind](tenant_id)

    def sync_all(self, tenant_id: str) -> SyncCounts:
        """Customers first so that orders can resolve them; products before orders for line items"""
        with tenant_sync_lock(tenant_id):
            customers = self.sync_customers(tenant_id)
            products = self.sync_products(tenant_id)
            orders = self.sync_orders(tenant_id)

        logger.info(
            f"Full sync for tenant {tenant_id} done: "
            f"{customers} customers, {products} products, {orders} orders"
        )
        return SyncCounts(customers=customers, products=products, orders=orders)
