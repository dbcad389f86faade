import logging
from decimal import Decimal
from typing import List, Optional, Dict, Any

from sqlalchemy import desc, asc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.database import Tenant, Customer, Product, Order, OrderLineItem
from app.services.exceptions import TenantNotFound, ValidationError
from app.services.shopify_client import normalize_shop_domain

logger = logging.getLogger(__name__)


class DatabaseService:
    """
    Tenant-scoped access to the synced entities.

    Every read and write takes the tenant id and filters on it. Synced rows
    are written only through the upsert_* methods, keyed by
    (tenant_id, shopify id); each upsert commits on its own.
    """

    def __init__(self, db: Session):
        self.db = db

    # Tenants

    def get_tenant(self, tenant_id: str, active_only: bool = True) -> Tenant:
        query = self.db.query(Tenant).filter(Tenant.id == tenant_id)
        if active_only:
            query = query.filter(Tenant.is_active.is_(True))
        tenant = query.first()
        if not tenant:
            raise TenantNotFound(tenant_id)
        return tenant

    def get_tenant_by_domain(self, shop_domain: str) -> Tenant:
        domain = normalize_shop_domain(shop_domain)
        tenant = self.db.query(Tenant).filter(
            Tenant.shopify_domain == domain,
            Tenant.is_active.is_(True)
        ).first()
        if not tenant:
            raise TenantNotFound(shop_domain or "<missing domain>")
        return tenant

    def list_tenants(self) -> List[Tenant]:
        return self.db.query(Tenant).filter(Tenant.is_active.is_(True)).order_by(asc(Tenant.created_at)).all()

    def create_tenant(self, name: str, shopify_domain: str, access_token: Optional[str] = None) -> Tenant:
        tenant = Tenant(
            name=name.strip(),
            shopify_domain=normalize_shop_domain(shopify_domain),
            shopify_access_token=access_token,
            is_active=True
        )
        self.db.add(tenant)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ValidationError(f"A tenant for {tenant.shopify_domain} already exists") from e
        self.db.refresh(tenant)
        logger.info(f"Created tenant {tenant.id} for {tenant.shopify_domain}")
        return tenant

    def deactivate_tenant(self, tenant_id: str) -> Tenant:
        tenant = self.get_tenant(tenant_id)
        tenant.is_active = False
        self.db.commit()
        logger.info(f"Deactivated tenant {tenant_id}")
        return tenant

    def delete_tenant(self, tenant_id: str) -> None:
        """Remove a tenant and every row scoped to it"""
        tenant = self.get_tenant(tenant_id, active_only=False)
        try:
            order_ids = self.db.query(Order.id).filter(Order.tenant_id == tenant_id)
            self.db.query(OrderLineItem).filter(
                OrderLineItem.order_id.in_(order_ids.scalar_subquery())
            ).delete(synchronize_session=False)
            self.db.query(Order).filter(Order.tenant_id == tenant_id).delete(synchronize_session=False)
            self.db.query(Product).filter(Product.tenant_id == tenant_id).delete(synchronize_session=False)
            self.db.query(Customer).filter(Customer.tenant_id == tenant_id).delete(synchronize_session=False)
            self.db.delete(tenant)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting tenant {tenant_id}: {e}")
            raise
        logger.info(f"Deleted tenant {tenant_id} and its data")

    # Lookups by natural key

    def get_customer_by_shopify_id(self, tenant_id: str, shopify_customer_id: Optional[str]) -> Optional[Customer]:
        if not shopify_customer_id:
            return None
        return self.db.query(Customer).filter(
            Customer.tenant_id == tenant_id,
            Customer.shopify_customer_id == str(shopify_customer_id)
        ).first()

    def get_product_by_shopify_id(self, tenant_id: str, shopify_product_id: Optional[str]) -> Optional[Product]:
        if not shopify_product_id:
            return None
        return self.db.query(Product).filter(
            Product.tenant_id == tenant_id,
            Product.shopify_product_id == str(shopify_product_id)
        ).first()

    def get_order_by_shopify_id(self, tenant_id: str, shopify_order_id: str) -> Optional[Order]:
        return self.db.query(Order).filter(
            Order.tenant_id == tenant_id,
            Order.shopify_order_id == str(shopify_order_id)
        ).first()

    # Upserts

    def _upsert(self, model, lookup: Optional[Any], tenant_id: str, fields: Dict[str, Any]):
        """Overwrite `fields` on the existing row, or insert a new one"""
        created = lookup is None
        try:
            if created:
                row = model(tenant_id=tenant_id, **fields)
                self.db.add(row)
            else:
                row = lookup
                for key, value in fields.items():
                    setattr(row, key, value)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error upserting {model.__name__} for tenant {tenant_id}: {e}")
            raise
        return row, created

    def upsert_customer(self, tenant_id: str, fields: Dict[str, Any]):
        existing = self.get_customer_by_shopify_id(tenant_id, fields["shopify_customer_id"])
        return self._upsert(Customer, existing, tenant_id, fields)

    def upsert_product(self, tenant_id: str, fields: Dict[str, Any]):
        existing = self.get_product_by_shopify_id(tenant_id, fields["shopify_product_id"])
        return self._upsert(Product, existing, tenant_id, fields)

    def upsert_order(self, tenant_id: str, fields: Dict[str, Any], line_items: List[Dict[str, Any]] = None):
        """Upsert an order together with its line items in one commit"""
        existing = self.get_order_by_shopify_id(tenant_id, fields["shopify_order_id"])
        created = existing is None
        try:
            if created:
                order = Order(tenant_id=tenant_id, **fields)
                self.db.add(order)
                self.db.flush()
            else:
                order = existing
                for key, value in fields.items():
                    setattr(order, key, value)

            line_items = line_items or []
            incoming = {item["shopify_line_item_id"] for item in line_items}
            current = {}
            for li in list(order.line_items):
                if li.shopify_line_item_id in incoming:
                    current[li.shopify_line_item_id] = li
                else:
                    # gone from the source order; delete-orphan removes the row
                    order.line_items.remove(li)

            for item in line_items:
                line = current.get(item["shopify_line_item_id"])
                if line is None:
                    order.line_items.append(OrderLineItem(**item))
                else:
                    for key, value in item.items():
                        setattr(line, key, value)

            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error upserting order {fields.get('shopify_order_id')} for tenant {tenant_id}: {e}")
            raise
        return order, created

    # Scans

    def list_customers(self, tenant_id: str, limit: Optional[int] = None) -> List[Customer]:
        query = self.db.query(Customer).filter(Customer.tenant_id == tenant_id).order_by(
            desc(Customer.total_spent), asc(Customer.insert_seq)
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def list_products(self, tenant_id: str, limit: Optional[int] = None) -> List[Product]:
        query = self.db.query(Product).filter(Product.tenant_id == tenant_id).order_by(
            desc(Product.price), asc(Product.insert_seq)
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    # Helper methods to convert ORM objects to dictionaries
    @staticmethod
    def _money(value: Optional[Decimal]) -> float:
        return round(float(value), 2) if value is not None else 0.0

    def customer_to_dict(self, customer: Customer) -> Dict[str, Any]:
        return {
            'id': customer.id,
            'shopify_customer_id': customer.shopify_customer_id,
            'first_name': customer.first_name,
            'last_name': customer.last_name,
            'email': customer.email,
            'phone': customer.phone,
            'total_spent': self._money(customer.total_spent),
            'orders_count': customer.orders_count or 0
        }

    def product_to_dict(self, product: Product) -> Dict[str, Any]:
        return {
            'id': product.id,
            'shopify_product_id': product.shopify_product_id,
            'title': product.title,
            'description': product.description,
            'price': self._money(product.price),
            'inventory': product.inventory or 0,
            'status': product.status,
            'image_url': product.image_url
        }
