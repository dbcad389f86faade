import logging
from datetime import datetime, date, time, timedelta
from decimal import Decimal
from typing import List, Optional, Dict, Any

from sqlalchemy import func, desc, and_
from sqlalchemy.orm import Session

from app.config import settings
from app.models.database import Customer, Product, Order, OrderStatus
from app.models.schemas import SummaryStats
from app.services.database_service import DatabaseService

logger = logging.getLogger(__name__)


def _to_float(value: Optional[Any]) -> float:
    if value is None:
        return 0.0
    return round(float(Decimal(str(value))), 2)


def _to_date(value: Any) -> date:
    # SQLite hands back DATE() results as ISO strings
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    if isinstance(value, datetime):
        return value.date()
    return value


class DashboardAnalytics:
    """Read-only dashboard aggregates; every query is filtered by tenant_id"""

    def __init__(self, db: Session):
        self.db = db
        self.store = DatabaseService(db)

    def _order_filters(self, tenant_id: str, exclude_drafts: bool) -> list:
        filters = [Order.tenant_id == tenant_id]
        if exclude_drafts:
            filters.append(Order.status != OrderStatus.DRAFT)
        return filters

    def summary(self, tenant_id: str, exclude_drafts: bool = True) -> SummaryStats:
        total_customers = self.db.query(func.count(Customer.id)).filter(
            Customer.tenant_id == tenant_id
        ).scalar()

        product_stats = self.db.query(
            func.count(Product.id),
            func.sum(Product.inventory),
            func.avg(Product.price),
        ).filter(Product.tenant_id == tenant_id).one()

        order_stats = self.db.query(
            func.count(Order.id),
            func.sum(Order.total_amount),
            func.avg(Order.total_amount),
        ).filter(*self._order_filters(tenant_id, exclude_drafts)).one()

        return SummaryStats(
            total_customers=total_customers or 0,
            total_products=product_stats[0] or 0,
            total_orders=order_stats[0] or 0,
            total_revenue=_to_float(order_stats[1]),
            average_order_value=_to_float(order_stats[2]),
            total_inventory=int(product_stats[1] or 0),
            average_product_price=_to_float(product_stats[2]),
        )

    def top_customers(self, tenant_id: str, n: int = None) -> List[Dict[str, Any]]:
        """Customers by total_spent descending; equal spends keep insertion order"""
        n = settings.TOP_CUSTOMERS_LIMIT if n is None else n
        if n <= 0:
            return []
        return [self.store.customer_to_dict(c) for c in self.store.list_customers(tenant_id, limit=n)]

    def recent_orders(self, tenant_id: str, n: int = None) -> List[Dict[str, Any]]:
        n = settings.RECENT_ORDERS_LIMIT if n is None else n
        if n <= 0:
            return []

        rows = self.db.query(Order, Customer).outerjoin(
            Customer,
            and_(Customer.id == Order.customer_id, Customer.tenant_id == Order.tenant_id)
        ).filter(
            Order.tenant_id == tenant_id
        ).order_by(
            desc(Order.order_date), desc(Order.created_at)
        ).limit(n).all()

        result = []
        for order, customer in rows:
            result.append({
                'id': order.id,
                'shopify_order_id': order.shopify_order_id,
                'order_number': order.order_number,
                'total_amount': _to_float(order.total_amount),
                'status': order.status.value if isinstance(order.status, OrderStatus) else order.status,
                'order_date': order.order_date,
                'customer': {
                    'first_name': customer.first_name,
                    'last_name': customer.last_name
                } if customer else None
            })
        return result

    def revenue_by_date(self, tenant_id: str, window_days: int = None,
                        exclude_drafts: bool = True, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """
        Daily revenue over the trailing window.

        The window covers `window_days` calendar days ending today (UTC);
        orders dated after today are not counted.
        Days without orders are omitted; results are ascending by date.
        """
        window_days = settings.REVENUE_WINDOW_DAYS if window_days is None else window_days
        if window_days <= 0:
            return []

        today = (now or datetime.utcnow()).date()
        start = datetime.combine(today - timedelta(days=window_days - 1), time.min)
        end = datetime.combine(today + timedelta(days=1), time.min)

        day = func.date(Order.order_date)
        rows = self.db.query(
            day.label("day"),
            func.sum(Order.total_amount).label("revenue"),
            func.count(Order.id).label("orders"),
        ).filter(
            *self._order_filters(tenant_id, exclude_drafts),
            Order.order_date >= start,
            Order.order_date < end
        ).group_by(day).order_by(day).all()

        return [
            {'date': _to_date(row.day), 'revenue': _to_float(row.revenue), 'orders': row.orders}
            for row in rows
            if row.orders
        ]

    def list_customers(self, tenant_id: str) -> List[Dict[str, Any]]:
        return [self.store.customer_to_dict(c) for c in self.store.list_customers(tenant_id)]

    def list_products(self, tenant_id: str) -> List[Dict[str, Any]]:
        return [self.store.product_to_dict(p) for p in self.store.list_products(tenant_id)]
