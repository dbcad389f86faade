"""
Builders for Shopify Admin API payloads and a fake per-tenant client
"""
from datetime import datetime

from app.models.schemas import ShopifyCustomer, ShopifyProduct, ShopifyOrder, ShopifyShop


class FakeShopifyClient:
    """Stands in for ShopifyClient; serves canned records or raises a given error"""

    def __init__(self, customers=None, products=None, orders=None, shop=None, error=None):
        self.customers = customers or []
        self.products = products or []
        self.orders = orders or []
        self.shop = shop or {"id": 1, "name": "Test Shop", "myshopify_domain": "test-shop.myshopify.com"}
        self.error = error
        self.calls = []

    def _serve(self, name, model, records):
        self.calls.append(name)
        if self.error:
            raise self.error
        return [model.model_validate(r) for r in records]

    def list_customers(self):
        return self._serve("customers", ShopifyCustomer, self.customers)

    def list_products(self):
        return self._serve("products", ShopifyProduct, self.products)

    def list_orders(self):
        return self._serve("orders", ShopifyOrder, self.orders)

    def get_shop(self):
        self.calls.append("shop")
        if self.error:
            raise self.error
        return ShopifyShop.model_validate(self.shop)


def shopify_customer(ext_id, spent="0.00", orders_count=0, first="First", last="Last",
                     email=None, phone=None):
    return {
        "id": ext_id,
        "first_name": first,
        "last_name": last,
        "email": email,
        "phone": phone,
        "total_spent": spent,
        "orders_count": orders_count,
    }


def shopify_product(ext_id, title="Product", price="9.99", inventory=5, body_html="<p>Nice</p>",
                    variants=None):
    if variants is None:
        variants = [{"id": ext_id * 100, "price": price, "inventory_quantity": inventory}]
    return {
        "id": ext_id,
        "title": title,
        "body_html": body_html,
        "status": "active",
        "variants": variants,
        "images": [{"id": 1, "src": f"https://cdn.shopify.com/{ext_id}.png"}],
    }


def shopify_order(ext_id, customer_ext_id, total="25.00", created_at=None, **extra):
    order = {
        "id": ext_id,
        "name": f"#{1000 + ext_id}",
        "order_number": 1000 + ext_id,
        "total_price": total,
        "created_at": (created_at or datetime.utcnow()).isoformat() + "Z",
        "financial_status": "paid",
        "fulfillment_status": None,
        "customer": {"id": customer_ext_id} if customer_ext_id is not None else None,
        "line_items": [],
    }
    order.update(extra)
    return order
