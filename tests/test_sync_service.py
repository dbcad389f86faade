"""
Sync service tests - upsert semantics, ordering and failure behaviour
"""
import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from app.models.database import Customer, Product, Order, OrderLineItem, OrderStatus
from app.models.schemas import ShopifyOrder
from app.services.exceptions import SourceUnavailable, AuthenticationFailed, ValidationError
from app.services.sync_service import ShopifySyncService, derive_order_status, clean_html
from tests.factories import FakeShopifyClient, shopify_customer, shopify_product, shopify_order


def customer_rows(db_session, tenant_id):
    return db_session.query(Customer).filter(Customer.tenant_id == tenant_id).order_by(
        Customer.shopify_customer_id).all()


class TestSyncCustomers:

    def test_creates_customers(self, db_session, tenant):
        client = FakeShopifyClient(customers=[
            shopify_customer(1, spent="100.00", orders_count=3, email="a@example.com", phone="+15550001"),
            shopify_customer(2, spent="50.00"),
        ])

        count = ShopifySyncService(db_session, client).sync_customers(tenant.id)

        rows = customer_rows(db_session, tenant.id)
        assert count == 2
        assert [r.shopify_customer_id for r in rows] == ["1", "2"]
        assert rows[0].total_spent == Decimal("100.00")
        assert rows[0].orders_count == 3
        assert rows[0].email == "a@example.com"

    def test_blank_contact_fields_are_not_fabricated(self, db_session, tenant):
        client = FakeShopifyClient(customers=[shopify_customer(1, email="", phone=None)])

        ShopifySyncService(db_session, client).sync_customers(tenant.id)

        row = customer_rows(db_session, tenant.id)[0]
        assert row.email is None
        assert row.phone is None

    def test_second_run_is_idempotent(self, db_session, tenant):
        records = [shopify_customer(1, spent="100.00"), shopify_customer(2, spent="50.00")]
        service = ShopifySyncService(db_session, FakeShopifyClient(customers=records))

        service.sync_customers(tenant.id)
        first = [(r.id, r.first_name, r.email, r.total_spent, r.orders_count, r.updated_at)
                 for r in customer_rows(db_session, tenant.id)]
        count = service.sync_customers(tenant.id)
        second = [(r.id, r.first_name, r.email, r.total_spent, r.orders_count, r.updated_at)
                  for r in customer_rows(db_session, tenant.id)]

        assert count == 2
        assert first == second
        assert db_session.query(Customer).count() == 2

    def test_source_values_overwrite_local_snapshot(self, db_session, tenant):
        ShopifySyncService(db_session, FakeShopifyClient(
            customers=[shopify_customer(1, spent="100.00", orders_count=1)]
        )).sync_customers(tenant.id)
        ShopifySyncService(db_session, FakeShopifyClient(
            customers=[shopify_customer(1, spent="140.50", orders_count=2, first="Renamed")]
        )).sync_customers(tenant.id)

        row = customer_rows(db_session, tenant.id)[0]
        assert row.total_spent == Decimal("140.50")
        assert row.orders_count == 2
        assert row.first_name == "Renamed"

    def test_same_external_id_in_two_tenants(self, db_session, make_tenant):
        a, b = make_tenant(), make_tenant()
        records = [shopify_customer(1, spent="10.00")]

        ShopifySyncService(db_session, FakeShopifyClient(customers=records)).sync_customers(a.id)
        ShopifySyncService(db_session, FakeShopifyClient(customers=records)).sync_customers(b.id)

        assert len(customer_rows(db_session, a.id)) == 1
        assert len(customer_rows(db_session, b.id)) == 1
        assert customer_rows(db_session, a.id)[0].id != customer_rows(db_session, b.id)[0].id


class TestSyncProducts:

    def test_first_variant_sets_price_and_inventory(self, db_session, tenant):
        client = FakeShopifyClient(products=[shopify_product(
            10, title="Mug", body_html="<p>Big <b>mug</b></p>",
            variants=[{"id": 1, "price": "9.99", "inventory_quantity": 5},
                      {"id": 2, "price": "19.99", "inventory_quantity": 50}],
        )])

        count = ShopifySyncService(db_session, client).sync_products(tenant.id)

        product = db_session.query(Product).filter(Product.tenant_id == tenant.id).one()
        assert count == 1
        assert product.price == Decimal("9.99")
        assert product.inventory == 5
        assert product.description == "Big mug"
        assert product.image_url == "https://cdn.shopify.com/10.png"

    def test_product_without_variants_is_skipped(self, db_session, tenant):
        client = FakeShopifyClient(products=[shopify_product(10, variants=[]), shopify_product(11)])

        count = ShopifySyncService(db_session, client).sync_products(tenant.id)

        ids = [p.shopify_product_id for p in db_session.query(Product).all()]
        assert count == 1
        assert ids == ["11"]

    def test_missing_inventory_defaults_to_zero(self, db_session, tenant):
        client = FakeShopifyClient(products=[shopify_product(
            10, variants=[{"id": 1, "price": "5.00", "inventory_quantity": None}]
        )])

        ShopifySyncService(db_session, client).sync_products(tenant.id)

        assert db_session.query(Product).one().inventory == 0


class TestSyncOrders:

    def test_orders_before_customers_write_nothing(self, db_session, tenant):
        client = FakeShopifyClient(orders=[shopify_order(1, customer_ext_id=1), shopify_order(2, customer_ext_id=2)])

        count = ShopifySyncService(db_session, client).sync_orders(tenant.id)

        assert count == 0
        assert db_session.query(Order).count() == 0

    def test_unresolved_customer_is_skipped_not_errored(self, db_session, tenant):
        client = FakeShopifyClient(
            customers=[shopify_customer(1, spent="100.00")],
            orders=[shopify_order(1, customer_ext_id=1), shopify_order(2, customer_ext_id=99),
                    shopify_order(3, customer_ext_id=None)],
        )
        service = ShopifySyncService(db_session, client)
        service.sync_customers(tenant.id)

        count = service.sync_orders(tenant.id)

        orders = db_session.query(Order).all()
        assert count == 1
        assert [o.shopify_order_id for o in orders] == ["1"]
        assert orders[0].customer.shopify_customer_id == "1"

    def test_order_fields_are_mapped(self, db_session, tenant, add_customer, add_product):
        add_customer(tenant.id, 1)
        product = add_product(tenant.id, 10)
        created = datetime(2024, 3, 1, 15, 0, 0)
        client = FakeShopifyClient(orders=[shopify_order(
            5, customer_ext_id=1, total="42.10", created_at=created,
            line_items=[
                {"id": 501, "product_id": 10, "title": "Mug", "quantity": 2, "price": "9.99"},
                {"id": 502, "product_id": 999, "title": "Gone", "quantity": 1, "price": "22.12"},
            ],
        )])

        ShopifySyncService(db_session, client).sync_orders(tenant.id)

        order = db_session.query(Order).one()
        assert order.order_number == "#1005"
        assert order.total_amount == Decimal("42.10")
        assert order.status == OrderStatus.CONFIRMED
        assert order.order_date == created
        lines = {li.shopify_line_item_id: li for li in db_session.query(OrderLineItem).all()}
        assert lines["501"].product_id == product.id
        assert lines["501"].quantity == 2
        assert lines["502"].product_id is None

    def test_resync_updates_order_in_place(self, db_session, tenant, add_customer):
        add_customer(tenant.id, 1)
        ShopifySyncService(db_session, FakeShopifyClient(
            orders=[shopify_order(5, customer_ext_id=1, total="10.00")]
        )).sync_orders(tenant.id)
        ShopifySyncService(db_session, FakeShopifyClient(
            orders=[shopify_order(5, customer_ext_id=1, total="12.00", cancelled_at="2024-03-02T00:00:00Z")]
        )).sync_orders(tenant.id)

        order = db_session.query(Order).one()
        assert order.total_amount == Decimal("12.00")
        assert order.status == OrderStatus.CANCELLED

    def test_resync_drops_line_items_removed_at_source(self, db_session, tenant, add_customer):
        add_customer(tenant.id, 1)
        both = [{"id": 601, "title": "Kept", "quantity": 1, "price": "5.00"},
                {"id": 602, "title": "Removed", "quantity": 3, "price": "2.00"}]
        ShopifySyncService(db_session, FakeShopifyClient(
            orders=[shopify_order(6, customer_ext_id=1, line_items=both)]
        )).sync_orders(tenant.id)
        ShopifySyncService(db_session, FakeShopifyClient(
            orders=[shopify_order(6, customer_ext_id=1, line_items=[
                {"id": 601, "title": "Kept", "quantity": 2, "price": "5.00"},
                {"id": 603, "title": "Added", "quantity": 1, "price": "7.00"},
            ])]
        )).sync_orders(tenant.id)

        lines = {li.shopify_line_item_id: li for li in db_session.query(OrderLineItem).all()}
        assert sorted(lines) == ["601", "603"]
        assert lines["601"].quantity == 2

    def test_order_date_is_stored_as_utc(self, db_session, tenant, add_customer):
        add_customer(tenant.id, 1)
        record = shopify_order(5, customer_ext_id=1)
        record["created_at"] = "2024-03-01T22:30:00-05:00"

        ShopifySyncService(db_session, FakeShopifyClient(orders=[record])).sync_orders(tenant.id)

        assert db_session.query(Order).one().order_date == datetime(2024, 3, 2, 3, 30, 0)


class TestOrderStatus:

    def _order(self, **fields):
        return ShopifyOrder.model_validate({"id": 1, "created_at": "2024-01-01T00:00:00Z", **fields})

    def test_cancelled_wins(self):
        order = self._order(cancelled_at="2024-01-02T00:00:00Z", financial_status="paid",
                            fulfillment_status="fulfilled")
        assert derive_order_status(order) == OrderStatus.CANCELLED

    def test_delivered_from_shipment_status(self):
        order = self._order(fulfillment_status="fulfilled", fulfillments=[{"id": 1, "shipment_status": "delivered"}])
        assert derive_order_status(order) == OrderStatus.DELIVERED

    def test_shipped_from_fulfillment(self):
        assert derive_order_status(self._order(fulfillment_status="partial")) == OrderStatus.SHIPPED

    def test_confirmed_when_paid(self):
        assert derive_order_status(self._order(financial_status="paid")) == OrderStatus.CONFIRMED

    def test_pending_by_default(self):
        assert derive_order_status(self._order(financial_status="pending")) == OrderStatus.PENDING


class TestSyncAll:

    def test_scenario_counts(self, db_session, tenant):
        client = FakeShopifyClient(
            customers=[shopify_customer(1, spent="100.00"), shopify_customer(2, spent="50.00")],
            products=[shopify_product(10, price="9.99", inventory=5)],
            orders=[shopify_order(1, customer_ext_id=1, total="25.00"),
                    shopify_order(2, customer_ext_id=99, total="80.00")],
        )

        counts = ShopifySyncService(db_session, client).sync_all(tenant.id)

        assert (counts.customers, counts.products, counts.orders) == (2, 1, 1)
        assert client.calls == ["customers", "products", "orders"]

    def test_customer_failure_stops_before_orders(self, db_session, tenant):
        client = FakeShopifyClient(error=AuthenticationFailed("bad token"))

        with pytest.raises(AuthenticationFailed):
            ShopifySyncService(db_session, client).sync_all(tenant.id)

        assert client.calls == ["customers"]

    def test_failure_keeps_earlier_writes(self, db_session, tenant):
        service = ShopifySyncService(db_session, FakeShopifyClient(customers=[shopify_customer(1)]))
        service.sync_customers(tenant.id)

        service.client = FakeShopifyClient(error=SourceUnavailable("Shopify API error: 503", 503))
        with pytest.raises(SourceUnavailable):
            service.sync_products(tenant.id)

        assert db_session.query(Customer).count() == 1


class TestSyncByType:

    def test_dispatches_by_name(self, db_session, tenant):
        client = FakeShopifyClient(products=[shopify_product(10)])

        assert ShopifySyncService(db_session, client).sync(tenant.id, "products") == 1
        assert client.calls == ["products"]

    def test_invalid_type(self, db_session, tenant):
        client = FakeShopifyClient()

        with pytest.raises(ValidationError):
            ShopifySyncService(db_session, client).sync(tenant.id, "invoices")

        assert client.calls == []


def test_clean_html():
    assert clean_html("<p>Hello<br>world</p>") == "Hello world"
    assert clean_html(None) == ""
