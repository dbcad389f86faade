"""
Shared fixtures: in-memory SQLite database, tenant factory, a fake Shopify
client per tenant and a FastAPI TestClient wired to both.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from datetime import datetime
from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.dependencies import get_client_factory
from app.main import app
from app.models.database import Base, Tenant, Customer, Product, Order, OrderStatus, get_db
from tests.factories import FakeShopifyClient


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_tenant(db_session):
    counter = {"n": 0}

    def _make(name=None, domain=None, token="shpat_test", is_active=True):
        counter["n"] += 1
        n = counter["n"]
        tenant = Tenant(
            name=name or f"Tenant {n}",
            shopify_domain=domain or f"tenant-{n}.myshopify.com",
            shopify_access_token=token,
            is_active=is_active,
        )
        db_session.add(tenant)
        db_session.commit()
        return tenant

    return _make


@pytest.fixture
def tenant(make_tenant):
    return make_tenant(name="Demo Store", domain="demo-store.myshopify.com")


@pytest.fixture
def add_customer(db_session):
    def _add(tenant_id, ext_id, spent="0.00", created_at=None, first="First", last="Last"):
        customer = Customer(
            tenant_id=tenant_id,
            shopify_customer_id=str(ext_id),
            first_name=first,
            last_name=last,
            total_spent=Decimal(spent),
            orders_count=0,
            created_at=created_at or datetime.utcnow(),
        )
        db_session.add(customer)
        db_session.commit()
        return customer

    return _add


@pytest.fixture
def add_product(db_session):
    def _add(tenant_id, ext_id, price="9.99", inventory=5, title="Product"):
        product = Product(
            tenant_id=tenant_id,
            shopify_product_id=str(ext_id),
            title=title,
            price=Decimal(price),
            inventory=inventory,
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _add


@pytest.fixture
def add_order(db_session):
    def _add(tenant_id, customer, ext_id, total="10.00", order_date=None, status=OrderStatus.CONFIRMED):
        order = Order(
            tenant_id=tenant_id,
            customer_id=customer.id,
            shopify_order_id=str(ext_id),
            order_number=f"#{ext_id}",
            total_amount=Decimal(total),
            status=status,
            order_date=order_date or datetime.utcnow(),
        )
        db_session.add(order)
        db_session.commit()
        return order

    return _add


@pytest.fixture
def fake_clients():
    """Maps tenant id to the FakeShopifyClient the API should use for it"""
    return {}


@pytest.fixture
def client(db_session, fake_clients):
    def override_get_db():
        yield db_session

    def override_client_factory():
        return lambda tenant: fake_clients.setdefault(tenant.id, FakeShopifyClient())

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_client_factory] = override_client_factory
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
