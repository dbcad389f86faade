import enum
import threading
import uuid
from datetime import datetime

from sqlalchemy import (
    create_engine, Column, Integer, String, Text, Boolean, DECIMAL, DateTime, ForeignKey, Enum,
    UniqueConstraint, Index, BigInteger, text
)
from sqlalchemy.orm import sessionmaker, relationship, declarative_base

from ..config import settings


def _engine_options(url: str) -> dict:
    """Pool options for the configured dialect"""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }


# Create engine
engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_options(settings.DATABASE_URL)
)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for all models
Base = declarative_base()


def generate_uuid() -> str:
    return str(uuid.uuid4())


_insert_seq_last = {}
_insert_seq_lock = threading.Lock()


def insertion_sequence(table_name: str):
    """
    Column default handing out strictly increasing insert positions.

    Seeds from the highest stored value and remembers what it issued, so
    rows flushed together in one executemany still get distinct positions.
    """
    def next_position(context):
        stored = context.connection.execute(
            text(f"SELECT MAX(insert_seq) FROM {table_name}")
        ).scalar() or 0
        with _insert_seq_lock:
            position = max(stored, _insert_seq_last.get(table_name, 0)) + 1
            _insert_seq_last[table_name] = position
        return position

    return next_position


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    DRAFT = "draft"


class Tenant(Base):
    """Merchant store; every other row is scoped by its id"""
    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    shopify_domain = Column(String(255), unique=True, index=True)
    shopify_access_token = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    customers = relationship("Customer", back_populates="tenant", cascade="all, delete-orphan")
    products = relationship("Product", back_populates="tenant", cascade="all, delete-orphan")
    orders = relationship("Order", back_populates="tenant", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Tenant(id={self.id}, name='{self.name}', shopify_domain='{self.shopify_domain}')>"


class Customer(Base):
    """Customers mirrored from Shopify"""
    __tablename__ = "customers"
    __table_args__ = (
        UniqueConstraint("tenant_id", "shopify_customer_id", name="uq_customers_tenant_external"),
        Index("ix_customers_tenant_spent", "tenant_id", "total_spent"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    shopify_customer_id = Column(String(64), nullable=False)
    first_name = Column(String(255), default="")
    last_name = Column(String(255), default="")
    email = Column(String(255), nullable=True)
    phone = Column(String(64), nullable=True)
    total_spent = Column(DECIMAL(10, 2), default=0, nullable=False)
    orders_count = Column(Integer, default=0, nullable=False)
    insert_seq = Column(BigInteger, default=insertion_sequence("customers"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    tenant = relationship("Tenant", back_populates="customers")
    orders = relationship("Order", back_populates="customer")

    def __repr__(self):
        return f"<Customer(id={self.id}, shopify_customer_id='{self.shopify_customer_id}', total_spent={self.total_spent})>"


class Product(Base):
    """Products mirrored from Shopify, priced by their first variant"""
    __tablename__ = "products"
    __table_args__ = (
        UniqueConstraint("tenant_id", "shopify_product_id", name="uq_products_tenant_external"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    shopify_product_id = Column(String(64), nullable=False)
    title = Column(String(500), nullable=False)
    description = Column(Text)
    price = Column(DECIMAL(10, 2), default=0, nullable=False)
    inventory = Column(Integer, default=0, nullable=False)
    status = Column(String(50))
    image_url = Column(String(1000))
    insert_seq = Column(BigInteger, default=insertion_sequence("products"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    tenant = relationship("Tenant", back_populates="products")
    line_items = relationship("OrderLineItem", back_populates="product")

    def __repr__(self):
        return f"<Product(id={self.id}, title='{self.title}', price={self.price})>"


class Order(Base):
    """Orders mirrored from Shopify, linked to a local customer"""
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("tenant_id", "shopify_order_id", name="uq_orders_tenant_external"),
        Index("ix_orders_tenant_date", "tenant_id", "order_date"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False, index=True)
    shopify_order_id = Column(String(64), nullable=False)
    order_number = Column(String(64))
    total_amount = Column(DECIMAL(10, 2), nullable=False)
    status = Column(
        Enum(OrderStatus, name="order_status", values_callable=lambda e: [m.value for m in e]),
        default=OrderStatus.PENDING,
        nullable=False
    )
    order_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    tenant = relationship("Tenant", back_populates="orders")
    customer = relationship("Customer", back_populates="orders")
    line_items = relationship("OrderLineItem", back_populates="order", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Order(id={self.id}, order_number='{self.order_number}', total_amount={self.total_amount})>"


class OrderLineItem(Base):
    """Order lines; product is null when the product was never synced"""
    __tablename__ = "order_line_items"
    __table_args__ = (
        UniqueConstraint("order_id", "shopify_line_item_id", name="uq_line_items_order_external"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=True, index=True)
    shopify_line_item_id = Column(String(64), nullable=False)
    title = Column(String(500))
    quantity = Column(Integer, default=1, nullable=False)
    price = Column(DECIMAL(10, 2), default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    order = relationship("Order", back_populates="line_items")
    product = relationship("Product", back_populates="line_items")

    def __repr__(self):
        return f"<OrderLineItem(id={self.id}, order_id={self.order_id}, quantity={self.quantity})>"


# Database utility functions
def get_db():
    """Dependency to get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
