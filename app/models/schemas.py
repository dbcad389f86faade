from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional, Dict, Any
from datetime import datetime, date
from decimal import Decimal
from enum import Enum


class SyncDataType(str, Enum):
    CUSTOMERS = "customers"
    PRODUCTS = "products"
    ORDERS = "orders"


class CamelModel(BaseModel):
    """Serialises snake_case fields as camelCase for the dashboard front-end"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# Shopify Admin API records

class ShopifyRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    @field_validator("id", mode="before", check_fields=False)
    @classmethod
    def stringify_id(cls, v):
        return str(v) if v is not None else v


class ShopifyCustomer(ShopifyRecord):
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    total_spent: Decimal = Decimal("0")
    orders_count: int = 0

    @field_validator("total_spent", mode="before")
    @classmethod
    def default_spent(cls, v):
        return v if v not in (None, "") else Decimal("0")

    @field_validator("orders_count", mode="before")
    @classmethod
    def default_count(cls, v):
        return v if v is not None else 0


class ShopifyVariant(ShopifyRecord):
    id: Optional[str] = None
    price: Decimal = Decimal("0")
    inventory_quantity: Optional[int] = None

    @field_validator("price", mode="before")
    @classmethod
    def default_price(cls, v):
        return v if v not in (None, "") else Decimal("0")


class ShopifyImage(ShopifyRecord):
    id: Optional[str] = None
    src: Optional[str] = None


class ShopifyProduct(ShopifyRecord):
    id: str
    title: str = ""
    body_html: Optional[str] = None
    status: Optional[str] = None
    variants: List[ShopifyVariant] = []
    images: List[ShopifyImage] = []
    image: Optional[ShopifyImage] = None


class ShopifyCustomerRef(ShopifyRecord):
    id: Optional[str] = None


class ShopifyFulfillment(ShopifyRecord):
    id: Optional[str] = None
    status: Optional[str] = None
    shipment_status: Optional[str] = None


class ShopifyLineItem(ShopifyRecord):
    id: str
    product_id: Optional[str] = None
    title: Optional[str] = None
    quantity: int = 1
    price: Decimal = Decimal("0")

    @field_validator("product_id", mode="before")
    @classmethod
    def stringify_product_id(cls, v):
        return str(v) if v is not None else v


class ShopifyOrder(ShopifyRecord):
    id: str
    name: Optional[str] = None
    order_number: Optional[int] = None
    total_price: Decimal = Decimal("0")
    created_at: datetime
    cancelled_at: Optional[datetime] = None
    financial_status: Optional[str] = None
    fulfillment_status: Optional[str] = None
    customer: Optional[ShopifyCustomerRef] = None
    fulfillments: List[ShopifyFulfillment] = []
    line_items: List[ShopifyLineItem] = []

    @field_validator("total_price", mode="before")
    @classmethod
    def default_total(cls, v):
        return v if v not in (None, "") else Decimal("0")


class ShopifyShop(ShopifyRecord):
    id: Optional[str] = None
    name: str = ""
    myshopify_domain: Optional[str] = None
    domain: Optional[str] = None


# Tenants

class TenantCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    shopify_domain: str = Field(..., min_length=1, max_length=255)
    shopify_access_token: Optional[str] = None


class TenantOut(CamelModel):
    id: str
    name: str
    shopify_domain: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None


# Dashboard

class SummaryStats(CamelModel):
    total_customers: int = 0
    total_products: int = 0
    total_orders: int = 0
    total_revenue: float = 0.0
    average_order_value: float = 0.0
    total_inventory: int = 0
    average_product_price: float = 0.0


class CustomerOut(CamelModel):
    id: str
    shopify_customer_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    total_spent: float = 0.0
    orders_count: int = 0


class ProductOut(CamelModel):
    id: str
    shopify_product_id: str
    title: str
    description: Optional[str] = None
    price: float = 0.0
    inventory: int = 0
    status: Optional[str] = None
    image_url: Optional[str] = None


class CustomerName(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class RecentOrder(CamelModel):
    id: str
    shopify_order_id: str
    order_number: Optional[str] = None
    total_amount: float = 0.0
    status: str
    order_date: datetime
    customer: Optional[CustomerName] = None


class RevenuePoint(CamelModel):
    date: date
    revenue: float = 0.0
    orders: int = 0


class DashboardResponse(CamelModel):
    tenant_id: str
    summary: SummaryStats
    top_customers: List[CustomerOut] = []
    recent_orders: List[RecentOrder] = []
    revenue_by_date: List[RevenuePoint] = []
    products: List[ProductOut] = []
    customers: List[CustomerOut] = []
    generated_at: datetime = Field(default_factory=datetime.utcnow)


class CustomerListResponse(CamelModel):
    customers: List[CustomerOut] = []


class ProductListResponse(CamelModel):
    products: List[ProductOut] = []


# Sync

class SyncCounts(CamelModel):
    customers: int = 0
    products: int = 0
    orders: int = 0


class SyncAllResponse(CamelModel):
    success: bool = True
    message: str = "Shopify data synced successfully"
    synced: SyncCounts
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class SyncResponse(CamelModel):
    success: bool = True
    message: str
    data_type: SyncDataType
    count: int = 0
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class SyncFailureResponse(CamelModel):
    success: bool = False
    error: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class ShopifyHealthResponse(CamelModel):
    status: str
    shop: str
    domain: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class WebhookResponse(CamelModel):
    success: bool = True
    message: str
    topic: Optional[str] = None
    synced: Optional[int] = None


class ErrorResponse(BaseModel):
    error: str
    message: str
    status_code: int
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    details: Optional[Dict[str, Any]] = None
