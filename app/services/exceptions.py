"""
Error taxonomy shared by the Shopify client, the sync service and the API layer
"""
from typing import Optional


class DashboardError(Exception):
    """Base class for errors the API layer converts into error payloads"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SourceUnavailable(DashboardError):
    """Shopify answered with a non-success status or could not be reached"""
    status_code = 502

    def __init__(self, message: str, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class AuthenticationFailed(DashboardError):
    """Shopify rejected the tenant's access token"""
    status_code = 401


class CustomerUnresolved(DashboardError):
    """An order references a customer with no local row; the order is skipped"""
    status_code = 409

    def __init__(self, tenant_id: str, shopify_customer_id: Optional[str]):
        super().__init__(
            f"Customer {shopify_customer_id} is not synced for tenant {tenant_id}"
        )
        self.tenant_id = tenant_id
        self.shopify_customer_id = shopify_customer_id


class TenantNotFound(DashboardError):
    status_code = 404

    def __init__(self, identifier: str):
        super().__init__(f"Tenant not found: {identifier}")
        self.identifier = identifier


class ValidationError(DashboardError):
    status_code = 400
