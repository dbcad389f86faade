import logging
import re
from typing import Optional, Dict, Any, List, Tuple

import requests

from app.config import settings
from app.models.schemas import ShopifyCustomer, ShopifyProduct, ShopifyOrder, ShopifyShop
from app.services.exceptions import SourceUnavailable, AuthenticationFailed

logger = logging.getLogger(__name__)

NEXT_LINK_RE = re.compile(r'<([^>]+)>;\s*rel="?next"?', re.IGNORECASE)


def normalize_shop_domain(shop_domain: str) -> str:
    """Reduce a store URL or handle to its bare myshopify host"""
    shop = (shop_domain or "").strip().lower()
    shop = re.sub(r"^https?://", "", shop).rstrip("/")
    if shop and "." not in shop:
        shop = f"{shop}.myshopify.com"
    return shop


def parse_next_link(link_header: Optional[str]) -> Optional[str]:
    """Return the rel=next URL of a Shopify Link header, if any"""
    if not link_header:
        return None
    for part in link_header.split(","):
        match = NEXT_LINK_RE.search(part.strip())
        if match:
            return match.group(1).strip()
    return None


class ShopifyClient:
    """
    Read-only Shopify Admin REST client bound to one tenant's store.

    Each list call drains cursor pagination before returning. Failures are
    terminal for the call: 401/403 raise AuthenticationFailed, anything else
    non-2xx (or a transport error) raises SourceUnavailable.
    """

    def __init__(self, shop_domain: str, access_token: str,
                 api_version: str = None, page_limit: int = None, timeout: int = None):
        if not shop_domain:
            raise AuthenticationFailed("Shopify store domain is not configured")
        if not access_token:
            raise AuthenticationFailed(f"No Shopify access token configured for {shop_domain}")

        self.shop_domain = normalize_shop_domain(shop_domain)
        self.api_version = api_version or settings.SHOPIFY_API_VERSION
        self.page_limit = page_limit or settings.SHOPIFY_PAGE_LIMIT
        self.timeout = timeout or settings.REQUEST_TIMEOUT
        self.base_url = f"https://{self.shop_domain}/admin/api/{self.api_version}"
        self.session = self._create_session(access_token)

    @classmethod
    def for_tenant(cls, tenant) -> "ShopifyClient":
        """Build a client from the tenant's stored domain and token"""
        return cls(tenant.shopify_domain, tenant.shopify_access_token)

    def _create_session(self, access_token: str) -> requests.Session:
        session = requests.Session()
        session.headers.update({
            "X-Shopify-Access-Token": access_token,
            "Accept": "application/json",
            "Content-Type": "application/json",
        })
        return session

    def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> Tuple[Dict[str, Any], Optional[str]]:
        """GET a JSON document; returns the body and the next-page URL"""
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Shopify request to {self.shop_domain} failed: {e}")
            raise SourceUnavailable(f"Could not reach Shopify store {self.shop_domain}: {e}") from e

        logger.info(f"Shopify API GET {url} -> {response.status_code}")

        if response.status_code in (401, 403):
            raise AuthenticationFailed(
                f"Shopify rejected the access token for {self.shop_domain} ({response.status_code})"
            )
        if not response.ok:
            logger.warning(f"Shopify API error body: {response.text[:200] if response.text else ''}")
            raise SourceUnavailable(
                f"Shopify API error: {response.status_code}", upstream_status=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SourceUnavailable(
                f"Shopify returned a non-JSON body for {url}", upstream_status=response.status_code
            ) from e

        return data, parse_next_link(response.headers.get("Link"))

    def _get_all(self, resource: str, extra_params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Fetch every page of a collection endpoint"""
        url = f"{self.base_url}/{resource}.json"
        params: Optional[Dict[str, Any]] = {"limit": self.page_limit, **(extra_params or {})}
        items: List[Dict[str, Any]] = []
        page = 0

        while url:
            page += 1
            data, next_url = self._get(url, params)
            batch = data.get(resource) or []
            items.extend(batch)
            logger.debug(f"Shopify {resource} page {page}: got {len(batch)} (total so far: {len(items)})")
            url = next_url
            # page_info URLs already carry their own query string
            params = None

        logger.info(f"Fetched {len(items)} {resource} from {self.shop_domain} across {page} page(s)")
        return items

    def list_customers(self) -> List[ShopifyCustomer]:
        return [ShopifyCustomer.model_validate(c) for c in self._get_all("customers")]

    def list_products(self) -> List[ShopifyProduct]:
        return [ShopifyProduct.model_validate(p) for p in self._get_all("products")]

    def list_orders(self) -> List[ShopifyOrder]:
        return [ShopifyOrder.model_validate(o) for o in self._get_all("orders", {"status": "any"})]

    def get_shop(self) -> ShopifyShop:
        data, _ = self._get(f"{self.base_url}/shop.json")
        return ShopifyShop.model_validate(data.get("shop") or {})

    def close(self):
        """Close the session"""
        if self.session:
            self.session.close()
