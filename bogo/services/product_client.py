# bogo/services/product_client.py
from decimal import Decimal
from typing import Dict

import requests

from bogo.domain.bogo import ProductInfo
from bogo.utils.retry import http_retry
from bogo.utils.settings import PRODUCT_SERVICE_URL, PRODUCT_SERVICE_TIMEOUT
from bogo.utils.logging import get_logger

logger = get_logger(__name__)


class ProductClient:
    """
    Product lookup backed by the product-service HTTP API.
    Answers are cached per client instance, i.e. per request.
    """

    def __init__(self, base_url: str | None = None, timeout: int | None = None):
        self.base_url = (base_url or PRODUCT_SERVICE_URL).rstrip("/")
        self.timeout = timeout or PRODUCT_SERVICE_TIMEOUT
        self._cache: Dict[int, ProductInfo | None] = {}

    @http_retry()
    def fetch_product(self, product_id: int) -> dict | None:
        url = f"{self.base_url}/products/{product_id}"
        logger.info(f"ProductClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()

    def resolve(self, product_ref: int) -> ProductInfo | None:
        if product_ref in self._cache:
            return self._cache[product_ref]

        pdata = self.fetch_product(product_ref)
        info = None
        if pdata is not None:
            info = ProductInfo(
                ref=pdata["id"],
                is_variant=pdata.get("type") == "variation",
                parent_ref=pdata.get("parent_id"),
                in_stock=bool(pdata.get("in_stock", True)),
                price=Decimal(str(pdata.get("price", "0"))),
                display_name=pdata.get("name", ""),
            )
        self._cache[product_ref] = info
        return info
