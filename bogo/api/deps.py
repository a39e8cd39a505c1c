# bogo/api/deps.py
from bogo.engine.ports import ProductLookup, UsageSink
from bogo.services.product_client import ProductClient
from bogo.services.usage_service import UsageService


def get_product_client() -> ProductLookup:
    # new client per request, its lookup cache lives as long as the request
    return ProductClient()


def get_usage_sink() -> UsageSink:
    return UsageService()
