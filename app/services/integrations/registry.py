"""
Tax registry lookup - enriches a RUC (11-digit tax id) with the legal name and address.

Optional: without REGISTRY_API_URL every lookup returns None. Any failure (timeout,
HTTP error, bad JSON) is logged and also returns None, so the intake flow keeps the
legal name the user typed.
"""

import logging

import httpx

from app.core.config import settings
from app.services.capabilities import RegistryResult
from app.services.integrations.http_client import create_httpx_client

logger = logging.getLogger(__name__)

# Registry responses seen in the wild use Spanish or English keys
LEGAL_NAME_KEYS = ("razonSocial", "legalName", "legal_name", "nombre")
ADDRESS_KEYS = ("direccion", "address")


def _first_present(data: dict, keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


class HttpRegistryLookup:
    """GET <api_url>?ruc=<tax_id> -> {"razonSocial": ..., "direccion": ...}"""

    def __init__(self, api_url: str | None = None):
        self.api_url = api_url if api_url is not None else settings.registry_api_url

    async def lookup(self, tax_id: str) -> RegistryResult | None:
        if not self.api_url:
            return None

        try:
            async with create_httpx_client() as client:
                response = await client.get(self.api_url, params={"ruc": tax_id})
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Registry lookup failed for RUC {tax_id}: {type(e).__name__}: {e}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"Registry lookup for RUC {tax_id} returned unexpected payload")
            return None

        legal_name = _first_present(data, LEGAL_NAME_KEYS)
        address = _first_present(data, ADDRESS_KEYS)
        if legal_name is None and address is None:
            return None
        return RegistryResult(legal_name=legal_name, address=address)
