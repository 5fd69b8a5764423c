"""
HTTP client helpers for outbound calls (WhatsApp Graph API, tax registry).

Every client gets explicit timeouts so a slow upstream can't hang a webhook handler.
Media downloads get a longer read timeout than JSON calls.
"""

import httpx

from app.core.config import settings

GRAPH_API_BASE = "https://graph.facebook.com"


def get_httpx_timeout(read: float = 10.0) -> httpx.Timeout:
    return httpx.Timeout(
        10.0,  # Default for anything not listed
        connect=5.0,
        read=read,
        write=5.0,
        pool=5.0,
    )


def create_httpx_client(read_timeout: float = 10.0) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=get_httpx_timeout(read=read_timeout))


def graph_api_url(path: str) -> str:
    """Absolute Graph API URL for `path` (e.g. "<phone_number_id>/messages")."""
    return f"{GRAPH_API_BASE}/{settings.whatsapp_graph_version}/{path.lstrip('/')}"

