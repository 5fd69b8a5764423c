"""
WhatsApp Cloud API channel with dry-run mode for development.

Implements the MessageChannel capability: text, image and document messages, and
inbound media download into the public directory.
"""

import asyncio
import logging
from pathlib import Path

import httpx

from app.core.config import settings
from app.services.capabilities import ChannelError
from app.services.integrations.http_client import (
    create_httpx_client,
    graph_api_url,
)

logger = logging.getLogger(__name__)

PLACEHOLDER_CREDENTIALS = {"", "test_token", "test_id"}
MEDIA_READ_TIMEOUT = 60.0


def _extension_for(mime_type: str | None) -> str:
    """'image/jpeg' -> 'jpeg', 'application/pdf; x=y' -> 'pdf', unknown -> 'bin'."""
    if not mime_type or "/" not in mime_type:
        return "bin"
    subtype = mime_type.split("/", 1)[1].split(";", 1)[0].strip()
    return subtype or "bin"


class WhatsAppChannel:
    """
    Send and download through the WhatsApp Cloud API.

    When dry_run is on, or credentials are placeholders, sends are only logged and
    downloads return a reference without fetching anything.
    """

    def __init__(
        self,
        access_token: str | None = None,
        phone_number_id: str | None = None,
        public_dir: str | Path | None = None,
        dry_run: bool | None = None,
    ):
        self.access_token = access_token if access_token is not None else settings.whatsapp_access_token
        self.phone_number_id = (
            phone_number_id if phone_number_id is not None else settings.whatsapp_phone_number_id
        )
        self.public_dir = Path(public_dir if public_dir is not None else settings.public_dir)
        requested_dry_run = settings.whatsapp_dry_run if dry_run is None else dry_run
        self.dry_run = requested_dry_run or self._has_placeholder_credentials()
        if self.dry_run and not requested_dry_run:
            logger.warning("WhatsApp credentials are placeholders - forcing dry-run mode")

    def _has_placeholder_credentials(self) -> bool:
        return (
            self.access_token in PLACEHOLDER_CREDENTIALS
            or self.phone_number_id in PLACEHOLDER_CREDENTIALS
        )

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}

    async def _post_message(self, to: str, message_type: str, content: dict) -> dict:
        payload = {
            "messaging_product": "whatsapp",
            "to": to,
            "type": message_type,
            message_type: content,
        }
        if self.dry_run:
            logger.info(f"[DRY-RUN] Would send WhatsApp {message_type} to {to}: {content}")
            return {"status": "dry_run", "message_id": None, "to": to, "payload": payload}

        url = graph_api_url(f"{self.phone_number_id}/messages")
        try:
            async with create_httpx_client() as client:
                response = await client.post(url, headers=self._headers(), json=payload)
                response.raise_for_status()
                result = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Failed to send WhatsApp {message_type} to {to}: {e}")
            raise ChannelError(f"WhatsApp {message_type} send failed: {e}") from e

        return {
            "status": "sent",
            "message_id": (result.get("messages") or [{}])[0].get("id"),
            "to": to,
        }

    async def send_text(self, user_id: str, body: str) -> dict:
        return await self._post_message(user_id, "text", {"body": body})

    async def send_image(self, user_id: str, link: str, caption: str = "") -> dict:
        return await self._post_message(user_id, "image", {"link": link, "caption": caption})

    async def send_document(self, user_id: str, link: str, filename: str, caption: str = "") -> dict:
        return await self._post_message(
            user_id,
            "document",
            {"link": link, "filename": filename, "caption": caption},
        )

    async def download_media(self, media_ref: str) -> str:
        """
        Download inbound media into the public directory.

        Args:
            media_ref: WhatsApp media id

        Returns:
            Public reference, e.g. "/public/packing_<media_id>.jpeg"
        """
        if self.dry_run:
            logger.info(f"[DRY-RUN] Would download WhatsApp media {media_ref}")
            return f"/public/packing_{media_ref}.bin"

        try:
            async with create_httpx_client(read_timeout=MEDIA_READ_TIMEOUT) as client:
                # First the metadata (temporary URL + mime type), then the bytes
                meta_response = await client.get(graph_api_url(media_ref), headers=self._headers())
                meta_response.raise_for_status()
                media_info = meta_response.json()

                media_url = media_info.get("url")
                if not media_url:
                    raise ChannelError(f"No URL in WhatsApp media response for {media_ref}")

                media_response = await client.get(media_url, headers=self._headers())
                media_response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to download WhatsApp media {media_ref}: {e}")
            raise ChannelError(f"WhatsApp media download failed: {e}") from e

        mime_type = media_info.get("mime_type") or media_response.headers.get("content-type")
        name = f"packing_{media_ref}.{_extension_for(mime_type)}"
        self.public_dir.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread((self.public_dir / name).write_bytes, media_response.content)

        logger.info(f"Saved WhatsApp media {media_ref} as {name} ({len(media_response.content)} bytes)")
        return f"/public/{name}"

