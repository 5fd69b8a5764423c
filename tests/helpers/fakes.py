"""
In-memory fakes for the bot's capabilities.

- FakeChannel: records every outbound message; fail_on makes chosen sends raise ChannelError
- FakeRenderer: returns /public/COT_<number>.pdf without writing anything
- FakeLeadStore: collects appended LeadRecords; fail makes append raise
- FakeRegistry: canned RegistryResult, or an exception to raise
"""

from app.services.capabilities import ChannelError, LeadRecord, RegistryResult, RenderError
from app.services.quotes.quote_number import quote_filename


class FakeChannel:
    def __init__(self, fail_on: set[str] | None = None):
        self.sent: list[dict] = []
        self.downloads: list[str] = []
        self.fail_on = fail_on or set()

    def _record(self, kind: str, user_id: str, **fields) -> dict:
        if kind in self.fail_on:
            raise ChannelError(f"fake {kind} failure")
        self.sent.append({"kind": kind, "to": user_id, **fields})
        return {"status": "sent", "message_id": f"wamid.fake{len(self.sent)}", "to": user_id}

    async def send_text(self, user_id: str, body: str) -> dict:
        return self._record("text", user_id, body=body)

    async def send_image(self, user_id: str, link: str, caption: str = "") -> dict:
        return self._record("image", user_id, link=link, caption=caption)

    async def send_document(self, user_id: str, link: str, filename: str, caption: str = "") -> dict:
        return self._record("document", user_id, link=link, filename=filename, caption=caption)

    async def download_media(self, media_ref: str) -> str:
        if "download" in self.fail_on:
            raise ChannelError("fake download failure")
        self.downloads.append(media_ref)
        return f"/public/packing_{media_ref}.jpeg"

    def of_kind(self, kind: str) -> list[dict]:
        return [m for m in self.sent if m["kind"] == kind]

    @property
    def texts(self) -> list[str]:
        return [m["body"] for m in self.of_kind("text")]

    @property
    def documents(self) -> list[dict]:
        return self.of_kind("document")

    def clear(self) -> None:
        self.sent.clear()


class FakeRenderer:
    def __init__(self, fail: bool = False):
        self.quotes = []
        self.fail = fail

    async def render(self, quote) -> str:
        if self.fail:
            raise RenderError("fake render failure")
        self.quotes.append(quote)
        return f"/public/{quote_filename(quote.number)}"


class FakeLeadStore:
    def __init__(self, fail: bool = False):
        self.records: list[LeadRecord] = []
        self.fail = fail

    async def append(self, record: LeadRecord) -> None:
        if self.fail:
            raise RuntimeError("fake lead store failure")
        self.records.append(record)


class FakeRegistry:
    def __init__(self, result: RegistryResult | None = None, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls: list[str] = []

    async def lookup(self, tax_id: str) -> RegistryResult | None:
        self.calls.append(tax_id)
        if self.error is not None:
            raise self.error
        return self.result
