"""
PdfQuoteRenderer writes a real PDF into the public directory.
"""

from datetime import datetime
from decimal import Decimal

import pytest
from reportlab.platypus import Paragraph, Table

from app.services.capabilities import RenderError
from app.services.conversation.sessions import QuoteData, Session
from app.services.quotes.assembler import QuoteAssembler
from app.services.quotes.rendering import PdfQuoteRenderer
from tests.helpers.fakes import FakeChannel


def make_quote(description: str = "20 pallets <fragile> & boxed\nsecond line"):
    session = Session(
        user_id="51999888777",
        data=QuoteData(
            client_name="Jane Doe",
            client_tax_id="20123456789",
            client_legal_name="Acme SAC",
            description=description,
            weight_kg=1200.0,
            email="ventas@acme.com",
        ),
    )
    assembler = QuoteAssembler(None, FakeChannel(), public_base_url="https://bot.example.com")
    return assembler.assemble(session, Decimal("1500"), now=datetime(2025, 10, 15, 9, 30))


@pytest.mark.asyncio
async def test_render_writes_pdf(tmp_path):
    renderer = PdfQuoteRenderer(output_dir=tmp_path)

    ref = await renderer.render(make_quote())

    assert ref == "/public/COT_20251015-0930-8777.pdf"
    pdf = tmp_path / "COT_20251015-0930-8777.pdf"
    assert pdf.exists()
    assert pdf.read_bytes().startswith(b"%PDF")


def test_story_escapes_user_text_and_includes_amounts(tmp_path):
    renderer = PdfQuoteRenderer(output_dir=tmp_path)

    story = renderer.build_story(make_quote())

    paragraphs = [flowable for flowable in story if isinstance(flowable, Paragraph)]
    tables = [flowable for flowable in story if isinstance(flowable, Table)]
    assert len(tables) == 1
    text = " ".join(p.text for p in paragraphs)
    assert "QUOTE 20251015-0930-8777" in text
    assert "&lt;fragile&gt; &amp; boxed<br/>second line" in text
    assert "1200 kg" in text


@pytest.mark.asyncio
async def test_broken_template_raises_render_error(tmp_path):
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "quote.xml.j2").write_text("{{ quote.number ", encoding="utf-8")
    renderer = PdfQuoteRenderer(output_dir=tmp_path / "out", templates_dir=templates)

    with pytest.raises(RenderError):
        await renderer.render(make_quote())
