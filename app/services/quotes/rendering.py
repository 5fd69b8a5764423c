"""
PDF quote renderer.

quote.xml.j2 (jinja2) produces the text blocks in reportlab paragraph markup; the
amounts table is laid out here. The PDF lands in PUBLIC_DIR and is served under
/public, so the returned reference is relative: "/public/COT_<number>.pdf".
"""

import asyncio
import logging
import re
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup, escape
from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.core.config import settings
from app.services.capabilities import RenderError
from app.services.quotes.assembler import QuoteRequest
from app.services.quotes.quote_number import quote_filename

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent.parent / "templates"
DEFAULT_TEMPLATE = "quote.xml.j2"
PUBLIC_PREFIX = "/public"

BLOCK_PATTERN = re.compile(r'<para style="(\w+)">(.*?)</para>|<amounts/>', re.DOTALL)

BRAND_COLOR = colors.HexColor("#0B3D91")


def _nl2br(value: str) -> Markup:
    return Markup("<br/>").join(escape(value).split("\n"))


def _build_environment(templates_dir: Path) -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=select_autoescape(["xml", "xml.j2"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["nl2br"] = _nl2br
    return env


def _styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    body = ParagraphStyle("body", parent=base["BodyText"], fontSize=10, leading=14)
    return {
        "company": ParagraphStyle("company", parent=base["Heading2"], textColor=BRAND_COLOR),
        "title": ParagraphStyle("title", parent=base["Title"], fontSize=16, spaceAfter=2),
        "muted": ParagraphStyle("muted", parent=body, textColor=colors.grey, alignment=TA_RIGHT),
        "box": ParagraphStyle(
            "box",
            parent=body,
            borderColor=colors.lightgrey,
            borderWidth=0.5,
            borderPadding=6,
            spaceBefore=8,
            spaceAfter=8,
        ),
        "small": ParagraphStyle("small", parent=body, fontSize=8, leading=10, textColor=colors.grey),
        "body": body,
    }


def _money(amount) -> str:
    return f"{amount:.2f}"


def _amounts_table(quote: QuoteRequest) -> Table:
    rate_percent = (quote.tax_rate * 100).normalize()
    rows = [
        ["Concept", "Amount"],
        ["Subtotal", _money(quote.subtotal)],
        [f"VAT ({rate_percent:f}%)", _money(quote.tax)],
        ["Total", _money(quote.total)],
    ]
    table = Table(rows, colWidths=[120 * mm, 50 * mm])
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), BRAND_COLOR),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
                ("ALIGN", (1, 0), (1, -1), "RIGHT"),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.lightgrey),
                ("TOPPADDING", (0, 0), (-1, -1), 4),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
            ]
        )
    )
    return table


class PdfQuoteRenderer:
    """DocumentRenderer that writes A4 PDFs into the public directory."""

    def __init__(
        self,
        output_dir: str | Path | None = None,
        templates_dir: str | Path | None = None,
        template_name: str = DEFAULT_TEMPLATE,
    ):
        self.output_dir = Path(output_dir or settings.public_dir)
        self.env = _build_environment(Path(templates_dir) if templates_dir else TEMPLATES_DIR)
        self.template_name = template_name

    def build_story(self, quote: QuoteRequest) -> list:
        """Flowables for one quote, in page order."""
        markup = self.env.get_template(self.template_name).render(quote=quote)
        styles = _styles()

        story: list = []
        for match in BLOCK_PATTERN.finditer(markup):
            style_name, text = match.group(1), match.group(2)
            if style_name is None:
                story.append(_amounts_table(quote))
                story.append(Spacer(1, 6 * mm))
                continue
            story.append(Paragraph(text.strip(), styles.get(style_name, styles["body"])))
        return story

    def _render_sync(self, quote: QuoteRequest) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / quote_filename(quote.number)

        doc = SimpleDocTemplate(
            str(path),
            pagesize=A4,
            leftMargin=20 * mm,
            rightMargin=20 * mm,
            topMargin=18 * mm,
            bottomMargin=18 * mm,
            title=f"Quote {quote.number}",
            author=quote.company_name,
        )
        doc.build(self.build_story(quote))
        return path

    async def render(self, quote: QuoteRequest) -> str:
        """
        Render `quote` to PDF off the event loop.

        Returns:
            Relative reference "/public/<filename>"

        Raises:
            RenderError: Template, layout or file system failure
        """
        try:
            path = await asyncio.to_thread(self._render_sync, quote)
        except Exception as e:
            # jinja2, reportlab and the file system each raise their own types
            logger.error(f"Failed to render quote {quote.number}: {type(e).__name__}: {e}")
            raise RenderError(f"Could not render quote {quote.number}") from e

        logger.info(f"Rendered quote {quote.number} to {path}")
        return f"{PUBLIC_PREFIX}/{path.name}"
