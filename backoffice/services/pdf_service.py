"""
Quote and Invoice PDF Generator
Renders quotes and invoices with reportlab and bundles batches into a zip
"""

import asyncio
import html
import io
import logging
import zipfile
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..config import (
    BUSINESS_ADDRESS,
    BUSINESS_EMAIL,
    BUSINESS_NAME,
    BUSINESS_PHONE,
    BUSINESS_TAX_ID,
    TAX_RATE,
)

logger = logging.getLogger(__name__)

# Documents rendered at the same time during a batch export
EXPORT_CONCURRENCY = 3

TITLES = {"quote": "PRESUPUESTO", "invoice": "FACTURA"}


@dataclass
class PdfLine:
    concept: str
    quantity: Decimal
    unit_price: Decimal
    line_total: Decimal


@dataclass
class PdfDocument:
    """Detached copy of a quote or invoice, safe to render off the request thread"""

    kind: str  # quote, invoice
    number: str
    issue_date: date
    secondary_date: Optional[date]  # validity for quotes, due date for invoices
    status: str
    client_name: str
    client_tax_id: Optional[str]
    client_address: Optional[str]
    client_email: Optional[str]
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    notes: Optional[str] = None
    lines: list[PdfLine] = field(default_factory=list)

    @property
    def filename(self) -> str:
        prefix = "presupuesto" if self.kind == "quote" else "factura"
        return f"{prefix}-{self.number}.pdf"


def snapshot_document(document, kind: str) -> PdfDocument:
    """Copy the ORM row (and its client and lines) into a PdfDocument"""
    client = document.client
    address_parts = [client.address, client.postal_code, client.city] if client else []
    return PdfDocument(
        kind=kind,
        number=document.number,
        issue_date=document.issue_date,
        secondary_date=document.valid_until if kind == "quote" else document.due_date,
        status=document.status,
        client_name=client.name if client else "",
        client_tax_id=client.tax_id if client else None,
        client_address=", ".join(p for p in address_parts if p) or None,
        client_email=client.email if client else None,
        subtotal=document.subtotal,
        tax_amount=document.tax_amount,
        total=document.total,
        notes=document.notes,
        lines=[
            PdfLine(
                concept=line.concept,
                quantity=line.quantity,
                unit_price=line.unit_price,
                line_total=line.line_total,
            )
            for line in document.lines
        ],
    )


def format_euros(value: Decimal) -> str:
    """1234.5 -> 1.234,50 €"""
    formatted = f"{Decimal(value):,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    return f"{formatted} €"


def format_date(value: Optional[date]) -> str:
    return value.strftime("%d/%m/%Y") if value else "-"


class DocumentPDFGenerator:
    """Generate quote and invoice PDFs"""

    def __init__(self, document: PdfDocument):
        self.document = document
        self.page_width, self.page_height = A4
        self.margin = 18 * mm
        self.content_width = self.page_width - (2 * self.margin)

        self.brand_color = colors.HexColor("#0ea5e9")
        self.dark_gray = colors.HexColor("#1e293b")
        self.light_gray = colors.HexColor("#f1f5f9")

    def _styles(self) -> dict:
        styles = getSampleStyleSheet()
        return {
            "title": ParagraphStyle(
                "DocTitle",
                parent=styles["Heading1"],
                fontSize=20,
                textColor=self.brand_color,
                spaceAfter=4,
            ),
            "normal": ParagraphStyle("DocNormal", parent=styles["Normal"], fontSize=9, leading=12),
            "bold": ParagraphStyle("DocBold", parent=styles["Normal"], fontSize=9, leading=12, fontName="Helvetica-Bold"),
            "small": ParagraphStyle("DocSmall", parent=styles["Normal"], fontSize=8, textColor=colors.gray),
        }

    @staticmethod
    def _text(value: Optional[str]) -> str:
        # Paragraph parses markup
        return html.escape(value or "").replace("\n", "<br/>")

    def _header(self, styles: dict) -> list:
        doc = self.document
        issuer = [BUSINESS_NAME, BUSINESS_TAX_ID, BUSINESS_ADDRESS, BUSINESS_EMAIL, BUSINESS_PHONE]
        client = [doc.client_name, doc.client_tax_id, doc.client_address, doc.client_email]
        secondary_label = "Válido hasta" if doc.kind == "quote" else "Vencimiento"

        meta = Table(
            [
                [Paragraph(f"{TITLES[doc.kind]} {self._text(doc.number)}", styles["title"]), ""],
                [Paragraph("<br/>".join(self._text(v) for v in issuer if v), styles["normal"]),
                 Paragraph("<br/>".join(self._text(v) for v in client if v), styles["bold"])],
                [Paragraph(f"Fecha: {format_date(doc.issue_date)}", styles["normal"]),
                 Paragraph(f"{secondary_label}: {format_date(doc.secondary_date)}", styles["normal"])],
            ],
            colWidths=[self.content_width / 2, self.content_width / 2],
        )
        meta.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP"), ("SPAN", (0, 0), (1, 0))]))
        return [meta, Spacer(1, 8 * mm)]

    def _lines_table(self, styles: dict) -> Table:
        rows = [["Concepto", "Cantidad", "Precio", "Importe"]]
        for line in self.document.lines:
            rows.append(
                [
                    Paragraph(self._text(line.concept), styles["normal"]),
                    f"{Decimal(line.quantity).normalize():f}",
                    format_euros(line.unit_price),
                    format_euros(line.line_total),
                ]
            )
        widths = [self.content_width * 0.52, self.content_width * 0.14, self.content_width * 0.17, self.content_width * 0.17]
        table = Table(rows, colWidths=widths, repeatRows=1)
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), self.brand_color),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 9),
                    ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
                    ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, self.light_gray]),
                    ("LINEBELOW", (0, -1), (-1, -1), 0.5, self.dark_gray),
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ]
            )
        )
        return table

    def _totals_table(self) -> Table:
        doc = self.document
        tax_percent = f"{(TAX_RATE * 100).normalize():f}"
        rows = [
            ["Base imponible", format_euros(doc.subtotal)],
            [f"IVA ({tax_percent}%)", format_euros(doc.tax_amount)],
            ["TOTAL", format_euros(doc.total)],
        ]
        table = Table(rows, colWidths=[self.content_width * 0.25, self.content_width * 0.2], hAlign="RIGHT")
        table.setStyle(
            TableStyle(
                [
                    ("ALIGN", (0, 0), (-1, -1), "RIGHT"),
                    ("FONTSIZE", (0, 0), (-1, -1), 9),
                    ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
                    ("LINEABOVE", (0, -1), (-1, -1), 1, self.brand_color),
                ]
            )
        )
        return table

    def generate(self) -> bytes:
        """Generate PDF and return bytes"""
        logger.info(f"📄 Generating PDF for {self.document.kind} {self.document.number}")

        buffer = io.BytesIO()
        pdf = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=self.margin,
            leftMargin=self.margin,
            topMargin=self.margin,
            bottomMargin=self.margin,
            title=f"{TITLES[self.document.kind].title()} {self.document.number}",
        )

        styles = self._styles()
        story = self._header(styles)
        story.append(self._lines_table(styles))
        story.append(Spacer(1, 6 * mm))
        story.append(self._totals_table())
        if self.document.notes:
            story.append(Spacer(1, 8 * mm))
            story.append(Paragraph("Observaciones", styles["bold"]))
            story.append(Paragraph(self._text(self.document.notes), styles["normal"]))

        pdf.build(story)
        return buffer.getvalue()


def render_document_pdf(document: PdfDocument) -> bytes:
    return DocumentPDFGenerator(document).generate()


async def render_documents(documents: list[PdfDocument]) -> list[tuple[str, bytes]]:
    """Render documents in groups of EXPORT_CONCURRENCY, preserving order"""
    rendered: list[tuple[str, bytes]] = []
    for start in range(0, len(documents), EXPORT_CONCURRENCY):
        group = documents[start : start + EXPORT_CONCURRENCY]
        results = await asyncio.gather(*(asyncio.to_thread(render_document_pdf, d) for d in group))
        rendered.extend((d.filename, pdf_bytes) for d, pdf_bytes in zip(group, results))
    return rendered


async def export_documents_zip(documents: list[PdfDocument]) -> bytes:
    """Zip archive with one PDF per document"""
    rendered = await render_documents(documents)
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for filename, pdf_bytes in rendered:
            archive.writestr(filename, pdf_bytes)
    logger.info(f"✅ Exported {len(rendered)} documents to zip")
    return buffer.getvalue()
