"""
PDF Service - lays out a one-page invoice for a generated breakdown.

Purely presentational: amounts are taken from the already-rounded breakdown
and only formatted here, never recalculated.
"""
import logging
from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from ..engine.formatting import generate_invoice_number
from ..engine.numeric import parse_float, parse_int
from ..errors import ExportError

logger = logging.getLogger(__name__)

PAGE_W, PAGE_H = A4
MARGIN_L = 14 * mm
LINE_H = 6.5 * mm

BANNER = colors.Color(20 / 255, 42 / 255, 84 / 255)
INK = colors.Color(15 / 255, 35 / 255, 60 / 255)
MUTED = colors.Color(60 / 255, 60 / 255, 60 / 255)
FOOTER = colors.Color(90 / 255, 90 / 255, 90 / 255)

DEFAULT_VISA_TEXT = 'KSA Umrah visa included'
DEFAULT_TRANSPORT_TEXT = '6 Sector Sharing Transport By BUS'
FOOTER_TEXT = 'Generated by Karwan-e-Usmania Package Manager'


def package_lines(invoice_data: dict) -> list[str]:
    """Package description lines shown under the invoice header."""
    pax = parse_int(invoice_data.get('paxCount') or invoice_data.get('perPaxCount')) or 1
    nights_makkah = parse_int(invoice_data.get('nightsInMakkah'))
    nights_madinah = parse_int(invoice_data.get('nightsInMadinah'))
    total_days = nights_makkah + nights_madinah + 1
    package_type = invoice_data.get('packageType') or 'Package'

    lines = [
        f"{total_days} Day Umrah Package for {pax} Pax with {package_type}",
        f"Makkah Hotel: {invoice_data.get('makkahHotelName') or ''}",
        f"Madinah Hotel: {invoice_data.get('madinahHotelName') or ''}",
        f"{nights_makkah} Nights in Makkah & {nights_madinah} Nights in Madinah",
        invoice_data.get('visa') or invoice_data.get('visaInfo') or DEFAULT_VISA_TEXT,
        invoice_data.get('transport') or invoice_data.get('transportInfo') or DEFAULT_TRANSPORT_TEXT,
    ]
    if invoice_data.get('historicalVisit'):
        lines.append('Historical visit of both holy cities')
    lines.append('This Package is valid for the next 24 Hours')
    return lines


class PDFService:
    """Renders invoice PDFs with reportlab."""

    def __init__(self, output_dir: Optional[Path] = None, template_image: Optional[Path] = None):
        self.output_dir = Path(output_dir) if output_dir else Path.cwd()
        self.template_image = template_image

    def _draw_background(self, pdf: canvas.Canvas):
        if self.template_image and Path(self.template_image).exists():
            try:
                pdf.drawImage(ImageReader(str(self.template_image)), 0, 0, width=PAGE_W, height=PAGE_H)
                return
            except OSError as e:
                logger.warning("Invoice template unusable, drawing banner instead: %s", e)

        pdf.setFillColor(BANNER)
        pdf.rect(0, PAGE_H - 24 * mm, PAGE_W, 24 * mm, stroke=0, fill=1)
        pdf.setFillColor(colors.white)
        pdf.setFont('Helvetica-Bold', 14)
        pdf.drawCentredString(PAGE_W / 2, PAGE_H - 16 * mm, 'INVOICE')

    def render_invoice_pdf(self, invoice_data: dict, now: Optional[datetime] = None) -> bytes:
        """
        Render the invoice and return the PDF bytes.

        Raises:
            ExportError: reportlab failed to draw the document
        """
        try:
            return self._render(invoice_data or {}, now or datetime.now())
        except Exception as e:
            logger.error("PDF render error: %s", e)
            raise ExportError(f"Failed to render PDF: {e}") from e

    def _render(self, invoice_data: dict, now: datetime) -> bytes:
        invoice_number = invoice_data.get('invoiceNumber') or generate_invoice_number(now)
        invoice_date = invoice_data.get('invoiceDate') or now.strftime('%Y-%m-%d')
        pax = max(1, parse_int(invoice_data.get('paxCount') or invoice_data.get('perPaxCount')))
        per_pax_pkr = parse_float(invoice_data.get('perPaxPkr') or invoice_data.get('finalInPKR'))
        total_pkr = parse_float(invoice_data.get('totalWithProfitPKR'))
        airline_name = invoice_data.get('airlineName') or ''
        airline_per_pax = parse_float(invoice_data.get('airlinePerPaxPkr') or invoice_data.get('airlinePricePkr'))
        visa_per_pax = parse_float(invoice_data.get('visaRate'))

        buffer = BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=A4)
        pdf.setTitle(f"Invoice {invoice_number}")
        self._draw_background(pdf)

        y = PAGE_H - 40 * mm

        def add(text: str, bold: bool = False, size: float = 11, color=INK):
            nonlocal y
            pdf.setFont('Helvetica-Bold' if bold else 'Helvetica', size)
            pdf.setFillColor(color)
            pdf.drawString(MARGIN_L, y, str(text))
            y -= LINE_H

        def center(text: str, size: float = 12, bold: bool = True, color=INK):
            nonlocal y
            pdf.setFont('Helvetica-Bold' if bold else 'Helvetica', size)
            pdf.setFillColor(color)
            pdf.drawCentredString(PAGE_W / 2, y, str(text))
            y -= 7 * mm

        add(f"Invoice #: {invoice_number}", bold=True)
        add(f"Date: {invoice_date}")
        add(f"PAX: {pax}")
        if invoice_data.get('clientName'):
            add(f"Client: {invoice_data['clientName']}")
        y -= 1 * mm

        for line in package_lines(invoice_data):
            add(line, size=9.5)
        y -= 1 * mm

        # Keep the totals clear of letterhead artwork
        y = min(y, PAGE_H - 70 * mm)
        center('TOTAL AMOUNT (PKR)', size=14, color=BANNER)
        center(f"PKR {total_pkr:,.2f}", size=20, color=colors.black)
        y -= 2 * mm
        center(f"Per Pax: PKR {per_pax_pkr:,.2f}", size=14, color=MUTED)
        y -= 2 * mm
        if airline_name and airline_per_pax > 0:
            center(f"Includes Airline ({airline_name}) PKR {airline_per_pax:,.2f} / pax", size=9, bold=False, color=MUTED)
        if visa_per_pax:
            center(f"Visa Included (SAR {visa_per_pax:,.2f} per pax)", size=9, bold=False, color=MUTED)

        pdf.setFont('Helvetica', 8)
        pdf.setFillColor(FOOTER)
        pdf.drawCentredString(PAGE_W / 2, 14 * mm, FOOTER_TEXT)
        pdf.drawCentredString(PAGE_W / 2, 8 * mm, now.strftime('%Y-%m-%d %H:%M:%S'))

        pdf.showPage()
        pdf.save()
        return buffer.getvalue()

    def generate_invoice_pdf(self, invoice_data: dict, now: Optional[datetime] = None) -> dict:
        """
        Render the invoice and write it to ``output_dir``.

        Returns:
            Dict with success, file_name, path and message
        """
        invoice_data = dict(invoice_data or {})
        if not invoice_data.get('invoiceNumber'):
            invoice_data['invoiceNumber'] = generate_invoice_number(now)
        file_name = f"invoice_{invoice_data['invoiceNumber']}.pdf"
        path = self.output_dir / file_name

        content = self.render_invoice_pdf(invoice_data, now=now)
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as e:
            logger.error("PDF write error: %s", e)
            raise ExportError(f"Failed to write PDF: {e}") from e

        logger.info("Wrote %s", path)
        return {
            'success': True,
            'file_name': file_name,
            'path': str(path),
            'message': 'Invoice PDF generated',
        }
