"""
Invoice Service - the generate / stage / persist / export workflow.

The pricing engine result is final as soon as it is computed: a failed cloud
write leaves the invoice staged locally and re-exportable, and is only
reported back as an advisory status.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from ..engine.formatting import generate_invoice_number
from ..engine.models import InvoiceBreakdown, InvoiceInput
from ..engine.pricing_engine import PricingEngine
from ..errors import RecordStoreError, ValidationError
from .excel_service import ExcelService
from .pdf_service import PDFService
from .record_store import RecordStore
from .staging_service import StagingBuffer

logger = logging.getLogger(__name__)

FormLike = Union[InvoiceInput, dict, None]


@dataclass
class StatusMessage:
    """User-facing status line."""
    text: str
    kind: str = "success"  # "success" or "error"


@dataclass
class GeneratedInvoice:
    """Outcome of generating one invoice."""
    invoice_data: dict
    breakdown: InvoiceBreakdown
    record_id: Optional[str] = None
    status: StatusMessage = field(default_factory=lambda: StatusMessage(""))

    @property
    def invoice_number(self) -> str:
        return self.invoice_data["invoiceNumber"]


def _as_input(form: FormLike) -> InvoiceInput:
    if isinstance(form, InvoiceInput):
        return form
    return InvoiceInput.from_form(form)


class InvoiceService:
    """Coordinates the engine with staging, the record store and exporters."""

    def __init__(
        self,
        engine: PricingEngine,
        staging: StagingBuffer,
        store: RecordStore,
        excel: ExcelService,
        pdf: PDFService,
    ):
        self.engine = engine
        self.staging = staging
        self.store = store
        self.excel = excel
        self.pdf = pdf

    def preview(self, form: FormLike) -> InvoiceBreakdown:
        """Recompute the breakdown for the current form state."""
        return self.engine.calculate(_as_input(form))

    def build_invoice_data(self, form: FormLike, now: Optional[datetime] = None) -> tuple[InvoiceBreakdown, dict]:
        """Merge form fields, breakdown, invoice number and timestamp."""
        now = now or datetime.now()
        inp = _as_input(form)
        if not str(inp.client_name or "").strip():
            raise ValidationError("Please enter client name")

        breakdown = self.engine.calculate(inp)
        invoice_data = inp.to_form()
        if not invoice_data.get("invoiceDate"):
            invoice_data["invoiceDate"] = now.strftime("%Y-%m-%d")
        invoice_data.update(breakdown.to_legacy_dict())
        invoice_data["invoiceNumber"] = generate_invoice_number(now)
        invoice_data["generatedAt"] = now.isoformat()
        return breakdown, invoice_data

    def generate(self, form: FormLike, now: Optional[datetime] = None) -> GeneratedInvoice:
        """
        Generate an invoice, stage it, then write it to the record store.

        Raises:
            ValidationError: client name missing
        """
        breakdown, invoice_data = self.build_invoice_data(form, now)
        self.staging.add(invoice_data)
        logger.info("Generated invoice %s", invoice_data["invoiceNumber"])

        result = GeneratedInvoice(invoice_data=invoice_data, breakdown=breakdown)
        computed = breakdown.to_legacy_dict()
        raw_input = {k: v for k, v in invoice_data.items() if k not in computed}
        try:
            result.record_id = self.store.save(breakdown, raw_input, invoice_data["generatedAt"])
            result.status = StatusMessage("Invoice staged & saved to cloud. Use Save to Excel to download sheet.")
        except RecordStoreError as e:
            logger.error("Record store write failed for %s: %s", invoice_data["invoiceNumber"], e)
            result.status = StatusMessage("Cloud save failed. Invoice still staged locally.", "error")
        return result

    def commit_staged(self) -> StatusMessage:
        """
        Append every staged invoice to the workbook, then clear the buffer.

        The buffer is left untouched when the export fails.
        """
        staged = self.staging.get_all()
        if not staged:
            raise ValidationError("No staged invoices to save")
        outcome = self.excel.append_invoices(staged)
        self.staging.clear()
        return StatusMessage(f"All staged invoices saved to Excel ({outcome['rows']} rows in {outcome['file_name']})")

    def export_pdf(self, form: FormLike, now: Optional[datetime] = None) -> dict:
        """Write a PDF for the current form state without staging it."""
        _, invoice_data = self.build_invoice_data(form, now)
        return self.pdf.generate_invoice_pdf(invoice_data, now=now)

    def render_pdf(self, form: FormLike, now: Optional[datetime] = None) -> tuple[str, bytes]:
        """Render a PDF for the current form state. Returns (file_name, content)."""
        _, invoice_data = self.build_invoice_data(form, now)
        content = self.pdf.render_invoice_pdf(invoice_data, now=now)
        return f"invoice_{invoice_data['invoiceNumber']}.pdf", content
