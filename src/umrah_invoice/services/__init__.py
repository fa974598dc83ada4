"""Services around the pricing engine: staging, storage and exports."""
from pathlib import Path
from typing import Optional

from ..config.settings import Settings, get_settings
from ..engine.pricing_engine import PricingEngine
from .excel_service import ExcelService
from .invoice_service import InvoiceService, GeneratedInvoice, StatusMessage
from .pdf_service import PDFService
from .record_store import RecordStore, InMemoryRecordStore, MongoRecordStore, create_record_store
from .staging_service import StagingBuffer, InMemoryStagingBuffer, JsonFileStagingBuffer


def build_invoice_service(settings: Optional[Settings] = None) -> InvoiceService:
    """Wire the invoice workflow from settings."""
    settings = settings or get_settings()
    return InvoiceService(
        engine=PricingEngine(),
        staging=JsonFileStagingBuffer(Path(settings.staging_file)),
        store=create_record_store(settings),
        excel=ExcelService(settings.cumulative_workbook),
        pdf=PDFService(settings.output_dir, settings.pdf_template_image),
    )


__all__ = [
    'build_invoice_service',
    'ExcelService', 'PDFService',
    'InvoiceService', 'GeneratedInvoice', 'StatusMessage',
    'RecordStore', 'InMemoryRecordStore', 'MongoRecordStore', 'create_record_store',
    'StagingBuffer', 'InMemoryStagingBuffer', 'JsonFileStagingBuffer',
]
