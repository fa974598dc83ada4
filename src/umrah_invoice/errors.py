"""Exception types raised by the services around the pricing engine."""


class UmrahInvoiceError(Exception):
    """Base class for all invoice tool errors."""


class ValidationError(UmrahInvoiceError):
    """The requested workflow action is missing required input."""


class RecordStoreError(UmrahInvoiceError):
    """A read or write against the record store failed."""


class ExportError(UmrahInvoiceError):
    """Writing a spreadsheet or PDF export failed."""
