"""Engine subpackage - core invoice pricing logic."""
from .pricing_engine import PricingEngine, calculate_invoice
from .models import InvoiceInput, InvoiceBreakdown, TraceStep
from .formatting import format_currency, generate_invoice_number
from .numeric import parse_float, parse_int, round2

__all__ = [
    'PricingEngine', 'calculate_invoice',
    'InvoiceInput', 'InvoiceBreakdown', 'TraceStep',
    'format_currency', 'generate_invoice_number',
    'parse_float', 'parse_int', 'round2',
]
