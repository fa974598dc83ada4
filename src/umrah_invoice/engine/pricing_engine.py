"""
Invoice Pricing Engine - turns raw form input into a two-currency breakdown.

Computation order (every intermediate is rounded to 2 decimals before use):
1. Lodging: Makkah and Madinah rate x nights
2. Per-pax charges: visa and ziyarat rate x pax count
3. Base total and profit markup
4. Per-pax SAR, then PKR conversion plus airline fare
5. Invoice total in PKR including the airline total
"""
from typing import Any, Optional, Union

from .models import InvoiceInput, InvoiceBreakdown, TraceStep
from .numeric import parse_float, parse_int, round2


InputLike = Union[InvoiceInput, dict, None]


def _coerce_input(data: InputLike) -> InvoiceInput:
    if isinstance(data, InvoiceInput):
        return data
    if isinstance(data, dict):
        return InvoiceInput.from_form(data)
    return InvoiceInput()


def _non_negative(value: Any) -> float:
    return max(0.0, parse_float(value))


def _run(data: InputLike, trace: Optional[list]) -> InvoiceBreakdown:
    inp = _coerce_input(data)

    def note(step: str, description: str, value: Any = None):
        if trace is not None:
            trace.append(TraceStep(step=step, description=description,
                                   value=None if value is None else f"{value:,.2f}"))

    makkah_rate = _non_negative(inp.makkah_hotel_rate)
    makkah_nights = max(0, parse_int(inp.nights_in_makkah))
    madinah_rate = _non_negative(inp.madinah_hotel_rate)
    madinah_nights = max(0, parse_int(inp.nights_in_madinah))
    visa_per_pax = _non_negative(inp.visa_rate)
    ziyarat_per_pax = _non_negative(inp.ziyarat_rate)
    profit = parse_float(inp.profit_percentage)  # not clamped
    airline_per_pax_pkr = _non_negative(inp.airline_price_pkr)
    pax_count = max(1, parse_int(inp.per_pax_count))
    # An explicit 0 is indistinguishable from "unset" here
    sar_to_pkr = parse_float(inp.exchange_rate)
    if not sar_to_pkr > 0:
        sar_to_pkr = 1.0

    note("Pax", f"Billable travellers: {pax_count}")
    note("Exchange Rate", "SAR -> PKR multiplier", sar_to_pkr)

    makkah_cost = round2(makkah_rate * makkah_nights)
    note("Makkah", f"{makkah_nights} nights x {makkah_rate:,.2f} SAR", makkah_cost)
    madinah_cost = round2(madinah_rate * madinah_nights)
    note("Madinah", f"{madinah_nights} nights x {madinah_rate:,.2f} SAR", madinah_cost)
    visa_total = round2(visa_per_pax * pax_count)
    note("Visa", f"{pax_count} pax x {visa_per_pax:,.2f} SAR", visa_total)
    ziyarat_total = round2(ziyarat_per_pax * pax_count)
    note("Ziyarat", f"{pax_count} pax x {ziyarat_per_pax:,.2f} SAR", ziyarat_total)

    base_total = round2(makkah_cost + madinah_cost + visa_total + ziyarat_total)
    note("Base Total", "Lodging + visa + ziyarat (SAR)", base_total)
    with_profit = round2(base_total * (1 + (profit / 100)))
    note("Profit", f"Base total + {profit:g}% (SAR)", with_profit)

    per_pax_sar = round2(with_profit / pax_count if pax_count > 0 else 0)
    note("Per Pax SAR", f"Total with profit / {pax_count}", per_pax_sar)
    per_pax_pkr = round2(per_pax_sar * sar_to_pkr)
    per_pax_pkr = round2(per_pax_pkr + airline_per_pax_pkr)
    note("Per Pax PKR", f"Converted per pax + airline {airline_per_pax_pkr:,.2f} PKR", per_pax_pkr)

    airline_total_pkr = round2(airline_per_pax_pkr * pax_count)
    note("Airline Total", f"{pax_count} pax x {airline_per_pax_pkr:,.2f} PKR", airline_total_pkr)
    total_with_profit_pkr = round2((with_profit * sar_to_pkr) + airline_total_pkr)
    note("Invoice Total", "Total with profit in PKR + airline total", total_with_profit_pkr)

    return InvoiceBreakdown(
        makkah_cost=makkah_cost,
        madinah_cost=madinah_cost,
        visa_total=visa_total,
        ziyarat_total=ziyarat_total,
        base_total=base_total,
        with_profit=with_profit,
        per_pax_sar=per_pax_sar,
        per_pax_pkr=per_pax_pkr,
        airline_per_pax_pkr=airline_per_pax_pkr,
        airline_total_pkr=airline_total_pkr,
        total_with_profit_pkr=total_with_profit_pkr,
        pax_count=pax_count,
    )


def calculate_invoice(data: InputLike = None) -> InvoiceBreakdown:
    """
    Compute the invoice breakdown for one set of form inputs.

    Never raises: missing or malformed numeric fields fall back to their
    defaults. Output depends only on the input.
    """
    return _run(data, None)


class PricingEngine:
    """
    Stateless wrapper around ``calculate_invoice`` with traceability.

    Safe to share between threads and requests; holds no per-call state.
    """

    def calculate(self, data: InputLike = None) -> InvoiceBreakdown:
        """Calculate the breakdown for ``data``."""
        return _run(data, None)

    def calculate_with_trace(self, data: InputLike = None) -> tuple[InvoiceBreakdown, list[TraceStep]]:
        """
        Calculate with a trace of each computation step.

        Returns (breakdown, trace_steps).
        """
        trace: list[TraceStep] = []
        breakdown = _run(data, trace)
        return breakdown, trace

    @staticmethod
    def get_trace_text(trace: list[TraceStep]) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in trace:
            if t.value:
                lines.append(f"• {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"• {t.step}: {t.description}")
        return "\n".join(lines)
