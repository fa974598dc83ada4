"""
Data models for the invoice pricing engine.

Uses dataclasses for structured, type-safe data representation.
"""
from dataclasses import dataclass, field, fields
from typing import Any, Optional

from .numeric import round2


# Form (camelCase) key -> InvoiceInput attribute
FORM_FIELD_MAP = {
    'makkahHotelRate': 'makkah_hotel_rate',
    'nightsInMakkah': 'nights_in_makkah',
    'madinahHotelRate': 'madinah_hotel_rate',
    'nightsInMadinah': 'nights_in_madinah',
    'visaRate': 'visa_rate',
    'ziyaratRate': 'ziyarat_rate',
    'profitPercentage': 'profit_percentage',
    'perPaxCount': 'per_pax_count',
    'exchangeRate': 'exchange_rate',
    'airlinePricePkr': 'airline_price_pkr',
    'clientName': 'client_name',
    'invoiceDate': 'invoice_date',
    'fromDate': 'from_date',
    'toDate': 'to_date',
    'makkahHotelName': 'makkah_hotel_name',
    'madinahHotelName': 'madinah_hotel_name',
    'airlineName': 'airline_name',
    'packageType': 'package_type',
    'visa': 'visa',
    'transport': 'transport',
    'historicalVisit': 'historical_visit',
}


@dataclass
class TraceStep:
    """A single step in the calculation trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class InvoiceInput:
    """
    Raw form state for one calculation.

    Numeric fields keep whatever the form supplied (strings, numbers or None);
    coercion happens inside the engine.
    """
    makkah_hotel_rate: Any = 0
    nights_in_makkah: Any = 0
    madinah_hotel_rate: Any = 0
    nights_in_madinah: Any = 0
    visa_rate: Any = 0  # SAR per pax
    ziyarat_rate: Any = 0  # SAR per pax
    profit_percentage: Any = 0
    per_pax_count: Any = 1
    exchange_rate: Any = 1  # SAR -> PKR
    airline_price_pkr: Any = 0  # PKR per pax

    # Descriptive fields, carried through to records and exports
    client_name: str = ""
    invoice_date: str = ""
    from_date: str = ""
    to_date: str = ""
    makkah_hotel_name: str = ""
    madinah_hotel_name: str = ""
    airline_name: str = ""
    package_type: str = ""
    visa: str = ""
    transport: str = ""
    historical_visit: bool = False

    @classmethod
    def from_form(cls, data: Optional[dict]) -> 'InvoiceInput':
        """Build from a form mapping using either camelCase or snake_case keys."""
        if not data:
            return cls()

        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            attr = FORM_FIELD_MAP.get(key, key)
            if attr in known:
                kwargs[attr] = value
        return cls(**kwargs)

    def to_form(self) -> dict:
        """Convert back to the camelCase form mapping."""
        return {key: getattr(self, attr) for key, attr in FORM_FIELD_MAP.items()}


@dataclass(frozen=True)
class InvoiceBreakdown:
    """Complete, rounded result of a pricing calculation. SAR unless noted."""
    makkah_cost: float
    madinah_cost: float
    visa_total: float
    ziyarat_total: float
    base_total: float
    with_profit: float
    per_pax_sar: float
    per_pax_pkr: float
    airline_per_pax_pkr: float
    airline_total_pkr: float
    total_with_profit_pkr: float
    pax_count: int

    @property
    def per_pax_total_discrepancy_pkr(self) -> float:
        """
        Difference between ``per_pax_pkr * pax_count`` and the invoice total.

        The total is rounded once at aggregate level while the per-pax figure is
        rounded after division, so the two views can disagree by a cent or so.
        """
        return round2(self.per_pax_pkr * self.pax_count - self.total_with_profit_pkr)

    def to_dict(self) -> dict:
        """Field names as used by stored records and exporters."""
        return {
            "makkahCost": self.makkah_cost,
            "madinahCost": self.madinah_cost,
            "visaTotal": self.visa_total,
            "ziyaratTotal": self.ziyarat_total,
            "baseTotal": self.base_total,
            "withProfit": self.with_profit,
            "perPaxSar": self.per_pax_sar,
            "perPaxPkr": self.per_pax_pkr,
            "airlinePerPaxPkr": self.airline_per_pax_pkr,
            "airlineTotalPkr": self.airline_total_pkr,
            "totalWithProfitPKR": self.total_with_profit_pkr,
            "paxCount": self.pax_count,
        }

    def to_legacy_dict(self) -> dict:
        """to_dict() plus the aliases older records were written with."""
        data = self.to_dict()
        data["perPax"] = self.per_pax_sar
        data["finalInPKR"] = self.per_pax_pkr
        return data
