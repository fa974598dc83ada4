"""
Excel Service - appends invoices to a single cumulative workbook.

The column headers are part of the external contract: historical workbooks
and records use these exact names, so they must not change.
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd
from openpyxl.utils import get_column_letter

from ..engine.formatting import generate_invoice_number
from ..engine.numeric import parse_float, parse_int, round2
from ..errors import ExportError

logger = logging.getLogger(__name__)

SHEET_NAME = 'Invoices'
HISTORY_SHEET_NAME = 'History'
HISTORY_FILE_NAME = 'cloud_invoices.xlsx'

EXCEL_COLUMNS = [
    'Invoice Number', 'Date', 'Client Name', 'From Date', 'To Date',
    'Package Type', 'Visa Text', 'Transport Text', 'Historical Visit',
    'Pax Count', 'Makkah Hotel', 'Makkah Rate (SAR)', 'Makkah Nights',
    'Makkah Cost (SAR)', 'Madinah Hotel', 'Madinah Rate (SAR)',
    'Madinah Nights', 'Madinah Cost (SAR)', 'Visa Per Pax (SAR)',
    'Visa Total (SAR)', 'Ziyarat Per Pax (SAR)', 'Ziyarat Total (SAR)',
    'Airline Name', 'Airline Per Pax (PKR)', 'Airline Total (PKR)',
    'Base Total (SAR)', 'Profit Percentage', 'Total With Profit (SAR)',
    'Per Pax Amount (SAR)', 'Exchange Rate (SAR->PKR)',
    'Per Pax Amount (PKR)', 'Total With Profit (PKR)', 'Generated At',
]

HISTORY_COLUMNS = [
    'Invoice', 'Date', 'Client', 'Pax', 'Package', 'From', 'To',
    'PerPaxPKR', 'Airline', 'AirlinePerPax', 'Created',
]


def _r2(value) -> float:
    return round2(parse_float(value))


def _text(value) -> str:
    return '' if value is None else str(value)


def prepare_excel_row(invoice_data: dict, now: Optional[datetime] = None) -> dict:
    """
    Flatten one invoice (form fields + breakdown) into a workbook row.

    Missing or malformed numbers become 0; missing text becomes ''. The stored
    per-pax PKR amount already includes the airline fare and is used as-is;
    it is only recomputed (conversion plus airline) when absent.
    """
    data = invoice_data or {}
    now = now or datetime.now()

    exchange_rate = parse_float(data.get('exchangeRate'))
    if not exchange_rate > 0:
        exchange_rate = 1.0

    if data.get('perPaxSar') is not None:
        per_pax_sar = _r2(data.get('perPaxSar'))
    else:
        per_pax_sar = _r2(data.get('perPax'))

    # Engine-resolved values win over the raw form fields they came from
    if data.get('airlinePerPaxPkr') is not None:
        airline_per_pax = _r2(data.get('airlinePerPaxPkr'))
    else:
        airline_per_pax = max(0.0, _r2(data.get('airlinePricePkr')))

    if data.get('perPaxPkr') is not None:
        per_pax_pkr = _r2(data.get('perPaxPkr'))
    else:
        per_pax_pkr = round2(round2(per_pax_sar * exchange_rate) + airline_per_pax)

    if data.get('paxCount') is not None:
        pax_count = max(1, parse_int(data.get('paxCount')))
    else:
        pax_count = max(1, parse_int(data.get('perPaxCount')))

    if data.get('airlineTotalPkr') is not None:
        airline_total = _r2(data.get('airlineTotalPkr'))
    else:
        airline_total = round2(airline_per_pax * pax_count)

    return {
        'Invoice Number': data.get('invoiceNumber') or generate_invoice_number(now),
        'Date': data.get('invoiceDate') or now.strftime('%Y-%m-%d'),
        'Client Name': _text(data.get('clientName')),
        'From Date': _text(data.get('fromDate')),
        'To Date': _text(data.get('toDate')),
        'Package Type': _text(data.get('packageType')),
        'Visa Text': _text(data.get('visa') or data.get('visaInfo')),
        'Transport Text': _text(data.get('transport') or data.get('transportInfo')),
        'Historical Visit': 'Yes' if data.get('historicalVisit') else 'No',
        'Pax Count': pax_count,
        'Makkah Hotel': _text(data.get('makkahHotelName')),
        'Makkah Rate (SAR)': _r2(data.get('makkahHotelRate')),
        'Makkah Nights': parse_int(data.get('nightsInMakkah')),
        'Makkah Cost (SAR)': _r2(data.get('makkahCost')),
        'Madinah Hotel': _text(data.get('madinahHotelName')),
        'Madinah Rate (SAR)': _r2(data.get('madinahHotelRate')),
        'Madinah Nights': parse_int(data.get('nightsInMadinah')),
        'Madinah Cost (SAR)': _r2(data.get('madinahCost')),
        'Visa Per Pax (SAR)': _r2(data.get('visaRate')),
        'Visa Total (SAR)': _r2(data.get('visaTotal')),
        'Ziyarat Per Pax (SAR)': _r2(data.get('ziyaratRate')),
        'Ziyarat Total (SAR)': _r2(data.get('ziyaratTotal')),
        'Airline Name': _text(data.get('airlineName')),
        'Airline Per Pax (PKR)': airline_per_pax,
        'Airline Total (PKR)': airline_total,
        'Base Total (SAR)': _r2(data.get('baseTotal')),
        'Profit Percentage': _r2(data.get('profitPercentage')),
        'Total With Profit (SAR)': _r2(data.get('withProfit')),
        'Per Pax Amount (SAR)': per_pax_sar,
        'Exchange Rate (SAR->PKR)': round2(exchange_rate),
        'Per Pax Amount (PKR)': per_pax_pkr,
        'Total With Profit (PKR)': _r2(data.get('totalWithProfitPKR')),
        'Generated At': data.get('generatedAt') or now.isoformat(),
    }


def _column_width(header: str) -> int:
    return min(35, max(12, len(header) + 2))


def _write_sheet(df: pd.DataFrame, target, sheet_name: str):
    """Write ``df`` to a workbook path or a binary buffer."""
    if isinstance(target, Path):
        target.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(target, engine='openpyxl') as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
        worksheet = writer.sheets[sheet_name]
        for idx, header in enumerate(df.columns, start=1):
            worksheet.column_dimensions[get_column_letter(idx)].width = _column_width(str(header))


class ExcelService:
    """Writes invoice rows to the cumulative workbook."""

    def __init__(self, workbook_path: Path):
        self.workbook_path = Path(workbook_path)

    def load_rows(self) -> pd.DataFrame:
        """Load existing rows, or an empty frame when there is no workbook yet."""
        if not self.workbook_path.exists():
            return pd.DataFrame(columns=EXCEL_COLUMNS)
        return pd.read_excel(self.workbook_path, sheet_name=SHEET_NAME)

    def append_invoice(self, invoice_data: dict) -> dict:
        """Append one invoice to the cumulative workbook."""
        return self.append_invoices([invoice_data])

    def append_invoices(self, invoices: list[dict]) -> dict:
        """
        Append a batch of invoices and rewrite the workbook.

        Returns:
            Dict with success, file_name, rows (total rows now in the sheet)
            and message
        """
        try:
            new_rows = pd.DataFrame([prepare_excel_row(inv) for inv in invoices], columns=EXCEL_COLUMNS)
            existing = self.load_rows()
            if existing.empty:
                all_rows = new_rows
            else:
                all_rows = pd.concat([existing, new_rows], ignore_index=True)
            _write_sheet(all_rows, self.workbook_path, SHEET_NAME)
        except Exception as e:
            logger.error("Excel cumulative save error: %s", e)
            raise ExportError(f"Failed to append invoice: {e}") from e

        logger.info("Appended %d invoice(s) to %s", len(invoices), self.workbook_path)
        return {
            'success': True,
            'file_name': self.workbook_path.name,
            'rows': len(all_rows),
            'message': 'Invoice appended to cumulative Excel file',
        }

    @staticmethod
    def history_frame(records: list[dict]) -> pd.DataFrame:
        """Project stored records onto the history sheet columns."""
        rows = []
        for r in records:
            created = r.get('createdAt')
            if isinstance(created, datetime):
                created = created.strftime('%Y-%m-%d %H:%M')
            rows.append({
                'Invoice': r.get('invoiceNumber'),
                'Date': r.get('invoiceDate'),
                'Client': r.get('clientName'),
                'Pax': r.get('perPaxCount') or r.get('paxCount'),
                'Package': r.get('packageType'),
                'From': r.get('fromDate'),
                'To': r.get('toDate'),
                'PerPaxPKR': r.get('perPaxPkr'),
                'Airline': r.get('airlineName'),
                'AirlinePerPax': r.get('airlinePerPaxPkr'),
                'Created': _text(created)[:16].replace('T', ' '),
            })
        return pd.DataFrame(rows, columns=HISTORY_COLUMNS)

    def export_history(self, records: list[dict], target=None) -> dict:
        """
        Write stored records to a standalone history workbook.

        ``target`` is a file path or a binary buffer (for downloads); it
        defaults to ``cloud_invoices.xlsx`` beside the cumulative workbook.
        """
        if target is None:
            target = self.workbook_path.parent / HISTORY_FILE_NAME
        elif not hasattr(target, 'write'):
            target = Path(target)
        try:
            _write_sheet(self.history_frame(records), target, HISTORY_SHEET_NAME)
        except Exception as e:
            logger.error("Export history error: %s", e)
            raise ExportError(f"Failed to export invoice history: {e}") from e
        return {
            'success': True,
            'file_name': target.name if isinstance(target, Path) else HISTORY_FILE_NAME,
            'rows': len(records),
            'message': 'Invoice history exported successfully',
        }
