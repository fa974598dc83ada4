"""Tests for the cumulative workbook export and its column mapping."""
from datetime import datetime
from io import BytesIO

import pandas as pd
import pytest
from openpyxl import load_workbook

from umrah_invoice.engine import calculate_invoice
from umrah_invoice.errors import ExportError
from umrah_invoice.services import ExcelService
from umrah_invoice.services.excel_service import EXCEL_COLUMNS, HISTORY_COLUMNS, prepare_excel_row


@pytest.fixture
def invoice_data(client_form):
    data = dict(client_form)
    data.update(calculate_invoice(client_form).to_legacy_dict())
    data['invoiceNumber'] = 'INV-20261019-123456'
    data['generatedAt'] = '2026-10-19T10:00:00'
    return data


def test_row_uses_contract_headers(invoice_data):
    row = prepare_excel_row(invoice_data)
    assert list(row) == EXCEL_COLUMNS


def test_row_values(invoice_data):
    row = prepare_excel_row(invoice_data)
    assert row['Invoice Number'] == 'INV-20261019-123456'
    assert row['Client Name'] == 'Ahmed Raza'
    assert row['Pax Count'] == 2
    assert row['Makkah Rate (SAR)'] == 100
    assert row['Makkah Nights'] == 2
    assert row['Makkah Cost (SAR)'] == 200
    assert row['Visa Total (SAR)'] == 100
    assert row['Base Total (SAR)'] == 490
    assert row['Total With Profit (SAR)'] == 539
    assert row['Per Pax Amount (SAR)'] == 269.5
    assert row['Exchange Rate (SAR->PKR)'] == 75
    assert row['Airline Per Pax (PKR)'] == 50000
    assert row['Airline Total (PKR)'] == 100000
    assert row['Total With Profit (PKR)'] == 140425
    assert row['Historical Visit'] == 'No'
    assert row['Generated At'] == '2026-10-19T10:00:00'


def test_row_does_not_add_airline_twice(invoice_data):
    """perPaxPkr from the engine already includes the airline fare."""
    assert prepare_excel_row(invoice_data)['Per Pax Amount (PKR)'] == 70212.5


def test_row_recomputes_missing_per_pax_pkr():
    row = prepare_excel_row({'perPax': 10, 'exchangeRate': 75, 'airlinePricePkr': 500, 'perPaxCount': 3})
    assert row['Per Pax Amount (SAR)'] == 10
    assert row['Per Pax Amount (PKR)'] == 1250
    assert row['Airline Total (PKR)'] == 1500


def test_row_follows_resolved_breakdown_over_raw_form():
    form = {'perPaxCount': '-3', 'visaRate': 10, 'airlinePricePkr': -500}
    data = dict(form, **calculate_invoice(form).to_legacy_dict())

    row = prepare_excel_row(data)

    assert row['Pax Count'] == 1
    assert row['Visa Total (SAR)'] == 10
    assert row['Airline Per Pax (PKR)'] == 0
    assert row['Airline Total (PKR)'] == 0


def test_row_clamps_raw_counts_without_breakdown():
    row = prepare_excel_row({'perPaxCount': '-3', 'airlinePricePkr': -500})
    assert row['Pax Count'] == 1
    assert row['Airline Per Pax (PKR)'] == 0


def test_row_tolerates_empty_input():
    now = datetime(2026, 10, 19, 9, 0, 0)
    row = prepare_excel_row({}, now=now)
    assert row['Invoice Number'].startswith('INV-20261019-')
    assert row['Date'] == '2026-10-19'
    assert row['Pax Count'] == 1
    assert row['Exchange Rate (SAR->PKR)'] == 1
    assert row['Per Pax Amount (PKR)'] == 0
    assert row['Client Name'] == ''
    assert row['Generated At'] == now.isoformat()


def test_row_coerces_malformed_numbers():
    row = prepare_excel_row({'makkahHotelRate': 'abc', 'nightsInMakkah': '3.7', 'exchangeRate': '0',
                             'historicalVisit': True})
    assert row['Makkah Rate (SAR)'] == 0
    assert row['Makkah Nights'] == 3
    assert row['Exchange Rate (SAR->PKR)'] == 1
    assert row['Historical Visit'] == 'Yes'


def test_append_creates_and_extends_workbook(tmp_path, invoice_data):
    path = tmp_path / 'out' / 'hotel_invoices.xlsx'
    excel = ExcelService(path)

    first = excel.append_invoice(invoice_data)
    assert first['success'] is True
    assert first['rows'] == 1
    assert first['file_name'] == 'hotel_invoices.xlsx'

    second = dict(invoice_data, invoiceNumber='INV-20261019-654321')
    assert excel.append_invoices([second])['rows'] == 2

    df = pd.read_excel(path, sheet_name='Invoices')
    assert list(df.columns) == EXCEL_COLUMNS
    assert list(df['Invoice Number']) == ['INV-20261019-123456', 'INV-20261019-654321']
    assert list(df['Per Pax Amount (PKR)']) == [70212.5, 70212.5]


def test_append_sizes_columns(tmp_path, invoice_data):
    path = tmp_path / 'hotel_invoices.xlsx'
    ExcelService(path).append_invoice(invoice_data)

    sheet = load_workbook(path)['Invoices']
    assert sheet.column_dimensions['A'].width == len('Invoice Number') + 2
    assert sheet.column_dimensions['B'].width == 12  # 'Date' is padded up to the minimum


def test_append_failure_raises_export_error(tmp_path, invoice_data):
    # A directory where the workbook should be cannot be read or written
    with pytest.raises(ExportError):
        ExcelService(tmp_path).append_invoice(invoice_data)


def test_export_history(tmp_path, invoice_data):
    record = dict(invoice_data, createdAt=datetime(2026, 10, 19, 11, 45))
    path = tmp_path / 'cloud_invoices.xlsx'

    result = ExcelService(tmp_path / 'unused.xlsx').export_history([record], path)

    assert result['rows'] == 1
    df = pd.read_excel(path, sheet_name='History')
    assert list(df.columns) == HISTORY_COLUMNS
    assert df.loc[0, 'Invoice'] == 'INV-20261019-123456'
    assert df.loc[0, 'Created'] == '2026-10-19 11:45'
    assert df.loc[0, 'PerPaxPKR'] == 70212.5


def test_export_history_to_buffer(tmp_path, invoice_data):
    buffer = BytesIO()

    result = ExcelService(tmp_path / 'hotel_invoices.xlsx').export_history([invoice_data], buffer)

    assert result['file_name'] == 'cloud_invoices.xlsx'
    buffer.seek(0)
    df = pd.read_excel(buffer, sheet_name='History')
    assert list(df['Client']) == ['Ahmed Raza']


def test_export_history_defaults_beside_workbook(tmp_path, invoice_data):
    result = ExcelService(tmp_path / 'out' / 'hotel_invoices.xlsx').export_history([invoice_data])
    assert (tmp_path / 'out' / 'cloud_invoices.xlsx').exists()
    assert result['rows'] == 1
