import pytest

from umrah_invoice.engine import PricingEngine
from umrah_invoice.services import (
    ExcelService,
    InMemoryRecordStore,
    InMemoryStagingBuffer,
    InvoiceService,
    PDFService,
)


REFERENCE_FORM = {
    'makkahHotelRate': 100,  # SAR
    'nightsInMakkah': 2,
    'madinahHotelRate': 150,  # SAR
    'nightsInMadinah': 1,
    'visaRate': 50,  # per pax SAR
    'ziyaratRate': 20,  # per pax SAR
    'profitPercentage': 10,  # %
    'perPaxCount': 2,
    'exchangeRate': 75,  # SAR -> PKR
    'airlinePricePkr': 50000,  # per pax PKR
}


@pytest.fixture
def reference_form():
    return dict(REFERENCE_FORM)


@pytest.fixture
def client_form(reference_form):
    form = dict(reference_form)
    form.update({
        'clientName': 'Ahmed Raza',
        'invoiceDate': '2026-10-19',
        'makkahHotelName': 'Hilton Suites',
        'madinahHotelName': 'Pullman Zamzam',
        'airlineName': 'PIA',
        'packageType': 'Premium',
    })
    return form


@pytest.fixture
def engine():
    return PricingEngine()


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def staging():
    return InMemoryStagingBuffer()


@pytest.fixture
def service(engine, staging, store, tmp_path):
    return InvoiceService(
        engine=engine,
        staging=staging,
        store=store,
        excel=ExcelService(tmp_path / 'hotel_invoices.xlsx'),
        pdf=PDFService(tmp_path / 'pdf'),
    )
