from fastapi import Depends, FastAPI, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel
from typing import Any, Optional

from ..engine import PricingEngine, format_currency
from ..errors import ExportError, RecordStoreError, ValidationError
from ..services import InvoiceService


app = FastAPI(
    title="Umrah Invoice API",
    description="Pricing, staging and export backend for Umrah package invoices",
    version="1.0.0"
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_invoice_service() -> InvoiceService:
    from .state import invoice_service
    return invoice_service


class InvoiceForm(BaseModel):
    """Form state as posted by the client; numbers may arrive as strings."""
    clientName: str = ""
    invoiceDate: str = ""
    fromDate: str = ""
    toDate: str = ""
    makkahHotelName: str = ""
    makkahHotelRate: Any = 0
    nightsInMakkah: Any = 0
    madinahHotelName: str = ""
    madinahHotelRate: Any = 0
    nightsInMadinah: Any = 0
    visaRate: Any = 0
    ziyaratRate: Any = 0
    profitPercentage: Any = 0
    perPaxCount: Any = 1
    exchangeRate: Any = 1
    airlineName: str = ""
    airlinePricePkr: Any = 0
    packageType: str = ""
    visa: str = ""
    transport: str = ""
    historicalVisit: bool = False


@app.get("/")
async def root():
    return {"status": "online", "message": "Umrah Invoice API Active"}


@app.post("/calculate")
async def calculate(form: InvoiceForm, service: InvoiceService = Depends(get_invoice_service)):
    breakdown, trace = service.engine.calculate_with_trace(form.model_dump())
    return {
        "breakdown": breakdown.to_dict(),
        "display": {
            "perPaxSar": format_currency(breakdown.per_pax_sar),
            "perPaxPkr": format_currency(breakdown.per_pax_pkr, "PKR"),
            "totalWithProfitPKR": format_currency(breakdown.total_with_profit_pkr, "PKR"),
        },
        "perPaxTotalDiscrepancyPkr": breakdown.per_pax_total_discrepancy_pkr,
        "trace": jsonable_encoder(trace),
    }


@app.post("/invoices")
async def generate_invoice(form: InvoiceForm, service: InvoiceService = Depends(get_invoice_service)):
    try:
        result = service.generate(form.model_dump())
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "invoice": jsonable_encoder(result.invoice_data),
        "record_id": result.record_id,
        "status": {"text": result.status.text, "kind": result.status.kind},
        "staged": len(service.staging),
    }


@app.post("/invoices/pdf")
async def invoice_pdf(form: InvoiceForm, service: InvoiceService = Depends(get_invoice_service)):
    try:
        file_name, content = service.render_pdf(form.model_dump())
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ExportError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )


@app.get("/staging")
async def list_staged(service: InvoiceService = Depends(get_invoice_service)):
    return jsonable_encoder(service.staging.get_all())


@app.delete("/staging/{invoice_number}")
async def remove_staged(invoice_number: str, service: InvoiceService = Depends(get_invoice_service)):
    remaining = service.staging.remove(invoice_number)
    return {"success": True, "staged": remaining}


@app.delete("/staging")
async def clear_staged(service: InvoiceService = Depends(get_invoice_service)):
    service.staging.clear()
    return {"success": True, "staged": 0}


@app.post("/staging/commit")
async def commit_staged(service: InvoiceService = Depends(get_invoice_service)):
    try:
        status = service.commit_staged()
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ExportError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"success": True, "message": status.text}


@app.get("/records")
async def list_records(
    client: Optional[str] = None,
    package_type: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        rows = service.store.list_records(
            client=client, package_type=package_type,
            date_from=date_from, date_to=date_to,
            limit=limit, offset=offset,
        )
    except RecordStoreError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return jsonable_encoder(rows)


@app.get("/system/status")
async def get_status(service: InvoiceService = Depends(get_invoice_service)):
    return {
        "engine_active": isinstance(service.engine, PricingEngine),
        "staged": len(service.staging),
        "record_store": service.store.diagnose(),
    }
