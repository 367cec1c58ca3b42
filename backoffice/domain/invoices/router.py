"""Invoice router - FastAPI endpoints for invoices"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...services.pdf_service import export_documents_zip, render_document_pdf, snapshot_document
from ...shared.results import unwrap
from ..documents.schemas import DocumentExportRequest
from .schemas import InvoiceCreate, InvoiceResponse, InvoiceStatusUpdate, InvoiceUpdate, invoice_response
from .service import InvoiceService

router = APIRouter(prefix="/invoices", tags=["Invoices"])


def get_invoice_service(db: Session = Depends(get_db)) -> InvoiceService:
    """Dependency injection for InvoiceService"""
    return InvoiceService(db)


@router.get("", response_model=list[InvoiceResponse])
async def list_invoices(
    status: Optional[str] = Query(None),
    client_id: Optional[int] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    """List invoices, newest first"""
    invoices = unwrap(service.list_invoices(current_user, status, client_id, date_from, date_to))
    return [invoice_response(i) for i in invoices]


@router.get("/months", response_model=list[str])
async def get_invoice_months(
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    return unwrap(service.get_available_months(current_user))


@router.post("/export")
async def export_invoices(
    data: DocumentExportRequest,
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    """Download the selected invoices as a zip of PDFs"""
    invoices = unwrap(service.get_invoices_for_export(data.ids, current_user))
    archive = await export_documents_zip([snapshot_document(i, "invoice") for i in invoices])
    headers = {"Content-Disposition": f"attachment; filename=facturas-{date.today().isoformat()}.zip"}
    return Response(content=archive, media_type="application/zip", headers=headers)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: int,
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    return invoice_response(unwrap(service.get_invoice(invoice_id, current_user)))


@router.get("/{invoice_id}/pdf")
async def get_invoice_pdf(
    invoice_id: int,
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    document = snapshot_document(unwrap(service.get_invoice(invoice_id, current_user)), "invoice")
    headers = {"Content-Disposition": f"inline; filename={document.filename}"}
    return Response(content=render_document_pdf(document), media_type="application/pdf", headers=headers)


@router.post("", response_model=InvoiceResponse, status_code=201)
async def create_invoice(
    data: InvoiceCreate,
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    return invoice_response(unwrap(service.create_invoice(data, current_user)))


@router.put("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice_id: int,
    data: InvoiceUpdate,
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    return invoice_response(unwrap(service.update_invoice(invoice_id, data, current_user)))


@router.patch("/{invoice_id}/status", response_model=InvoiceResponse)
async def set_invoice_status(
    invoice_id: int,
    data: InvoiceStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    return invoice_response(unwrap(service.set_invoice_status(invoice_id, data.status, current_user)))


@router.delete("/{invoice_id}")
async def delete_invoice(
    invoice_id: int,
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    unwrap(service.delete_invoice(invoice_id, current_user))
    return {"message": "Invoice deleted successfully"}
