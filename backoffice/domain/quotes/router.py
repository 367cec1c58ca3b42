"""Quote router - FastAPI endpoints for quotes"""

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
from ..invoices.schemas import invoice_response
from .schemas import (
    QuoteConversionResponse,
    QuoteCreate,
    QuoteResponse,
    QuoteStatusUpdate,
    QuoteUpdate,
    quote_response,
)
from .service import QuoteService

router = APIRouter(prefix="/quotes", tags=["Quotes"])


def get_quote_service(db: Session = Depends(get_db)) -> QuoteService:
    """Dependency injection for QuoteService"""
    return QuoteService(db)


@router.get("", response_model=list[QuoteResponse])
async def list_quotes(
    status: Optional[str] = Query(None),
    client_id: Optional[int] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    current_user: User = Depends(get_current_user),
    service: QuoteService = Depends(get_quote_service),
):
    """List quotes, newest first"""
    quotes = unwrap(service.list_quotes(current_user, status, client_id, date_from, date_to))
    return [quote_response(q) for q in quotes]


@router.get("/months", response_model=list[str])
async def get_quote_months(
    current_user: User = Depends(get_current_user),
    service: QuoteService = Depends(get_quote_service),
):
    """Months (YYYY-MM) that have quotes, for the filter dropdown"""
    return unwrap(service.get_available_months(current_user))


@router.post("/export")
async def export_quotes(
    data: DocumentExportRequest,
    current_user: User = Depends(get_current_user),
    service: QuoteService = Depends(get_quote_service),
):
    """Download the selected quotes as a zip of PDFs"""
    quotes = unwrap(service.get_quotes_for_export(data.ids, current_user))
    archive = await export_documents_zip([snapshot_document(q, "quote") for q in quotes])
    headers = {"Content-Disposition": f"attachment; filename=presupuestos-{date.today().isoformat()}.zip"}
    return Response(content=archive, media_type="application/zip", headers=headers)


@router.get("/{quote_id}", response_model=QuoteResponse)
async def get_quote(
    quote_id: int,
    current_user: User = Depends(get_current_user),
    service: QuoteService = Depends(get_quote_service),
):
    return quote_response(unwrap(service.get_quote(quote_id, current_user)))


@router.get("/{quote_id}/pdf")
async def get_quote_pdf(
    quote_id: int,
    current_user: User = Depends(get_current_user),
    service: QuoteService = Depends(get_quote_service),
):
    document = snapshot_document(unwrap(service.get_quote(quote_id, current_user)), "quote")
    headers = {"Content-Disposition": f"inline; filename={document.filename}"}
    return Response(content=render_document_pdf(document), media_type="application/pdf", headers=headers)


@router.post("", response_model=QuoteResponse, status_code=201)
async def create_quote(
    data: QuoteCreate,
    current_user: User = Depends(get_current_user),
    service: QuoteService = Depends(get_quote_service),
):
    return quote_response(unwrap(service.create_quote(data, current_user)))


@router.put("/{quote_id}", response_model=QuoteResponse)
async def update_quote(
    quote_id: int,
    data: QuoteUpdate,
    current_user: User = Depends(get_current_user),
    service: QuoteService = Depends(get_quote_service),
):
    """Edit a pending or expired quote; lines are replaced when supplied"""
    return quote_response(unwrap(service.update_quote(quote_id, data, current_user)))


@router.patch("/{quote_id}/status", response_model=QuoteResponse)
async def set_quote_status(
    quote_id: int,
    data: QuoteStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: QuoteService = Depends(get_quote_service),
):
    return quote_response(unwrap(service.set_quote_status(quote_id, data.status, current_user)))


@router.post("/{quote_id}/convert", response_model=QuoteConversionResponse, status_code=201)
async def convert_quote(
    quote_id: int,
    current_user: User = Depends(get_current_user),
    service: QuoteService = Depends(get_quote_service),
):
    """Convert a quote into a draft invoice"""
    result = service.convert_quote_to_invoice(quote_id, current_user)
    invoice = unwrap(result)
    return QuoteConversionResponse(invoice=invoice_response(invoice), warning=result.warning)


@router.post("/{quote_id}/duplicate", response_model=QuoteResponse, status_code=201)
async def duplicate_quote(
    quote_id: int,
    current_user: User = Depends(get_current_user),
    service: QuoteService = Depends(get_quote_service),
):
    return quote_response(unwrap(service.duplicate_quote(quote_id, current_user)))


@router.delete("/{quote_id}")
async def delete_quote(
    quote_id: int,
    current_user: User = Depends(get_current_user),
    service: QuoteService = Depends(get_quote_service),
):
    unwrap(service.delete_quote(quote_id, current_user))
    return {"message": "Quote deleted successfully"}
