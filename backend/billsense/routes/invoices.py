"""
BillSense AI Backend — Invoice Route Table
==========================================

What:  /api/invoices: CRUD over the caller's invoices.
Why:   Core resource of the API; every route is behind the auth gate.
How:   Handlers extract the path id and body, then delegate to InvoiceService.

Route table (all protected):
    POST   /api/invoices          create (201)
    GET    /api/invoices          list, newest first
    GET    /api/invoices/{id}     fetch one
    PUT    /api/invoices/{id}     partial update
    DELETE /api/invoices/{id}     delete

POST and GET also answer on "/api/invoices/" (hidden from the schema) so a
trailing slash does not turn into a redirect.

The path id is taken as a plain string; InvoiceService answers 404 for
anything that is not an existing invoice of the caller, malformed ids included.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from billsense.dependencies import get_db_session
from billsense.middleware.auth import protect
from billsense.models.user import User
from billsense.schemas.common import ErrorResponse, MessageResponse
from billsense.schemas.invoice import InvoiceCreate, InvoiceResponse, InvoiceUpdate
from billsense.services.invoice_service import invoice_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/invoices",
    tags=["Invoices"],
    responses={
        401: {"description": "Not authorized", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
)

_NOT_FOUND = {404: {"description": "Invoice not found", "model": ErrorResponse}}


@router.post("/", status_code=201, response_model=InvoiceResponse, include_in_schema=False)
@router.post(
    "",
    status_code=201,
    response_model=InvoiceResponse,
    responses={400: {"description": "Invalid invoice data", "model": ErrorResponse}},
    summary="Create an invoice",
)
async def create_invoice(
    payload: InvoiceCreate,
    user: User = Depends(protect),
    db: AsyncSession = Depends(get_db_session),
) -> InvoiceResponse:
    return await invoice_service.create_invoice(db, user.id, payload)


@router.get("/", response_model=List[InvoiceResponse], include_in_schema=False)
@router.get(
    "",
    response_model=List[InvoiceResponse],
    summary="List the caller's invoices",
)
async def list_invoices(
    response: Response,
    user: User = Depends(protect),
    db: AsyncSession = Depends(get_db_session),
) -> List[InvoiceResponse]:
    invoices = await invoice_service.list_invoices(db, user.id)
    response.headers["X-Total-Count"] = str(len(invoices))
    return invoices


@router.get(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    responses=_NOT_FOUND,
    summary="Get a single invoice",
)
async def get_invoice(
    invoice_id: str,
    user: User = Depends(protect),
    db: AsyncSession = Depends(get_db_session),
) -> InvoiceResponse:
    return await invoice_service.get_invoice(db, user.id, invoice_id)


@router.put(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    responses=_NOT_FOUND,
    summary="Update an invoice",
)
async def update_invoice(
    invoice_id: str,
    payload: InvoiceUpdate,
    user: User = Depends(protect),
    db: AsyncSession = Depends(get_db_session),
) -> InvoiceResponse:
    return await invoice_service.update_invoice(db, user.id, invoice_id, payload)


@router.delete(
    "/{invoice_id}",
    response_model=MessageResponse,
    responses=_NOT_FOUND,
    summary="Delete an invoice",
)
async def delete_invoice(
    invoice_id: str,
    user: User = Depends(protect),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await invoice_service.delete_invoice(db, user.id, invoice_id)
    return MessageResponse(message="Invoice deleted successfully")
