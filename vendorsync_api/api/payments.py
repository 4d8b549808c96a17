from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from vendorsync_api.application.interfaces.di_container import get_payment_service
from vendorsync_api.application.services.payment_service import PaymentService
from shared.models.invoice import ApiInvoice
from shared.utils.convert import format_money
from shared.utils.exceptions import (
    ApiRequestException,
    InvoiceNotFoundException,
    PaymentUpdateException,
)
from shared.utils.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(
    responses={
        404: {"description": "Invoice not found"},
        409: {"description": "Conflict - invalid payment status transition"},
        502: {"description": "VendorSync API rejected the change"},
    }
)


class InvoiceEditRequest(BaseModel):
    invoice_number: Optional[str] = None
    date: Optional[str] = None
    due_date: Optional[str] = None
    subtotal: Optional[float] = None
    total_amount: Optional[float] = None
    payment_terms: Optional[str] = None
    early_pay_discount: Optional[float] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _invoice_row(payment_service: PaymentService, invoice: ApiInvoice) -> dict:
    row = invoice.to_dict()
    row["vendorName"] = payment_service.vendor_name_for(invoice)
    row["paymentStatus"] = invoice.payment_status
    row["totalLabel"] = format_money(invoice.total_amount)
    row.update(payment_service.due_status(invoice))
    return row


@router.get("/")
async def list_invoices(
    q: str = "",
    paid: Optional[bool] = None,
    reload: bool = True,
    payment_service: PaymentService = Depends(get_payment_service)
) -> list[dict]:
    """Invoices, open ones first by due date, then history by payment date."""
    if reload or not payment_service.invoices:
        try:
            await payment_service.load_invoices()
        except ApiRequestException as e:
            logger.error("Error loading invoices", extra={"error": str(e)})
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    invoices = payment_service.search(q, paid=paid)
    return [_invoice_row(payment_service, invoice) for invoice in invoices]


async def _loaded(payment_service: PaymentService) -> None:
    if not payment_service.invoices:
        await payment_service.load_invoices()


@router.post("/{invoice_id}/mark-paid")
async def mark_paid(invoice_id: str, payment_service: PaymentService = Depends(get_payment_service)) -> dict:
    logger.info("Received mark paid request", extra={"invoice_id": invoice_id})
    try:
        await _loaded(payment_service)
        invoice = await payment_service.mark_as_paid(invoice_id)
        return _invoice_row(payment_service, invoice)
    except InvoiceNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except (PaymentUpdateException, ApiRequestException) as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.post("/{invoice_id}/mark-unpaid")
async def mark_unpaid(invoice_id: str, payment_service: PaymentService = Depends(get_payment_service)) -> dict:
    logger.info("Received mark unpaid request", extra={"invoice_id": invoice_id})
    try:
        await _loaded(payment_service)
        invoice = await payment_service.mark_as_unpaid(invoice_id)
        return _invoice_row(payment_service, invoice)
    except InvoiceNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except (PaymentUpdateException, ApiRequestException) as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.patch("/{invoice_id}")
async def edit_invoice(
    invoice_id: str,
    request: InvoiceEditRequest,
    payment_service: PaymentService = Depends(get_payment_service)
) -> dict:
    patch = request.model_dump(by_alias=True, exclude_none=True)
    logger.info("Received invoice edit request", extra={"invoice_id": invoice_id, "fields": list(patch)})
    try:
        await _loaded(payment_service)
        invoice = await payment_service.save_edit(invoice_id, patch)
        return _invoice_row(payment_service, invoice)
    except InvoiceNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (PaymentUpdateException, ApiRequestException) as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invoice(invoice_id: str, payment_service: PaymentService = Depends(get_payment_service)):
    logger.info("Received invoice delete request", extra={"invoice_id": invoice_id})
    try:
        await _loaded(payment_service)
        await payment_service.delete_invoice(invoice_id)
    except InvoiceNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (PaymentUpdateException, ApiRequestException) as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
