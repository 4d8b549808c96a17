"""
Invoice upload endpoints.
"""
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from pydantic import BaseModel

from vendorsync_api.domain.uploaded_file_dto import UploadedFileDTO
from vendorsync_api.application.interfaces.di_container import get_intake_service
from vendorsync_api.application.services.intake_service import IntakeService
from shared.models.extracted_document import ExtractedDocument
from shared.utils.exceptions import (
    ApiRequestException,
    DocumentExtractionException,
    DuplicateInvoiceException,
)
from shared.utils.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()


class ConfirmRequestModel(BaseModel):
    document: ExtractedDocument
    overwrite: bool = False


@router.post("/upload-invoice")
async def upload_invoice(file: UploadFile = File(...),
                         intake_service: IntakeService = Depends(get_intake_service)) -> dict:
    """Upload an invoice document and return the extracted fields for review."""
    logger.info(f"upload-invoice endpoint called for {file.filename}")
    uploaded_file = UploadedFileDTO(file.filename, file.content_type, await file.read())
    if not uploaded_file.file_content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")

    try:
        document = await intake_service.upload_document(
            uploaded_file.file_name, uploaded_file.file_content, uploaded_file.content_type
        )
    except ApiRequestException as e:
        logger.error(f"Error extracting invoice document: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return document.model_dump(exclude_none=True)


@router.post("/confirm")
async def confirm_extracted_data(request: ConfirmRequestModel,
                                 intake_service: IntakeService = Depends(get_intake_service)) -> dict:
    """Create or update the vendor and invoice from a reviewed extraction."""
    try:
        result = await intake_service.confirm_extracted_data(
            request.document, confirm_overwrite=lambda existing: request.overwrite
        )
    except DocumentExtractionException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DuplicateInvoiceException as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ApiRequestException as e:
        logger.error(f"Error saving extracted invoice: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return {
        "vendor": result.vendor.to_dict(),
        "invoice": result.invoice.to_dict(),
        "vendorCreated": result.vendor_created,
        "invoiceUpdated": result.invoice_updated,
    }
