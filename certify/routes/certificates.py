"""
Certificate generation endpoint
Generates the certificate, responds immediately, then emails it in the background
"""

import logging

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request
from fastapi.responses import JSONResponse

from .. import email_service
from ..schemas import (
    CertificateData,
    CertificateGenerateRequest,
    CertificateGenerateResponse,
    ErrorResponse,
    GenerationFailedResponse,
)
from ..services import certificate_generator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Certificates"])


@router.post(
    "/generate-certificate",
    response_model=CertificateGenerateResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": GenerationFailedResponse}},
)
async def generate_certificate(
    data: CertificateGenerateRequest, request: Request, background_tasks: BackgroundTasks
):
    """Generate a GST registration certificate and email it to the submitter"""
    missing = data.missing_fields()
    if missing:
        logger.warning(f"Certificate request rejected, missing fields: {missing}")
        return JSONResponse(status_code=400, content={"error": "All fields are required"})

    try:
        document = await certificate_generator.generate_certificate(
            CertificateData(
                name=data.name,
                businessName=data.businessName,
                gstNumber=data.gstNumber,
                businessAddress=data.businessAddress,
            )
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Certificate generation failed: {str(e)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"message": "Certificate generation failed", "error": str(e)},
        )

    # Email is sent after the response so slow delivery cannot hit the platform timeout
    delivery = request.app.state.deliveries.create(
        recipient=data.email,
        pdf_bytes=document.pdf_bytes,
        preview_bytes=document.preview_bytes,
        sender=email_service.send_certificate_email,
    )
    background_tasks.add_task(delivery.run)
    logger.info(f"📬 Certificate email queued for {data.email} (delivery {delivery.id})")

    return CertificateGenerateResponse(
        message="Certificate generated successfully",
        pdfSize=document.pdf_size,
        jpgSize=document.preview_size,
    )
