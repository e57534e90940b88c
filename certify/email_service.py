"""
Certificate Email Service using Resend
Compiles the MJML certificate template and sends the PDF and preview as attachments
"""

import asyncio
import base64
import logging
from datetime import datetime, timezone
from typing import Any, Optional

import resend
from mjml import mjml_to_html

from . import config
from .email_templates import certificate_ready_template, certificate_ready_text
from .schemas import DeliveryOutcome

logger = logging.getLogger(__name__)

CERTIFICATE_SUBJECT = "Your GST Registration Certificate"
FAILURE_NOTE = "Certificate was generated successfully"


class EmailDeliveryError(Exception):
    """Raised inside the mail path; converted to a failed DeliveryOutcome before returning."""


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns a dict-like result with 'html' and 'errors' keys
        if isinstance(result, dict) or hasattr(result, "get"):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise EmailDeliveryError(f"Failed to compile MJML template: {str(e)}") from e


def build_attachments(
    pdf_bytes: bytes, preview_bytes: Optional[bytes], stamp: Optional[int] = None
) -> list[dict]:
    """
    The PDF is always attached; the preview only when it is larger than the
    placeholder threshold.
    """
    stamp = stamp if stamp is not None else int(datetime.now(timezone.utc).timestamp() * 1000)
    attachments = [
        {
            "filename": f"GST_Certificate_{stamp}.pdf",
            "content": base64.b64encode(pdf_bytes).decode("utf-8"),
        }
    ]
    if preview_bytes and len(preview_bytes) > config.PREVIEW_ATTACHMENT_MIN_BYTES:
        attachments.append(
            {
                "filename": f"Certificate_Preview_{stamp}.jpg",
                "content": base64.b64encode(preview_bytes).decode("utf-8"),
            }
        )
    else:
        logger.info("Preview too small to attach; sending PDF only")
    return attachments


def _extract_message_id(response: Any) -> Optional[str]:
    if isinstance(response, dict):
        return response.get("id")
    return getattr(response, "id", None)


async def send_certificate_email(
    to_email: str, pdf_bytes: bytes, preview_bytes: Optional[bytes]
) -> DeliveryOutcome:
    """
    Send the certificate to `to_email`.

    Never raises: every failure (missing configuration, template, API error,
    timeout) is returned as DeliveryOutcome(success=False).
    """
    logger.info(f"📨 Sending certificate to: {to_email}")
    logger.info(f"📎 PDF size: {round(len(pdf_bytes) / 1024)}KB")

    try:
        if not config.RESEND_API_KEY:
            raise EmailDeliveryError("RESEND_API_KEY not set in environment variables")

        generated_at = datetime.now(timezone.utc)
        email_data = {
            "from": config.EMAIL_FROM_ADDRESS,
            "to": [to_email],
            "subject": CERTIFICATE_SUBJECT,
            "html": compile_mjml_to_html(certificate_ready_template(generated_at)),
            "text": certificate_ready_text(),
            "attachments": build_attachments(pdf_bytes, preview_bytes),
        }

        def send() -> Any:
            resend.api_key = config.RESEND_API_KEY
            return resend.Emails.send(email_data)

        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(send), timeout=config.EMAIL_SEND_TIMEOUT_SECONDS
            )
        except asyncio.TimeoutError as e:
            raise EmailDeliveryError(
                f"Email send timed out after {config.EMAIL_SEND_TIMEOUT_SECONDS:g} seconds"
            ) from e

        message_id = _extract_message_id(response)
        logger.info(
            f"✅ Email sent successfully via Resend: {message_id}",
            extra={"event": "email_sent", "recipient": to_email, "message_id": message_id},
        )
        return DeliveryOutcome(
            success=True,
            recipient=to_email,
            timestamp=datetime.now(timezone.utc),
            message_id=message_id,
        )

    except Exception as e:
        logger.error(
            f"❌ Email failed: {e}",
            extra={"event": "email_failed", "recipient": to_email, "error": str(e)},
        )
        return DeliveryOutcome(
            success=False,
            recipient=to_email,
            timestamp=datetime.now(timezone.utc),
            error=str(e) or type(e).__name__,
            note=FAILURE_NOTE,
        )


def check_email_configuration() -> bool:
    """Advisory startup check; logs the result and never raises"""
    try:
        logger.info("Testing email configuration...")
        if not config.RESEND_API_KEY:
            logger.warning("❌ RESEND_API_KEY not set - certificate emails will fail")
            return False
        logger.info("✅ Resend API key configured")
        return True
    except Exception as e:
        logger.error(f"❌ Email configuration check failed: {e}")
        return False
