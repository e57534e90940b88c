"""
Certificate PDF Generation using Playwright (Chromium)
Fills the HTML certificate template and renders it to PDF, with a
hard-coded fallback document when the template render fails
"""

import asyncio
import base64
import json
import logging
import os
import re
import subprocess
import sys
from datetime import datetime, timezone
from typing import Optional

from .. import config
from ..exceptions import CertificateGenerationError, PDFRenderError, TemplateNotFoundError
from ..schemas import CertificateData, RenderedDocument
from .certificate_preview import render_preview

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{.*?\}\}")


def load_template(template_path: str) -> str:
    """Read the certificate HTML template"""
    logger.info(f"📄 Loading template from: {template_path}")

    if not os.path.isfile(template_path):
        logger.error(f"❌ Template not found at: {template_path}")
        raise TemplateNotFoundError("Certificate template not found")

    try:
        with open(template_path, "r", encoding="utf-8") as f:
            html = f.read()
    except OSError as e:
        logger.error(f"❌ Template not readable at {template_path}: {e}")
        raise TemplateNotFoundError("Certificate template not found") from e

    logger.info(
        "✅ Template loaded successfully",
        extra={"event": "template_loaded", "template_path": template_path, "size": len(html)},
    )
    return html


def fill_template(html: str, data: CertificateData) -> str:
    """Replace every {{field}} token with its value (literal, case-sensitive)"""
    for key, value in data.replacements().items():
        placeholder = "{{" + key + "}}"
        before_count = html.count(placeholder)
        html = html.replace(placeholder, value)
        after_count = html.count(placeholder)

        preview = value[:30] + ("..." if len(value) > 30 else "")
        logger.debug(
            f'  • {placeholder}: "{preview}" ({before_count} → {after_count} occurrences)',
            extra={
                "event": "placeholder_replaced",
                "placeholder": key,
                "before": before_count,
                "after": after_count,
            },
        )

    remaining = find_unresolved_placeholders(html)
    if remaining:
        logger.warning(
            f"⚠️ Some placeholders not replaced: {remaining}",
            extra={"event": "placeholders_unresolved", "placeholders": remaining},
        )
    return html


def find_unresolved_placeholders(html: str) -> list[str]:
    return PLACEHOLDER_PATTERN.findall(html)


def build_page_options(margin: Optional[str] = None) -> dict:
    """A4 portrait with the same margin on every side"""
    margin = margin or config.PDF_MARGIN
    return {
        "format": "A4",
        "landscape": False,
        "margin": {"top": margin, "right": margin, "bottom": margin, "left": margin},
        "print_background": True,
    }


async def html_to_pdf(html: str, timeout: float, options: Optional[dict] = None) -> bytes:
    """
    Convert HTML to PDF using Playwright via subprocess.
    The worker process is killed once `timeout` seconds have elapsed.
    """
    worker_path = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "pdf_worker.py"))
    python_exe = sys.executable

    # Encode HTML as base64 to safely pass via stdin
    html_b64 = base64.b64encode(html.encode("utf-8")).decode("utf-8")
    options_json = json.dumps(options or build_page_options())

    def run_worker() -> bytes:
        try:
            result = subprocess.run(
                [python_exe, worker_path, options_json],
                input=html_b64,
                capture_output=True,
                text=True,
                timeout=timeout,
                creationflags=subprocess.CREATE_NO_WINDOW if sys.platform == "win32" else 0,
            )
        except subprocess.TimeoutExpired as e:
            raise PDFRenderError(f"PDF generation timed out after {timeout:g} seconds") from e
        except OSError as e:
            raise PDFRenderError(f"PDF worker could not start: {e}") from e

        if result.returncode != 0:
            raise PDFRenderError(f"PDF worker failed (exit {result.returncode}): {result.stderr}")

        pdf_b64 = result.stdout.strip()
        if not pdf_b64:
            raise PDFRenderError("PDF worker returned empty output")
        return base64.b64decode(pdf_b64)

    # Run in thread pool to not block the event loop
    return await asyncio.to_thread(run_worker)


def build_fallback_html(data: CertificateData, generated_at: datetime) -> str:
    """Minimal certificate used when the template render fails"""
    fields = data.replacements()
    return f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <style>
        body {{ font-family: Arial; padding: 40px; }}
        h1 {{ color: #333; text-align: center; }}
        .certificate {{ border: 2px solid #000; padding: 30px; }}
        .field {{ margin: 15px 0; }}
        .label {{ font-weight: bold; }}
        .value {{ margin-left: 20px; }}
    </style>
</head>
<body>
    <div class="certificate">
        <h1>CERTIFICATE OF REGISTRATION</h1>
        <div class="field">
            <span class="label">Certificate Holder:</span>
            <span class="value">{fields["name"]}</span>
        </div>
        <div class="field">
            <span class="label">Business Name:</span>
            <span class="value">{fields["businessName"]}</span>
        </div>
        <div class="field">
            <span class="label">GST Number:</span>
            <span class="value">{fields["gstNumber"]}</span>
        </div>
        <div class="field">
            <span class="label">Business Address:</span>
            <span class="value">{fields["businessAddress"]}</span>
        </div>
        <div style="margin-top: 40px; text-align: right;">
            <p>Date: {generated_at.strftime("%d %B %Y")}</p>
        </div>
    </div>
</body>
</html>
"""


async def render_pdf(
    html: str, data: CertificateData, template_path: str, generated_at: datetime
) -> tuple[bytes, bool]:
    """
    Render the filled template, falling back once to the minimal document.
    Returns (pdf_bytes, used_fallback).
    """
    logger.info("🖨️ Creating PDF...")
    try:
        pdf_bytes = await html_to_pdf(
            html, timeout=config.PDF_TIMEOUT_SECONDS, options=build_page_options()
        )
        if not pdf_bytes:
            raise PDFRenderError("PDF renderer returned an empty document")
        logger.info(f"✅ PDF created successfully: {round(len(pdf_bytes) / 1024)} KB")
        return pdf_bytes, False
    except Exception as error:
        logger.error(
            f"❌ PDF creation failed: {error}",
            extra={
                "event": "pdf_render_failed",
                "template_path": template_path,
                "template_exists": os.path.exists(template_path),
                "html_length": len(html),
                "cwd": os.getcwd(),
                "python_version": sys.version.split()[0],
            },
        )

        logger.info("🔄 Attempting fallback PDF generation...")
        try:
            pdf_bytes = await html_to_pdf(
                build_fallback_html(data, generated_at),
                timeout=config.FALLBACK_PDF_TIMEOUT_SECONDS,
                options=build_page_options(),
            )
            if not pdf_bytes:
                raise PDFRenderError("PDF renderer returned an empty document")
        except Exception as fallback_error:
            logger.error(f"❌ Fallback also failed: {fallback_error}")
            raise CertificateGenerationError(
                f"Certificate generation failed: {error}"
            ) from fallback_error

        logger.info(
            f"✅ Fallback PDF generated: {len(pdf_bytes)} bytes",
            extra={"event": "pdf_fallback_used", "size": len(pdf_bytes)},
        )
        return pdf_bytes, True


def save_debug_pdf(pdf_bytes: bytes) -> None:
    if config.APP_ENV != "development":
        return
    try:
        with open(config.DEBUG_PDF_PATH, "wb") as f:
            f.write(pdf_bytes)
        logger.info(f"📁 Debug PDF saved to: {config.DEBUG_PDF_PATH}")
    except OSError as e:
        logger.warning(f"Could not save debug PDF to {config.DEBUG_PDF_PATH}: {e}")


async def generate_certificate(data: CertificateData) -> RenderedDocument:
    """
    Produce the certificate PDF and its preview image.

    Raises:
        TemplateNotFoundError: the template file is missing or unreadable
        CertificateGenerationError: both the template and the fallback render failed
    """
    template_path = config.CERTIFICATE_TEMPLATE_PATH
    generated_at = datetime.now(timezone.utc)

    html = fill_template(load_template(template_path), data)

    logger.info("🚀 Starting PDF generation...")
    pdf_bytes, pdf_fallback = await render_pdf(html, data, template_path, generated_at)
    save_debug_pdf(pdf_bytes)

    preview_bytes, preview_fallback = render_preview(data, generated_at)

    metadata = {
        "name": data.name,
        "gstNumber": data.gstNumber,
        "businessName": data.businessName,
        "generatedAt": generated_at.isoformat(),
        "pdfSize": len(pdf_bytes),
        "jpgSize": len(preview_bytes),
        "pdfFallback": pdf_fallback,
        "previewFallback": preview_fallback,
    }
    logger.info(
        "🎉 Certificate generation complete!",
        extra={"event": "certificate_generated", **{f"certificate_{k}": v for k, v in metadata.items()}},
    )
    return RenderedDocument(pdf_bytes=pdf_bytes, preview_bytes=preview_bytes, metadata=metadata)
