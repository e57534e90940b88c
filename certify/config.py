import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# "development" enables the debug PDF dump
APP_ENV = os.getenv("APP_ENV", "production")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:3000").split(
    ","
)

# Certificate template and PDF rendering
CERTIFICATE_TEMPLATE_PATH = os.getenv(
    "CERTIFICATE_TEMPLATE_PATH",
    str(Path(__file__).resolve().parent / "templates" / "certificate.html"),
)
PDF_MARGIN = os.getenv("PDF_MARGIN", "0.5in")
PDF_TIMEOUT_SECONDS = float(os.getenv("PDF_TIMEOUT_SECONDS", "30"))
FALLBACK_PDF_TIMEOUT_SECONDS = float(os.getenv("FALLBACK_PDF_TIMEOUT_SECONDS", "10"))
DEBUG_PDF_PATH = os.getenv("DEBUG_PDF_PATH", "debug_certificate.pdf")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv(
    "EMAIL_FROM_ADDRESS", "Certificate System <noreply@certify.local>"
)
# Must stay below the hosting platform's request timeout
EMAIL_SEND_TIMEOUT_SECONDS = float(os.getenv("EMAIL_SEND_TIMEOUT_SECONDS", "25"))
# Previews at or below this size are placeholders and are not attached
PREVIEW_ATTACHMENT_MIN_BYTES = int(os.getenv("PREVIEW_ATTACHMENT_MIN_BYTES", "100"))

DELIVERY_HISTORY_SIZE = int(os.getenv("DELIVERY_HISTORY_SIZE", "100"))
