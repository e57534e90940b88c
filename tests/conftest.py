import pytest
from fastapi.testclient import TestClient

from certify import config
from certify.exceptions import PDFRenderError
from certify.main import app
from certify.schemas import CertificateData, DeliveryOutcome
from certify.services import certificate_generator
from certify.services.delivery import DeliveryRegistry

FAKE_PDF = b"%PDF-1.4\n% fake certificate document\n%%EOF"

JANE = {
    "name": "Jane Doe",
    "email": "jane@example.com",
    "gstNumber": "GST123",
    "businessName": "Acme Co",
    "businessAddress": "1 Main St",
}


class FakePDFRenderer:
    """Stands in for html_to_pdf; fails the first `fail_times` calls."""

    def __init__(self, fail_times: int = 0, pdf: bytes = FAKE_PDF):
        self.fail_times = fail_times
        self.pdf = pdf
        self.calls = []

    async def __call__(self, html, timeout, options=None):
        self.calls.append({"html": html, "timeout": timeout, "options": options})
        if len(self.calls) <= self.fail_times:
            raise PDFRenderError("Chromium crashed")
        return self.pdf


class RecordingSender:
    def __init__(self, success: bool = True):
        self.success = success
        self.calls = []

    async def __call__(self, to_email, pdf_bytes, preview_bytes):
        from datetime import datetime, timezone

        self.calls.append((to_email, pdf_bytes, preview_bytes))
        if self.success:
            return DeliveryOutcome(
                success=True,
                recipient=to_email,
                timestamp=datetime.now(timezone.utc),
                message_id="msg_test",
            )
        return DeliveryOutcome(
            success=False,
            recipient=to_email,
            timestamp=datetime.now(timezone.utc),
            error="connection refused",
            note="Certificate was generated successfully",
        )


@pytest.fixture
def certificate_data():
    return CertificateData(
        name=JANE["name"],
        businessName=JANE["businessName"],
        gstNumber=JANE["gstNumber"],
        businessAddress=JANE["businessAddress"],
    )


@pytest.fixture
def fake_pdf(monkeypatch):
    renderer = FakePDFRenderer()
    monkeypatch.setattr(certificate_generator, "html_to_pdf", renderer)
    return renderer


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "APP_ENV", "test")
    monkeypatch.setattr(config, "RESEND_API_KEY", None)
    monkeypatch.setattr(config, "DEBUG_PDF_PATH", str(tmp_path / "debug_certificate.pdf"))


@pytest.fixture
def client():
    app.state.deliveries = DeliveryRegistry(max_size=config.DELIVERY_HISTORY_SIZE)
    with TestClient(app) as test_client:
        yield test_client
