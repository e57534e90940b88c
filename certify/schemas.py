from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel


# Certificate request/response schemas
class CertificateGenerateRequest(BaseModel):
    # Optional at the parsing layer so the route can answer 400 instead of 422
    name: Optional[str] = None
    email: Optional[str] = None
    gstNumber: Optional[str] = None
    businessName: Optional[str] = None
    businessAddress: Optional[str] = None

    def missing_fields(self) -> list[str]:
        return [key for key, value in self.model_dump().items() if not value]


class CertificateGenerateResponse(BaseModel):
    message: str
    pdfSize: int
    jpgSize: int


class ErrorResponse(BaseModel):
    error: str


class GenerationFailedResponse(BaseModel):
    message: str
    error: str


@dataclass(frozen=True)
class CertificateData:
    """The four fields printed on a certificate (email is delivery-only)."""

    name: str = ""
    businessName: str = ""
    gstNumber: str = ""
    businessAddress: str = ""

    def replacements(self) -> Dict[str, str]:
        return {
            "name": self.name or "",
            "businessName": self.businessName or "",
            "gstNumber": self.gstNumber or "",
            "businessAddress": self.businessAddress or "",
        }


@dataclass(frozen=True)
class RenderedDocument:
    pdf_bytes: bytes
    preview_bytes: bytes
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def pdf_size(self) -> int:
        return len(self.pdf_bytes)

    @property
    def preview_size(self) -> int:
        return len(self.preview_bytes)


@dataclass(frozen=True)
class DeliveryOutcome:
    success: bool
    recipient: str
    timestamp: datetime
    message_id: Optional[str] = None
    error: Optional[str] = None
    note: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {
                "success": True,
                "messageId": self.message_id,
                "recipient": self.recipient,
                "sentAt": self.timestamp.isoformat(),
            }
        return {
            "success": False,
            "error": self.error,
            "recipient": self.recipient,
            "attemptedAt": self.timestamp.isoformat(),
            "note": self.note,
        }
