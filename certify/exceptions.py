"""
Certificate generation errors
"""


class CertificateGenerationError(Exception):
    """Raised when a certificate cannot be produced at all."""


class TemplateNotFoundError(CertificateGenerationError):
    """Raised when the certificate HTML template cannot be loaded."""


class PDFRenderError(CertificateGenerationError):
    """Raised by a single HTML-to-PDF attempt (worker error, empty output or timeout)."""
