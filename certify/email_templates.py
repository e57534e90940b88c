"""
MJML Email Templates
Certificate delivery email, compiled to HTML by email_service
"""

from datetime import datetime
from typing import Optional

THEME = {
    "primary": "#2c3e50",
    "primary_light": "#e8edf2",
    "background": "#f9f9f9",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#333333",
    "text_muted": "#666666",
    "border": "#dddddd",
}

SENDER_DISPLAY_NAME = "Certificate System"


def get_base_template(
    title: str,
    subtitle: str,
    preview_text: str,
    content_sections: str,
    generated_at: Optional[datetime] = None,
) -> str:
    """Base MJML template wrapper for all emails"""
    generated_line = ""
    if generated_at:
        generated_line = f"""
        <mj-text align="center" font-size="12px" color="{THEME['text_muted']}" padding="4px 0 0 0">
          Generated: {generated_at.strftime("%d %B %Y, %H:%M UTC")}
        </mj-text>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="Arial, sans-serif" />
          <mj-text font-size="15px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}" width="600px">
        <!-- Header -->
        <mj-section background-color="{THEME['primary']}" padding="25px 20px">
          <mj-column>
            <mj-text align="center" font-size="26px" font-weight="600" color="#ffffff" padding="0">
              {title}
            </mj-text>
            <mj-text align="center" font-size="15px" color="#ffffff" padding="10px 0 0 0">
              {subtitle}
            </mj-text>
          </mj-column>
        </mj-section>

        <!-- Main Content -->
        <mj-section background-color="{THEME['card_bg']}" padding="30px 30px 20px 30px">
          <mj-column>
            {content_sections}
          </mj-column>
        </mj-section>

        <!-- Footer -->
        <mj-section padding="20px">
          <mj-column>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="0 0 16px 0" />
            <mj-text align="center" font-size="12px" color="{THEME['text_muted']}" padding="0">
              This is an automated email. Please do not reply.
            </mj-text>
            {generated_line}
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def certificate_ready_template(generated_at: datetime) -> str:
    """Certificate delivery MJML template"""
    content = f"""
    <mj-text>
      Dear Recipient,
    </mj-text>

    <mj-text>
      Your <strong>GST Registration Certificate</strong> has been generated successfully.
    </mj-text>

    <mj-text font-weight="600" padding-bottom="0">
      What's included:
    </mj-text>
    <mj-text padding="0 0 0 45px">
      • Official Certificate (PDF)<br/>
      • Certificate preview (JPG)
    </mj-text>

    <mj-text font-weight="600" padding-bottom="0">
      Next steps:
    </mj-text>
    <mj-text padding="0 0 0 45px">
      1. Download the attached PDF certificate<br/>
      2. Save it for your business records<br/>
      3. Print if needed
    </mj-text>

    <mj-text>
      Best regards,<br/><strong>{SENDER_DISPLAY_NAME}</strong>
    </mj-text>
    """

    return get_base_template(
        title="Certificate Ready!",
        subtitle="GST Registration Certificate",
        preview_text="Your GST Registration Certificate is attached",
        content_sections=content,
        generated_at=generated_at,
    )


def certificate_ready_text() -> str:
    """Plain-text alternative for clients that do not render HTML"""
    return f"""Dear Recipient,

Your GST Registration Certificate has been generated successfully.

Please find your certificate attached in PDF format.

Thank you for using our service.

Best regards,
{SENDER_DISPLAY_NAME}"""
