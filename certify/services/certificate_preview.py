"""
Certificate preview image

Draws a JPEG preview of the certificate with Pillow. When drawing fails the
preview degrades to a box-drawing text rendition; this module never raises.
"""

import io
import logging
import textwrap
from datetime import datetime
from typing import Optional

from ..schemas import CertificateData

logger = logging.getLogger(__name__)

CANVAS_SIZE = (1200, 850)
MAX_LINE_WIDTH = 760
MAX_LINES_PER_FIELD = 3
FIELDS_TOP = 220
LINE_HEIGHT = 34
FIELD_GAP = 26
FOOTER_Y = CANVAS_SIZE[1] - 110
TEXT_PREVIEW_WIDTH = 64

COLORS = {
    "background": "#ffffff",
    "border": "#1e3a5f",
    "inner_border": "#c9a227",
    "title": "#1e3a5f",
    "label": "#374151",
    "value": "#111827",
    "muted": "#6b7280",
}

FIELD_LABELS = [
    ("name", "Certificate Holder"),
    ("businessName", "Business Name"),
    ("gstNumber", "GST Number"),
    ("businessAddress", "Business Address"),
]

FONT_CANDIDATES = {
    "regular": ["DejaVuSans.ttf", "Arial.ttf", "LiberationSans-Regular.ttf"],
    "bold": ["DejaVuSans-Bold.ttf", "Arial Bold.ttf", "LiberationSans-Bold.ttf"],
}

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def make_certificate_id(moment: datetime) -> str:
    """Pseudo identifier derived from the generation time in milliseconds"""
    return f"CERT-{to_base36(int(moment.timestamp() * 1000))}"


def load_font(size: int, weight: str = "regular"):
    from PIL import ImageFont

    for candidate in FONT_CANDIDATES[weight]:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def wrap_text(draw, text: str, font, max_width: int) -> list[str]:
    """Greedy word wrap measured in pixels; long single words get their own line"""
    lines: list[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}".strip()
        if not current or draw.textlength(candidate, font=font) <= max_width:
            current = candidate
        else:
            lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines or [""]


def truncate_line(draw, text: str, font, max_width: int) -> str:
    """Shorten `text` until it fits `max_width` with a trailing ellipsis"""
    ellipsis = "..."
    while text and draw.textlength(text + ellipsis, font=font) > max_width:
        text = text[:-1]
    return text.rstrip() + ellipsis


def layout_fields(draw, data: CertificateData, font) -> list[tuple[str, list[str]]]:
    """
    Wrap each field value, capped at MAX_LINES_PER_FIELD so the block ends
    above the footer. Values longer than that end in an ellipsis.
    """
    fields = data.replacements()
    layout = []
    for key, label in FIELD_LABELS:
        lines = wrap_text(draw, fields[key], font, MAX_LINE_WIDTH)
        # A single unbreakable word can still be wider than the column
        lines = [
            truncate_line(draw, line, font, MAX_LINE_WIDTH)
            if draw.textlength(line, font=font) > MAX_LINE_WIDTH
            else line
            for line in lines
        ]
        if len(lines) > MAX_LINES_PER_FIELD:
            lines = lines[:MAX_LINES_PER_FIELD]
            lines[-1] = truncate_line(draw, lines[-1], font, MAX_LINE_WIDTH)
        layout.append((label, lines))
    return layout


def draw_preview(data: CertificateData, generated_at: datetime) -> bytes:
    """Render the certificate layout onto a fixed-size canvas and encode it as JPEG"""
    from PIL import Image, ImageDraw

    width, height = CANVAS_SIZE
    image = Image.new("RGB", CANVAS_SIZE, COLORS["background"])
    draw = ImageDraw.Draw(image)

    draw.rectangle([20, 20, width - 20, height - 20], outline=COLORS["border"], width=8)
    draw.rectangle([44, 44, width - 44, height - 44], outline=COLORS["inner_border"], width=2)

    title_font = load_font(46, "bold")
    label_font = load_font(24, "bold")
    value_font = load_font(24)
    small_font = load_font(18)

    draw.text(
        (width / 2, 110), "CERTIFICATE OF REGISTRATION", font=title_font,
        fill=COLORS["title"], anchor="mm",
    )
    draw.line([200, 160, width - 200, 160], fill=COLORS["inner_border"], width=2)

    label_x, value_x = 110, 370
    y = FIELDS_TOP
    for label, lines in layout_fields(draw, data, value_font):
        draw.text((label_x, y), f"{label}:", font=label_font, fill=COLORS["label"])
        for line in lines:
            draw.text((value_x, y), line, font=value_font, fill=COLORS["value"])
            y += LINE_HEIGHT
        y += FIELD_GAP

    draw.text(
        (110, FOOTER_Y), f"Certificate ID: {make_certificate_id(generated_at)}",
        font=small_font, fill=COLORS["muted"],
    )
    draw.text(
        (width - 110, FOOTER_Y), f"Issued: {generated_at.strftime('%d %B %Y')}",
        font=small_font, fill=COLORS["muted"], anchor="ra",
    )

    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=90)
    return buffer.getvalue()


def render_text_preview(data: CertificateData, generated_at: datetime) -> bytes:
    """Box-drawing text rendition of the certificate"""
    inner = TEXT_PREVIEW_WIDTH - 2
    fields = data.replacements()

    def row(text: str = "") -> str:
        return f"║ {text.ljust(inner - 2)} ║"

    def rows(text: str, indent: str = "") -> list[str]:
        # Long values continue on extra rows
        wrapped = textwrap.wrap(text, inner - 2, subsequent_indent=indent) or [""]
        return [row(line) for line in wrapped]

    lines = [
        "╔" + "═" * inner + "╗",
        row("CERTIFICATE OF REGISTRATION".center(inner - 2)),
        "╠" + "═" * inner + "╣",
        row(),
    ]
    for key, label in FIELD_LABELS:
        lines += rows(f"{label}: {fields[key]}", indent=" " * (len(label) + 2))
    lines += [
        row(),
        *rows(f"Certificate ID: {make_certificate_id(generated_at)}"),
        *rows(f"Generated: {generated_at.strftime('%Y-%m-%d %H:%M:%S %Z').strip()}"),
        *rows("This is a text representation of the certificate."),
        "╚" + "═" * inner + "╝",
    ]
    return ("\n".join(lines) + "\n").encode("utf-8")


def render_preview(
    data: CertificateData, generated_at: Optional[datetime] = None
) -> tuple[bytes, bool]:
    """
    Returns (preview_bytes, used_fallback). The bytes are a JPEG, or UTF-8
    text when drawing failed.
    """
    generated_at = generated_at or datetime.now()
    try:
        preview = draw_preview(data, generated_at)
        if not preview:
            raise ValueError("preview encoder returned no data")
        logger.info(f"🖼️ Preview image created: {round(len(preview) / 1024)} KB")
        return preview, False
    except Exception as e:
        logger.warning(
            f"⚠️ Preview drawing failed, using text preview: {e}",
            extra={"event": "preview_fallback_used", "error": str(e)},
        )
        return render_text_preview(data, generated_at), True
