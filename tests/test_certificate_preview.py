"""Tests for the preview image and its text fallback."""

import io
import logging
from datetime import datetime, timezone

from PIL import Image, ImageDraw

from certify.schemas import CertificateData
from certify.services import certificate_preview
from certify.services.certificate_preview import (
    CANVAS_SIZE,
    FIELD_GAP,
    FIELDS_TOP,
    FOOTER_Y,
    LINE_HEIGHT,
    MAX_LINE_WIDTH,
    MAX_LINES_PER_FIELD,
    layout_fields,
    load_font,
    make_certificate_id,
    render_preview,
    render_text_preview,
    to_base36,
    wrap_text,
)

ISSUED = datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_render_preview_draws_jpeg(certificate_data):
    preview, used_fallback = render_preview(certificate_data, ISSUED)

    assert used_fallback is False
    assert preview[:2] == b"\xff\xd8"
    with Image.open(io.BytesIO(preview)) as image:
        assert image.format == "JPEG"
        assert image.size == CANVAS_SIZE


def test_render_preview_falls_back_to_text(monkeypatch, certificate_data, caplog):
    def broken_draw(data, generated_at):
        raise OSError("no drawing surface")

    monkeypatch.setattr(certificate_preview, "draw_preview", broken_draw)

    with caplog.at_level(logging.WARNING):
        preview, used_fallback = render_preview(certificate_data, ISSUED)

    assert used_fallback is True
    text = preview.decode("utf-8")
    for value in ("Jane Doe", "Acme Co", "GST123", "1 Main St"):
        assert value in text
    assert "CERTIFICATE OF REGISTRATION" in text
    assert any(getattr(r, "event", None) == "preview_fallback_used" for r in caplog.records)


def test_text_preview_is_boxed(certificate_data):
    lines = render_text_preview(certificate_data, ISSUED).decode("utf-8").splitlines()

    assert lines[0].startswith("╔") and lines[0].endswith("╗")
    assert lines[-1].startswith("╚") and lines[-1].endswith("╝")
    assert len({len(line) for line in lines}) == 1


def test_text_preview_handles_empty_fields():
    preview = render_text_preview(CertificateData(), ISSUED)

    assert preview
    assert "Business Name:" in preview.decode("utf-8")


def test_wrap_text_respects_max_width():
    image = Image.new("RGB", (100, 100))
    draw = ImageDraw.Draw(image)
    font = load_font(24)
    address = "Unit 42, Industrial Estate Phase II, Near Old Railway Crossing, Main Road, Springfield"

    lines = wrap_text(draw, address, font, 300)

    assert len(lines) > 1
    assert " ".join(lines) == address
    for line in lines:
        assert draw.textlength(line, font=font) <= 300 or " " not in line


def test_wrap_text_empty_value():
    draw = ImageDraw.Draw(Image.new("RGB", (10, 10)))

    assert wrap_text(draw, "", load_font(12), 100) == [""]


def test_certificate_id_is_base36_milliseconds():
    assert to_base36(0) == "0"
    assert to_base36(35) == "Z"
    assert to_base36(36) == "10"
    assert make_certificate_id(ISSUED) == "CERT-" + to_base36(1704067200000)


LONG_ADDRESS = (
    "Unit 42, Industrial Estate Phase II, Near Old Railway Crossing, "
    "Main Road, Springfield 560001"
)


def test_text_preview_wraps_long_values_without_losing_text():
    data = CertificateData(name="Jane Doe", businessAddress=LONG_ADDRESS)

    lines = render_text_preview(data, ISSUED).decode("utf-8").splitlines()

    assert len({len(line) for line in lines}) == 1
    body = " ".join(line.strip("║ ") for line in lines)
    assert " ".join(body.split()).count(LONG_ADDRESS) == 1


def test_layout_keeps_long_values_above_footer():
    draw = ImageDraw.Draw(Image.new("RGB", CANVAS_SIZE))
    font = load_font(24)
    huge = " ".join([LONG_ADDRESS] * 6)
    data = CertificateData(name=huge, businessName=huge, gstNumber=huge, businessAddress=huge)

    layout = layout_fields(draw, data, font)

    rows = sum(len(lines) for _, lines in layout)
    bottom = FIELDS_TOP + rows * LINE_HEIGHT + (len(layout) - 1) * FIELD_GAP
    assert bottom < FOOTER_Y
    for _, lines in layout:
        assert len(lines) <= MAX_LINES_PER_FIELD
        assert lines[-1].endswith("...")
        for line in lines:
            assert draw.textlength(line, font=font) <= MAX_LINE_WIDTH


def test_layout_truncates_unbreakable_value():
    draw = ImageDraw.Draw(Image.new("RGB", CANVAS_SIZE))
    font = load_font(24)

    layout = layout_fields(draw, CertificateData(gstNumber="X" * 200), font)

    gst_lines = dict(layout)["GST Number"]
    assert len(gst_lines) == 1
    assert gst_lines[0].endswith("...")
    assert draw.textlength(gst_lines[0], font=font) <= MAX_LINE_WIDTH
