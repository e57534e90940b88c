"""
Standalone PDF generation worker script.
This runs as a separate process so a hung Chromium can be killed by timeout
without taking the API process down with it.

Usage: python -m certify.pdf_worker '<json page options>' < html_base64
"""

import base64
import json
import sys

from playwright.sync_api import sync_playwright

DEFAULT_OPTIONS = {
    "format": "A4",
    "landscape": False,
    "margin": {"top": "0.5in", "right": "0.5in", "bottom": "0.5in", "left": "0.5in"},
    "print_background": True,
}


def block_external_requests(route) -> None:
    """Only inline data: resources may load; submitted HTML must not reach the network"""
    if route.request.url.startswith("data:"):
        route.continue_()
    else:
        route.abort()


def generate_pdf(html: str, options: dict) -> bytes:
    """Generate PDF from HTML using Playwright"""
    pdf_options = {**DEFAULT_OPTIONS, **options}
    with sync_playwright() as p:
        browser = p.chromium.launch()
        page = browser.new_page()
        page.route("**/*", block_external_requests)
        page.set_content(html, wait_until="networkidle")
        pdf = page.pdf(**pdf_options)
        browser.close()
        return pdf


if __name__ == "__main__":
    options = json.loads(sys.argv[1]) if len(sys.argv) > 1 else {}

    # Read base64-encoded HTML from stdin
    html_b64 = sys.stdin.read()
    html = base64.b64decode(html_b64).decode("utf-8")

    pdf_bytes = generate_pdf(html, options)

    # Write base64-encoded PDF to stdout
    pdf_b64 = base64.b64encode(pdf_bytes).decode("utf-8")
    sys.stdout.write(pdf_b64)
