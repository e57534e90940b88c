"""Tests for the Chromium PDF worker, with Playwright replaced by fakes."""

from types import SimpleNamespace

from certify import pdf_worker
from certify.services.certificate_generator import build_page_options

from .conftest import FAKE_PDF


class FakePage:
    def __init__(self):
        self.routes = []
        self.content = None
        self.pdf_kwargs = None

    def route(self, pattern, handler):
        self.routes.append((pattern, handler))

    def set_content(self, html, wait_until=None):
        self.content = (html, wait_until)

    def pdf(self, **kwargs):
        self.pdf_kwargs = kwargs
        return FAKE_PDF


class FakeBrowser:
    def __init__(self, page):
        self.page = page
        self.closed = False

    def new_page(self):
        return self.page

    def close(self):
        self.closed = True


class FakePlaywright:
    def __init__(self, browser):
        self.chromium = SimpleNamespace(launch=lambda: browser)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeRoute:
    def __init__(self, url):
        self.request = SimpleNamespace(url=url)
        self.action = None

    def continue_(self):
        self.action = "continue"

    def abort(self):
        self.action = "abort"


def install_fake_playwright(monkeypatch):
    page = FakePage()
    browser = FakeBrowser(page)
    monkeypatch.setattr(pdf_worker, "sync_playwright", lambda: FakePlaywright(browser))
    return page, browser


def test_generate_pdf_passes_page_geometry(monkeypatch):
    page, browser = install_fake_playwright(monkeypatch)

    pdf = pdf_worker.generate_pdf("<p>certificate</p>", build_page_options("15mm"))

    assert pdf == FAKE_PDF
    assert page.content == ("<p>certificate</p>", "networkidle")
    assert page.pdf_kwargs["format"] == "A4"
    assert page.pdf_kwargs["landscape"] is False
    assert page.pdf_kwargs["margin"] == {
        "top": "15mm", "right": "15mm", "bottom": "15mm", "left": "15mm"
    }
    assert page.pdf_kwargs["print_background"] is True
    assert browser.closed is True


def test_generate_pdf_fills_in_defaults(monkeypatch):
    page, _ = install_fake_playwright(monkeypatch)

    pdf_worker.generate_pdf("<p>certificate</p>", {"margin": {"top": "1in"}})

    assert page.pdf_kwargs["format"] == "A4"
    assert page.pdf_kwargs["landscape"] is False
    assert page.pdf_kwargs["margin"] == {"top": "1in"}


def test_generate_pdf_blocks_network_requests(monkeypatch):
    page, _ = install_fake_playwright(monkeypatch)

    pdf_worker.generate_pdf("<img src='http://169.254.169.254/latest/meta-data'>", {})

    assert [pattern for pattern, _ in page.routes] == ["**/*"]
    handler = page.routes[0][1]

    metadata = FakeRoute("http://169.254.169.254/latest/meta-data")
    handler(metadata)
    assert metadata.action == "abort"

    inline = FakeRoute("data:image/png;base64,iVBORw0KGgo=")
    handler(inline)
    assert inline.action == "continue"
