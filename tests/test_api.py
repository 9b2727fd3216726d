import io

import pikepdf
import pytest
from fastapi.testclient import TestClient

import main
from utils.validation import (
    FontEmbeddingError,
    MemoryLimitError,
    PdfExtractionError,
    ProcessingTimeoutError,
)

from conftest import build_test_font, read_page_operations

REPLACEMENT = "+1-999-111-2222"


@pytest.fixture
def client():
    return TestClient(main.app)


def _upload(pdf_bytes, filename="call_now.pdf"):
    return {"file": (filename, pdf_bytes, "application/pdf")}


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["message"] == "PDF Phone Number Replacer API"


def test_health(client, monkeypatch):
    monkeypatch.setattr(main, "validate_processing_environment", lambda: (True, None))

    response = client.get("/health")

    assert response.status_code == 200
    assert set(response.json()["dependencies"]) == {"pdfminer", "pdfplumber", "pikepdf", "fonttools", "pydantic"}


def test_health_reports_low_resources(client, monkeypatch):
    monkeypatch.setattr(main, "validate_processing_environment", lambda: (False, "Insufficient memory"))

    response = client.get("/health")

    assert response.status_code == 503
    assert response.json()["status"] == "unhealthy"


@pytest.mark.parametrize("mode, suffix", [("inplace", "inplace"), ("presentable", "presentable"), ("reflow", "presentable")])
def test_replace_returns_pdf(client, call_now_pdf, mode, suffix):
    response = client.post(
        "/replace-phone-numbers",
        files=_upload(call_now_pdf),
        data={"replacement": REPLACEMENT, "mode": mode},
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert f'filename="call_now-{suffix}.pdf"' in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


def test_replacement_count_header(client, call_now_pdf):
    response = client.post("/replace-phone-numbers", files=_upload(call_now_pdf), data={"replacement": REPLACEMENT})

    assert response.headers[main.REPLACEMENT_COUNT_HEADER] == "1"


def test_default_replacement_used(client, call_now_pdf):
    response = client.post("/replace-phone-numbers", files=_upload(call_now_pdf))

    assert response.status_code == 200
    with pikepdf.open(io.BytesIO(response.content)) as pdf:
        shown = [bytes(operands[0]) for operands, op in read_page_operations(pdf.pages[0]) if op == b'Tj']
    assert main.DEFAULT_REPLACEMENT_NUMBER.encode() in shown


@pytest.mark.parametrize("files, data", [
    ({"file": ("notes.txt", b"%PDF-1.4", "text/plain")}, {}),
    ({"file": ("fake.pdf", b"hello world", "application/pdf")}, {}),
    (None, {"replacement": "   "}),
    (None, {"mode": "sideways"}),
])
def test_bad_requests(client, call_now_pdf, files, data):
    response = client.post("/replace-phone-numbers", files=files or _upload(call_now_pdf), data=data)

    assert response.status_code == 400


@pytest.mark.parametrize("error, status", [
    (PdfExtractionError("cannot parse"), 400),
    (FontEmbeddingError("no font"), 422),
    (ProcessingTimeoutError("too slow"), 408),
    (MemoryLimitError("too big"), 507),
    (RuntimeError("boom"), 500),
])
def test_errors_map_to_status(client, call_now_pdf, monkeypatch, error, status):
    def failing(*args, **kwargs):
        raise error

    monkeypatch.setattr(main, "replace_phone_numbers_detailed", failing)

    response = client.post("/replace-phone-numbers", files=_upload(call_now_pdf))

    assert response.status_code == status


def test_batch(client, call_now_pdf, flyer_pdf):
    files = [
        ("files", ("call_now.pdf", call_now_pdf, "application/pdf")),
        ("files", ("broken.pdf", b"junk", "application/pdf")),
        ("files", ("flyer.pdf", flyer_pdf, "application/pdf")),
    ]

    response = client.post("/replace-phone-numbers/batch", files=files, data={"replacement": REPLACEMENT})

    assert response.status_code == 200
    body = response.json()
    assert (body["succeeded"], body["failed"]) == (2, 1)
    assert [r["success"] for r in body["results"]] == [True, False, True]
    assert body["results"][1]["error"]


def test_batch_rejects_blank_replacement(client, call_now_pdf):
    files = [("files", ("call_now.pdf", call_now_pdf, "application/pdf"))]

    response = client.post("/replace-phone-numbers/batch", files=files, data={"replacement": " "})

    assert response.status_code == 400


def test_uploaded_font_is_embedded(client, call_now_pdf):
    files = _upload(call_now_pdf)
    files["font"] = ("digits.ttf", build_test_font("+-0123456789"), "font/ttf")

    response = client.post("/replace-phone-numbers", files=files, data={"replacement": REPLACEMENT})

    assert response.status_code == 200
    with pikepdf.open(io.BytesIO(response.content)) as pdf:
        fonts = pdf.pages[0].obj.Resources.Font
        subtypes = [fonts[key].Subtype for key in fonts.keys()]
    assert pikepdf.Name.Type0 in subtypes


def test_unloadable_font_upload_is_rejected(client, call_now_pdf):
    files = _upload(call_now_pdf)
    files["font"] = ("broken.ttf", b"not a font", "font/ttf")

    response = client.post("/replace-phone-numbers", files=files)

    assert response.status_code == 422


def test_batch_rejects_unloadable_font(client, call_now_pdf):
    files = [
        ("files", ("call_now.pdf", call_now_pdf, "application/pdf")),
        ("font", ("broken.ttf", b"not a font", "font/ttf")),
    ]

    response = client.post("/replace-phone-numbers/batch", files=files)

    assert response.status_code == 422
