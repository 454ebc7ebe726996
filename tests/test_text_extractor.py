import asyncio

import fitz
import pytest

from conftest import FakeModel
from pipeline.llm import ConfigurationError
from pipeline.text_extractor import ExtractionStrategy, extract_text
from prompts.extraction_prompts import OCR_PROMPTS


def _pdf_bytes(lines):
    doc = fitz.open()
    page = doc.new_page()
    y = 72
    for line in lines:
        page.insert_text((72, y), line)
        y += 18
    data = doc.tobytes()
    doc.close()
    return data


LOAN_LINES = [
    "Loan Agreement",
    "Customer Name: Jane Doe",
    "Loan Amount: 500000 INR",
    "Loan Tenure: 36 months",
]


def test_native_pdf_text_skips_ocr():
    model = FakeModel(media_reply="should not be used")
    text = asyncio.run(extract_text(_pdf_bytes(LOAN_LINES), "application/pdf", model))

    assert "Customer Name: Jane Doe" in text
    assert "Loan Tenure: 36 months" in text
    assert model.media_calls == []


def test_scanned_pdf_falls_back_to_ocr():
    data = _pdf_bytes([])
    model = FakeModel(media_reply="  Customer Name: Jane Doe  \n")
    text = asyncio.run(extract_text(data, "application/pdf", model))

    assert text == "Customer Name: Jane Doe"
    assert len(model.media_calls) == 1
    call = model.media_calls[0]
    assert call["prompt"] == OCR_PROMPTS["pdf"]
    assert call["media_type"] == "application/pdf"
    assert call["data"] == data


def test_short_native_text_is_not_trusted():
    model = FakeModel(media_reply="full OCR text")
    text = asyncio.run(extract_text(_pdf_bytes(["p. 1"]), "application/pdf", model))
    assert text == "full OCR text"


@pytest.mark.parametrize("length, expected, ocr_calls", [
    (50, "full OCR text", 1),
    (51, "x" * 51, 0),
])
def test_native_text_must_exceed_the_threshold(monkeypatch, length, expected, ocr_calls):
    monkeypatch.setattr("pipeline.text_extractor.config.MIN_NATIVE_PDF_CHARS", 50)
    monkeypatch.setattr("pipeline.text_extractor._parse_pdf", lambda data: "x" * length)
    model = FakeModel(media_reply="full OCR text")

    text = asyncio.run(extract_text(b"%PDF-1.4", "application/pdf", model))

    assert text == expected
    assert len(model.media_calls) == ocr_calls


def test_broken_pdf_falls_back_to_ocr():
    model = FakeModel(media_reply="recovered")
    assert asyncio.run(extract_text(b"%PDF-garbage", "application/pdf", model)) == "recovered"


def test_ocr_returning_nothing_gives_empty_string():
    model = FakeModel(media_reply=None)
    assert asyncio.run(extract_text(_pdf_bytes([]), "application/pdf", model)) == ""


def test_image_goes_straight_to_ocr():
    model = FakeModel(media_reply="PAN: ABCDE1234F\n")
    text = asyncio.run(extract_text(b"\x89PNG\r\n\x1a\n", "image/png", model))

    assert text == "PAN: ABCDE1234F"
    assert model.media_calls[0]["prompt"] == OCR_PROMPTS["image"]
    assert model.media_calls[0]["media_type"] == "image/png"


def test_plain_text_is_decoded():
    model = FakeModel()
    text = asyncio.run(extract_text("Name: Jane Doe, Loan: 5000".encode("utf-8"), "text/plain", model))
    assert text == "Name: Jane Doe, Loan: 5000"
    assert model.media_calls == []


def test_undecodable_text_gives_empty_string():
    assert asyncio.run(extract_text(b"\xff\xfe\xfa", "text/plain", FakeModel())) == ""


def test_unknown_type_is_decoded_as_text():
    assert asyncio.run(extract_text(b"hello", "application/octet-stream", FakeModel())) == "hello"


def test_model_failures_propagate():
    class Unconfigured(FakeModel):
        async def generate_text_from_media(self, prompt, data, media_type):
            raise ConfigurationError("GOOGLE_API_KEY is not set in environment")

    with pytest.raises(ConfigurationError):
        asyncio.run(extract_text(b"\xff\xd8\xff", "image/jpeg", Unconfigured()))


def test_custom_strategies_run_in_order():
    calls = []

    async def first(data, media_type, model):
        calls.append("first")
        return "x"

    async def second(data, media_type, model):
        calls.append("second")
        return "second wins"

    strategies = [
        ExtractionStrategy("first", lambda mt: True, first, lambda text: len(text) > 1),
        ExtractionStrategy("skipped", lambda mt: False, second),
        ExtractionStrategy("second", lambda mt: True, second),
    ]
    assert asyncio.run(extract_text(b"", "text/plain", FakeModel(), strategies)) == "second wins"
    assert calls == ["first", "second"]


def test_no_accepted_strategy_gives_empty_string():
    async def short(data, media_type, model):
        return "x"

    strategies = [ExtractionStrategy("short", lambda mt: True, short, lambda text: False)]
    assert asyncio.run(extract_text(b"", "text/plain", FakeModel(), strategies)) == ""
