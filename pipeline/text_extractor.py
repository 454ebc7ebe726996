"""Text extraction: tiered strategies from native parse to vision OCR to raw decode.

Each strategy declares which media types it handles and when its output is good
enough. The first accepted result wins; nothing usable degrades to "".
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

import fitz  # PyMuPDF

import config
from pipeline.llm import LanguageModel
from prompts.extraction_prompts import OCR_PROMPTS


def is_pdf(media_type: str) -> bool:
    return "pdf" in (media_type or "").lower()


def is_image(media_type: str) -> bool:
    return (media_type or "").lower().startswith("image/")


def _parse_pdf(data: bytes) -> str:
    texts = []
    with fitz.open(stream=data, filetype="pdf") as doc:
        for page in doc:
            page_text = page.get_text("text")
            if page_text:
                texts.append(page_text)
    return "\n".join(texts).strip()


# ── Strategies ─────────────────────────────────────────────────────────
async def _native_pdf(data: bytes, media_type: str, model: LanguageModel) -> str:
    try:
        return await asyncio.to_thread(_parse_pdf, data)
    except Exception as e:
        # Broken or encrypted PDFs fall through to OCR
        logging.warning(f"Native PDF parse failed, falling back to OCR: {e}")
        return ""


async def _pdf_ocr(data: bytes, media_type: str, model: LanguageModel) -> str:
    text = await model.generate_text_from_media(OCR_PROMPTS["pdf"], data, "application/pdf")
    return (text or "").strip()


async def _image_ocr(data: bytes, media_type: str, model: LanguageModel) -> str:
    text = await model.generate_text_from_media(OCR_PROMPTS["image"], data, media_type)
    return (text or "").strip()


async def _utf8(data: bytes, media_type: str, model: LanguageModel) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        logging.info(f"Could not decode {media_type or 'unknown'} upload as UTF-8")
        return ""


def _long_enough(text: str) -> bool:
    """Native parsers return a few stray characters for scanned PDFs."""
    return bool(text) and len(text) > config.MIN_NATIVE_PDF_CHARS


def _always(text: str) -> bool:
    return True


@dataclass(frozen=True)
class ExtractionStrategy:
    name: str
    applies: Callable[[str], bool]
    run: Callable[[bytes, str, LanguageModel], Awaitable[str]]
    accepts: Callable[[str], bool] = _always


STRATEGIES: list[ExtractionStrategy] = [
    ExtractionStrategy("native_pdf", is_pdf, _native_pdf, _long_enough),
    ExtractionStrategy("pdf_ocr", is_pdf, _pdf_ocr),
    ExtractionStrategy("image_ocr", is_image, _image_ocr),
    ExtractionStrategy("utf8", lambda mt: not is_pdf(mt) and not is_image(mt), _utf8),
]


async def extract_text(data: bytes, media_type: str, model: LanguageModel,
                       strategies: list[ExtractionStrategy] | None = None) -> str:
    """Best-effort plain text for an upload. Model failures propagate; unreadable content gives ""."""
    for strategy in strategies if strategies is not None else STRATEGIES:
        if not strategy.applies(media_type):
            continue
        text = await strategy.run(data, media_type, model)
        if strategy.accepts(text):
            logging.info(f"Text extracted via {strategy.name} ({len(text)} chars)")
            return text
        logging.info(f"Strategy {strategy.name} rejected ({len(text or '')} chars), trying next")
    return ""
