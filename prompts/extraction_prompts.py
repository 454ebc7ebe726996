"""LLM prompt templates for loan document extraction and Q&A.

Used by the pipeline to OCR scans, pull the fixed loan fields out of the
document text and answer follow-up questions about it.
"""

# Fixed set of fields pulled from every uploaded document (order is preserved in prompts)
FIELD_NAMES: tuple[str, ...] = (
    "Customer Name",
    "Loan Amount",
    "PAN/Aadhaar",
    "Loan Tenure",
    "Collateral Type",
)

OCR_PROMPTS: dict[str, str] = {
    "pdf": (
        "Extract all legible text from every page of this PDF as plain text. "
        "Keep reading order if possible."
    ),
    "image": "Extract all visible text content from this image as plain text.",
}

FIELD_EXTRACTION_PROMPT = (
    "Extract the following fields from this loan document. "
    "Respond ONLY with a valid JSON object with these exact keys: {keys}. "
    "If a field is missing, set it to an empty string."
)

ANSWER_PROMPT = (
    "You are a helpful loan document assistant. "
    "Use the document and the prior Q&A context to answer."
)


def get_field_extraction_prompt(document_text: str) -> str:
    """Build the full field-extraction prompt for a document."""
    keys = ", ".join(f'"{name}"' for name in FIELD_NAMES)
    base = FIELD_EXTRACTION_PROMPT.format(keys=keys)
    return f"{base}\n\nDocument:\n{document_text}"


def get_answer_prompt(document_text: str, question: str, history_block: str = "") -> str:
    """Build the Q&A prompt. `history_block` is empty or ends with a blank line."""
    return f"{ANSWER_PROMPT}\n\nDocument:\n{document_text}\n\n{history_block}Question:\n{question}"
