"""IngestState schema: single source of truth for the upload pipeline state."""

from typing import TypedDict, Any, Dict


class IngestState(TypedDict):
    """Flat state dict for one upload: raw bytes in, text + fields out."""

    # Input
    filename: str
    media_type: str
    content: bytes

    # Text extraction
    text: str
    readable: bool

    # Field extraction
    extracted: Dict[str, Any]


def initial_state(filename: str, media_type: str, content: bytes) -> IngestState:
    """Factory: returns a clean starting state for an upload."""
    return IngestState(
        filename=filename,
        media_type=media_type,
        content=content,
        text="",
        readable=False,
        extracted={},
    )
