"""API data models."""

from pydantic import BaseModel
from typing import Optional


class ProgressMessage(BaseModel):
    """Message pushed to the client over SSE."""

    type: str  # "progress", "chunk", "complete", "cancelled", "error"
    progress: Optional[int] = None
    message: Optional[str] = None
    filename: Optional[str] = None
    content: Optional[str] = None


class SSEMessageType:
    """SSE message type constants."""

    PROGRESS = "progress"
    CHUNK = "chunk"
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    ERROR = "error"

    TERMINAL = (COMPLETE, CANCELLED, ERROR)
