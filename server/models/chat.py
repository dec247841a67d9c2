"""Chat wire models (thin re-export of docs_config_model.py)."""

from .docs_config_model import (  # noqa: F401
    ChatDebugInfo,
    ChatRequest,
    ChatResponse,
    Message,
)

__all__ = ["ChatDebugInfo", "ChatRequest", "ChatResponse", "Message"]
