"""Chat configuration models (thin re-export).

The source of truth lives in `server/models/docs_config_model.py`. This module
exists only as a stable, focused import path for chat config models and must
not define any new Pydantic models.
"""

from .docs_config_model import (  # noqa: F401
    ChatConfig,
    ContextConfig,
    OpenRouterConfig,
)

__all__ = [
    "ChatConfig",
    "ContextConfig",
    "OpenRouterConfig",
]
