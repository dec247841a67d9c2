"""Operation catalog models (thin re-export of docs_config_model.py)."""

from .docs_config_model import (  # noqa: F401
    ApiCatalog,
    ApiCategory,
    ApiConfig,
    ArgInfo,
    FieldInfo,
    OperationInfo,
    RateLimits,
    TypeDetails,
)

__all__ = [
    "ApiCatalog",
    "ApiCategory",
    "ApiConfig",
    "ArgInfo",
    "FieldInfo",
    "OperationInfo",
    "RateLimits",
    "TypeDetails",
]
