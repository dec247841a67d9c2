"""Provider routing for the docs assistant.

Deterministic selection of the chat provider route based on config +
environment, with no network calls or side effects.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from server.models.chat_config import ChatConfig

_OPENAI_DEFAULT_BASE_URL = "https://api.openai.com/v1"


@dataclass(frozen=True, slots=True)
class ProviderRoute:
    """Selected chat provider route.

    Fields are simple so callers can use them to construct an
    OpenAI-compatible request.
    """

    kind: str  # one of: 'openrouter' | 'cloud_direct'
    provider_name: str
    base_url: str
    model: str
    api_key: str | None


def _openrouter_route(chat_config: ChatConfig, model: str, api_key: str) -> ProviderRoute:
    return ProviderRoute(
        kind="openrouter",
        provider_name="OpenRouter",
        base_url=chat_config.openrouter.base_url,
        model=model or chat_config.openrouter.default_model,
        api_key=api_key,
    )


def select_provider_route(*, chat_config: ChatConfig, model_override: str = "") -> ProviderRoute:
    """Select the provider route for a chat request.

    Selection order:
    1) `openrouter:<id>` forces OpenRouter (must be enabled with a key).
    2) OpenRouter when enabled and OPENROUTER_API_KEY is set.
    3) OpenAI-compatible direct when OPENAI_API_KEY is set. A leading
       `openai/` on the model id is stripped.

    Raises:
        RuntimeError: no provider is configured for the request.
    """

    override = (model_override or "").strip()
    openrouter_api_key = os.getenv("OPENROUTER_API_KEY", "").strip()
    openai_api_key = os.getenv("OPENAI_API_KEY", "").strip()
    openai_base_url = (chat_config.openai_base_url or "").strip() or _OPENAI_DEFAULT_BASE_URL

    openrouter_ready = bool(chat_config.openrouter.enabled and openrouter_api_key)

    if override.lower().startswith("openrouter:"):
        if not openrouter_ready:
            raise RuntimeError(
                "OpenRouter not ready (enable config.chat.openrouter.enabled and set OPENROUTER_API_KEY)"
            )
        return _openrouter_route(chat_config, override.split(":", 1)[1].strip(), openrouter_api_key)

    if openrouter_ready:
        return _openrouter_route(chat_config, override, openrouter_api_key)

    if openai_api_key:
        model = override or chat_config.model
        if model.lower().startswith("openai/"):
            model = model.split("/", 1)[1].strip()
        if "/" in model:
            raise RuntimeError(
                f"Model '{model}' requires OpenRouter. "
                "Enable config.chat.openrouter.enabled and set OPENROUTER_API_KEY."
            )
        return ProviderRoute(
            kind="cloud_direct",
            provider_name="OpenAI",
            base_url=openai_base_url,
            model=model,
            api_key=openai_api_key,
        )

    raise RuntimeError(
        "No chat provider configured. Enable OpenRouter "
        "(config.chat.openrouter.enabled + OPENROUTER_API_KEY) or set OPENAI_API_KEY."
    )
