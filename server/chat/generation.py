from __future__ import annotations

import json
from collections.abc import AsyncIterator, Sequence
from typing import Any

import httpx

from server.chat.provider_router import ProviderRoute
from server.models.chat import Message
from server.models.chat_config import OpenRouterConfig


def build_messages(
    *,
    system_prompt: str,
    history: Sequence[Message],
    user_message: str,
    max_history_messages: int,
) -> list[dict[str, Any]]:
    """System prompt, then the last `max_history_messages` turns, then the new user message."""

    turns = [m for m in history if m.role in {"user", "assistant"}]
    if max_history_messages <= 0:
        turns = []
    elif len(turns) > max_history_messages:
        turns = turns[-max_history_messages:]

    messages: list[dict[str, Any]] = [{"role": "system", "content": system_prompt}]
    messages.extend({"role": m.role, "content": m.content} for m in turns)
    messages.append({"role": "user", "content": user_message})
    return messages


def _request_headers(route: ProviderRoute, openrouter_cfg: OpenRouterConfig) -> dict[str, str]:
    if not route.api_key:
        if route.kind == "openrouter":
            raise RuntimeError("OpenRouter enabled but OPENROUTER_API_KEY is not set")
        raise RuntimeError("Cloud provider enabled but API key is not set")

    headers: dict[str, str] = {
        "Authorization": f"Bearer {route.api_key}",
        "Content-Type": "application/json",
    }
    # OpenRouter recommends providing app identity headers.
    if route.kind == "openrouter":
        site_name = (openrouter_cfg.site_name or "").strip()
        if site_name:
            headers["X-Title"] = site_name
    return headers


def _summarize_provider_error(resp: httpx.Response) -> str:
    """Best-effort extraction of provider error details (safe for UI/debug logs)."""
    try:
        raw = resp.text or ""
    except (httpx.ResponseNotRead, UnicodeDecodeError):
        raw = ""

    if not raw:
        return ""

    try:
        data: Any = json.loads(raw)
    except json.JSONDecodeError:
        return raw.strip()[:400]

    # OpenAI-style: {"error": {"message": "...", ...}}
    if isinstance(data, dict):
        err = data.get("error")
        if isinstance(err, dict):
            msg = err.get("message")
            if isinstance(msg, str) and msg.strip():
                return msg.strip()
            return json.dumps(err, ensure_ascii=False)[:400]
        # OpenRouter sometimes: {"message":"..."} or {"error":"..."}
        msg = data.get("message") or data.get("error")
        if isinstance(msg, str) and msg.strip():
            return msg.strip()

    return raw.strip()[:400]


def _provider_failure(route: ProviderRoute, exc: httpx.HTTPError) -> RuntimeError:
    if isinstance(exc, httpx.HTTPStatusError):
        status = int(exc.response.status_code or 0)
        if status == 401:
            if route.kind == "openrouter":
                return RuntimeError("OpenRouter unauthorized (check OPENROUTER_API_KEY)")
            return RuntimeError("OpenAI unauthorized (check OPENAI_API_KEY)")
        msg = _summarize_provider_error(exc.response)
        detail = f": {msg}" if msg else ""
        return RuntimeError(f"LLM request failed (HTTP {status}){detail}")
    return RuntimeError(
        f"Provider request failed ({route.kind} {route.provider_name} @ {route.base_url}): "
        f"{type(exc).__name__}: {exc}"
    )


def _text_from_content(content: Any) -> str | None:
    if isinstance(content, str):
        return content
    # Some providers use a list of parts: [{"type":"text","text":"..."}]
    if isinstance(content, list):
        parts: list[str] = []
        for p in content:
            if isinstance(p, str) and p.strip():
                parts.append(p)
            elif isinstance(p, dict):
                t = p.get("text")
                if isinstance(t, str) and t.strip():
                    parts.append(t)
        if parts:
            return "\n".join(parts)
    return None


def _raise_on_error_payload(data: Any) -> None:
    # Some gateways return HTTP 200 (or a mid-stream chunk) with an error payload.
    if not isinstance(data, dict):
        return
    err = data.get("error")
    if not err:
        return
    if isinstance(err, dict):
        msg = err.get("message")
        if isinstance(msg, str) and msg.strip():
            raise RuntimeError(msg.strip())
        raise RuntimeError(json.dumps(err, ensure_ascii=False)[:400])
    raise RuntimeError(str(err).strip())


def _extract_text_from_chat_completions_response(data: Any) -> str:
    """Extract assistant text from an OpenAI-compatible chat completions response."""

    _raise_on_error_payload(data)
    if not isinstance(data, dict):
        raise RuntimeError("Provider returned non-JSON object response")

    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        raise RuntimeError("Provider response missing choices[]")

    choice0 = choices[0]
    if not isinstance(choice0, dict):
        raise RuntimeError("Provider response has invalid choices[0]")

    if isinstance(choice0.get("text"), str) and choice0["text"].strip():
        return str(choice0["text"])

    msg = choice0.get("message")
    if isinstance(msg, dict):
        refusal = msg.get("refusal")
        if isinstance(refusal, str) and refusal.strip():
            return refusal.strip()
        text = _text_from_content(msg.get("content"))
        if text is not None:
            return text

    raise RuntimeError("Provider response missing assistant content")


def _payload(route: ProviderRoute, messages: list[dict[str, Any]], *, temperature: float, max_tokens: int, stream: bool) -> dict[str, Any]:
    return {
        "model": route.model,
        "messages": messages,
        "temperature": float(temperature),
        "max_tokens": int(max_tokens),
        "stream": stream,
    }


async def generate_chat_text(
    *,
    route: ProviderRoute,
    openrouter_cfg: OpenRouterConfig,
    messages: list[dict[str, Any]],
    temperature: float,
    max_tokens: int,
    timeout_s: float = 120.0,
) -> tuple[str, str | None]:
    """Generate a single non-streaming chat response.

    Returns (text, provider_response_id). Raises RuntimeError on any provider failure.
    """

    url = f"{route.base_url.rstrip('/')}/chat/completions"
    headers = _request_headers(route, openrouter_cfg)
    payload = _payload(route, messages, temperature=temperature, max_tokens=max_tokens, stream=False)

    async with httpx.AsyncClient(timeout=timeout_s) as client:
        try:
            resp = await client.post(url, headers=headers, json=payload)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise _provider_failure(route, e) from e

    try:
        data: Any = resp.json()
    except json.JSONDecodeError as e:
        raise RuntimeError(f"LLM response parse failed: {e}") from e

    try:
        text = _extract_text_from_chat_completions_response(data)
    except RuntimeError as e:
        raise RuntimeError(f"LLM response parse failed: {e}") from e

    rid = data.get("id")
    provider_response_id = rid.strip() if isinstance(rid, str) and rid.strip() else None
    return text, provider_response_id


def _delta_text(chunk: dict[str, Any], *, yielded_any: bool) -> str | None:
    choices = chunk.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return None
    c0 = choices[0]

    delta = c0.get("delta")
    if isinstance(delta, dict):
        content = delta.get("content")
        if isinstance(content, str) and content:
            return content

    # Some providers emit the full message in-stream (no deltas).
    if not yielded_any:
        msg = c0.get("message")
        if isinstance(msg, dict):
            text = _text_from_content(msg.get("content"))
            if text and text.strip():
                return text
        if isinstance(c0.get("text"), str) and c0["text"].strip():
            return str(c0["text"])
    return None


async def stream_chat_text(
    *,
    route: ProviderRoute,
    openrouter_cfg: OpenRouterConfig,
    messages: list[dict[str, Any]],
    temperature: float,
    max_tokens: int,
    timeout_s: float = 120.0,
) -> AsyncIterator[str]:
    """Stream chat response deltas (OpenAI-compatible chat completions stream)."""

    url = f"{route.base_url.rstrip('/')}/chat/completions"
    headers = _request_headers(route, openrouter_cfg)
    payload = _payload(route, messages, temperature=temperature, max_tokens=max_tokens, stream=True)

    yielded_any = False
    async with httpx.AsyncClient(timeout=timeout_s) as client:
        try:
            async with client.stream("POST", url, headers=headers, json=payload) as resp:
                resp.raise_for_status()
                async for raw_line in resp.aiter_lines():
                    line = (raw_line or "").strip()
                    if not line.startswith("data:"):
                        continue
                    data_str = line[len("data:") :].strip()
                    if data_str == "[DONE]":
                        break
                    try:
                        chunk = json.loads(data_str)
                    except json.JSONDecodeError:
                        continue
                    if not isinstance(chunk, dict):
                        continue
                    _raise_on_error_payload(chunk)
                    text = _delta_text(chunk, yielded_any=yielded_any)
                    if text:
                        yielded_any = True
                        yield text
        except httpx.HTTPError as e:
            raise _provider_failure(route, e) from e

    if not yielded_any:
        raise RuntimeError("LLM stream produced no content (provider may not support OpenAI streaming format)")
