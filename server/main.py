from __future__ import annotations

import logging
from pathlib import Path


# Load repo-root .env early so env-backed secrets (API keys) are available even
# when the backend is started directly (e.g. `uvicorn server.main:app`).
#
# IMPORTANT:
# - Never override already-set environment variables.
# - No error if .env is missing (CI/prod).
def _load_dotenv_file(dotenv_path: Path) -> bool:
    """Best-effort dotenv loader for local/dev.

    Returns True if a file existed and was loaded, otherwise False.
    Never overrides already-set environment variables.
    """
    from dotenv import load_dotenv

    if not dotenv_path.exists():
        return False
    return bool(load_dotenv(dotenv_path=dotenv_path, override=False))


_load_dotenv_file(Path(__file__).resolve().parents[1] / ".env")

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import Response

from server.api.chat import router as chat_router
from server.api.glossary import router as glossary_router
from server.api.health import router as health_router
from server.api.schema import router as schema_router
from server.config import load_config_or_default
from server.observability.metrics import render_latest

_global_cfg = load_config_or_default()
logging.getLogger("server").setLevel(_global_cfg.tracing.log_level)

app = FastAPI(title="GraphQL Docs Assistant", version="0.1.0")

# Allow local dev UIs (Vite, Next.js, etc.) to call the API without CORS issues.
app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1|\[::1\])(?::\d+)?$",
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/metrics")
async def metrics() -> Response:
    body, content_type = render_latest()
    return Response(content=body, media_type=content_type)


app.include_router(health_router, prefix="/api")
app.include_router(chat_router, prefix="/api")
app.include_router(glossary_router, prefix="/api")
app.include_router(schema_router, prefix="/api")
