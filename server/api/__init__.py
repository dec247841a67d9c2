from server.api import chat, deps, glossary, health, schema

__all__ = [
    "chat",
    "deps",
    "glossary",
    "health",
    "schema",
]
