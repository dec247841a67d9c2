from __future__ import annotations

import json
import logging
from typing import Any

from server.models.catalog import OperationInfo, TypeDetails
from server.models.glossary import GlossaryEntry

logger = logging.getLogger(__name__)

MAX_TYPE_FIELDS = 20


def _json_block(value: Any) -> str | None:
    """Pretty-print example data; None when it is not structured data."""
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            return None
    if not isinstance(value, (dict, list)):
        return None
    try:
        return json.dumps(value, indent=2, ensure_ascii=False)
    except (TypeError, ValueError):
        return None


def format_operation(op: OperationInfo, *, include_example: bool) -> str:
    """Format a single operation as markdown (heading, args, return type, example)."""

    lines: list[str] = [
        f"### {op.name}",
        f"**Type:** {op.type}",
        f"**Category:** {op.category}",
        f"{op.description}",
        "",
    ]

    if op.args:
        lines.append("**Arguments:**")
        for arg in op.args:
            line = f"- `{arg.name}`: {arg.type}"
            if arg.required:
                line += " (required)"
            if arg.description:
                line += f" - {arg.description}"
            lines.append(line)
        lines.append("")

    lines.append(f"**Returns:** `{op.return_type}`")

    if include_example and op.example_query:
        lines.append("")
        lines.append("**Example:**")
        lines.append(f"```graphql\n{op.example_query}\n```")
        if op.example_variables is not None:
            variables = _json_block(op.example_variables)
            if variables is not None:
                lines.append("")
                lines.append("**Variables:**")
                lines.append(f"```json\n{variables}\n```")

    return "\n".join(lines) + "\n\n"


def format_type(type_details: TypeDetails) -> str:
    """Format a type as markdown; objects show at most MAX_TYPE_FIELDS fields."""

    lines: list[str] = [f"### {type_details.name}", f"**Kind:** {type_details.kind}", ""]

    if type_details.kind == "ENUM" and type_details.enum_values:
        lines.append("**Values:**")
        lines.extend(f"- `{value}`" for value in type_details.enum_values)
    elif type_details.fields:
        lines.append("**Fields:**")
        for field in type_details.fields[:MAX_TYPE_FIELDS]:
            line = f"- `{field.name}`: {field.type}"
            if field.description:
                line += f" - {field.description}"
            lines.append(line)
        hidden = len(type_details.fields) - MAX_TYPE_FIELDS
        if hidden > 0:
            lines.append(f"- ... and {hidden} more fields")

    return "\n".join(lines) + "\n\n"


def format_glossary_entries(entries: list[GlossaryEntry]) -> str:
    """Format glossary entries as markdown; only the first example of each entry is shown."""

    if not entries:
        return ""

    sections: list[str] = ["## Relevant Business Terms\n"]
    for entry in entries:
        lines: list[str] = [
            f"### {entry.term}",
            entry.description,
            "",
            f"**Related Operations:** {', '.join(entry.related_operations)}",
            f"**Related Types:** {', '.join(entry.related_types)}",
        ]
        if entry.examples:
            example = entry.examples[0]
            lines.append("")
            lines.append("**Example:**")
            lines.append(f'- Business Question: "{example.business_question}"')
            lines.append(f"- Technical Query:\n```graphql\n{example.technical_query}\n```")
            if example.variables is not None:
                variables = _json_block(example.variables)
                if variables is None:
                    logger.debug("Skipping malformed example variables for glossary term %r", entry.term)
                else:
                    lines.append(f"- Variables:\n```json\n{variables}\n```")
        sections.append("\n".join(lines) + "\n")

    return "\n".join(sections) + "\n"
