#!/usr/bin/env python3
"""Validate data/domain_glossary.json against data/api_catalog.json.

Checks:
- both documents load and have the expected shape
- glossary terms are unique
- every relatedOperations / relatedTypes name exists in the catalog
- every catalog.common_operations entry in docs_config.json exists

Related names are not checked at runtime (unknown names are silently
skipped when building context), so this is the place to catch typos.
"""

from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from server.config import load_config_or_default  # noqa: E402
from server.services.catalog_store import CatalogLoadError, OperationCatalog, load_catalog  # noqa: E402
from server.services.glossary_store import GlossaryLoadError, load_glossary  # noqa: E402
from server.models.glossary import DomainGlossary  # noqa: E402


def find_problems(glossary: DomainGlossary, catalog: OperationCatalog, common_operations: list[str]) -> list[str]:
    problems: list[str] = []
    op_names = {op.name for op in catalog.list_operations()}
    type_names = {t.name for t in catalog.list_types()}

    terms = [entry.term for entry in glossary.terms]
    dupes = sorted({t for t in terms if terms.count(t) > 1})
    if dupes:
        problems.append(f"Duplicate glossary terms: {dupes[:20]}")

    for entry in glossary.terms:
        for name in entry.related_operations:
            if name not in op_names:
                problems.append(f"{entry.term!r}: unknown operation {name!r}")
        for name in entry.related_types:
            if name not in type_names:
                problems.append(f"{entry.term!r}: unknown type {name!r}")

    for name in common_operations:
        if name not in op_names:
            problems.append(f"catalog.common_operations: unknown operation {name!r}")
    return problems


def main(argv: list[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    config = load_config_or_default()
    glossary_path = args[0] if len(args) > 0 else config.glossary.path
    catalog_path = args[1] if len(args) > 1 else config.catalog.path

    try:
        glossary = load_glossary(glossary_path)
        catalog = load_catalog(catalog_path)
    except (GlossaryLoadError, CatalogLoadError) as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1

    problems = find_problems(glossary, catalog, config.catalog.common_operations)
    for p in problems:
        print(f"✗ {p}", file=sys.stderr)
    if problems:
        return 1

    print(f"✓ glossary OK ({len(glossary.terms)} terms, {len(catalog.list_operations())} operations)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
