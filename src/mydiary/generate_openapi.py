"""
Utility script to generate and write the OpenAPI schema for the FastAPI app.

The schema is written to interfaces/openapi.json under the current working
directory (or the path given as the first argument) so a front-end client can
be generated without running the server.

Usage:
    python -m mydiary.generate_openapi [OUTPUT_PATH]
"""
from __future__ import annotations

import json
import os
import sys
from typing import Any, Dict, List, Optional

from .log import get_logger
from .main import app, openapi_tags

logger = get_logger(__name__)

DEFAULT_OUTPUT = os.path.join("interfaces", "openapi.json")


def _ensure_tags(schema: Dict[str, Any]) -> None:
    """
    Ensure the OpenAPI schema lists every tag of ``openapi_tags``, without
    overriding tag definitions that are already present.
    """
    existing_tags: List[Dict[str, Any]] = schema.get("tags", []) or []
    existing_names = {t.get("name") for t in existing_tags if isinstance(t, dict)}
    for tag in openapi_tags:
        if tag.get("name") not in existing_names:
            existing_tags.append(tag)
    if existing_tags:
        schema["tags"] = existing_tags


# PUBLIC_INTERFACE
def generate_openapi(out_path: Optional[str] = None) -> str:
    """Write the OpenAPI schema to ``out_path`` and return the path written."""
    out_path = out_path or DEFAULT_OUTPUT
    schema = app.openapi()
    _ensure_tags(schema)

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(schema, f, indent=2, ensure_ascii=False)
    logger.info("openapi_written", path=out_path)
    return out_path


def main() -> None:
    path = generate_openapi(sys.argv[1] if len(sys.argv) > 1 else None)
    print(f"Wrote OpenAPI schema to: {path}")


if __name__ == "__main__":
    main()
