# scripts/gen_schemas.py
"""
Generate JSON Schemas for Alloclean data models.

This script exports JSON Schema files for:
    - Requester, Resource, WorkItem
    - Rule
    - Config

Output directory: schemas/
"""

import json
from pathlib import Path

from alloclean.schemas.models import Config, Requester, Resource, Rule, WorkItem


def export_schema(model_cls, name: str, out_dir: Path) -> Path:
    """
    @brief
    Writes "<name>.schema.json" for a pydantic model into `out_dir`.

    @details
    Schemas use the column aliases (ClientID, WorkerID, TaskID …), which makes
    them usable to describe the upload files directly.
    """
    # (1) Ensure output directory exists
    out_dir.mkdir(parents=True, exist_ok=True)

    # (2) Serialize schema with a final newline
    schema_path = (out_dir / f"{name}.schema.json").resolve()
    with schema_path.open("w", encoding="utf-8") as f:
        json.dump(model_cls.model_json_schema(by_alias=True), f, indent=2, ensure_ascii=False)
        f.write("\n")

    try:
        rel = schema_path.relative_to(Path.cwd())
    except ValueError:
        rel = schema_path
    print(f"Generated {rel}")
    return schema_path


def main() -> None:
    out_dir = Path("schemas").resolve()
    export_schema(Requester, "requester", out_dir)
    export_schema(Resource, "resource", out_dir)
    export_schema(WorkItem, "workitem", out_dir)
    export_schema(Rule, "rule", out_dir)
    export_schema(Config, "config", out_dir)


if __name__ == "__main__":
    main()
