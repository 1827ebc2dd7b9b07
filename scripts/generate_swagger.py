import argparse
import json
import sys
from pathlib import Path

import yaml

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from api import app


def write_openapi(output_dir: Path) -> tuple[Path, Path]:
    schema = app.openapi()
    output_dir.mkdir(parents=True, exist_ok=True)

    yaml_path = output_dir / "swagger.yaml"
    json_path = output_dir / "openapi.json"

    with open(yaml_path, "w") as f:
        yaml.safe_dump(schema, f, sort_keys=False, default_flow_style=False)

    with open(json_path, "w") as f:
        json.dump(schema, f, indent=2)

    return yaml_path, json_path


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Export the MedScribe OpenAPI schema")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path(__file__).parent.parent / "docs",
    )
    args = parser.parse_args()

    yaml_path, json_path = write_openapi(args.output_dir)
    print("✅ Generated Swagger documentation:")
    print(f"   - {yaml_path}")
    print(f"   - {json_path}")
