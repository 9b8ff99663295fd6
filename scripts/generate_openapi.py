"""Export the field reports OpenAPI document to disk."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fieldreports.main import create_application


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--output", default="docs/openapi.json", help="Destination JSON file")
    args = parser.parse_args(argv)

    document = create_application().openapi()
    destination = Path(args.output)
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(json.dumps(document, indent=2), encoding="utf-8")
    print(f"OpenAPI document with {len(document['paths'])} paths written to {destination}")


if __name__ == "__main__":
    main()
