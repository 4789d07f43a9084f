"""Export the API's OpenAPI document to ``docs/openapi.json``."""

from __future__ import annotations

import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fuelapp.main import create_application  # noqa: E402


def main(destination: Path = ROOT / "docs" / "openapi.json") -> Path:
    document = create_application().openapi()
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(json.dumps(document, indent=2, sort_keys=True), encoding="utf-8")
    print(f"OpenAPI document written to {destination}")
    return destination


if __name__ == "__main__":
    main()
