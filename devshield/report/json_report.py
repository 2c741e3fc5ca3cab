"""JSON report writer."""

from __future__ import annotations

import json
import os

from devshield.schema import ScanResult


def write_json(result: ScanResult, output_path: str | os.PathLike[str]) -> None:
    """Write the scan result as indented JSON followed by a newline."""
    with open(output_path, "w", encoding="utf-8") as handle:
        json.dump(result.to_dict(), handle, indent=2, ensure_ascii=False)
        handle.write("\n")