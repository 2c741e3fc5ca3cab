"""Produce every configured report format."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Iterable

from devshield.report.html import write_html
from devshield.report.json_report import write_json
from devshield.report.sarif import write_sarif
from devshield.schema import ScanResult

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = ".devshield-reports"

_WRITERS: dict[str, tuple[str, str, Callable[[ScanResult, Path], None]]] = {
    "sarif": ("SARIF", "devshield.sarif", write_sarif),
    "json": ("JSON", "devshield.json", write_json),
    "html": ("HTML", "devshield.html", write_html),
}


class ReportError(Exception):
    """Raised when a report cannot be written."""


def generate(
    result: ScanResult,
    output_dir: str | os.PathLike[str] | None,
    formats: Iterable[str],
) -> list[Path]:
    """Write one report per known format into ``output_dir``; return the paths written.

    Unknown formats are logged and skipped.
    """
    out_dir = Path(output_dir) if output_dir else Path(DEFAULT_OUTPUT_DIR)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ReportError(f"failed to create output dir {out_dir}: {exc}") from exc

    written: list[Path] = []
    for raw in formats:
        fmt = raw.lower().strip()
        writer = _WRITERS.get(fmt)
        if writer is None:
            logger.warning("Unknown output format %r, skipping", fmt)
            continue
        label, file_name, write = writer
        path = out_dir / file_name
        try:
            write(result, path)
        except OSError as exc:
            logger.error("Report generation failed (format=%s): %s", fmt, exc)
            raise ReportError(f"{label} report failed: {exc}") from exc
        logger.info("%s report written: %s", label, path)
        written.append(path)
    return written