"""Concurrent scanner execution and plain-text rendering helpers for progress display."""

from __future__ import annotations

import dataclasses
import re
import time
import unicodedata
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable

from devshield.scanner import Scanner
from devshield.schema import Finding, ScanContext, Severity, ToolInfo

_SEVERITY_LABELS = {
    Severity.CRITICAL.value: "[CRIT]",
    Severity.HIGH.value: "[HIGH]",
    Severity.MEDIUM.value: "[MED] ",
    Severity.LOW.value: "[LOW] ",
    Severity.INFO.value: "[INFO]",
}
_UNKNOWN_LABEL = "[???] "

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")


def _run_one(scanner: Scanner, context: ScanContext) -> tuple[list[Finding], ToolInfo]:
    """Run a single scanner on its own copy of the context and describe the run."""
    start = time.monotonic()
    scanner_context = dataclasses.replace(context)
    error = ""
    try:
        findings = list(scanner.scan(scanner_context) or [])
    except Exception as exc:  # a failing tool must not stop the others
        findings = []
        error = str(exc) or type(exc).__name__
    duration_ms = int((time.monotonic() - start) * 1000)

    try:
        version = scanner.version()
    except Exception:
        version = ""

    info = ToolInfo(
        name=scanner.name,
        version=version,
        findings_count=len(findings),
        duration_ms=duration_ms,
        error=error,
    )
    return findings, info


def run_scanners(
    scanners: Iterable[Scanner],
    context: ScanContext,
    max_concurrency: int,
) -> tuple[list[Finding], list[ToolInfo]]:
    """Run scanners with at most ``max_concurrency`` at a time.

    Returns all findings and one ``ToolInfo`` per scanner, in completion order.
    A scanner that raises contributes no findings and has its error recorded.
    """
    if max_concurrency < 1:
        raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")

    selected = list(scanners)
    findings: list[Finding] = []
    infos: list[ToolInfo] = []
    if not selected:
        return findings, infos

    with ThreadPoolExecutor(max_workers=max_concurrency) as pool:
        futures = [pool.submit(_run_one, scanner, context) for scanner in selected]
        for future in as_completed(futures):
            scanner_findings, info = future.result()
            findings.extend(scanner_findings)
            infos.append(info)
    return findings, infos


def format_severity(severity: Severity | str) -> str:
    """Six-character severity label such as ``[CRIT]`` or ``[MED] ``."""
    return _SEVERITY_LABELS.get(str(severity), _UNKNOWN_LABEL)


def render_progress_bar(width: int, pct: int) -> str:
    """A bar of ``width`` cells (at least 5) filled to ``pct`` percent."""
    if not 0 <= pct <= 100:
        raise ValueError(f"percentage out of range: {pct}")
    width = max(width, 5)
    filled = width * pct // 100
    return "█" * filled + "░" * (width - filled)


def truncate(text: str, max_len: int) -> str:
    """Shorten ``text`` to ``max_len`` characters ending in ``...``; limits of 3 or less leave it alone."""
    if max_len <= 3:
        return text
    if len(text) > max_len:
        return text[: max_len - 3] + "..."
    return text


def _visible_width(text: str) -> int:
    plain = _ANSI_ESCAPE.sub("", text)
    width = 0
    for char in plain:
        if unicodedata.combining(char):
            continue
        width += 2 if unicodedata.east_asian_width(char) in ("W", "F") else 1
    return width


def pad_right(text: str, width: int) -> str:
    """Pad with spaces to ``width`` visible columns, ignoring ANSI colour codes."""
    visible = _visible_width(text)
    if visible >= width:
        return text
    return text + " " * (width - visible)