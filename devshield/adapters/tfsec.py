"""Infrastructure-as-code checks through the ``tfsec`` command-line tool."""

from __future__ import annotations

import hashlib
import json
import shutil
import subprocess
from typing import Any

from devshield.scanner import Scanner
from devshield.schema import Category, Finding, ScanContext, Severity

TOOL = "tfsec"

_SEVERITIES = {
    "CRITICAL": Severity.CRITICAL,
    "HIGH": Severity.HIGH,
    "MEDIUM": Severity.MEDIUM,
    "LOW": Severity.LOW,
}


def map_severity(value: str) -> Severity:
    """Map a tfsec severity, case-insensitively; anything unknown is INFO."""
    return _SEVERITIES.get(value.upper(), Severity.INFO)


def compute_fingerprint(rule_id: str, file: str, line: int) -> str:
    """SHA-256 hex digest identifying a rule match at a file position."""
    return hashlib.sha256(f"{rule_id}|{file}|{line}".encode()).hexdigest()


def _load(data: bytes | str) -> dict[str, Any]:
    try:
        parsed = json.loads(data)
    except (ValueError, TypeError) as exc:
        raise ValueError(f"failed to parse {TOOL} json: {exc}") from exc
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"failed to parse {TOOL} json: expected an object")
    return parsed


def parse_output(data: bytes | str) -> list[Finding]:
    """Turn tfsec's JSON output into findings."""
    findings: list[Finding] = []
    for result in _load(data).get("results") or []:
        rule_id = result.get("rule_id") or ""
        location = result.get("location") or {}
        filename = location.get("filename") or ""
        start_line = int(location.get("start_line") or 0)
        links = result.get("links") or []

        findings.append(
            Finding(
                id=f"{TOOL}:{rule_id}:{filename}:{start_line}",
                tool=TOOL,
                category=Category.IAC,
                severity=map_severity(result.get("severity") or ""),
                title=result.get("long_id") or "",
                description=result.get("description") or "",
                file=filename,
                line=start_line,
                rule_id=rule_id,
                fingerprint=compute_fingerprint(rule_id, filename, start_line),
                extra={
                    "resolution": result.get("resolution") or "",
                    "url": links[0] if links else "",
                    "endLine": int(location.get("end_line") or 0),
                },
            )
        )
    return findings


class TfsecScanner(Scanner):
    """Runs ``tfsec`` over the project with JSON output."""

    name = TOOL
    category = Category.IAC

    def is_available(self) -> bool:
        return shutil.which(TOOL) is not None

    def version(self) -> str:
        try:
            completed = subprocess.run(
                [TOOL, "--version"], capture_output=True, check=True
            )
        except (OSError, subprocess.CalledProcessError) as exc:
            raise RuntimeError(f"cannot determine {TOOL} version: {exc}") from exc
        return completed.stdout.decode("utf-8", errors="replace").strip()

    def scan(self, context: ScanContext) -> list[Finding]:
        command = [TOOL, context.root_path, "--format", "json", "--no-color"]
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                check=False,
                timeout=context.timeout or None,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise RuntimeError(f"failed to run {TOOL}: {exc}") from exc
        if completed.returncode != 0 and not completed.stdout:
            raise RuntimeError(f"failed to run {TOOL}: exit status {completed.returncode}")
        return parse_output(completed.stdout)