"""Static analysis through the ``semgrep`` command-line tool."""

from __future__ import annotations

import hashlib
import json
import shutil
import subprocess
from typing import Any

from devshield.scanner import Scanner
from devshield.schema import Category, Finding, ScanContext, Severity

TOOL = "semgrep"

_SEVERITIES = {
    "ERROR": Severity.HIGH,
    "WARNING": Severity.MEDIUM,
    "INFO": Severity.LOW,
}


def map_severity(value: str) -> Severity:
    """Map a semgrep severity (``ERROR``, ``WARNING``, ``INFO``) to a finding severity."""
    return _SEVERITIES.get(value, Severity.INFO)


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
    """Turn semgrep's JSON output into findings."""
    findings: list[Finding] = []
    for result in _load(data).get("results") or []:
        check_id = result.get("check_id") or ""
        path = result.get("path") or ""
        line = int((result.get("start") or {}).get("line") or 0)
        extra = result.get("extra") or {}
        cwes = (extra.get("metadata") or {}).get("cwe") or []

        findings.append(
            Finding(
                id=f"{TOOL}:{check_id}:{path}:{line}",
                tool=TOOL,
                category=Category.SAST,
                severity=map_severity(extra.get("severity") or ""),
                title=check_id,
                description=extra.get("message") or "",
                file=path,
                line=line,
                rule_id=check_id,
                cwe_id=cwes[0] if cwes else "",
                fingerprint=compute_fingerprint(check_id, path, line),
                extra={"snippet": extra.get("lines") or ""},
            )
        )
    return findings


class SemgrepScanner(Scanner):
    """Runs ``semgrep scan --config auto`` over the project."""

    name = TOOL
    category = Category.SAST

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
        command = [TOOL, "scan", "--config", "auto", "--json", "--quiet", context.root_path]
        try:
            # A non-zero exit only means findings were reported; the output is still parsed.
            completed = subprocess.run(
                command,
                capture_output=True,
                check=False,
                timeout=context.timeout or None,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise RuntimeError(f"failed to run {TOOL}: {exc}") from exc
        return parse_output(completed.stdout)