"""Dependency vulnerability scanning through the ``trivy`` command-line tool."""

from __future__ import annotations

import hashlib
import json
import shutil
import subprocess
from typing import Any

from devshield.scanner import Scanner
from devshield.schema import Category, Finding, ScanContext, Severity

TOOL = "trivy"

_SEVERITIES = {
    "CRITICAL": Severity.CRITICAL,
    "HIGH": Severity.HIGH,
    "MEDIUM": Severity.MEDIUM,
    "LOW": Severity.LOW,
}


def map_severity(value: str) -> Severity:
    """Map a trivy severity, case-insensitively; anything unknown is INFO."""
    return _SEVERITIES.get(value.upper(), Severity.INFO)


def compute_fingerprint(vuln_id: str, file: str, package: str) -> str:
    """SHA-256 hex digest identifying a vulnerable package in a target file."""
    return hashlib.sha256(f"{vuln_id}|{file}|{package}".encode()).hexdigest()


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
    """Turn trivy's JSON output into findings, one per vulnerability."""
    findings: list[Finding] = []
    for result in _load(data).get("Results") or []:
        target = result.get("Target") or ""
        for vuln in result.get("Vulnerabilities") or []:
            vuln_id = vuln.get("VulnerabilityID") or ""
            package = vuln.get("PkgName") or ""
            findings.append(
                Finding(
                    id=f"{TOOL}:{vuln_id}:{target}",
                    tool=TOOL,
                    category=Category.SCA,
                    severity=map_severity(vuln.get("Severity") or ""),
                    title=vuln.get("Title") or vuln_id,
                    description=vuln.get("Description") or "",
                    file=target,
                    line=0,
                    rule_id=vuln_id,
                    fingerprint=compute_fingerprint(vuln_id, target, package),
                    extra={
                        "package": package,
                        "installedVersion": vuln.get("InstalledVersion") or "",
                        "fixedVersion": vuln.get("FixedVersion") or "",
                        "url": vuln.get("PrimaryURL") or "",
                        "type": result.get("Type") or "",
                    },
                )
            )
    return findings


class TrivyScanner(Scanner):
    """Runs ``trivy fs`` with the vulnerability scanner over the project."""

    name = TOOL
    category = Category.SCA

    def is_available(self) -> bool:
        return shutil.which(TOOL) is not None

    def version(self) -> str:
        try:
            completed = subprocess.run(
                [TOOL, "--version"], capture_output=True, check=True
            )
        except (OSError, subprocess.CalledProcessError) as exc:
            raise RuntimeError(f"cannot determine {TOOL} version: {exc}") from exc
        text = completed.stdout.decode("utf-8", errors="replace")
        return text.split("\n", 1)[0].strip()

    def scan(self, context: ScanContext) -> list[Finding]:
        command = [
            TOOL, "fs", context.root_path,
            "--scanners", "vuln", "--format", "json", "--quiet",
        ]
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