"""SARIF 2.1.0 report writer: one run per tool."""

from __future__ import annotations

import json
import os
from typing import Any

from devshield.schema import Finding, ScanResult, Severity

SARIF_VERSION = "2.1.0"
FINGERPRINT_KEY = "devshield/v1"

_LEVELS = {
    Severity.CRITICAL.value: "error",
    Severity.HIGH.value: "error",
    Severity.MEDIUM.value: "warning",
    Severity.LOW.value: "note",
    Severity.INFO.value: "note",
}


def severity_to_sarif_level(severity: Severity | str) -> str:
    """SARIF level for a severity; unknown severities map to ``none``."""
    return _LEVELS.get(str(severity), "none")


def _rule(finding: Finding) -> dict[str, Any]:
    rule: dict[str, Any] = {
        "id": finding.rule_id,
        "fullDescription": {"text": finding.description},
    }
    if finding.title:
        rule["shortDescription"] = {"text": finding.title}
    if finding.remediation:
        rule["help"] = {"text": finding.remediation}
    if finding.cwe_id:
        rule["properties"] = {"tags": [finding.cwe_id]}
    return rule


def _result(finding: Finding) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "ruleId": finding.rule_id,
        "level": severity_to_sarif_level(finding.severity),
        "message": {"text": finding.title},
    }
    if finding.file:
        physical: dict[str, Any] = {"artifactLocation": {"uri": finding.file}}
        if finding.line > 0:
            physical["region"] = {"startLine": finding.line, "endLine": finding.line}
        entry["locations"] = [{"physicalLocation": physical}]
    if finding.fingerprint:
        entry["partialFingerprints"] = {FINGERPRINT_KEY: finding.fingerprint}
    if finding.suppressed:
        entry["suppressions"] = [{"kind": "inSource"}]
    return entry


def _run(tool: str, version: str, findings: list[Finding]) -> dict[str, Any]:
    rules: dict[str, dict[str, Any]] = {}
    for finding in findings:
        if finding.rule_id not in rules:
            rules[finding.rule_id] = _rule(finding)

    driver: dict[str, Any] = {"name": tool, "version": version}
    if rules:
        driver["rules"] = list(rules.values())
    return {
        "tool": {"driver": driver},
        "results": [_result(finding) for finding in findings],
    }


def build_sarif(result: ScanResult) -> dict[str, Any]:
    """SARIF log as a JSON-ready mapping, grouping findings into one run per tool."""
    by_tool: dict[str, list[Finding]] = {}
    for finding in result.findings:
        by_tool.setdefault(finding.tool, []).append(finding)

    versions = {tool.name: tool.version for tool in result.tools_used}
    runs = [_run(tool, versions.get(tool, ""), findings) for tool, findings in by_tool.items()]
    if not runs:
        runs.append(_run("devshield", result.version, []))

    return {"version": SARIF_VERSION, "runs": runs}


def write_sarif(result: ScanResult, output_path: str | os.PathLike[str]) -> None:
    """Write the scan result as an indented SARIF file."""
    log = build_sarif(result)
    with open(output_path, "w", encoding="utf-8") as handle:
        json.dump(log, handle, indent=2, ensure_ascii=False)
        handle.write("\n")