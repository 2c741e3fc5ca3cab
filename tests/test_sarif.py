import json

import pytest

from devshield.report.sarif import build_sarif, severity_to_sarif_level, write_sarif
from devshield.schema import (
    Category,
    Finding,
    Language,
    ScanResult,
    ScanResultContext,
    Severity,
    SeveritySummary,
    ToolInfo,
)


def sample_result():
    return ScanResult(
        version="dev",
        scan_timestamp="2026-03-23T00:00:00Z",
        scan_duration_seconds=1.5,
        project_path="/test/project",
        context=ScanResultContext(languages=[Language.GO], has_git=True),
        summary=SeveritySummary(critical=1, high=2, medium=1, low=0, info=1, total=5),
        tools_used=[ToolInfo(name="gitleaks", version="8.30.1", findings_count=5, duration_ms=100)],
        findings=[
            Finding(
                id="gitleaks:aws-key:config.yaml:10",
                tool="gitleaks",
                category=Category.SECRETS,
                severity=Severity.CRITICAL,
                title="AWS Access Key Found",
                description="Hard-coded AWS access key.",
                file="config.yaml",
                line=10,
                rule_id="aws-access-key-id",
                cwe_id="CWE-798",
                fingerprint="abc123def456",
            ),
            Finding(
                id="gitleaks:generic:env:5",
                tool="gitleaks",
                category=Category.SECRETS,
                severity=Severity.HIGH,
                title="Generic Secret Detected",
                file=".env",
                line=5,
                rule_id="generic-api-key",
            ),
        ],
    )


def empty_result():
    return ScanResult(
        version="dev",
        scan_timestamp="2026-03-23T00:00:00Z",
        scan_duration_seconds=0.1,
        project_path="/test/project",
        tools_used=[ToolInfo(name="gitleaks", version="8.30.1", findings_count=0, duration_ms=50)],
        findings=[],
    )


def read(path):
    return json.loads(path.read_text(encoding="utf-8"))


def test_write_sarif_empty_findings(tmp_path):
    out = tmp_path / "report.sarif"
    write_sarif(empty_result(), out)

    parsed = read(out)

    assert parsed["version"] == "2.1.0"
    assert len(parsed["runs"]) == 1
    driver = parsed["runs"][0]["tool"]["driver"]
    assert driver["name"] == "devshield"
    assert driver["version"] == "dev"
    assert parsed["runs"][0]["results"] == []


def test_write_sarif_with_findings(tmp_path):
    out = tmp_path / "report.sarif"
    write_sarif(sample_result(), out)

    runs = read(out)["runs"]

    assert len(runs) == 1
    assert len(runs[0]["results"]) == 2
    assert runs[0]["tool"]["driver"] == {
        "name": "gitleaks",
        "version": "8.30.1",
        "rules": [
            {
                "id": "aws-access-key-id",
                "fullDescription": {"text": "Hard-coded AWS access key."},
                "shortDescription": {"text": "AWS Access Key Found"},
                "properties": {"tags": ["CWE-798"]},
            },
            {
                "id": "generic-api-key",
                "fullDescription": {"text": ""},
                "shortDescription": {"text": "Generic Secret Detected"},
            },
        ],
    }


def test_result_details():
    first = build_sarif(sample_result())["runs"][0]["results"][0]
    assert first == {
        "ruleId": "aws-access-key-id",
        "level": "error",
        "message": {"text": "AWS Access Key Found"},
        "locations": [
            {
                "physicalLocation": {
                    "artifactLocation": {"uri": "config.yaml"},
                    "region": {"startLine": 10, "endLine": 10},
                }
            }
        ],
        "partialFingerprints": {"devshield/v1": "abc123def456"},
    }


@pytest.mark.parametrize(
    "severity, expected",
    [
        (Severity.CRITICAL, "error"),
        (Severity.HIGH, "error"),
        (Severity.MEDIUM, "warning"),
        (Severity.LOW, "note"),
        (Severity.INFO, "note"),
        ("unknown", "none"),
    ],
)
def test_severity_to_sarif_level(severity, expected):
    assert severity_to_sarif_level(severity) == expected


def test_write_sarif_suppressed_finding(tmp_path):
    out = tmp_path / "suppressed.sarif"
    result = ScanResult(
        version="dev",
        scan_timestamp="2026-03-23T00:00:00Z",
        tools_used=[ToolInfo(name="gitleaks", version="8.30.1")],
        findings=[
            Finding(
                tool="gitleaks",
                severity=Severity.HIGH,
                title="Suppressed Secret",
                file="test.txt",
                line=1,
                rule_id="generic-api-key",
                suppressed=True,
            )
        ],
    )
    write_sarif(result, out)

    results = read(out)["runs"][0]["results"]
    assert results[0]["suppressions"] == [{"kind": "inSource"}]


def test_one_run_per_tool_in_order_of_appearance():
    result = ScanResult(
        version="dev",
        tools_used=[ToolInfo(name="trivy", version="0.50")],
        findings=[
            Finding(tool="trivy", rule_id="CVE-1", title="a"),
            Finding(tool="semgrep", rule_id="r1", title="b"),
            Finding(tool="trivy", rule_id="CVE-1", title="c"),
        ],
    )
    runs = build_sarif(result)["runs"]

    assert [run["tool"]["driver"]["name"] for run in runs] == ["trivy", "semgrep"]
    assert runs[0]["tool"]["driver"]["version"] == "0.50"
    assert runs[1]["tool"]["driver"]["version"] == ""
    assert len(runs[0]["tool"]["driver"]["rules"]) == 1
    assert len(runs[0]["results"]) == 2


def test_finding_without_file_has_no_location():
    result = ScanResult(findings=[Finding(tool="x", rule_id="r", title="t", remediation="fix it")])
    run = build_sarif(result)["runs"][0]
    assert "locations" not in run["results"][0]
    assert run["tool"]["driver"]["rules"][0]["help"] == {"text": "fix it"}


def test_write_sarif_missing_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        write_sarif(empty_result(), tmp_path / "missing" / "report.sarif")