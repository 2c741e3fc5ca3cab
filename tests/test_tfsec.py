import json
import subprocess
from unittest import mock

import pytest

from devshield.adapters.tfsec import (
    TfsecScanner,
    compute_fingerprint,
    map_severity,
    parse_output,
)
from devshield.schema import Category, ScanContext, Severity

SAMPLE = {
    "results": [
        {
            "rule_id": "AVD-AWS-0086",
            "long_id": "aws-s3-block-public-acls",
            "description": "No public access block so not blocking public acls",
            "severity": "HIGH",
            "resolution": "Enable blocking any PUT calls with a public ACL specified",
            "links": ["https://docs.example.com/aws/s3/block-public-acls", "https://example.com/other"],
            "location": {"filename": "/project/main.tf", "start_line": 5, "end_line": 9},
        },
        {
            "rule_id": "AVD-GEN-0001",
            "long_id": "general-custom-check",
            "description": "Custom check",
            "severity": "weird",
            "location": {"filename": "/project/vars.tf", "start_line": 1, "end_line": 2},
        },
    ]
}


def test_scanner_name():
    assert TfsecScanner().name == "tfsec"


def test_scanner_category():
    assert TfsecScanner().category == Category.IAC


@pytest.mark.parametrize(
    "value, expected",
    [
        ("CRITICAL", Severity.CRITICAL),
        ("HIGH", Severity.HIGH),
        ("MEDIUM", Severity.MEDIUM),
        ("LOW", Severity.LOW),
        ("CUSTOM", Severity.INFO),
        ("high", Severity.HIGH),
    ],
)
def test_map_severity(value, expected):
    assert map_severity(value) == expected


def test_compute_fingerprint_is_stable_hex():
    first = compute_fingerprint("AVD-AWS-0086", "main.tf", 5)
    assert first == compute_fingerprint("AVD-AWS-0086", "main.tf", 5)
    assert len(first) == 64
    assert first != compute_fingerprint("AVD-AWS-0086", "other.tf", 5)


def test_parse_output_builds_findings():
    findings = parse_output(json.dumps(SAMPLE))
    assert len(findings) == 2
    first = findings[0]
    assert first.id == "tfsec:AVD-AWS-0086:/project/main.tf:5"
    assert first.tool == "tfsec"
    assert first.category == Category.IAC
    assert first.severity == Severity.HIGH
    assert first.title == "aws-s3-block-public-acls"
    assert first.file == "/project/main.tf"
    assert first.line == 5
    assert first.rule_id == "AVD-AWS-0086"
    assert first.cwe_id == ""
    assert first.extra == {
        "resolution": "Enable blocking any PUT calls with a public ACL specified",
        "url": "https://docs.example.com/aws/s3/block-public-acls",
        "endLine": 9,
    }
    assert first.fingerprint == compute_fingerprint("AVD-AWS-0086", "/project/main.tf", 5)


def test_parse_output_without_links_has_empty_url():
    second = parse_output(json.dumps(SAMPLE))[1]
    assert second.extra["url"] == ""
    assert second.severity == Severity.INFO


def test_parse_output_null_results():
    assert parse_output('{"results": null}') == []


def test_parse_output_invalid_json():
    with pytest.raises(ValueError, match="failed to parse tfsec json"):
        parse_output(b"")


def test_scan_accepts_nonzero_exit_with_output():
    completed = subprocess.CompletedProcess([], 1, stdout=json.dumps(SAMPLE).encode(), stderr=b"")
    with mock.patch("subprocess.run", return_value=completed) as run:
        findings = TfsecScanner().scan(ScanContext(root_path="/project"))
    assert [f.rule_id for f in findings] == ["AVD-AWS-0086", "AVD-GEN-0001"]
    assert run.call_args.args[0] == ["tfsec", "/project", "--format", "json", "--no-color"]


def test_scan_fails_on_nonzero_exit_without_output():
    completed = subprocess.CompletedProcess([], 2, stdout=b"", stderr=b"boom")
    with mock.patch("subprocess.run", return_value=completed):
        with pytest.raises(RuntimeError, match="failed to run tfsec"):
            TfsecScanner().scan(ScanContext(root_path="/project"))


def test_scan_fails_when_tool_cannot_start():
    with mock.patch("subprocess.run", side_effect=FileNotFoundError("tfsec")):
        with pytest.raises(RuntimeError, match="failed to run tfsec"):
            TfsecScanner().scan(ScanContext(root_path="/project"))


def test_version_strips_output():
    completed = subprocess.CompletedProcess([], 0, stdout=b"v1.28.1\n", stderr=b"")
    with mock.patch("subprocess.run", return_value=completed):
        assert TfsecScanner().version() == "v1.28.1"