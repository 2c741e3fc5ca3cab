"""Shared data types: categories, severities, findings and scan results."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable


class Category(str, Enum):
    """Security scanning category."""

    SECRETS = "secrets"
    SAST = "sast"
    SCA = "sca"
    IAC = "iac"
    CONTAINER = "container"
    SBOM = "sbom"
    DAST = "dast"
    CLOUD = "cloud"
    K8S = "k8s"
    CICD = "cicd"

    def __str__(self) -> str:
        return self.value


_SEVERITY_WEIGHTS = {
    "critical": 5,
    "high": 4,
    "medium": 3,
    "low": 2,
    "info": 1,
}


def severity_weight(severity: Severity | str) -> int:
    """Numeric weight of a severity; higher is more severe, unknown values weigh 0."""
    value = severity.value if isinstance(severity, Enum) else severity
    return _SEVERITY_WEIGHTS.get(value, 0)


class Severity(str, Enum):
    """Severity level of a finding."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"

    def __str__(self) -> str:
        return self.value

    def weight(self) -> int:
        """Numeric weight for sorting (higher is more severe)."""
        return severity_weight(self)

    def meets_threshold(self, threshold: Severity | str) -> bool:
        """True if this severity is at least as severe as ``threshold``."""
        return self.weight() >= severity_weight(threshold)


def parse_severity(value: str) -> Severity:
    """Parse a severity name case-insensitively; anything unknown becomes INFO."""
    try:
        return Severity(value.lower())
    except ValueError:
        return Severity.INFO


def all_categories() -> list[Category]:
    """All valid categories, in their canonical order."""
    return list(Category)


def all_severities() -> list[Severity]:
    """All severity levels from highest to lowest."""
    return list(Severity)


class Language(str, Enum):
    """Detected programming language."""

    GO = "go"
    PYTHON = "python"
    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    JAVA = "java"
    RUST = "rust"
    RUBY = "ruby"
    PHP = "php"
    CSHARP = "csharp"
    CPP = "cpp"
    C = "c"
    SWIFT = "swift"
    KOTLIN = "kotlin"
    SCALA = "scala"

    def __str__(self) -> str:
        return self.value


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _coerce(enum_type: type[Enum], value: Any) -> Any:
    try:
        return enum_type(value)
    except ValueError:
        return value


@dataclass
class ScanContext:
    """Project metadata handed to every scanner."""

    root_path: str = ""
    languages: list[Language | str] = field(default_factory=list)
    has_terraform: bool = False
    has_k8s: bool = False
    has_docker: bool = False
    has_git: bool = False
    git_remote: str = ""
    config: Any = None
    temp_dir: str = ""
    timeout: float = 300.0
    cancel_event: threading.Event = field(default_factory=threading.Event)

    def has_language(self, language: Language | str) -> bool:
        """True if the given language was detected."""
        return language in self.languages


@dataclass
class Finding:
    """A single security finding from any scanner."""

    id: str = ""
    tool: str = ""
    category: Category | str = ""
    severity: Severity | str = Severity.INFO
    title: str = ""
    description: str = ""
    remediation: str = ""
    file: str = ""
    line: int = 0
    column: int = 0
    rule_id: str = ""
    cwe_id: str = ""
    cve_id: str = ""
    tags: list[str] = field(default_factory=list)
    fingerprint: str = ""
    suppressed: bool = False
    commit_sha: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready mapping; empty optional fields are left out."""
        data: dict[str, Any] = {
            "id": self.id,
            "tool": self.tool,
            "category": _plain(self.category),
            "severity": _plain(self.severity),
            "title": self.title,
            "description": self.description,
        }
        if self.remediation:
            data["remediation"] = self.remediation
        data["file"] = self.file
        data["line"] = self.line
        if self.column:
            data["column"] = self.column
        data["rule_id"] = self.rule_id
        if self.cwe_id:
            data["cwe_id"] = self.cwe_id
        if self.cve_id:
            data["cve_id"] = self.cve_id
        if self.tags:
            data["tags"] = list(self.tags)
        data["fingerprint"] = self.fingerprint
        data["suppressed"] = self.suppressed
        if self.commit_sha:
            data["commit_sha"] = self.commit_sha
        if self.extra:
            data["extra"] = dict(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Finding:
        """Build a finding from a mapping as produced by :meth:`to_dict`."""
        return cls(
            id=data.get("id", ""),
            tool=data.get("tool", ""),
            category=_coerce(Category, data.get("category", "")),
            severity=_coerce(Severity, data.get("severity", "")),
            title=data.get("title", ""),
            description=data.get("description", ""),
            remediation=data.get("remediation", ""),
            file=data.get("file", ""),
            line=int(data.get("line", 0) or 0),
            column=int(data.get("column", 0) or 0),
            rule_id=data.get("rule_id", ""),
            cwe_id=data.get("cwe_id", ""),
            cve_id=data.get("cve_id", ""),
            tags=list(data.get("tags") or []),
            fingerprint=data.get("fingerprint", ""),
            suppressed=bool(data.get("suppressed", False)),
            commit_sha=data.get("commit_sha", ""),
            extra=dict(data.get("extra") or {}),
        )


@dataclass
class ScanResultContext:
    """Detected project context as written to reports."""

    languages: list[Language | str] = field(default_factory=list)
    has_k8s: bool = False
    has_docker: bool = False
    has_iac: bool = False
    has_git: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "languages": [_plain(lang) for lang in self.languages],
            "has_k8s": self.has_k8s,
            "has_docker": self.has_docker,
            "has_iac": self.has_iac,
            "has_git": self.has_git,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScanResultContext:
        return cls(
            languages=[_coerce(Language, lang) for lang in data.get("languages") or []],
            has_k8s=bool(data.get("has_k8s", False)),
            has_docker=bool(data.get("has_docker", False)),
            has_iac=bool(data.get("has_iac", False)),
            has_git=bool(data.get("has_git", False)),
        )


@dataclass
class SeveritySummary:
    """Finding counts by severity."""

    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    info: int = 0
    total: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "critical": self.critical,
            "high": self.high,
            "medium": self.medium,
            "low": self.low,
            "info": self.info,
            "total": self.total,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SeveritySummary:
        return cls(**{key: int(data.get(key, 0) or 0) for key in
                      ("critical", "high", "medium", "low", "info", "total")})


@dataclass
class ToolInfo:
    """A scanner that took part in a scan."""

    name: str = ""
    version: str = ""
    findings_count: int = 0
    duration_ms: int = 0
    error: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "findings_count": self.findings_count,
            "duration_ms": self.duration_ms,
        }
        if self.error:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ToolInfo:
        return cls(
            name=data.get("name", ""),
            version=data.get("version", ""),
            findings_count=int(data.get("findings_count", 0) or 0),
            duration_ms=int(data.get("duration_ms", 0) or 0),
            error=data.get("error", ""),
        )


@dataclass
class ScanResult:
    """Complete output of a scan."""

    version: str = ""
    scan_timestamp: str = ""
    scan_duration_seconds: float = 0.0
    project_path: str = ""
    context: ScanResultContext = field(default_factory=ScanResultContext)
    summary: SeveritySummary = field(default_factory=SeveritySummary)
    tools_used: list[ToolInfo] = field(default_factory=list)
    findings: list[Finding] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready mapping of the whole result."""
        return {
            "devshield_version": self.version,
            "scan_timestamp": self.scan_timestamp,
            "scan_duration_seconds": self.scan_duration_seconds,
            "project_path": self.project_path,
            "context": self.context.to_dict(),
            "summary": self.summary.to_dict(),
            "tools_used": [tool.to_dict() for tool in self.tools_used],
            "findings": [finding.to_dict() for finding in self.findings],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScanResult:
        """Build a result from a mapping as produced by :meth:`to_dict`."""
        return cls(
            version=data.get("devshield_version", ""),
            scan_timestamp=data.get("scan_timestamp", ""),
            scan_duration_seconds=float(data.get("scan_duration_seconds", 0.0) or 0.0),
            project_path=data.get("project_path", ""),
            context=ScanResultContext.from_dict(data.get("context") or {}),
            summary=SeveritySummary.from_dict(data.get("summary") or {}),
            tools_used=[ToolInfo.from_dict(t) for t in data.get("tools_used") or []],
            findings=[Finding.from_dict(f) for f in data.get("findings") or []],
        )


def compute_summary(findings: Iterable[Finding] | None) -> SeveritySummary:
    """Count unsuppressed findings by severity."""
    summary = SeveritySummary()
    for finding in findings or ():
        if finding.suppressed:
            continue
        name = _plain(finding.severity)
        if name in _SEVERITY_WEIGHTS:
            setattr(summary, name, getattr(summary, name) + 1)
        summary.total += 1
    return summary