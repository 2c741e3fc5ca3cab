"""Command-line interface: ``devshield scan`` and ``devshield version``."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import os
import platform
import re
import sys
import tempfile
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Iterable, Sequence

from devshield import scanner as registry
from devshield.adapters.semgrep import SemgrepScanner
from devshield.adapters.tfsec import TfsecScanner
from devshield.adapters.trivy import TrivyScanner
from devshield.detect import detect_context
from devshield.report.generate import ReportError, generate
from devshield.runner import run_scanners
from devshield.scanner import Scanner
from devshield.schema import (
    Finding,
    ScanContext,
    ScanResult,
    ScanResultContext,
    ToolInfo,
    compute_summary,
    parse_severity,
    severity_weight,
)
from devshield.suppress import SuppressionEngine

VERSION = "dev"
GIT_COMMIT = "unknown"
BUILD_DATE = "unknown"

DEFAULT_OUTPUT_DIR = ".devshield-reports"
DEFAULT_FORMATS = "sarif,html,json"
DEFAULT_FAIL_ON = "high"
DEFAULT_TIMEOUT = "5m"

logger = logging.getLogger("devshield")

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_COMPONENT = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(value: str) -> float:
    """Parse a duration such as ``5m``, ``1h30m`` or ``250ms`` into seconds."""
    text = value
    sign = 1.0
    if text[:1] in ("+", "-"):
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]
    if text == "0":
        return 0.0
    if not text:
        raise ValueError(f'time: invalid duration "{value}"')
    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_COMPONENT.match(text, pos)
        if match is None:
            raise ValueError(f'time: invalid duration "{value}"')
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    return sign * total


def parse_categories(value: str | None) -> set[str]:
    """Split a comma-separated category list into a set of trimmed names."""
    if not value:
        return set()
    return {part.strip() for part in value.split(",")}


def filter_scanners(
    scanners: Iterable[Scanner],
    only: str | None = None,
    skip: str | None = None,
) -> list[Scanner]:
    """Keep scanners whose category is in ``only`` (if given) and not in ``skip``."""
    only_set = parse_categories(only)
    skip_set = parse_categories(skip)
    selected: list[Scanner] = []
    for candidate in scanners:
        category = str(candidate.category)
        if only_set and category not in only_set:
            continue
        if category in skip_set:
            continue
        selected.append(candidate)
    return selected


def register_default_scanners() -> None:
    """Register the built-in scanner adapters that are not registered yet."""
    for factory in (SemgrepScanner, TfsecScanner, TrivyScanner):
        instance = factory()
        if registry.get(instance.name) is None:
            registry.register(instance)


def _format_elapsed(seconds: float) -> str:
    """Duration rounded to milliseconds, written as e.g. ``250ms``, ``1.5s`` or ``2m3.1s``."""
    millis = round(seconds * 1000)
    if millis == 0:
        return "0s"
    negative = millis < 0
    millis = abs(millis)
    if millis < 1000:
        text = f"{millis}ms"
    else:
        hours, rest = divmod(millis, 3_600_000)
        minutes, rest = divmod(rest, 60_000)
        secs = f"{rest // 1000}.{rest % 1000:03d}".rstrip("0").rstrip(".") + "s"
        if hours:
            text = f"{hours}h{minutes}m{secs}"
        elif minutes:
            text = f"{minutes}m{secs}"
        else:
            text = secs
    return "-" + text if negative else text


def _run_plain(
    scanners: Sequence[Scanner],
    context: ScanContext,
    max_concurrency: int,
) -> tuple[list[Finding], list[ToolInfo]]:
    """Run scanners concurrently, printing one line as each starts and finishes."""
    lock = threading.Lock()
    findings: list[Finding] = []
    infos: list[ToolInfo] = []

    def work(selected: Scanner) -> None:
        start = time.monotonic()
        with lock:
            print(f"  [⟳] {selected.name} running...", flush=True)
        error = ""
        try:
            produced = list(selected.scan(dataclasses.replace(context)) or [])
        except Exception as exc:  # one failing tool must not stop the others
            produced = []
            error = str(exc) or type(exc).__name__
        elapsed = time.monotonic() - start
        try:
            version = selected.version()
        except Exception:
            version = ""
        info = ToolInfo(
            name=selected.name,
            version=version,
            findings_count=len(produced),
            duration_ms=int(elapsed * 1000),
            error=error,
        )
        with lock:
            if error:
                print(f"  [✗] {selected.name} failed: {error}", flush=True)
            else:
                print(
                    f"  [✓] {selected.name} completed "
                    f"({len(produced)} findings, {_format_elapsed(elapsed)})",
                    flush=True,
                )
            findings.extend(produced)
            infos.append(info)

    with ThreadPoolExecutor(max_workers=max_concurrency) as pool:
        list(pool.map(work, scanners))
    return findings, infos


def run_scan(args: argparse.Namespace) -> int:
    """Run the scan described by parsed arguments and write the reports.

    Raises when the path is missing, the timeout is malformed, reports cannot be
    written, or an unsuppressed finding reaches the ``--fail-on`` threshold.
    """
    started_at = datetime.now(timezone.utc)
    started = time.monotonic()

    scan_path = args.path or "."
    if not os.path.exists(scan_path):
        raise FileNotFoundError(f"scan path does not exist: {scan_path}")

    formats = [fmt for fmt in (args.format or DEFAULT_FORMATS).split(",")]
    fail_on = args.fail_on or DEFAULT_FAIL_ON

    try:
        timeout = parse_duration(args.timeout)
    except ValueError as exc:
        raise ValueError(f"invalid timeout: {exc}") from exc

    logger.debug("Detecting project context in %s", scan_path)
    context = detect_context(scan_path, None, timeout)

    with tempfile.TemporaryDirectory(prefix="devshield-") as temp_dir:
        context.temp_dir = temp_dir
        logger.debug(
            "Context detected: languages=%s git=%s docker=%s terraform=%s k8s=%s remote=%s",
            [str(lang) for lang in context.languages],
            context.has_git,
            context.has_docker,
            context.has_terraform,
            context.has_k8s,
            context.git_remote,
        )

        active = filter_scanners(registry.available(), args.only, args.skip)
        if not active:
            print("⚠  No scanners available. Run 'devshield install' to set up scanner tools.")
            return 0

        max_concurrency = args.concurrency
        if max_concurrency <= 0:
            max_concurrency = max(1, (os.cpu_count() or 1) // 2)

        use_tui = sys.stdout.isatty() and not args.no_tui
        if use_tui:
            findings, tool_infos = run_scanners(active, context, max_concurrency)
        else:
            print(f"DevShield {VERSION} — Scanning: {context.root_path}")
            print(f"Scanners: {len(active)} active\n")
            findings, tool_infos = _run_plain(active, context, max_concurrency)

    try:
        engine = SuppressionEngine(context.root_path, [])
    except (OSError, ValueError) as exc:
        logger.warning("Suppression engine init failed: %s", exc)
    else:
        findings = engine.apply(findings)

    summary = compute_summary(findings)
    duration = time.monotonic() - started

    result = ScanResult(
        version=VERSION,
        scan_timestamp=started_at.strftime("%Y-%m-%dT%H:%M:%SZ"),
        scan_duration_seconds=duration,
        project_path=context.root_path,
        context=ScanResultContext(
            languages=list(context.languages),
            has_k8s=context.has_k8s,
            has_docker=context.has_docker,
            has_iac=context.has_terraform,
            has_git=context.has_git,
        ),
        summary=summary,
        tools_used=tool_infos,
        findings=findings,
    )

    try:
        generate(result, args.output_dir, formats)
    except ReportError as exc:
        raise RuntimeError(f"report generation failed: {exc}") from exc

    print()
    print(f"── Scan Complete ({_format_elapsed(duration)}) ──")
    print(
        f"  Critical: {summary.critical}  High: {summary.high}  "
        f"Medium: {summary.medium}  Low: {summary.low}  "
        f"Info: {summary.info}  Total: {summary.total}"
    )
    print(f"  Reports: {args.output_dir}")

    threshold = parse_severity(fail_on).weight()
    if any(not f.suppressed and severity_weight(f.severity) >= threshold for f in findings):
        raise RuntimeError(
            f"findings exceed threshold ({fail_on}): {summary.total} total findings"
        )
    return 0


def run_version(args: argparse.Namespace) -> int:
    """Print build information and every registered scanner."""
    print(f"DevShield {VERSION}")
    print(f"  Git commit:  {GIT_COMMIT}")
    print(f"  Build date:  {BUILD_DATE}")
    print(f"  Python:      {platform.python_version()}")
    print(f"  OS/Arch:     {platform.system().lower()}/{platform.machine()}")
    print()

    scanners = registry.all_scanners()
    if not scanners:
        print("  No scanners registered.")
        return 0

    print("Registered Scanners:")
    for entry in scanners:
        try:
            version = entry.version()
        except Exception:
            version = "unknown"
        mark = "✓" if entry.is_available() else "✗"
        print(f"  [{mark}] {entry.name:<15} v{version:<10}  ({entry.category})")
    return 0


def _common_options() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--output-dir", default=DEFAULT_OUTPUT_DIR,
                        help="directory for report output files")
    common.add_argument("--format", default=DEFAULT_FORMATS,
                        help="comma-separated output formats: sarif, html, json")
    common.add_argument("--fail-on", default=DEFAULT_FAIL_ON,
                        help="severity threshold for exit 1: critical|high|medium|low")
    common.add_argument("--timeout", default=DEFAULT_TIMEOUT, help="per-scanner timeout")
    common.add_argument("--concurrency", type=int, default=0,
                        help="max parallel scanners (default: CPU count / 2)")
    common.add_argument("--no-tui", action="store_true",
                        help="disable the progress display, use plain text output")
    common.add_argument("--debug", action="store_true",
                        help="enable verbose debug logging to stderr")
    return common


def build_parser() -> argparse.ArgumentParser:
    """The argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        prog="devshield",
        description="Run a complete DevSecOps security scan with a single command.",
    )
    common = _common_options()
    commands = parser.add_subparsers(dest="command")

    scan = commands.add_parser(
        "scan", parents=[common], help="run security scanners on the target path"
    )
    scan.add_argument("path", nargs="?", default=".", help="directory to scan")
    scan.add_argument("--only", default="",
                      help="run only these scanner categories (comma-separated)")
    scan.add_argument("--skip", default="",
                      help="skip these scanner categories (comma-separated)")
    scan.add_argument("--full", action="store_true",
                      help="run every scanner including opt-in")
    scan.set_defaults(handler=run_scan)

    version = commands.add_parser(
        "version", parents=[common], help="show DevShield and all tool versions"
    )
    version.set_defaults(handler=run_version)
    return parser


def _configure_logging(debug: bool) -> None:
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        logger.addHandler(handler)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point; returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 0

    _configure_logging(args.debug)
    register_default_scanners()
    try:
        return handler(args)
    except (OSError, ValueError, RuntimeError, ReportError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())