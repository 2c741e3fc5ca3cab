"""Project context detection: languages, infrastructure files and git metadata."""

from __future__ import annotations

import os
import re
import stat
from itertools import islice
from typing import Iterable, Iterator

from devshield.schema import Language, ScanContext

EXTENSION_TO_LANGUAGE: dict[str, Language] = {
    ".go": Language.GO,
    ".py": Language.PYTHON,
    ".js": Language.JAVASCRIPT,
    ".jsx": Language.JAVASCRIPT,
    ".ts": Language.TYPESCRIPT,
    ".tsx": Language.TYPESCRIPT,
    ".java": Language.JAVA,
    ".rs": Language.RUST,
    ".rb": Language.RUBY,
    ".php": Language.PHP,
    ".cs": Language.CSHARP,
    ".cpp": Language.CPP,
    ".cc": Language.CPP,
    ".cxx": Language.CPP,
    ".c": Language.C,
    ".h": Language.C,
    ".swift": Language.SWIFT,
    ".kt": Language.KOTLIN,
    ".kts": Language.KOTLIN,
    ".scala": Language.SCALA,
}

TERRAFORM_EXTENSIONS = (".tf", ".tfvars", ".tf.json")

DOCKER_FILES = frozenset({
    "Dockerfile", "dockerfile",
    "docker-compose.yml", "docker-compose.yaml",
    "compose.yml", "compose.yaml",
    "Containerfile",
})

SKIP_DIRS = frozenset({
    ".git", "node_modules", "vendor", ".devshield-reports", "__pycache__",
    ".tox", ".venv", "venv", ".terraform",
})

K8S_SCAN_LINES = 30

_SSH_REMOTE = re.compile(r"[^@/\s]+@(github\.com|gitlab\.com):")


def detect_context(
    root_path: str | os.PathLike[str],
    exclude: Iterable[str] | None = None,
    timeout: float = 300.0,
) -> ScanContext:
    """Walk ``root_path`` and describe the project found there."""
    abs_path = os.path.abspath(root_path)
    context = ScanContext(root_path=abs_path, timeout=timeout)
    patterns = list(exclude or ())

    if os.path.exists(os.path.join(abs_path, ".git")):
        context.has_git = True
        context.git_remote = detect_git_remote(abs_path)

    languages: dict[Language, None] = {}
    for path, name in _walk_files(abs_path):
        rel = os.path.relpath(path, abs_path)
        if should_exclude(rel, patterns):
            continue

        ext = _extension(name).lower()

        language = EXTENSION_TO_LANGUAGE.get(ext)
        if language is not None:
            languages[language] = None

        if name.lower().endswith(TERRAFORM_EXTENSIONS):
            context.has_terraform = True

        if name in DOCKER_FILES:
            context.has_docker = True

        if ext in (".yaml", ".yml") and not context.has_terraform:
            if looks_like_k8s_manifest(path):
                context.has_k8s = True

    context.languages = list(languages)
    return context


def _extension(name: str) -> str:
    dot = name.rfind(".")
    return name[dot:] if dot >= 0 else ""


def _walk_files(root: str) -> Iterator[tuple[str, str]]:
    """Yield (path, name) for every non-directory entry, in lexical order."""
    try:
        info = os.lstat(root)
    except OSError:
        return
    name = os.path.basename(root)
    if not stat.S_ISDIR(info.st_mode):
        yield root, name
        return
    if should_skip_dir(name):
        return
    yield from _walk_dir(root)


def _walk_dir(directory: str) -> Iterator[tuple[str, str]]:
    try:
        with os.scandir(directory) as entries:
            ordered = sorted(entries, key=lambda entry: entry.name)
    except OSError:
        return
    for entry in ordered:
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError:
            continue
        if is_dir:
            if not should_skip_dir(entry.name):
                yield from _walk_dir(entry.path)
        else:
            yield entry.path, entry.name


def should_skip_dir(name: str) -> bool:
    """True for directories that are never walked."""
    return name in SKIP_DIRS


def should_exclude(rel_path: str, patterns: Iterable[str] | None) -> bool:
    """True if the path, or its base name, matches any exclude pattern."""
    if not patterns:
        return False
    base = os.path.basename(rel_path)
    for pattern in patterns:
        regex = _compile_pattern(pattern)
        if regex is None:
            continue
        if regex.fullmatch(rel_path) or regex.fullmatch(base):
            return True
    return False


def _compile_pattern(pattern: str) -> re.Pattern[str] | None:
    """Compile a shell pattern in which ``*`` and ``?`` stop at the path separator.

    Returns None for a malformed pattern.
    """
    sep = re.escape(os.sep)
    escapes = os.sep != "\\"
    out: list[str] = []
    pos, size = 0, len(pattern)
    while pos < size:
        char = pattern[pos]
        pos += 1
        if char == "*":
            out.append(f"[^{sep}]*")
        elif char == "?":
            out.append(f"[^{sep}]")
        elif char == "\\" and escapes:
            if pos >= size:
                return None
            out.append(re.escape(pattern[pos]))
            pos += 1
        elif char == "[":
            negate = pos < size and pattern[pos] == "^"
            if negate:
                pos += 1
            items: list[str] = []
            while True:
                if pos >= size:
                    return None
                if pattern[pos] == "]" and items:
                    pos += 1
                    break
                low, pos = _class_char(pattern, pos, escapes)
                if low is None:
                    return None
                if pos < size and pattern[pos] == "-":
                    high, pos = _class_char(pattern, pos + 1, escapes)
                    if high is None or high < low:
                        return None
                    items.append(f"{re.escape(low)}-{re.escape(high)}")
                else:
                    items.append(re.escape(low))
            out.append(("[^" if negate else "[") + "".join(items) + "]")
        else:
            out.append(re.escape(char))
    return re.compile("".join(out), re.DOTALL)


def _class_char(pattern: str, pos: int, escapes: bool) -> tuple[str | None, int]:
    if pos >= len(pattern) or pattern[pos] in "-]":
        return None, pos
    if pattern[pos] == "\\" and escapes:
        pos += 1
        if pos >= len(pattern):
            return None, pos
    return pattern[pos], pos + 1


def looks_like_k8s_manifest(path: str | os.PathLike[str]) -> bool:
    """True if the first lines of a YAML file hold both ``apiVersion:`` and ``kind:``."""
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            has_api_version = has_kind = False
            for raw in islice(handle, K8S_SCAN_LINES):
                line = raw.strip()
                if line.startswith("apiVersion:"):
                    has_api_version = True
                if line.startswith("kind:"):
                    has_kind = True
                if has_api_version and has_kind:
                    return True
    except OSError:
        return False
    return False


def detect_git_remote(root_path: str | os.PathLike[str]) -> str:
    """URL of the ``origin`` remote from the repository config, or an empty string."""
    config_path = os.path.join(root_path, ".git", "config")
    try:
        with open(config_path, encoding="utf-8", errors="replace") as handle:
            in_origin = False
            for raw in handle:
                line = raw.strip()
                if line == '[remote "origin"]':
                    in_origin = True
                    continue
                if in_origin and line.startswith("url = "):
                    url = line.removeprefix("url = ").removesuffix(".git")
                    return _SSH_REMOTE.sub(r"\1/", url, count=1)
                if line.startswith("[") and in_origin:
                    break
    except OSError:
        return ""
    return ""