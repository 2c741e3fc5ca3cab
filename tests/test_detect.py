import os

import pytest

from devshield.detect import (
    detect_context,
    detect_git_remote,
    looks_like_k8s_manifest,
    should_exclude,
    should_skip_dir,
)
from devshield.schema import Language

DEFAULT_EXCLUDE = ["vendor/**", "*_test.go", "node_modules/**"]


def test_go_project(tmp_path):
    (tmp_path / "main.go").write_text("package main")

    context = detect_context(tmp_path, DEFAULT_EXCLUDE, 300.0)

    assert context.root_path == os.path.abspath(tmp_path)
    assert Language.GO in context.languages


def test_multi_language(tmp_path):
    files = {
        "main.go": "package main",
        "app.py": "print('hello')",
        "index.js": "console.log('hi')",
        "style.css": "body {}",
        "README.md": "# test",
    }
    for name, content in files.items():
        (tmp_path / name).write_text(content)

    context = detect_context(tmp_path, DEFAULT_EXCLUDE)

    assert set(context.languages) == {Language.GO, Language.PYTHON, Language.JAVASCRIPT}


def test_docker_detection(tmp_path):
    (tmp_path / "Dockerfile").write_text("FROM alpine")
    assert detect_context(tmp_path, DEFAULT_EXCLUDE).has_docker is True


def test_terraform_detection(tmp_path):
    (tmp_path / "main.tf").write_text("resource {}")
    assert detect_context(tmp_path, DEFAULT_EXCLUDE).has_terraform is True


def test_git_detection(tmp_path):
    (tmp_path / ".git").mkdir()
    assert detect_context(tmp_path, DEFAULT_EXCLUDE).has_git is True


def test_no_git(tmp_path):
    context = detect_context(tmp_path, DEFAULT_EXCLUDE)
    assert context.has_git is False
    assert context.git_remote == ""


def test_without_exclude_patterns(tmp_path):
    (tmp_path / "lib.rs").write_text("fn main() {}")
    context = detect_context(tmp_path, None)
    assert context.languages == [Language.RUST]


def test_timeout_is_carried(tmp_path):
    assert detect_context(tmp_path, None, 42.0).timeout == 42.0


def test_kubernetes_detection(tmp_path):
    (tmp_path / "pod.yaml").write_text("apiVersion: v1\nkind: Pod\n")
    assert detect_context(tmp_path).has_k8s is True


def test_excluded_files_are_ignored(tmp_path):
    (tmp_path / "foo_test.go").write_text("package foo")
    assert detect_context(tmp_path, ["*_test.go"]).languages == []


def test_skipped_directories_are_not_walked(tmp_path):
    vendor = tmp_path / "node_modules" / "pkg"
    vendor.mkdir(parents=True)
    (vendor / "index.js").write_text("x")
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.py").write_text("x")

    assert detect_context(tmp_path).languages == [Language.PYTHON]


def test_git_remote_detected_in_context(tmp_path):
    git = tmp_path / ".git"
    git.mkdir()
    (git / "config").write_text('[remote "origin"]\n\turl = https://example.com/org/repo.git\n')
    assert detect_context(tmp_path).git_remote == "https://example.com/org/repo"


@pytest.mark.parametrize(
    "name",
    [".git", "node_modules", "vendor", ".devshield-reports", "__pycache__",
     ".tox", ".venv", "venv", ".terraform"],
)
def test_should_skip_dir(name):
    assert should_skip_dir(name) is True


@pytest.mark.parametrize("name", ["src", "cmd", "internal", "pkg", "lib", "docs"])
def test_should_not_skip_dir(name):
    assert should_skip_dir(name) is False


def test_should_exclude():
    patterns = ["vendor/**", "*_test.go"]
    assert should_exclude("foo_test.go", patterns) is True
    assert should_exclude("main.go", patterns) is False
    assert should_exclude("anything.go", None) is False


def test_should_exclude_matches_base_name():
    assert should_exclude(os.path.join("src", "foo_test.go"), ["*_test.go"]) is True


def test_should_exclude_star_stops_at_separator():
    nested = os.path.join("src", "lib", "app.py")
    direct = os.path.join("src", "app.py")
    pattern = "src" + os.sep + "*.py"
    assert should_exclude(direct, [pattern]) is True
    assert should_exclude(nested, [pattern]) is False


def test_should_exclude_character_class():
    assert should_exclude("a1.txt", ["a[0-9].txt"]) is True
    assert should_exclude("ab.txt", ["a[0-9].txt"]) is False
    assert should_exclude("ab.txt", ["a[^0-9].txt"]) is True


def test_malformed_pattern_matches_nothing():
    assert should_exclude("[", ["["]) is False


def test_looks_like_k8s_manifest(tmp_path):
    k8s = tmp_path / "pod.yaml"
    k8s.write_text("apiVersion: v1\nkind: Pod\nmetadata:\n  name: test-pod")
    regular = tmp_path / "config.yaml"
    regular.write_text("name: my-app\nversion: 1.0.0")

    assert looks_like_k8s_manifest(k8s) is True
    assert looks_like_k8s_manifest(regular) is False


def test_k8s_markers_after_line_limit_are_not_seen(tmp_path):
    path = tmp_path / "late.yaml"
    path.write_text("# filler\n" * 30 + "apiVersion: v1\nkind: Pod\n")
    assert looks_like_k8s_manifest(path) is False


def test_missing_manifest_is_not_k8s(tmp_path):
    assert looks_like_k8s_manifest(tmp_path / "missing.yaml") is False


def test_git_remote_stops_at_next_section(tmp_path):
    git = tmp_path / ".git"
    git.mkdir()
    (git / "config").write_text(
        '[remote "origin"]\n\tfetch = +refs/heads/*\n[remote "upstream"]\n\turl = https://example.com/x\n'
    )
    assert detect_git_remote(tmp_path) == ""


def test_git_remote_without_config(tmp_path):
    assert detect_git_remote(tmp_path) == ""